# -*- coding: utf-8 -*-
"""
Raster Models - Immutable single-band raster value type.

``RasterBuffer`` is the unit of exchange between the raster decoding
collaborator and every pipeline stage: a flat ``float32`` sample vector in
row-major order, its geometry, and optional geographic bounds and pixel
scale.  Stages never mutate a buffer they receive; each produces a new
array (or a new ``RasterBuffer``).

Coordinate Conventions
----------------------
- Pixel ``(x, y)`` = ``(col, row)``, origin at top-left.
- ``bounds`` = ``(min_x, min_y, max_x, max_y)`` in geographic degrees
  (longitude, latitude).
- ``pixel_scale`` = ``(meters_per_pixel_x, meters_per_pixel_y)``.

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-18

Modified
--------
2026-10-18
"""

# Standard library
from dataclasses import dataclass
from typing import Optional, Tuple

# Third-party
import numpy as np

# sarchange internal
from sarchange.exceptions import ValidationError

Bounds = Tuple[float, float, float, float]
PixelScale = Tuple[float, float]


@dataclass(frozen=True)
class RasterBuffer:
    """Single-band raster with optional georeferencing.

    Parameters
    ----------
    width : int
        Number of columns.
    height : int
        Number of rows.
    samples : np.ndarray
        Flat sample vector of length ``width * height``, row-major.
        Stored as a read-only ``float32`` copy.
    bounds : Tuple[float, float, float, float], optional
        ``(min_x, min_y, max_x, max_y)`` geographic bounding box.
    pixel_scale : Tuple[float, float], optional
        Ground sample distance ``(sx, sy)`` in meters per pixel.

    Raises
    ------
    ValidationError
        If the sample count does not equal ``width * height`` or a
        dimension is not positive.
    """

    width: int
    height: int
    samples: np.ndarray
    bounds: Optional[Bounds] = None
    pixel_scale: Optional[PixelScale] = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValidationError(
                f"Raster dimensions must be positive, got "
                f"{self.width}x{self.height}"
            )
        samples = np.array(self.samples, dtype=np.float32).ravel()
        if samples.size != self.width * self.height:
            raise ValidationError(
                f"Sample count {samples.size} does not match "
                f"{self.width}x{self.height} = {self.width * self.height}"
            )
        samples.setflags(write=False)
        object.__setattr__(self, 'samples', samples)
        if self.bounds is not None:
            object.__setattr__(
                self, 'bounds', tuple(float(v) for v in self.bounds),
            )
        if self.pixel_scale is not None:
            object.__setattr__(
                self, 'pixel_scale',
                tuple(float(v) for v in self.pixel_scale),
            )

    @classmethod
    def from_array(
        cls,
        array: np.ndarray,
        bounds: Optional[Bounds] = None,
        pixel_scale: Optional[PixelScale] = None,
    ) -> 'RasterBuffer':
        """Build a buffer from a 2D ``(rows, cols)`` array.

        Raises
        ------
        ValidationError
            If ``array`` is not 2D.
        """
        array = np.asarray(array)
        if array.ndim != 2:
            raise ValidationError(
                f"Expected 2D array, got shape {array.shape}"
            )
        rows, cols = array.shape
        return cls(cols, rows, array.ravel(), bounds, pixel_scale)

    @property
    def shape(self) -> Tuple[int, int]:
        """Array shape ``(height, width)``."""
        return (self.height, self.width)

    @property
    def size(self) -> int:
        return self.width * self.height

    def as_2d(self) -> np.ndarray:
        """Read-only ``(height, width)`` view of the samples."""
        return self.samples.reshape(self.height, self.width)

    def __repr__(self) -> str:
        return (
            f"RasterBuffer({self.width}x{self.height}, "
            f"bounds={self.bounds!r}, pixel_scale={self.pixel_scale!r})"
        )


def ensure_2d(array: np.ndarray, name: str = 'source') -> np.ndarray:
    """Return *array* as an ndarray, requiring exactly two dimensions.

    Raises
    ------
    ValidationError
        If the array is not 2D.
    """
    array = np.asarray(array)
    if array.ndim != 2:
        raise ValidationError(
            f"{name} must be a 2D array, got shape {array.shape}"
        )
    return array


def pixel_area_m2(pixel_scale: Optional[PixelScale]) -> Optional[float]:
    """Ground area of one pixel in square meters.

    Returns ``None`` when no pixel scale is available or the product is
    not a finite positive number.
    """
    if pixel_scale is None:
        return None
    area = abs(float(pixel_scale[0]) * float(pixel_scale[1]))
    if not np.isfinite(area) or area <= 0.0:
        return None
    return area
