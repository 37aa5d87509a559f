# -*- coding: utf-8 -*-
"""
Binary Morphology - Mask cleanup for change masks.

Dilation and erosion use a square ``(2r+1) x (2r+1)`` structuring element
(Chebyshev radius ``r``).  Taps outside the raster are ignored rather than
padded: dilation treats the outside as background and erosion treats it
as foreground, so a mask touching the border is not eaten away by the
edge.  Hole filling floods the background 4-connected from the border;
small-component removal labels foreground 4-connected.

``post_process`` applies the cleanup stages in a fixed order::

    opening -> closing -> fill holes -> remove small components

Dependencies
------------
scipy

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
import dataclasses
import logging
from dataclasses import dataclass
from typing import Annotated, Any

# Third-party
import numpy as np
from scipy.ndimage import (
    binary_dilation,
    binary_erosion,
    binary_fill_holes,
    label,
)

# sarchange internal
from sarchange.image_processing.base import ImageTransform
from sarchange.image_processing.params import Desc, Range
from sarchange.image_processing.versioning import processor_tags, processor_version
from sarchange.models import ensure_2d
from sarchange.vocabulary import ProcessorCategory

logger = logging.getLogger(__name__)


def _square(radius: int) -> np.ndarray:
    return np.ones((2 * radius + 1, 2 * radius + 1), dtype=bool)


def _as_mask(mask: np.ndarray) -> np.ndarray:
    return ensure_2d(mask, 'mask').astype(bool)


def dilate(mask: np.ndarray, radius: int) -> np.ndarray:
    """Binary dilation with a square window; ``radius <= 0`` copies."""
    mask = _as_mask(mask)
    if radius <= 0:
        return mask.copy()
    return binary_dilation(mask, structure=_square(radius), border_value=0)


def erode(mask: np.ndarray, radius: int) -> np.ndarray:
    """Binary erosion with a square window; ``radius <= 0`` copies."""
    mask = _as_mask(mask)
    if radius <= 0:
        return mask.copy()
    return binary_erosion(mask, structure=_square(radius), border_value=1)


def opening(mask: np.ndarray, radius: int) -> np.ndarray:
    """Erode then dilate. Removes foreground specks narrower than the window."""
    return dilate(erode(mask, radius), radius)


def closing(mask: np.ndarray, radius: int) -> np.ndarray:
    """Dilate then erode. Bridges gaps narrower than the window."""
    return erode(dilate(mask, radius), radius)


def fill_holes(mask: np.ndarray) -> np.ndarray:
    """Set every background pixel not 4-connected to the raster border."""
    return binary_fill_holes(_as_mask(mask))


def remove_small_components(mask: np.ndarray, min_area: int) -> np.ndarray:
    """Clear 4-connected foreground components smaller than *min_area*.

    ``min_area <= 1`` returns an unchanged copy.
    """
    mask = _as_mask(mask)
    if min_area <= 1:
        return mask.copy()
    labels, count = label(mask)
    if count == 0:
        return mask.copy()
    sizes = np.bincount(labels.ravel())
    small = sizes < min_area
    small[0] = False
    logger.debug(
        "Removing %d of %d components below %d pixels",
        int(np.count_nonzero(small)), count, min_area,
    )
    return mask & ~small[labels]


@dataclass(frozen=True)
class PostProcessOptions:
    """Change-mask cleanup settings.

    Attributes
    ----------
    opening_radius : int
        Radius of the opening stage; 0 skips it.
    closing_radius : int
        Radius of the closing stage; 0 skips it.
    fill_holes : bool
        Fill enclosed background regions.
    min_blob_area : int
        Components smaller than this are removed; <= 1 skips the stage.
    """

    opening_radius: int = 0
    closing_radius: int = 0
    fill_holes: bool = False
    min_blob_area: int = 0

    def __post_init__(self) -> None:
        for name in ('opening_radius', 'closing_radius', 'min_blob_area'):
            value = int(getattr(self, name))
            if value < 0:
                logger.warning(
                    "PostProcessOptions.%s=%d is negative; clamped to 0",
                    name, value,
                )
                value = 0
            object.__setattr__(self, name, value)
        object.__setattr__(self, 'fill_holes', bool(self.fill_holes))


_OPTION_FIELDS = tuple(f.name for f in dataclasses.fields(PostProcessOptions))


def post_process(mask: np.ndarray, options: PostProcessOptions) -> np.ndarray:
    """Run the cleanup stages enabled in *options* on a copy of *mask*."""
    out = _as_mask(mask).copy()
    if options.opening_radius > 0:
        out = opening(out, options.opening_radius)
    if options.closing_radius > 0:
        out = closing(out, options.closing_radius)
    if options.fill_holes:
        out = fill_holes(out)
    if options.min_blob_area > 1:
        out = remove_small_components(out, options.min_blob_area)
    return out


@processor_version('1.0.0')
@processor_tags(category=ProcessorCategory.BINARY)
class MorphologyEngine(ImageTransform):
    """Change-mask cleanup as a tunable processor.

    Parameters
    ----------
    opening_radius : int
        Opening radius. Default 0 (off).
    closing_radius : int
        Closing radius. Default 0 (off).
    fill_holes : bool
        Fill enclosed holes. Default False.
    min_blob_area : int
        Minimum component area in pixels. Default 0 (off).

    Examples
    --------
    >>> cleanup = MorphologyEngine(closing_radius=1, min_blob_area=80)
    >>> clean = cleanup.apply(raw_mask)
    >>> filled = cleanup.apply(raw_mask, fill_holes=True)
    """

    opening_radius: Annotated[int, Range(min=0), Desc('Opening radius')] = 0
    closing_radius: Annotated[int, Range(min=0), Desc('Closing radius')] = 0
    fill_holes: Annotated[bool, Desc('Fill enclosed holes')] = False
    min_blob_area: Annotated[int, Range(min=0), Desc('Minimum blob area')] = 0

    def __init__(
        self,
        opening_radius: int = 0,
        closing_radius: int = 0,
        fill_holes: bool = False,
        min_blob_area: int = 0,
    ) -> None:
        opts = PostProcessOptions(
            opening_radius, closing_radius, fill_holes, min_blob_area,
        )
        self.opening_radius = opts.opening_radius
        self.closing_radius = opts.closing_radius
        self.fill_holes = opts.fill_holes
        self.min_blob_area = opts.min_blob_area

    @classmethod
    def from_options(cls, options: PostProcessOptions) -> 'MorphologyEngine':
        return cls(
            options.opening_radius, options.closing_radius,
            options.fill_holes, options.min_blob_area,
        )

    @property
    def options(self) -> PostProcessOptions:
        return PostProcessOptions(
            self.opening_radius, self.closing_radius,
            self.fill_holes, self.min_blob_area,
        )

    def apply(self, source: np.ndarray, **kwargs: Any) -> np.ndarray:
        """Clean a 2D mask; returns a new bool mask of the same shape."""
        overrides = {
            name: kwargs[name] for name in _OPTION_FIELDS if name in kwargs
        }
        if overrides:
            clamped = dataclasses.replace(self.options, **overrides)
            kwargs.update(
                {name: getattr(clamped, name) for name in overrides}
            )
        params = self._resolve_params(kwargs)
        return post_process(source, PostProcessOptions(**params))
