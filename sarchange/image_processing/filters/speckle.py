# -*- coding: utf-8 -*-
"""
Speckle Filters - Adaptive Lee, Kuan and Frost filters for SAR intensity.

All three filters share one set of local statistics: the mean and
population variance of a square window around each pixel, with taps that
fall outside the raster omitted (border pixels see an asymmetric, smaller
window).  Global mean and variance are computed once per raster.

Algorithm
---------
With local mean ``m``, local variance ``v``, global variance ``V`` and the
observed sample ``x``::

    lee   : w = v / (v + V + eps)                     out = m + w (x - m)
    kuan  : Ci2 = v / max(m^2, eps)
            w = clamp(1 - (1/ENL) / max(Ci2, eps), 0, 1)  out = m + w (x - m)
    frost : k = exp(-D v / max(V, eps))               out = k m + (1 - k) x

with ``ENL = 4`` and damping ``D = 2``.  Local statistics are held in
float32, matching the reference rasters the constants were tuned on.

Non-finite samples contribute zero to the window sums and are excluded
from the global statistics.

Dependencies
------------
numpy

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
import logging
from typing import Annotated, Any, Tuple, Union

# Third-party
import numpy as np

# sarchange internal
from sarchange.constants import (
    DEFAULT_SPECKLE_WINDOW,
    EPSILON,
    FROST_DAMPING,
    KUAN_ENL,
)
from sarchange.exceptions import ValidationError
from sarchange.image_processing.base import ImageTransform
from sarchange.image_processing.filters.window import window_sums
from sarchange.image_processing.params import Desc, Options
from sarchange.image_processing.versioning import processor_tags, processor_version
from sarchange.models import RasterBuffer, ensure_2d
from sarchange.vocabulary import ImageModality, ProcessorCategory, SpeckleFilterKind

logger = logging.getLogger(__name__)


def resolve_kind(kind: Union[str, SpeckleFilterKind]) -> SpeckleFilterKind:
    """Coerce a filter name or enum member to ``SpeckleFilterKind``.

    Raises
    ------
    ValidationError
        If *kind* is not a known filter.
    """
    if isinstance(kind, SpeckleFilterKind):
        return kind
    try:
        return SpeckleFilterKind(str(kind).lower())
    except ValueError:
        valid = tuple(k.value for k in SpeckleFilterKind)
        raise ValidationError(
            f"Unknown speckle filter {kind!r}. Must be one of {valid}"
        ) from None


def clamp_window_size(window_size: int) -> int:
    """Clamp a non-positive window size to 1 (pass-through)."""
    window_size = int(window_size)
    if window_size < 1:
        logger.warning(
            "Speckle window size %d is not positive; clamping to 1",
            window_size,
        )
        return 1
    return window_size


def _local_statistics(
    image: np.ndarray,
    radius: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """float32-rounded local mean and variance of an edge-clipped window."""
    sums, counts = window_sums(image, radius)
    sq_sums, _ = window_sums(image * image, radius)
    mean = (sums / counts).astype(np.float32).astype(np.float64)
    var = sq_sums / counts - mean * mean
    np.maximum(var, 0.0, out=var)
    return mean, var.astype(np.float32).astype(np.float64)


def _global_statistics(image: np.ndarray) -> Tuple[float, float]:
    finite = image[np.isfinite(image)]
    if finite.size == 0:
        return 0.0, 0.0
    mean = float(finite.mean())
    var = float(np.mean((finite - mean) ** 2))
    return mean, var


def speckle_filter_2d(
    image: np.ndarray,
    kind: Union[str, SpeckleFilterKind] = SpeckleFilterKind.NONE,
    window_size: int = DEFAULT_SPECKLE_WINDOW,
) -> np.ndarray:
    """Apply a speckle filter to a 2D raster.

    Parameters
    ----------
    image : np.ndarray
        2D ``(rows, cols)`` intensity raster.
    kind : str or SpeckleFilterKind
        ``'none'``, ``'lee'``, ``'kuan'`` or ``'frost'``.
    window_size : int
        Window side length; radius is ``max(1, window_size // 2)``.
        Sizes <= 1 disable filtering.

    Returns
    -------
    np.ndarray
        New float32 array, same shape.  The input is never modified or
        aliased, even for pass-through.
    """
    image = ensure_2d(image, 'image')
    kind = resolve_kind(kind)
    window_size = clamp_window_size(window_size)
    values = image.astype(np.float64)

    if kind is SpeckleFilterKind.NONE or window_size <= 1:
        return image.astype(np.float32, copy=True)

    radius = max(1, window_size // 2)
    finite = np.isfinite(values)
    stats_input = np.where(finite, values, 0.0)
    mean, var = _local_statistics(stats_input, radius)
    _, global_var = _global_statistics(values)

    if kind is SpeckleFilterKind.LEE:
        weight = var / (var + global_var + EPSILON)
        out = mean + weight * (values - mean)
    elif kind is SpeckleFilterKind.KUAN:
        ci2 = var / np.maximum(mean * mean, EPSILON)
        sigma_s2 = 1.0 / KUAN_ENL
        weight = np.clip(1.0 - sigma_s2 / np.maximum(ci2, EPSILON), 0.0, 1.0)
        out = mean + weight * (values - mean)
    else:
        coeff = np.exp(-FROST_DAMPING * var / max(global_var, EPSILON))
        out = coeff * mean + (1.0 - coeff) * values

    logger.debug(
        "Speckle filter %s (window %d) applied to %dx%d raster",
        kind.value, window_size, image.shape[1], image.shape[0],
    )
    return out.astype(np.float32)


def apply_speckle_filter(
    samples: np.ndarray,
    width: int,
    height: int,
    kind: Union[str, SpeckleFilterKind] = SpeckleFilterKind.NONE,
    window_size: int = DEFAULT_SPECKLE_WINDOW,
) -> np.ndarray:
    """Flat-buffer form of :func:`speckle_filter_2d`.

    Parameters
    ----------
    samples : np.ndarray
        Row-major sample vector of length ``width * height``.

    Returns
    -------
    np.ndarray
        New flat float32 vector.

    Raises
    ------
    ValidationError
        If the sample count does not match the geometry.
    """
    samples = np.asarray(samples)
    if samples.size != width * height:
        raise ValidationError(
            f"Sample count {samples.size} does not match "
            f"{width}x{height}"
        )
    image = samples.reshape(height, width)
    return speckle_filter_2d(image, kind, window_size).ravel()


@processor_version('1.0.0')
@processor_tags(category=ProcessorCategory.FILTERS,
                modalities=[ImageModality.SAR])
class SpeckleFilter(ImageTransform):
    """Adaptive speckle filter (Lee, Kuan or Frost) for SAR intensity.

    Parameters
    ----------
    kind : str
        ``'none'``, ``'lee'``, ``'kuan'`` or ``'frost'``. Default ``'none'``.
    window_size : int
        Square window side length. Values <= 0 are clamped to 1; sizes
        <= 1 pass the image through unchanged. Default 3.

    Examples
    --------
    >>> lee = SpeckleFilter(kind='lee', window_size=5)
    >>> despeckled = lee.apply(intensity)
    >>> frost = lee.apply(intensity, kind='frost')
    """

    kind: Annotated[str, Options('none', 'lee', 'kuan', 'frost'),
                    Desc('Speckle filter kind')] = 'none'
    window_size: Annotated[int, Desc('Square window side length')] = 3

    def __init__(
        self,
        kind: Union[str, SpeckleFilterKind] = 'none',
        window_size: int = DEFAULT_SPECKLE_WINDOW,
    ) -> None:
        self.kind = resolve_kind(kind).value
        self.window_size = clamp_window_size(window_size)

    def apply(self, source: np.ndarray, **kwargs: Any) -> np.ndarray:
        """Filter a 2D raster.

        Returns
        -------
        np.ndarray
            Despeckled float32 raster, same shape.
        """
        if 'kind' in kwargs:
            kwargs['kind'] = resolve_kind(kwargs['kind']).value
        if 'window_size' in kwargs:
            kwargs['window_size'] = clamp_window_size(kwargs['window_size'])
        params = self._resolve_params(kwargs)
        return speckle_filter_2d(source, params['kind'], params['window_size'])

    def filter_raster(self, raster: RasterBuffer) -> RasterBuffer:
        """Filter a ``RasterBuffer``, keeping its georeferencing."""
        filtered = self.apply(raster.as_2d())
        return RasterBuffer.from_array(
            filtered, raster.bounds, raster.pixel_scale,
        )
