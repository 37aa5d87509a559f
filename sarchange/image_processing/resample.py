# -*- coding: utf-8 -*-
"""
Resampling - Nearest-neighbour alignment and preview downscaling.

``resample_nearest`` aligns a raster to another raster's geometry (the
"before" image is brought onto the "after" grid when their dimensions
differ) and builds the reduced-resolution rasters of the multi-scale
detector.  Source indices use pixel-centre alignment::

    src = min(src_n - 1, round_half_up((dst + 0.5) * src_n / dst_n - 0.5))

``downscale_for_preview`` shrinks a raster so its longest edge fits a
preview size limit, and ``downscale_mask`` reduces a binary mask by majority
vote so thin features are not aliased away.

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
from typing import Tuple

# Third-party
import numpy as np

# sarchange internal
from sarchange.exceptions import ValidationError
from sarchange.image_processing.filters.window import rect_sums, summed_area_table
from sarchange.image_processing.utils import round_half_up
from sarchange.models import RasterBuffer, ensure_2d


def _nearest_indices(src_n: int, dst_n: int) -> np.ndarray:
    ratio = src_n / dst_n
    idx = round_half_up((np.arange(dst_n) + 0.5) * ratio - 0.5)
    return np.clip(idx, 0, src_n - 1).astype(np.intp)


def resample_nearest(
    source: np.ndarray,
    dst_width: int,
    dst_height: int,
) -> np.ndarray:
    """Nearest-neighbour resample a 2D raster to ``(dst_height, dst_width)``.

    Parameters
    ----------
    source : np.ndarray
        2D ``(rows, cols)`` array of any dtype.
    dst_width, dst_height : int
        Target geometry, both >= 1.

    Returns
    -------
    np.ndarray
        New array with the source dtype.  Identical geometry returns a
        copy.

    Raises
    ------
    ValidationError
        If the target geometry is not positive.
    """
    source = ensure_2d(source)
    if dst_width < 1 or dst_height < 1:
        raise ValidationError(
            f"Target dimensions must be positive, got "
            f"{dst_width}x{dst_height}"
        )
    src_height, src_width = source.shape
    if (src_width, src_height) == (dst_width, dst_height):
        return source.copy()
    rows = _nearest_indices(src_height, dst_height)
    cols = _nearest_indices(src_width, dst_width)
    return source[np.ix_(rows, cols)]


def align_raster(raster: RasterBuffer, target: RasterBuffer) -> RasterBuffer:
    """Resample *raster* onto *target*'s pixel grid.

    Georeferencing of *raster* is carried over unchanged.
    """
    if raster.shape == target.shape:
        return raster
    aligned = resample_nearest(raster.as_2d(), target.width, target.height)
    return RasterBuffer.from_array(aligned, raster.bounds, raster.pixel_scale)


def preview_geometry(width: int, height: int, max_edge: int) -> Tuple[int, int]:
    """Preview ``(width, height)`` whose longest edge is at most *max_edge*."""
    if max(width, height) <= max_edge:
        return width, height
    scale = max_edge / max(width, height)
    return (
        max(1, round_half_up(width * scale)),
        max(1, round_half_up(height * scale)),
    )


def downscale_for_preview(source: np.ndarray, max_edge: int) -> np.ndarray:
    """Shrink a 2D raster so its longest edge is at most *max_edge*.

    Rasters already within the limit are returned as-is (not copied).
    """
    source = ensure_2d(source)
    height, width = source.shape
    dst_width, dst_height = preview_geometry(width, height, max_edge)
    if (dst_width, dst_height) == (width, height):
        return source
    return resample_nearest(source, dst_width, dst_height)


def downscale_mask(
    mask: np.ndarray,
    dst_width: int,
    dst_height: int,
) -> np.ndarray:
    """Reduce a binary mask by majority vote.

    Output pixel ``(y, x)`` covers source rows
    ``floor(y * H / h) .. min(H - 1, floor((y + 1) * H / h))`` (inclusive,
    likewise for columns) and is set when strictly more than half of
    those pixels are set.

    Returns
    -------
    np.ndarray
        bool array of shape ``(dst_height, dst_width)``.
    """
    mask = ensure_2d(mask, 'mask').astype(bool)
    src_height, src_width = mask.shape

    def _spans(src_n: int, dst_n: int) -> Tuple[np.ndarray, np.ndarray]:
        idx = np.arange(dst_n)
        start = (idx * src_n) // dst_n
        stop = np.minimum(src_n - 1, ((idx + 1) * src_n) // dst_n)
        return start, stop + 1

    r0, r1 = _spans(src_height, dst_height)
    c0, c1 = _spans(src_width, dst_width)
    totals = rect_sums(summed_area_table(mask), r0, r1, c0, c1)
    counts = (r1 - r0)[:, np.newaxis] * (c1 - c0)[np.newaxis, :]
    return totals > counts / 2.0
