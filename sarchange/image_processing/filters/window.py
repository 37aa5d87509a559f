# -*- coding: utf-8 -*-
"""
Windowed Statistics - Edge-clipped square-window sums via a summed area table.

Every local statistic in the pipeline (speckle filter mean/variance, the
adaptive and LOF segmentation averages, the adaptive detection mask) uses
a square window whose taps falling outside the raster are *omitted*: a
border pixel averages over fewer samples instead of a reflected or
zero-padded neighbourhood.  A summed area table gives that in O(N) for any
radius, and on integer-valued rasters the sums are exact.

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


def summed_area_table(image: np.ndarray) -> np.ndarray:
    """Summed area table with a leading row and column of zeros.

    ``sat[r, c]`` is the sum of ``image[:r, :c]``.
    """
    rows, cols = image.shape
    sat = np.zeros((rows + 1, cols + 1), dtype=np.float64)
    sat[1:, 1:] = np.cumsum(
        np.cumsum(image.astype(np.float64), axis=0), axis=1,
    )
    return sat


def rect_sums(
    sat: np.ndarray,
    r0: np.ndarray,
    r1: np.ndarray,
    c0: np.ndarray,
    c1: np.ndarray,
) -> np.ndarray:
    """Sums over half-open rectangles ``[r0, r1) x [c0, c1)``.

    ``r0``/``r1`` index rows and broadcast against ``c0``/``c1``.
    """
    r0 = r0[:, np.newaxis]
    r1 = r1[:, np.newaxis]
    c0 = c0[np.newaxis, :]
    c1 = c1[np.newaxis, :]
    return sat[r1, c1] - sat[r0, c1] - sat[r1, c0] + sat[r0, c0]


def _clipped_bounds(n: int, radius: int) -> Tuple[np.ndarray, np.ndarray]:
    idx = np.arange(n)
    return (
        np.clip(idx - radius, 0, n),
        np.clip(idx + radius + 1, 0, n),
    )


def window_sums(
    image: np.ndarray,
    radius: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sum and tap count of an edge-clipped ``(2r+1)^2`` window.

    Parameters
    ----------
    image : np.ndarray
        2D array.
    radius : int
        Window half-width; ``0`` is the pixel itself.

    Returns
    -------
    sums : np.ndarray
        float64 window sums, same shape as *image*.
    counts : np.ndarray
        int64 number of in-bounds taps per pixel.
    """
    rows, cols = image.shape
    r0, r1 = _clipped_bounds(rows, radius)
    c0, c1 = _clipped_bounds(cols, radius)
    sums = rect_sums(summed_area_table(image), r0, r1, c0, c1)
    counts = (r1 - r0)[:, np.newaxis] * (c1 - c0)[np.newaxis, :]
    return sums, counts


def local_mean(image: np.ndarray, radius: int) -> np.ndarray:
    """Edge-clipped box average of radius *radius*."""
    sums, counts = window_sums(image, radius)
    return sums / counts


def local_mean_var(
    image: np.ndarray,
    radius: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Edge-clipped local mean and population variance.

    Variance uses ``E[X^2] - E[X]^2`` floored at zero.
    """
    x = image.astype(np.float64)
    sums, counts = window_sums(x, radius)
    sq_sums, _ = window_sums(x * x, radius)
    mean = sums / counts
    var = sq_sums / counts - mean * mean
    np.maximum(var, 0.0, out=var)
    return mean, var
