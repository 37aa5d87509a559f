# -*- coding: utf-8 -*-
"""
Component Extraction - Binary masks and connected-component measurements.

Helpers shared by the detection strategies: percentile binarization, the
single 3x3 close applied to every detection mask, the locally adaptive
mean mask, and vectorized per-component measurements (pixel count,
bounding box, centroid, mean intensity) over an 8-connected labelling.

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
from dataclasses import dataclass
from typing import List, Tuple

# Third-party
import numpy as np
from scipy.ndimage import find_objects, label

# sarchange internal
from sarchange.constants import ADAPTIVE_MASK_OFFSET, ADAPTIVE_MASK_WINDOW
from sarchange.image_processing.filters.window import rect_sums, summed_area_table
from sarchange.image_processing.morphology import closing

_EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)


@dataclass(frozen=True)
class Component:
    """Measurements of one 8-connected foreground component.

    Attributes
    ----------
    label : int
        Label value in the labelled array (1-based).
    pixels : int
        Foreground pixel count.
    x, y, width, height : int
        Bounding box in pixels of the labelled array.
    centroid : Tuple[float, float]
        Mean ``(x, y)`` of the component's pixels.
    mean_intensity : float
        Mean raster value over the component's pixels.
    rows, cols : slice
        Bounding-box slices into the labelled array.
    """

    label: int
    pixels: int
    x: int
    y: int
    width: int
    height: int
    centroid: Tuple[float, float]
    mean_intensity: float
    rows: slice
    cols: slice

    @property
    def bbox_area(self) -> int:
        return self.width * self.height


def binary_threshold(values: np.ndarray, threshold: float) -> np.ndarray:
    """``values >= threshold`` as a bool mask."""
    return np.asarray(values) >= threshold


def close_mask(mask: np.ndarray) -> np.ndarray:
    """One 3x3 dilate followed by one 3x3 erode (edge taps omitted)."""
    return closing(mask, 1)


def adaptive_binary_mask(
    values: np.ndarray,
    window: int = ADAPTIVE_MASK_WINDOW,
    offset: float = ADAPTIVE_MASK_OFFSET,
) -> np.ndarray:
    """Locally adaptive mean threshold.

    Each pixel is compared against the mean of a ``window``-sized block
    that starts ``window // 2`` before it (clipped at 0) and extends
    ``window`` pixels (clipped at the raster edge), so blocks near the
    bottom/right border are truncated rather than shifted back.

    Returns
    -------
    np.ndarray
        bool mask, ``value >= max(0, block_mean - offset)``.
    """
    values = np.asarray(values, dtype=np.float64)
    rows, cols = values.shape
    half = window // 2

    def _bounds(n: int) -> Tuple[np.ndarray, np.ndarray]:
        start = np.maximum(0, np.arange(n) - half)
        return start, np.minimum(n, start + window)

    r0, r1 = _bounds(rows)
    c0, c1 = _bounds(cols)
    sums = rect_sums(summed_area_table(values), r0, r1, c0, c1)
    counts = (r1 - r0)[:, np.newaxis] * (c1 - c0)[np.newaxis, :]
    means = sums / counts
    return values >= np.maximum(0.0, means - offset)


def label_components(mask: np.ndarray) -> Tuple[np.ndarray, int]:
    """8-connected labelling, labels numbered in raster-scan order."""
    labeled, count = label(np.asarray(mask, dtype=bool), structure=_EIGHT_CONNECTED)
    return labeled, int(count)


def measure_components(
    labeled: np.ndarray,
    count: int,
    values: np.ndarray,
    min_pixels: int = 1,
) -> List[Component]:
    """Measure every labelled component with at least *min_pixels* pixels.

    Fully vectorized: ``np.bincount`` accumulates pixel counts, intensity
    and coordinate sums, ``find_objects`` gives bounding boxes.  The
    Python loop iterates only over the components returned.

    Parameters
    ----------
    labeled : np.ndarray
        Label array from :func:`label_components`.
    count : int
        Number of labels.
    values : np.ndarray
        Raster the intensities are averaged over, same shape.
    min_pixels : int
        Smaller components are skipped.

    Returns
    -------
    List[Component]
        In label order.
    """
    if count == 0:
        return []

    rows, cols = labeled.shape
    flat = labeled.ravel()
    n_bins = count + 1
    pixel_counts = np.bincount(flat, minlength=n_bins)
    intensity_sums = np.bincount(
        flat, weights=np.asarray(values, dtype=np.float64).ravel(),
        minlength=n_bins,
    )
    yy, xx = np.indices((rows, cols))
    x_sums = np.bincount(flat, weights=xx.ravel().astype(np.float64), minlength=n_bins)
    y_sums = np.bincount(flat, weights=yy.ravel().astype(np.float64), minlength=n_bins)
    slices = find_objects(labeled)

    components: List[Component] = []
    for comp_id in range(1, count + 1):
        n_px = int(pixel_counts[comp_id])
        if n_px < min_pixels:
            continue
        row_slice, col_slice = slices[comp_id - 1]
        components.append(Component(
            label=comp_id,
            pixels=n_px,
            x=col_slice.start,
            y=row_slice.start,
            width=col_slice.stop - col_slice.start,
            height=row_slice.stop - row_slice.start,
            centroid=(
                float(x_sums[comp_id] / n_px),
                float(y_sums[comp_id] / n_px),
            ),
            mean_intensity=float(intensity_sums[comp_id] / n_px),
            rows=row_slice,
            cols=col_slice,
        ))
    return components
