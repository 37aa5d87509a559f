# -*- coding: utf-8 -*-
"""
Change Segmentation - Binarize a normalized difference raster.

Six interchangeable algorithms turn the 0-255 difference raster into a
boolean change mask.  The algorithm is selected by the type of the options
object, so the dispatch is exhaustive over the options union:

=================  ===================================================
otsu               global histogram threshold, ``value > t``
adaptive           ``value > box_mean(r=3) + 8``
kmeans             brightest cluster of a 1D k-means
isolation_forest   ``value >= rank quantile at 1 - contamination``
lof                ``value - box_mean(r=2) > 12``
pca                ``|z| >= rank quantile of |z| at 1 - contamination``
=================  ===================================================

Every algorithm is deterministic: identical input and options produce an
identical mask.

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
from typing import Annotated, Any, Optional, Tuple

# Third-party
import numpy as np

# sarchange internal
from sarchange.constants import EPSILON
from sarchange.exceptions import ValidationError
from sarchange.image_processing.base import ImageTransform
from sarchange.image_processing.filters.window import local_mean
from sarchange.image_processing.params import Desc, Options
from sarchange.image_processing.segmentation.options import (
    AdaptiveOptions,
    IsolationForestOptions,
    KMeansOptions,
    LofOptions,
    OtsuOptions,
    PcaOptions,
    SegmentationOptions,
    make_segmentation_options,
)
from sarchange.image_processing.utils import round_half_up
from sarchange.image_processing.versioning import processor_tags, processor_version
from sarchange.models import ensure_2d
from sarchange.vocabulary import ProcessorCategory, SegmentationAlgorithm

logger = logging.getLogger(__name__)


def otsu_threshold(values: np.ndarray) -> int:
    """Otsu threshold of a 0-255 raster.

    Scans the 256-bin histogram and returns the first bin whose
    between-class variance ``wB * wF * (mB - mF)^2`` strictly exceeds every
    earlier bin's.  Bins with an empty background or foreground class are
    skipped.  The returned bin is the top of the background class, so the
    foreground is ``values > threshold``.

    Returns
    -------
    int
        Threshold in [0, 255]; 0 for a constant raster.
    """
    levels = np.clip(np.asarray(values).ravel(), 0, 255).astype(np.intp)
    histogram = np.bincount(levels, minlength=256).astype(np.float64)
    bins = np.arange(256, dtype=np.float64)
    total = float(levels.size)
    weighted_total = float(np.dot(bins, histogram))

    w_b = np.cumsum(histogram)
    sum_b = np.cumsum(bins * histogram)
    w_f = total - w_b
    valid = (w_b > 0) & (w_f > 0)
    if not np.any(valid):
        return 0

    with np.errstate(divide='ignore', invalid='ignore'):
        m_b = sum_b / w_b
        m_f = (weighted_total - sum_b) / w_f
        diff = m_b - m_f
        variance = w_b * w_f * diff * diff
    variance = np.where(valid, variance, 0.0)
    best = int(np.argmax(variance))
    if variance[best] <= 0.0:
        return 0
    return best


def kmeans_1d(
    values: np.ndarray,
    clusters: int,
    iterations: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Lloyd's k-means on scalar values.

    Parameters
    ----------
    values : np.ndarray
        Values of any shape (flattened).
    clusters : int
        Number of clusters, >= 1.
    iterations : int
        Assignment/update rounds.

    Returns
    -------
    centers : np.ndarray
        float64 array of shape ``(clusters,)``.
    labels : np.ndarray
        intp cluster index per value (flattened order).

    Notes
    -----
    Centres start at ``values[min(n - 1, i * max(1, n // clusters))]``.
    Ties in distance go to the lowest cluster index; a cluster that loses
    all members keeps its previous centre.

    uint8 input is clustered over its 256-level histogram, so memory does
    not grow with the number of values.
    """
    x = np.asarray(values).ravel()
    n = x.size
    if n == 0:
        raise ValidationError("kmeans_1d requires at least one value")
    step = max(1, n // clusters)
    seeds = np.minimum(n - 1, np.arange(clusters) * step)
    centers = x[seeds].astype(np.float64)

    if x.dtype == np.uint8:
        histogram = np.bincount(x, minlength=256).astype(np.float64)
        levels = np.arange(256, dtype=np.float64)
        centers, level_labels = _lloyd(levels, histogram, centers, iterations)
        return centers, level_labels[x]

    x = x.astype(np.float64)
    return _lloyd(x, np.ones_like(x), centers, iterations)


def _lloyd(
    points: np.ndarray,
    weights: np.ndarray,
    centers: np.ndarray,
    iterations: int,
) -> Tuple[np.ndarray, np.ndarray]:
    clusters = centers.size
    labels = np.zeros(points.size, dtype=np.intp)
    for _ in range(iterations):
        distance = np.abs(points[:, np.newaxis] - centers[np.newaxis, :])
        labels = np.argmin(distance, axis=1)
        sums = np.bincount(labels, weights=points * weights, minlength=clusters)
        counts = np.bincount(labels, weights=weights, minlength=clusters)
        occupied = counts > 0
        centers[occupied] = sums[occupied] / counts[occupied]
    return centers, labels


def brightest_cluster(centers: np.ndarray) -> int:
    """Index of the highest centre; the last such index among ties."""
    centers = np.asarray(centers)
    return int(centers.size - 1 - np.argmax(centers[::-1]))


def rank_threshold(values: np.ndarray, contamination: float) -> float:
    """Value at rank ``round_half_up(n * (1 - contamination))`` of the sorted input."""
    ordered = np.sort(np.asarray(values, dtype=np.float64).ravel())
    n = ordered.size
    index = min(n - 1, max(0, round_half_up(n * (1.0 - contamination))))
    return float(ordered[index])


def _otsu_mask(diff: np.ndarray, options: OtsuOptions) -> np.ndarray:
    if options.manual_threshold is not None:
        threshold = round_half_up(options.manual_threshold * 255.0)
    else:
        threshold = otsu_threshold(diff)
    logger.debug("Otsu threshold %d", threshold)
    return diff > threshold


def _kmeans_mask(diff: np.ndarray, options: KMeansOptions) -> np.ndarray:
    centers, labels = kmeans_1d(diff, options.clusters, options.iterations)
    changed = brightest_cluster(centers)
    logger.debug("k-means centres %s, change cluster %d", centers, changed)
    return (labels == changed).reshape(diff.shape)


def _pca_mask(diff: np.ndarray, options: PcaOptions) -> np.ndarray:
    mean = float(np.mean(diff))
    std = max(float(np.sqrt(np.mean((diff - mean) ** 2))), EPSILON)
    scores = np.abs((diff - mean) / std)
    return scores >= rank_threshold(scores, options.contamination)


def segment(diff: np.ndarray, options: SegmentationOptions) -> np.ndarray:
    """Binarize a normalized difference raster.

    Parameters
    ----------
    diff : np.ndarray
        2D 0-255 difference raster (uint8 or real-valued).
    options : SegmentationOptions
        One of the six options types; selects the algorithm.

    Returns
    -------
    np.ndarray
        bool change mask, same shape as *diff*.

    Raises
    ------
    ValidationError
        If *diff* is not 2D or *options* is not a segmentation options
        object.
    """
    values = ensure_2d(diff, 'diff').astype(np.float64)

    if isinstance(options, OtsuOptions):
        mask = _otsu_mask(values, options)
    elif isinstance(options, AdaptiveOptions):
        mask = values > local_mean(values, options.radius) + options.offset
    elif isinstance(options, KMeansOptions):
        mask = _kmeans_mask(values, options)
    elif isinstance(options, IsolationForestOptions):
        mask = values >= rank_threshold(values, options.contamination)
    elif isinstance(options, LofOptions):
        mask = values - local_mean(values, options.radius) > options.offset
    elif isinstance(options, PcaOptions):
        mask = _pca_mask(values, options)
    else:
        raise ValidationError(
            f"Unsupported segmentation options {type(options).__name__}"
        )

    logger.debug(
        "%s segmentation marked %d of %d pixels",
        options.algorithm.value, int(np.count_nonzero(mask)), mask.size,
    )
    return mask


@processor_version('1.0.0')
@processor_tags(category=ProcessorCategory.SEGMENTATION)
class SegmentationEngine(ImageTransform):
    """Change-mask segmentation of a normalized difference raster.

    Parameters
    ----------
    options : SegmentationOptions, optional
        Algorithm and its parameters. Default ``OtsuOptions()``.

    Notes
    -----
    Overriding ``algorithm`` at call time switches to that algorithm's
    default parameters; pass ``options=`` to override both.

    Examples
    --------
    >>> engine = SegmentationEngine(KMeansOptions(clusters=3))
    >>> mask = engine.apply(diff_display)
    >>> otsu_mask = engine.apply(diff_display, algorithm='otsu')
    """

    algorithm: Annotated[
        str,
        Options(*(a.value for a in SegmentationAlgorithm)),
        Desc('Segmentation algorithm'),
    ] = 'otsu'

    def __init__(self, options: Optional[SegmentationOptions] = None) -> None:
        self.options = options if options is not None else OtsuOptions()
        self.algorithm = self.options.algorithm.value

    def apply(self, source: np.ndarray, **kwargs: Any) -> np.ndarray:
        """Segment *source* into a bool mask of the same shape."""
        options = kwargs.pop('options', None)
        if options is None:
            params = self._resolve_params(kwargs)
            if params['algorithm'] == self.options.algorithm.value:
                options = self.options
            else:
                options = make_segmentation_options(params['algorithm'])
        return segment(source, options)
