# -*- coding: utf-8 -*-
"""
Change Segmentation - Options types and the segmentation engine.

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

from sarchange.image_processing.segmentation.engine import (
    SegmentationEngine,
    brightest_cluster,
    kmeans_1d,
    otsu_threshold,
    rank_threshold,
    segment,
)
from sarchange.image_processing.segmentation.options import (
    AdaptiveOptions,
    IsolationForestOptions,
    KMeansOptions,
    LofOptions,
    OtsuOptions,
    PcaOptions,
    SegmentationOptions,
    make_segmentation_options,
    resolve_algorithm,
)

__all__ = [
    'SegmentationEngine',
    'brightest_cluster',
    'kmeans_1d',
    'otsu_threshold',
    'rank_threshold',
    'segment',
    'AdaptiveOptions',
    'IsolationForestOptions',
    'KMeansOptions',
    'LofOptions',
    'OtsuOptions',
    'PcaOptions',
    'SegmentationOptions',
    'make_segmentation_options',
    'resolve_algorithm',
]
