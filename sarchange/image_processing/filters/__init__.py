# -*- coding: utf-8 -*-
"""
Spatial Filters - Adaptive speckle filters and windowed statistics.

Speckle Filters
    ``SpeckleFilter`` — Lee / Kuan / Frost adaptive smoothing
    ``apply_speckle_filter`` — flat-buffer functional form

Windowed Statistics
    ``window_sums``, ``local_mean``, ``local_mean_var`` — edge-clipped
    square-window statistics via a summed area table

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

from sarchange.image_processing.filters.speckle import (
    SpeckleFilter,
    apply_speckle_filter,
    speckle_filter_2d,
)
from sarchange.image_processing.filters.window import (
    local_mean,
    local_mean_var,
    summed_area_table,
    window_sums,
)

__all__ = [
    'SpeckleFilter',
    'apply_speckle_filter',
    'speckle_filter_2d',
    'local_mean',
    'local_mean_var',
    'summed_area_table',
    'window_sums',
]
