# -*- coding: utf-8 -*-
"""
Numeric Utilities - Rounding and clamping helpers shared across stages.

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
import math
from typing import Union

# Third-party
import numpy as np


def round_half_up(value: Union[float, np.ndarray]) -> Union[int, np.ndarray]:
    """Round to the nearest integer with halves rounded toward +inf.

    Python's ``round`` and ``np.round`` use banker's rounding, which would
    shift percentile ranks, thresholds and resampling indices that sit
    exactly on ``.5``.

    Returns
    -------
    int or np.ndarray
        ``int`` for scalar input, float64 array of integral values for
        array input.
    """
    if np.ndim(value) == 0:
        return int(math.floor(float(value) + 0.5))
    return np.floor(np.asarray(value, dtype=np.float64) + 0.5)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a scalar to ``[low, high]``."""
    return min(high, max(low, value))
