# -*- coding: utf-8 -*-
"""
Intensity Transforms - Rank percentiles, byte normalization, differencing.

The change and detection pipelines both reduce float radar intensities to
an 8-bit display scale before thresholding, but with different clip
percentiles: change detection stretches between the 2nd and 98th
percentiles, object detection between the 2nd and 99.5th so bright point
scatterers keep their headroom.  The two are kept as separate
``NormalizationProfile`` values.

Percentiles here are *rank* percentiles (nearest sorted sample, half-up
rank rounding), not the interpolated percentiles of ``np.percentile``;
thresholds derived from them must land on an actual sample value.

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
from dataclasses import dataclass
from typing import Annotated, Any

# Third-party
import numpy as np

# sarchange internal
from sarchange.constants import CHANGE_PERCENTILES, DETECTION_PERCENTILES, EPSILON
from sarchange.exceptions import ValidationError
from sarchange.image_processing.base import ImageTransform
from sarchange.image_processing.params import Desc, Range
from sarchange.image_processing.utils import round_half_up
from sarchange.image_processing.versioning import processor_tags, processor_version
from sarchange.vocabulary import ProcessorCategory


@dataclass(frozen=True)
class NormalizationProfile:
    """Clip percentiles of a byte normalization.

    Attributes
    ----------
    low : float
        Lower clip percentile (0-100).
    high : float
        Upper clip percentile (0-100).
    """

    low: float
    high: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.low <= self.high <= 100.0:
            raise ValidationError(
                f"Profile percentiles must satisfy 0 <= low <= high <= 100, "
                f"got ({self.low}, {self.high})"
            )


CHANGE_PROFILE = NormalizationProfile(*CHANGE_PERCENTILES)
DETECTION_PROFILE = NormalizationProfile(*DETECTION_PERCENTILES)


def percentile(values: np.ndarray, p: float) -> float:
    """Rank percentile of the finite entries of *values*.

    Parameters
    ----------
    values : np.ndarray
        Array of any shape.
    p : float
        Percentile in [0, 100].

    Returns
    -------
    float
        ``sorted[clamp(round_half_up(p / 100 * (n - 1)), 0, n - 1)]``
        over the ``n`` finite values, or ``0.0`` if there are none.
    """
    flat = np.asarray(values, dtype=np.float64).ravel()
    finite = np.sort(flat[np.isfinite(flat)])
    n = finite.size
    if n == 0:
        return 0.0
    index = min(n - 1, max(0, round_half_up(p / 100.0 * (n - 1))))
    return float(finite[index])


def normalize_to_byte(
    values: np.ndarray,
    profile: NormalizationProfile = CHANGE_PROFILE,
) -> np.ndarray:
    """Stretch *values* to 0-255 between the profile's clip percentiles.

    Parameters
    ----------
    values : np.ndarray
        Real-valued array of any shape.
    profile : NormalizationProfile
        Clip percentiles. Default ``CHANGE_PROFILE``.

    Returns
    -------
    np.ndarray
        uint8 array, same shape.  Non-finite samples map to 0.
    """
    x = np.asarray(values, dtype=np.float64)
    lo = percentile(x, profile.low)
    hi = percentile(x, profile.high)
    scale = max(EPSILON, hi - lo)
    with np.errstate(invalid='ignore'):
        scaled = (x - lo) / scale * 255.0
    finite = np.isfinite(scaled)
    out = np.clip(round_half_up(np.where(finite, scaled, 0.0)), 0.0, 255.0)
    out[~finite] = 0.0
    return out.astype(np.uint8)


def abs_diff(before: np.ndarray, after: np.ndarray) -> np.ndarray:
    """Absolute difference ``|after - before|`` as float32.

    Non-finite samples on either side are treated as 0.

    Raises
    ------
    ValidationError
        If the shapes differ.
    """
    a = np.asarray(before, dtype=np.float64)
    b = np.asarray(after, dtype=np.float64)
    if a.shape != b.shape:
        raise ValidationError(
            f"Cannot difference arrays of shape {a.shape} and {b.shape}"
        )
    a = np.where(np.isfinite(a), a, 0.0)
    b = np.where(np.isfinite(b), b, 0.0)
    return np.abs(b - a).astype(np.float32)


@processor_version('1.0.0')
@processor_tags(category=ProcessorCategory.ENHANCE)
class ByteStretch(ImageTransform):
    """Rank-percentile contrast stretch to 8-bit.

    Parameters
    ----------
    plow : float
        Lower clip percentile. Default ``2.0``.
    phigh : float
        Upper clip percentile. Default ``98.0``.

    Examples
    --------
    >>> stretch = ByteStretch.from_profile(DETECTION_PROFILE)
    >>> display = stretch.apply(intensity)
    """

    plow: Annotated[float, Range(min=0.0, max=100.0), Desc('Lower percentile')] = 2.0
    phigh: Annotated[float, Range(min=0.0, max=100.0), Desc('Upper percentile')] = 98.0

    def __init__(self, plow: float = 2.0, phigh: float = 98.0) -> None:
        if plow > phigh:
            raise ValidationError(
                f"plow ({plow}) must not exceed phigh ({phigh})"
            )
        self.plow = plow
        self.phigh = phigh

    @classmethod
    def from_profile(cls, profile: NormalizationProfile) -> 'ByteStretch':
        return cls(profile.low, profile.high)

    @property
    def profile(self) -> NormalizationProfile:
        return NormalizationProfile(self.plow, self.phigh)

    def apply(self, source: np.ndarray, **kwargs: Any) -> np.ndarray:
        """Stretch *source* to uint8, same shape."""
        params = self._resolve_params(kwargs)
        profile = NormalizationProfile(params['plow'], params['phigh'])
        return normalize_to_byte(source, profile)
