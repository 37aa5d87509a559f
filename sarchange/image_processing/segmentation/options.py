# -*- coding: utf-8 -*-
"""
Segmentation Options - One frozen options type per change-mask algorithm.

Each algorithm owns its parameters; the ``algorithm`` class attribute is
the discriminant the engine dispatches on.  Out-of-range parameters are
clamped to the nearest valid value in ``__post_init__`` and reported at
WARNING level rather than rejected, so a loosely specified request still
produces a mask.

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
import math
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Optional, Union

# sarchange internal
from sarchange.constants import (
    ADAPTIVE_OFFSET,
    ADAPTIVE_RADIUS,
    DEFAULT_CONTAMINATION,
    DEFAULT_KMEANS_CLUSTERS,
    DEFAULT_KMEANS_ITERATIONS,
    LOF_OFFSET,
    LOF_RADIUS,
    MAX_CONTAMINATION,
    MIN_CONTAMINATION,
)
from sarchange.exceptions import ValidationError
from sarchange.vocabulary import SegmentationAlgorithm

logger = logging.getLogger(__name__)


def _clamped(owner: str, name: str, value: Any, low: Any, high: Any = None) -> Any:
    """Clamp *value* into ``[low, high]``, warning when it moves."""
    clamped = max(low, value)
    if high is not None:
        clamped = min(high, clamped)
    if clamped != value:
        logger.warning(
            "%s.%s=%r out of range; clamped to %r", owner, name, value, clamped,
        )
    return clamped


def _clamp_contamination(owner: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        logger.warning(
            "%s.contamination=%r is not finite; using %r",
            owner, value, DEFAULT_CONTAMINATION,
        )
        return DEFAULT_CONTAMINATION
    return _clamped(
        owner, 'contamination', value, MIN_CONTAMINATION, MAX_CONTAMINATION,
    )


@dataclass(frozen=True)
class OtsuOptions:
    """Global histogram threshold.

    Attributes
    ----------
    manual_threshold : float, optional
        Fraction of full scale in [0, 1].  When set, the threshold is
        ``round_half_up(manual_threshold * 255)`` and no histogram is
        computed.
    """

    algorithm: ClassVar[SegmentationAlgorithm] = SegmentationAlgorithm.OTSU

    manual_threshold: Optional[float] = None

    def __post_init__(self) -> None:
        if self.manual_threshold is not None:
            value = float(self.manual_threshold)
            if not math.isfinite(value):
                raise ValidationError(
                    f"manual_threshold must be finite, got {value!r}"
                )
            object.__setattr__(self, 'manual_threshold', value)


@dataclass(frozen=True)
class AdaptiveOptions:
    """Local-mean threshold: set where ``value > box_mean(radius) + offset``."""

    algorithm: ClassVar[SegmentationAlgorithm] = SegmentationAlgorithm.ADAPTIVE

    radius: int = ADAPTIVE_RADIUS
    offset: float = ADAPTIVE_OFFSET

    def __post_init__(self) -> None:
        object.__setattr__(
            self, 'radius', _clamped('AdaptiveOptions', 'radius', int(self.radius), 0),
        )


@dataclass(frozen=True)
class KMeansOptions:
    """One-dimensional k-means; the brightest cluster is the change class.

    Attributes
    ----------
    clusters : int
        Number of clusters, at least 2.
    iterations : int
        Lloyd iterations, at least 1.
    """

    algorithm: ClassVar[SegmentationAlgorithm] = SegmentationAlgorithm.KMEANS

    clusters: int = DEFAULT_KMEANS_CLUSTERS
    iterations: int = DEFAULT_KMEANS_ITERATIONS

    def __post_init__(self) -> None:
        object.__setattr__(
            self, 'clusters',
            _clamped('KMeansOptions', 'clusters', int(self.clusters), 2),
        )
        object.__setattr__(
            self, 'iterations',
            _clamped('KMeansOptions', 'iterations', int(self.iterations), 1),
        )


@dataclass(frozen=True)
class IsolationForestOptions:
    """Rank-quantile outlier threshold on the difference values.

    Attributes
    ----------
    contamination : float
        Expected fraction of changed pixels, clamped to [0.0005, 0.5].
    """

    algorithm: ClassVar[SegmentationAlgorithm] = (
        SegmentationAlgorithm.ISOLATION_FOREST
    )

    contamination: float = DEFAULT_CONTAMINATION

    def __post_init__(self) -> None:
        object.__setattr__(
            self, 'contamination',
            _clamp_contamination('IsolationForestOptions', self.contamination),
        )


@dataclass(frozen=True)
class LofOptions:
    """Local-outlier score: set where ``value - box_mean(radius) > offset``."""

    algorithm: ClassVar[SegmentationAlgorithm] = SegmentationAlgorithm.LOF

    radius: int = LOF_RADIUS
    offset: float = LOF_OFFSET

    def __post_init__(self) -> None:
        object.__setattr__(
            self, 'radius', _clamped('LofOptions', 'radius', int(self.radius), 0),
        )


@dataclass(frozen=True)
class PcaOptions:
    """Rank-quantile threshold on absolute z-scores.

    Attributes
    ----------
    contamination : float
        Expected fraction of changed pixels, clamped to [0.0005, 0.5].
    """

    algorithm: ClassVar[SegmentationAlgorithm] = SegmentationAlgorithm.PCA

    contamination: float = DEFAULT_CONTAMINATION

    def __post_init__(self) -> None:
        object.__setattr__(
            self, 'contamination',
            _clamp_contamination('PcaOptions', self.contamination),
        )


SegmentationOptions = Union[
    OtsuOptions,
    AdaptiveOptions,
    KMeansOptions,
    IsolationForestOptions,
    LofOptions,
    PcaOptions,
]

_OPTIONS_BY_ALGORITHM = {
    SegmentationAlgorithm.OTSU: OtsuOptions,
    SegmentationAlgorithm.ADAPTIVE: AdaptiveOptions,
    SegmentationAlgorithm.KMEANS: KMeansOptions,
    SegmentationAlgorithm.ISOLATION_FOREST: IsolationForestOptions,
    SegmentationAlgorithm.LOF: LofOptions,
    SegmentationAlgorithm.PCA: PcaOptions,
}


def resolve_algorithm(
    name: Union[str, SegmentationAlgorithm],
) -> SegmentationAlgorithm:
    """Coerce an algorithm name or enum member.

    Raises
    ------
    ValidationError
        If *name* is not a known algorithm.
    """
    if isinstance(name, SegmentationAlgorithm):
        return name
    try:
        return SegmentationAlgorithm(str(name).lower())
    except ValueError:
        valid = tuple(a.value for a in SegmentationAlgorithm)
        raise ValidationError(
            f"Unknown segmentation algorithm {name!r}. Must be one of {valid}"
        ) from None


def make_segmentation_options(
    name: Union[str, SegmentationAlgorithm],
    **params: Any,
) -> SegmentationOptions:
    """Build the options type for *name* from a loose parameter bag.

    ``None`` values are treated as absent so defaults apply.

    Examples
    --------
    >>> make_segmentation_options('kmeans', clusters=3)
    KMeansOptions(clusters=3, iterations=6)

    Raises
    ------
    ValidationError
        If the algorithm is unknown or a parameter does not belong to it.
    """
    cls = _OPTIONS_BY_ALGORITHM[resolve_algorithm(name)]
    accepted = {f.name for f in fields(cls)}
    unknown = sorted(set(params) - accepted)
    if unknown:
        raise ValidationError(
            f"{cls.__name__} does not accept parameter(s) {unknown}; "
            f"expected a subset of {sorted(accepted)}"
        )
    return cls(**{k: v for k, v in params.items() if v is not None})
