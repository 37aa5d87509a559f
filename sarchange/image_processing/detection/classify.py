# -*- coding: utf-8 -*-
"""
Urban Feature Classification - Shape heuristics for bright-scatter blobs.

Each connected component of the thresholded raster is reduced to five
shape measurements (pixel area, fill ratio, aspect ratio, major and minor
bounding-box axes).  Four category scorers (building, bridge, border
wall, river) turn those into a score in [0, 1] from weighted, clamped
ramp terms; a scorer whose score clears its floor and whose size gates
pass becomes a candidate.  The best candidate wins.  Components no
scorer claims are labelled ``urban-feature`` with a size/density score.

A skeleton-linearity override (``apply_linearity_override``) may then
force thin, long components to bridge or border wall regardless of the
scorers.

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
from typing import List, Sequence, Tuple

# sarchange internal
from sarchange.constants import (
    BRIDGE_CONFIDENCE,
    BRIDGE_DENSITY_RAMP,
    BRIDGE_ELONGATION_RAMP,
    BRIDGE_MAX_MINOR_AXIS,
    BRIDGE_MIN_MAJOR_AXIS,
    BRIDGE_OVERRIDE_ASPECT,
    BRIDGE_OVERRIDE_BASE,
    BRIDGE_OVERRIDE_GAIN,
    BRIDGE_OVERRIDE_MAJOR_AXIS,
    BRIDGE_SCORE_FLOOR,
    BRIDGE_SPAN_RAMP,
    BRIDGE_WEIGHTS,
    BRIDGE_WIDTH_TARGET,
    BUILDING_ASPECT_TARGET,
    BUILDING_CONFIDENCE,
    BUILDING_DENSITY_RAMP,
    BUILDING_MIN_AREA,
    BUILDING_SCORE_FLOOR,
    BUILDING_SIZE_RAMP,
    BUILDING_WEIGHTS,
    LINEARITY_MIN_MAJOR_AXIS,
    LINEARITY_THRESHOLD,
    RIVER_AREA_SPAN,
    RIVER_CONFIDENCE,
    RIVER_DIFFUSE_FILL,
    RIVER_ELONGATION_RAMP,
    RIVER_MIN_AREA,
    RIVER_SCORE_FLOOR,
    RIVER_WEIGHTS,
    RIVER_WIDTH_RAMP,
    URBAN_AREA_SPAN,
    URBAN_BASE_SCORE,
    URBAN_FILL_SPAN,
    URBAN_SCORE_GAIN,
    WALL_CONFIDENCE,
    WALL_DIFFUSE_FILL,
    WALL_ELONGATION_RAMP,
    WALL_MIN_MAJOR_AXIS,
    WALL_OVERRIDE_BASE,
    WALL_OVERRIDE_GAIN,
    WALL_SCORE_FLOOR,
    WALL_SLENDER_RAMP,
    WALL_WEIGHTS,
)
from sarchange.image_processing.utils import clamp
from sarchange.vocabulary import FeatureCategory

NOTES = {
    FeatureCategory.BUILDING: (
        "Dense rectangular scatter consistent with building footprint"
    ),
    FeatureCategory.BRIDGE: (
        "Linear span with strong return suggests bridge or elevated crossing"
    ),
    FeatureCategory.BORDER_WALL: (
        "Long, narrow scatter consistent with defensive wall or perimeter"
    ),
    FeatureCategory.RIVER: (
        "Broad, diffuse return likely from river or drainage channel"
    ),
    FeatureCategory.URBAN_FEATURE: (
        "Irregular scatter requires analyst confirmation"
    ),
}


@dataclass(frozen=True)
class ClassificationMetrics:
    """Shape measurements of one component.

    Attributes
    ----------
    area_pixels : int
        Foreground pixel count.
    bounding_area : int
        Bounding-box area ``width * height``.
    fill_ratio : float
        ``area_pixels / bounding_area``.
    aspect_ratio : float
        ``major_axis / minor_axis``.
    major_axis : int
        ``max(width, height)`` of the bounding box.
    minor_axis : int
        ``max(1, min(width, height))`` of the bounding box.
    """

    area_pixels: int
    bounding_area: int
    fill_ratio: float
    aspect_ratio: float
    major_axis: int
    minor_axis: int

    @classmethod
    def from_bbox(cls, area_pixels: int, width: int, height: int) -> 'ClassificationMetrics':
        """Derive the ratios from a pixel count and bounding-box size."""
        bounding_area = width * height
        major = max(width, height)
        minor = max(1, min(width, height))
        return cls(
            area_pixels=area_pixels,
            bounding_area=bounding_area,
            fill_ratio=area_pixels / max(1, bounding_area),
            aspect_ratio=major / minor,
            major_axis=major,
            minor_axis=minor,
        )


@dataclass(frozen=True)
class Classification:
    """Category, shape score and analyst notes for one component."""

    category: FeatureCategory
    shape_score: float
    notes: str


def _ramp(value: float, ramp: Tuple[float, float]) -> float:
    offset, span = ramp
    return clamp((value - offset) / span)


def _target(value: float, target: Tuple[float, float]) -> float:
    centre, tolerance = target
    return clamp(1 - abs(value - centre) / tolerance)


def _below(value: float, limit: float) -> float:
    return clamp((limit - value) / limit)


def _weighted(terms: Sequence[float], weights: Sequence[float]) -> float:
    total = 0.0
    for term, weight in zip(terms, weights):
        total += term * weight
    return clamp(total)


def building_score(m: ClassificationMetrics) -> float:
    return _weighted(
        (
            _ramp(m.area_pixels, BUILDING_SIZE_RAMP),
            _ramp(m.fill_ratio, BUILDING_DENSITY_RAMP),
            _target(m.aspect_ratio, BUILDING_ASPECT_TARGET),
        ),
        BUILDING_WEIGHTS,
    )


def bridge_score(m: ClassificationMetrics) -> float:
    return _weighted(
        (
            _ramp(m.aspect_ratio, BRIDGE_ELONGATION_RAMP),
            _ramp(m.major_axis, BRIDGE_SPAN_RAMP),
            _ramp(m.fill_ratio, BRIDGE_DENSITY_RAMP),
            _target(m.minor_axis, BRIDGE_WIDTH_TARGET),
        ),
        BRIDGE_WEIGHTS,
    )


def wall_score(m: ClassificationMetrics) -> float:
    return _weighted(
        (
            _ramp(m.aspect_ratio, WALL_ELONGATION_RAMP),
            1 - _ramp(m.minor_axis, WALL_SLENDER_RAMP),
            _below(m.fill_ratio, WALL_DIFFUSE_FILL),
        ),
        WALL_WEIGHTS,
    )


def river_score(m: ClassificationMetrics) -> float:
    return _weighted(
        (
            clamp(m.area_pixels / RIVER_AREA_SPAN),
            _below(m.fill_ratio, RIVER_DIFFUSE_FILL),
            _ramp(m.aspect_ratio, RIVER_ELONGATION_RAMP),
            _ramp(m.minor_axis, RIVER_WIDTH_RAMP),
        ),
        RIVER_WEIGHTS,
    )


def _confidence(score: float, confidence: Tuple[float, float]) -> float:
    base, gain = confidence
    return base + gain * score


def _candidates(m: ClassificationMetrics) -> List[Tuple[FeatureCategory, float]]:
    found = []

    score = building_score(m)
    if score > BUILDING_SCORE_FLOOR and m.area_pixels >= BUILDING_MIN_AREA:
        found.append((FeatureCategory.BUILDING, _confidence(score, BUILDING_CONFIDENCE)))

    score = bridge_score(m)
    if (
        score > BRIDGE_SCORE_FLOOR
        and m.major_axis >= BRIDGE_MIN_MAJOR_AXIS
        and m.minor_axis <= BRIDGE_MAX_MINOR_AXIS
    ):
        found.append((FeatureCategory.BRIDGE, _confidence(score, BRIDGE_CONFIDENCE)))

    score = wall_score(m)
    if score > WALL_SCORE_FLOOR and m.major_axis >= WALL_MIN_MAJOR_AXIS:
        found.append((FeatureCategory.BORDER_WALL, _confidence(score, WALL_CONFIDENCE)))

    score = river_score(m)
    if score > RIVER_SCORE_FLOOR and m.area_pixels >= RIVER_MIN_AREA:
        found.append((FeatureCategory.RIVER, _confidence(score, RIVER_CONFIDENCE)))

    return found


def classify_urban_feature(metrics: ClassificationMetrics) -> Classification:
    """Assign a feature category from shape measurements.

    Parameters
    ----------
    metrics : ClassificationMetrics
        Component measurements.

    Returns
    -------
    Classification
        The highest-scoring candidate (earliest of building, bridge,
        border wall, river on ties), else ``urban-feature`` with score
        ``0.35 + 0.4 * clamp(0.5 * clamp(area / 6000) + 0.5 * clamp(fill / 0.45))``.
    """
    candidates = _candidates(metrics)
    if candidates:
        category, score = sorted(candidates, key=lambda c: -c[1])[0]
        return Classification(category, clamp(score), NOTES[category])

    fallback = clamp(
        clamp(metrics.area_pixels / URBAN_AREA_SPAN) * 0.5
        + clamp(metrics.fill_ratio / URBAN_FILL_SPAN) * 0.5
    )
    return Classification(
        FeatureCategory.URBAN_FEATURE,
        URBAN_BASE_SCORE + URBAN_SCORE_GAIN * fallback,
        NOTES[FeatureCategory.URBAN_FEATURE],
    )


def apply_linearity_override(
    classification: Classification,
    metrics: ClassificationMetrics,
    linearity: float,
) -> Tuple[FeatureCategory, float]:
    """Force long, thin components to bridge or border wall.

    When ``linearity > 0.25`` and the major axis is at least 20 pixels,
    components with ``aspect > 3`` or ``major > 50`` become bridges with
    score ``max(score, 0.6 + 0.4 * linearity)``; the rest become border
    walls with ``max(score, 0.55 + 0.35 * linearity)``.  Otherwise the
    classification is returned unchanged.

    Returns
    -------
    Tuple[FeatureCategory, float]
        Final category and shape score.
    """
    category = classification.category
    score = classification.shape_score
    if linearity > LINEARITY_THRESHOLD and metrics.major_axis >= LINEARITY_MIN_MAJOR_AXIS:
        if (
            metrics.aspect_ratio > BRIDGE_OVERRIDE_ASPECT
            or metrics.major_axis > BRIDGE_OVERRIDE_MAJOR_AXIS
        ):
            category = FeatureCategory.BRIDGE
            score = clamp(max(score, BRIDGE_OVERRIDE_BASE + linearity * BRIDGE_OVERRIDE_GAIN))
        else:
            category = FeatureCategory.BORDER_WALL
            score = clamp(max(score, WALL_OVERRIDE_BASE + linearity * WALL_OVERRIDE_GAIN))
    return category, score
