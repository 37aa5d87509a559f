# -*- coding: utf-8 -*-
"""
Detection Data Models - Urban feature detections and detector output.

``DetectionBox`` is one classified feature: a native-resolution pixel
bounding box with its category, confidence and shape measurements, plus
an optional geographic footprint (shapely ``Polygon``).  ``DetectionResult``
bundles the boxes of one detector run with run statistics and, on
request, the intermediate masks in ``DebugArtifacts``.

Coordinate Conventions
----------------------
- **Pixel space**: ``(x, y)`` = ``(col, row)``, origin at top-left.
  ``bbox`` is ``(x, y, width, height)`` in native pixels.
- **Preview space**: the same convention on the downscaled preview raster
  (longest edge <= 1200).  Preview coordinates are fractional.
- **Geographic space**: shapely ``(x, y)`` = ``(longitude, latitude)``.

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
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterator, NamedTuple, Optional, Tuple

# Third-party
import numpy as np
from shapely.geometry import Polygon, box

# sarchange internal
from sarchange.constants import (
    DEFAULT_MAX_DETECTIONS,
    DEFAULT_MIN_AREA_PIXELS,
    DEFAULT_THRESHOLD_PERCENTILE,
)
from sarchange.image_processing.resample import resample_nearest
from sarchange.models import Bounds, PixelScale
from sarchange.vocabulary import FeatureCategory

logger = logging.getLogger(__name__)


class BoundingBox(NamedTuple):
    """Axis-aligned box ``(x, y, width, height)``."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def scaled(self, sx: float, sy: float) -> 'BoundingBox':
        """Box with x/width multiplied by *sx* and y/height by *sy*."""
        return BoundingBox(
            self.x * sx, self.y * sy, self.width * sx, self.height * sy,
        )

    def to_shapely(self) -> Polygon:
        """Pixel-space shapely box."""
        return box(
            float(self.x), float(self.y),
            float(self.x + self.width), float(self.y + self.height),
        )


@dataclass(frozen=True)
class DetectionBox:
    """
    A single classified urban or terrain feature.

    Parameters
    ----------
    id : str
        Identifier unique within one result (``'ms-3'``, ``'m-12'``).
    category : FeatureCategory
        Assigned feature class.
    confidence : float
        Combined intensity/shape confidence in [0, 1].
    bbox : BoundingBox
        Native-resolution pixel box; width and height >= 1.
    area_pixels : int
        Foreground pixel count in native pixels.  Counts from reduced
        scales are divided by the per-axis scale product and rounded.
    centroid : Tuple[float, float]
        Native-resolution pixel centroid ``(x, y)``.
    notes : str
        Analyst-facing explanation of the classification.
    footprint : shapely.geometry.Polygon, optional
        Geographic footprint, closed 5-point ring.
    preview_box : BoundingBox, optional
        ``bbox`` scaled to the preview raster.
    preview_centroid : Tuple[float, float], optional
        ``centroid`` scaled to the preview raster.
    area_m2 : float, optional
        Ground area ``area_pixels * |sx * sy|`` when a pixel scale is known.
    """

    id: str
    category: FeatureCategory
    confidence: float
    bbox: BoundingBox
    area_pixels: int
    centroid: Tuple[float, float]
    notes: str = ''
    footprint: Optional[Polygon] = None
    preview_box: Optional[BoundingBox] = None
    preview_centroid: Optional[Tuple[float, float]] = None
    area_m2: Optional[float] = None

    @property
    def label(self) -> str:
        """Human-readable category label."""
        return self.category.label

    @property
    def pixel_geometry(self) -> Polygon:
        """Native pixel-space box as a shapely polygon."""
        return self.bbox.to_shapely()

    def __repr__(self) -> str:
        return (
            f"DetectionBox(id={self.id!r}, category={self.category.value!r}, "
            f"confidence={self.confidence:.3f}, bbox={tuple(self.bbox)!r})"
        )


@dataclass(frozen=True)
class ObjectDetectionOptions:
    """Detector configuration.

    Attributes
    ----------
    threshold_percentile : float
        Rank percentile of the normalized raster used as the brightness
        threshold, clamped to [0, 100]. Default 95.
    min_area_pixels : int
        Minimum component pixel count and bounding-box area, at least 1.
        Default 40.
    max_detections : int, optional
        Cap on boxes per pass and on the final list; ``None`` disables
        the cap. Default 200.
    """

    threshold_percentile: float = DEFAULT_THRESHOLD_PERCENTILE
    min_area_pixels: int = DEFAULT_MIN_AREA_PIXELS
    max_detections: Optional[int] = DEFAULT_MAX_DETECTIONS

    def __post_init__(self) -> None:
        p = float(self.threshold_percentile)
        clamped = min(100.0, max(0.0, p))
        if clamped != p:
            logger.warning(
                "threshold_percentile=%r outside [0, 100]; clamped to %r",
                p, clamped,
            )
        object.__setattr__(self, 'threshold_percentile', clamped)

        area = int(self.min_area_pixels)
        if area < 1:
            logger.warning("min_area_pixels=%d below 1; clamped to 1", area)
            area = 1
        object.__setattr__(self, 'min_area_pixels', area)

        if self.max_detections is not None:
            cap = int(self.max_detections)
            if cap < 1:
                logger.warning("max_detections=%d below 1; clamped to 1", cap)
                cap = 1
            object.__setattr__(self, 'max_detections', cap)


@dataclass(frozen=True)
class DetectionStatistics:
    """Summary of one detector run."""

    total_detections: int
    threshold: float
    threshold_value: float
    minimum_area: int
    average_confidence: float


@dataclass
class DebugArtifacts:
    """Intermediate masks of a detector run.

    Attributes
    ----------
    scale_masks : Dict[float, np.ndarray]
        Closed binary mask of each multi-scale pass, keyed by scale
        factor, at that pass's (reduced) resolution.
    primary : np.ndarray, optional
        Full-resolution mask of the scale-1 pass.
    alternate : np.ndarray, optional
        Lowered-percentile fallback mask (fallback runs only).
    local : np.ndarray, optional
        Locally adaptive fallback mask (fallback runs only).
    """

    scale_masks: Dict[float, np.ndarray] = field(default_factory=dict)
    primary: Optional[np.ndarray] = None
    alternate: Optional[np.ndarray] = None
    local: Optional[np.ndarray] = None

    @property
    def merged(self) -> Optional[np.ndarray]:
        """Union of the primary and fallback masks."""
        if self.primary is None:
            return None
        out = self.primary.copy()
        if self.alternate is not None:
            out |= self.alternate
        if self.local is not None:
            out |= self.local
        return out

    def native_scale_mask(self, scale: float) -> np.ndarray:
        """Pass mask for *scale* resampled (nearest) to full resolution."""
        if self.primary is None:
            raise KeyError("No primary mask recorded")
        height, width = self.primary.shape
        return resample_nearest(self.scale_masks[scale], width, height)


@dataclass(frozen=True)
class DetectionResult:
    """Output of one ``ObjectDetector.detect`` call."""

    boxes: Tuple[DetectionBox, ...]
    stats: DetectionStatistics
    threshold_value: float
    width: int
    height: int
    preview_width: int
    preview_height: int
    bounds: Optional[Bounds] = None
    pixel_scale: Optional[PixelScale] = None
    debug: Optional[DebugArtifacts] = None

    def __len__(self) -> int:
        return len(self.boxes)

    def __iter__(self) -> Iterator[DetectionBox]:
        return iter(self.boxes)

    def __getitem__(self, index: int) -> DetectionBox:
        return self.boxes[index]

    def category_counts(self) -> Dict[FeatureCategory, int]:
        """Number of boxes per category (categories with no boxes omitted)."""
        return dict(Counter(b.category for b in self.boxes))

    def filter(
        self,
        *categories: FeatureCategory,
        min_confidence: float = 0.0,
    ) -> Tuple[DetectionBox, ...]:
        """Boxes in *categories* (all when none given) at or above *min_confidence*."""
        wanted = set(categories)
        return tuple(
            b for b in self.boxes
            if (not wanted or b.category in wanted)
            and b.confidence >= min_confidence
        )

    def __repr__(self) -> str:
        return (
            f"DetectionResult(n={len(self.boxes)}, "
            f"size={self.width}x{self.height}, "
            f"threshold_value={self.threshold_value!r})"
        )

