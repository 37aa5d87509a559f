# -*- coding: utf-8 -*-
"""
Vocabulary - Canonical enums for the sarchange pipeline.

Single source of truth for the controlled vocabularies shared by the
speckle filters, the segmentation engine, the object detector and the
processor tagging decorators.  Enum values are the lowercase strings
callers pass in configuration, so ``SpeckleFilterKind('lee')`` and
``SegmentationAlgorithm('isolation_forest')`` round-trip directly.

Author
------
Steven Siebert

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

from enum import Enum


class ImageModality(Enum):
    """Image modalities a processor is designed for."""

    SAR = "SAR"
    EO = "EO"
    PAN = "PAN"


class ProcessorCategory(Enum):
    """Processing categories for processor tagging."""

    FILTERS = "filters"
    BINARY = "binary"
    ENHANCE = "enhance"
    THRESHOLD = "threshold"
    SEGMENTATION = "segmentation"
    FIND_MAXIMA = "find_maxima"
    ANALYZE = "analyze"


class SpeckleFilterKind(Enum):
    """Adaptive speckle filter applied before differencing."""

    NONE = "none"
    LEE = "lee"
    KUAN = "kuan"
    FROST = "frost"


class SegmentationAlgorithm(Enum):
    """Change segmentation algorithm selected by the options discriminant."""

    OTSU = "otsu"
    ADAPTIVE = "adaptive"
    KMEANS = "kmeans"
    ISOLATION_FOREST = "isolation_forest"
    LOF = "lof"
    PCA = "pca"


class FeatureCategory(Enum):
    """Urban / terrain feature class assigned to a detection."""

    BUILDING = "building"
    BORDER_WALL = "border-wall"
    BRIDGE = "bridge"
    RIVER = "river"
    URBAN_FEATURE = "urban-feature"

    @property
    def label(self) -> str:
        """Human-readable label, e.g. ``'Border Wall'``."""
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    FeatureCategory.BUILDING: "Building",
    FeatureCategory.BORDER_WALL: "Border Wall",
    FeatureCategory.BRIDGE: "Bridge",
    FeatureCategory.RIVER: "River",
    FeatureCategory.URBAN_FEATURE: "Urban Feature",
}
