# -*- coding: utf-8 -*-
"""
sarchange - SAR change detection and urban feature extraction.

Detects and classifies changes between two co-registered single-band
radar intensity rasters, and extracts discrete urban / terrain features
(buildings, bridges, border walls, rivers) from a single raster.

Dependencies
------------
numpy
scipy
shapely

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

__version__ = "0.1.0"
__author__ = "Duane Smalley"

from sarchange.exceptions import (
    SarChangeError,
    ValidationError,
    ProcessorError,
)
from sarchange.vocabulary import (
    FeatureCategory,
    ImageModality,
    ProcessorCategory,
    SegmentationAlgorithm,
    SpeckleFilterKind,
)
from sarchange.models import RasterBuffer
from sarchange.change import (
    ChangeDebug,
    ChangeDetectionOptions,
    ChangeDetector,
    ChangeResult,
    SpeckleOptions,
    analyze_change,
)
from sarchange.geolocation import build_polygon, geo_to_pixel
from sarchange.image_processing.morphology import PostProcessOptions
from sarchange.image_processing.segmentation import (
    AdaptiveOptions,
    IsolationForestOptions,
    KMeansOptions,
    LofOptions,
    OtsuOptions,
    PcaOptions,
    make_segmentation_options,
)
from sarchange.image_processing.detection import (
    DetectionBox,
    DetectionResult,
    ObjectDetectionOptions,
    ObjectDetector,
)

__all__ = [
    'SarChangeError',
    'ValidationError',
    'ProcessorError',
    'FeatureCategory',
    'ImageModality',
    'ProcessorCategory',
    'SegmentationAlgorithm',
    'SpeckleFilterKind',
    'RasterBuffer',
    'ChangeDebug',
    'ChangeDetectionOptions',
    'ChangeDetector',
    'ChangeResult',
    'SpeckleOptions',
    'analyze_change',
    'build_polygon',
    'geo_to_pixel',
    'PostProcessOptions',
    'AdaptiveOptions',
    'IsolationForestOptions',
    'KMeansOptions',
    'LofOptions',
    'OtsuOptions',
    'PcaOptions',
    'make_segmentation_options',
    'DetectionBox',
    'DetectionResult',
    'ObjectDetectionOptions',
    'ObjectDetector',
]
