# -*- coding: utf-8 -*-
"""
Detection - Urban feature detection, classification and merging.

Detector
    ``ObjectDetector`` with ``ScaleStrategy``, ``PercentileStrategy`` and
    ``AdaptiveStrategy`` cascade stages

Models
    ``DetectionBox``, ``DetectionResult``, ``DetectionStatistics``,
    ``DebugArtifacts``, ``ObjectDetectionOptions``

Shape Analysis
    ``classify_urban_feature``, ``zhang_suen_thin``, ``linearity``

Merging
    ``iou``, ``nms``

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

from sarchange.image_processing.detection.classify import (
    Classification,
    ClassificationMetrics,
    apply_linearity_override,
    classify_urban_feature,
)
from sarchange.image_processing.detection.components import (
    Component,
    adaptive_binary_mask,
    label_components,
    measure_components,
)
from sarchange.image_processing.detection.detector import (
    AdaptiveStrategy,
    DetectionStrategy,
    ObjectDetector,
    PercentileStrategy,
    ScaleStrategy,
    StrategyResult,
    build_boxes,
    needs_fallback,
)
from sarchange.image_processing.detection.models import (
    BoundingBox,
    DebugArtifacts,
    DetectionBox,
    DetectionResult,
    DetectionStatistics,
    ObjectDetectionOptions,
)
from sarchange.image_processing.detection.nms import iou, nms
from sarchange.image_processing.detection.skeleton import linearity, zhang_suen_thin

__all__ = [
    'Classification',
    'ClassificationMetrics',
    'apply_linearity_override',
    'classify_urban_feature',
    'Component',
    'adaptive_binary_mask',
    'label_components',
    'measure_components',
    'AdaptiveStrategy',
    'DetectionStrategy',
    'ObjectDetector',
    'PercentileStrategy',
    'ScaleStrategy',
    'StrategyResult',
    'build_boxes',
    'needs_fallback',
    'BoundingBox',
    'DebugArtifacts',
    'DetectionBox',
    'DetectionResult',
    'DetectionStatistics',
    'ObjectDetectionOptions',
    'iou',
    'nms',
    'linearity',
    'zhang_suen_thin',
]
