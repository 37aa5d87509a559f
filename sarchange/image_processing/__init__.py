# -*- coding: utf-8 -*-
"""
Image Processing Module - Raster stages of the change and detection pipelines.

All processor types inherit from ``ImageProcessor``, which provides
version checking and ``Annotated`` tunable parameter validation.

Sub-modules
-----------
filters/
    Adaptive SAR speckle filters (Lee, Kuan, Frost) and edge-clipped
    windowed statistics.
resample.py
    Nearest-neighbour alignment, preview downscaling, majority-vote mask
    reduction.
intensity.py
    Rank percentiles, byte normalization profiles, absolute difference.
segmentation/
    Six change-mask algorithms selected by options type.
morphology.py
    Binary opening/closing, hole filling, small-component removal.
detection/
    Multi-scale urban feature detector, shape classification, skeleton
    linearity and non-maximum suppression.
versioning.py
    ``@processor_version`` and ``@processor_tags`` decorators.
params.py
    ``Range``, ``Options``, ``Desc`` constraint markers.

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

from sarchange.image_processing.base import (
    ImageDetector,
    ImageProcessor,
    ImageTransform,
)
from sarchange.image_processing.params import Desc, Options, ParamSpec, Range
from sarchange.image_processing.versioning import processor_tags, processor_version
from sarchange.image_processing.filters import SpeckleFilter, apply_speckle_filter
from sarchange.image_processing.intensity import (
    CHANGE_PROFILE,
    DETECTION_PROFILE,
    ByteStretch,
    NormalizationProfile,
    abs_diff,
    normalize_to_byte,
    percentile,
)
from sarchange.image_processing.resample import (
    downscale_for_preview,
    downscale_mask,
    resample_nearest,
)
from sarchange.image_processing.segmentation import (
    SegmentationEngine,
    make_segmentation_options,
    segment,
)
from sarchange.image_processing.morphology import (
    MorphologyEngine,
    PostProcessOptions,
    post_process,
)
from sarchange.image_processing.detection import ObjectDetector

__all__ = [
    'ImageDetector',
    'ImageProcessor',
    'ImageTransform',
    'Desc',
    'Options',
    'ParamSpec',
    'Range',
    'processor_tags',
    'processor_version',
    'SpeckleFilter',
    'apply_speckle_filter',
    'CHANGE_PROFILE',
    'DETECTION_PROFILE',
    'ByteStretch',
    'NormalizationProfile',
    'abs_diff',
    'normalize_to_byte',
    'percentile',
    'downscale_for_preview',
    'downscale_mask',
    'resample_nearest',
    'SegmentationEngine',
    'make_segmentation_options',
    'segment',
    'MorphologyEngine',
    'PostProcessOptions',
    'post_process',
    'ObjectDetector',
]
