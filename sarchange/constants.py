# -*- coding: utf-8 -*-
"""
Calibration Constants - Named thresholds for the change and detection stages.

All hand-tuned numbers used by the speckle filters, segmentation
algorithms, morphology, object classification and fallback cascade live
here.  They were calibrated together against reference imagery and are
covered by golden-output tests; change them as a set, not individually.

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

# ===================================================================
# Numeric floors
# ===================================================================

#: Generic epsilon floor for divisions (variance, ranges, std).
EPSILON = 1e-6

# ===================================================================
# Speckle filtering
# ===================================================================

DEFAULT_SPECKLE_WINDOW = 3

#: Equivalent Number of Looks assumed by the Kuan filter.
KUAN_ENL = 4.0

#: Exponential damping factor of the Frost filter.
FROST_DAMPING = 2.0

# ===================================================================
# Normalization profiles (low, high percentile)
# ===================================================================

CHANGE_PERCENTILES = (2.0, 98.0)
DETECTION_PERCENTILES = (2.0, 99.5)

# ===================================================================
# Segmentation
# ===================================================================

ADAPTIVE_RADIUS = 3
ADAPTIVE_OFFSET = 8.0

LOF_RADIUS = 2
LOF_OFFSET = 12.0

DEFAULT_KMEANS_CLUSTERS = 2
DEFAULT_KMEANS_ITERATIONS = 6

DEFAULT_CONTAMINATION = 0.01
MIN_CONTAMINATION = 0.0005
MAX_CONTAMINATION = 0.5

# ===================================================================
# Object detection
# ===================================================================

DEFAULT_THRESHOLD_PERCENTILE = 95.0
DEFAULT_MIN_AREA_PIXELS = 40
DEFAULT_MAX_DETECTIONS = 200

SCALE_FACTORS = (1.0, 0.5, 0.25)

#: IoU at or above which a lower-confidence box is suppressed.
NMS_IOU_THRESHOLD = 0.35

#: Fallback is triggered when fewer merged boxes than this survive.
FALLBACK_MIN_DETECTIONS = 12

#: ... or when the mean vertical box centre is above this image fraction.
FALLBACK_TOP_FRACTION = 0.2

#: Percentile reduction for the alternate-threshold fallback mask.
FALLBACK_PERCENTILE_DROP = 8.0

ADAPTIVE_MASK_WINDOW = 64
ADAPTIVE_MASK_OFFSET = 12.0

#: Longest edge of preview rasters used for preview-box coordinates.
PREVIEW_MAX_EDGE = 1200

# ===================================================================
# Skeleton linearity override
# ===================================================================

LINEARITY_THRESHOLD = 0.25
LINEARITY_MIN_MAJOR_AXIS = 20
BRIDGE_OVERRIDE_ASPECT = 3.0
BRIDGE_OVERRIDE_MAJOR_AXIS = 50
BRIDGE_OVERRIDE_BASE = 0.6
BRIDGE_OVERRIDE_GAIN = 0.4
WALL_OVERRIDE_BASE = 0.55
WALL_OVERRIDE_GAIN = 0.35

# ===================================================================
# Shape classification floors
# ===================================================================

BUILDING_SCORE_FLOOR = 0.25
BUILDING_MIN_AREA = 1000
BRIDGE_SCORE_FLOOR = 0.25
BRIDGE_MIN_MAJOR_AXIS = 40
BRIDGE_MAX_MINOR_AXIS = 80
WALL_SCORE_FLOOR = 0.2
WALL_MIN_MAJOR_AXIS = 35
RIVER_SCORE_FLOOR = 0.2
RIVER_MIN_AREA = 900

URBAN_BASE_SCORE = 0.35
URBAN_SCORE_GAIN = 0.4
URBAN_AREA_SPAN = 6000.0
URBAN_FILL_SPAN = 0.45

# ===================================================================
# Shape classification terms
# ===================================================================
# Ramps are ``(offset, span)`` pairs read as ``clamp((value - offset) / span)``.
# Targets are ``(centre, tolerance)`` pairs read as
# ``clamp(1 - |value - centre| / tolerance)``.
# Confidences are ``(base, gain)`` pairs applied to a candidate's score.

BUILDING_SIZE_RAMP = (1200.0, 7000.0)
BUILDING_DENSITY_RAMP = (0.22, 0.4)
BUILDING_ASPECT_TARGET = (1.6, 3.0)
#: size, density, aspect
BUILDING_WEIGHTS = (0.4, 0.4, 0.2)
BUILDING_CONFIDENCE = (0.55, 0.45)

BRIDGE_ELONGATION_RAMP = (3.5, 6.5)
BRIDGE_SPAN_RAMP = (40.0, 140.0)
BRIDGE_WIDTH_TARGET = (18.0, 28.0)
BRIDGE_DENSITY_RAMP = (0.2, 0.45)
#: elongation, span, density, width
BRIDGE_WEIGHTS = (0.35, 0.25, 0.25, 0.15)
BRIDGE_CONFIDENCE = (0.5, 0.5)

WALL_ELONGATION_RAMP = (6.0, 8.0)
#: minor axis at which slenderness starts to fall, and the fall-off span
WALL_SLENDER_RAMP = (3.0, 22.0)
#: fill ratio below which scatter counts as diffuse
WALL_DIFFUSE_FILL = 0.35
#: elongation, slenderness, diffusion
WALL_WEIGHTS = (0.45, 0.35, 0.2)
WALL_CONFIDENCE = (0.5, 0.5)

RIVER_AREA_SPAN = 20000.0
RIVER_DIFFUSE_FILL = 0.3
RIVER_ELONGATION_RAMP = (2.0, 8.0)
RIVER_WIDTH_RAMP = (6.0, 40.0)
#: area, diffusion, elongation, width
RIVER_WEIGHTS = (0.35, 0.35, 0.2, 0.1)
RIVER_CONFIDENCE = (0.5, 0.5)
