# -*- coding: utf-8 -*-
"""
sarchange Exception Hierarchy - Domain-specific exceptions for change analysis.

Every error raised by the change detection and feature extraction stages
subclasses ``SarChangeError`` together with the matching built-in
exception, so callers can either catch library errors as a group or keep
catching ``ValueError`` / ``RuntimeError`` as before.

Configuration knobs that are merely out of range (cluster counts,
contamination fractions, window sizes) are clamped and logged rather than
raised; only structurally invalid inputs end up here.

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


class SarChangeError(Exception):
    """Base exception for all sarchange errors."""


class ValidationError(SarChangeError, ValueError):
    """Invalid input data or configuration.

    Raised for sample-count/shape mismatches, non-2D rasters, unknown
    speckle filter kinds, and unknown segmentation algorithms.
    """


class ProcessorError(SarChangeError, RuntimeError):
    """Non-recoverable failure while a processor is running."""
