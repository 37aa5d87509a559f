# -*- coding: utf-8 -*-
"""
Image Processing Base Classes - Abstract interfaces for raster processors.

Defines ``ImageProcessor``, the common base of every processor in the
change pipeline, plus the two processor shapes used here:
``ImageTransform`` (array in, array out: speckle filters, morphology) and
``ImageDetector`` (array in, detection result out: the object detector).

``ImageProcessor`` provides version checking at first instantiation and
``typing.Annotated`` tunable parameters resolved at call time through
``**kwargs``.

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
import warnings
from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

# Third-party
import numpy as np

# sarchange internal
from sarchange.image_processing.params import ParamSpec, collect_param_specs

logger = logging.getLogger(__name__)


class ImageProcessor(ABC):
    """Common base class for all processors.

    **Version checking**: concrete subclasses without a
    ``@processor_version`` stamp emit a ``UserWarning`` the first time
    they are instantiated.

    **Tunable parameters**: ``Annotated`` class-body fields carrying
    ``Range`` / ``Options`` / ``Desc`` markers are collected into
    ``__param_specs__``.  ``_resolve_params(kwargs)`` merges instance
    values with per-call overrides and validates them.
    """

    _version_warned_classes: set = set()

    __param_specs__: Tuple[ParamSpec, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__param_specs__ = collect_param_specs(cls)

    def __new__(cls, *args: Any, **kwargs: Any) -> 'ImageProcessor':
        if cls not in ImageProcessor._version_warned_classes:
            ImageProcessor._version_warned_classes.add(cls)
            if (
                not getattr(cls, '__processor_version__', None)
                and not getattr(cls, '__abstractmethods__', None)
            ):
                warnings.warn(
                    f"{cls.__qualname__} does not declare a processor version. "
                    f"Use @processor_version('x.y.z') to declare one.",
                    UserWarning,
                    stacklevel=2,
                )
        logger.debug("Instantiating %s", cls.__qualname__)
        return super().__new__(cls)

    def _resolve_params(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge instance values with runtime *kwargs* overrides.

        Keys in *kwargs* that are not declared parameters are ignored.

        Returns
        -------
        Dict[str, Any]
            ``{name: value}`` for every declared parameter.

        Raises
        ------
        TypeError, ValueError
            If a resolved value violates its spec.
        """
        resolved: Dict[str, Any] = {}
        for spec in type(self).__param_specs__:
            value = kwargs[spec.name] if spec.name in kwargs else getattr(
                self, spec.name,
            )
            spec.validate(value)
            resolved[spec.name] = value
        return resolved

    def _report_progress(self, kwargs: Dict[str, Any], fraction: float) -> None:
        """Forward *fraction* to an optional ``progress_callback`` kwarg."""
        cb = kwargs.get('progress_callback')
        if cb is not None:
            cb(float(fraction))


class ImageTransform(ImageProcessor):
    """Processor mapping a 2D array to a 2D array of the same shape."""

    @abstractmethod
    def apply(self, source: np.ndarray, **kwargs: Any) -> np.ndarray:
        """Apply the transform to a ``(rows, cols)`` array."""
        ...


class ImageDetector(ImageProcessor):
    """Processor producing sparse detections from a raster."""

    @abstractmethod
    def detect(self, source: Any, **kwargs: Any) -> Any:
        """Run detection on *source* and return a result object."""
        ...
