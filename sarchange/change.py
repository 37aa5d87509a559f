# -*- coding: utf-8 -*-
"""
Change Detection - Before/after radar intensity change pipeline.

``ChangeDetector`` compares two co-registered single-band rasters:

1. resample *before* onto *after*'s grid when their sizes differ
   (nearest neighbour, logged at INFO),
2. speckle-filter both with the same ``SpeckleOptions``,
3. take ``|after - before|`` and stretch before, after and the
   difference to 0-255 with the change profile (2nd-98th percentile),
4. segment the difference with the configured algorithm,
5. clean the mask (opening, closing, hole fill, small-blob removal),
6. count changed pixels and, when a pixel scale is known, convert to km².

Georeferencing (bounds and pixel scale) is taken from *after* and falls
back to *before*.

Dependencies
------------
numpy, scipy

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
from dataclasses import dataclass, field
from typing import Optional, Union

# Third-party
import numpy as np

# sarchange internal
from sarchange.constants import DEFAULT_SPECKLE_WINDOW, PREVIEW_MAX_EDGE
from sarchange.exceptions import ValidationError
from sarchange.image_processing.filters.speckle import (
    clamp_window_size,
    resolve_kind,
    speckle_filter_2d,
)
from sarchange.image_processing.intensity import (
    CHANGE_PROFILE,
    abs_diff,
    normalize_to_byte,
)
from sarchange.image_processing.morphology import PostProcessOptions, post_process
from sarchange.image_processing.resample import (
    align_raster,
    downscale_for_preview,
    downscale_mask,
    preview_geometry,
)
from sarchange.image_processing.segmentation import (
    OtsuOptions,
    SegmentationOptions,
    segment,
)
from sarchange.models import Bounds, RasterBuffer, pixel_area_m2
from sarchange.vocabulary import SpeckleFilterKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeckleOptions:
    """Speckle filter applied to both rasters before differencing.

    Attributes
    ----------
    kind : SpeckleFilterKind
        Filter kind; strings are accepted and converted.
    window_size : int
        Window side length; values below 1 are clamped to 1.
    """

    kind: SpeckleFilterKind = SpeckleFilterKind.NONE
    window_size: int = DEFAULT_SPECKLE_WINDOW

    def __post_init__(self) -> None:
        object.__setattr__(self, 'kind', resolve_kind(self.kind))
        object.__setattr__(self, 'window_size', clamp_window_size(self.window_size))


@dataclass(frozen=True)
class ChangeDetectionOptions:
    """Full change pipeline configuration."""

    segmentation: SegmentationOptions = field(default_factory=OtsuOptions)
    speckle: SpeckleOptions = field(default_factory=SpeckleOptions)
    post_process: PostProcessOptions = field(default_factory=PostProcessOptions)


@dataclass(frozen=True)
class ChangeDebug:
    """Intermediate rasters of a change run.

    Attributes
    ----------
    aligned_before : np.ndarray
        *before* resampled to the *after* grid.
    filtered_before, filtered_after : np.ndarray
        float32 speckle-filtered rasters.
    diff : np.ndarray
        float32 absolute difference before normalization.
    raw_mask : np.ndarray
        Segmentation mask before cleanup.
    """

    aligned_before: np.ndarray
    filtered_before: np.ndarray
    filtered_after: np.ndarray
    diff: np.ndarray
    raw_mask: np.ndarray


@dataclass(frozen=True)
class ChangePreview:
    """Downscaled display rasters of a change result."""

    width: int
    height: int
    before: np.ndarray
    after: np.ndarray
    diff: np.ndarray
    mask: np.ndarray


@dataclass(frozen=True)
class ChangeResult:
    """
    Output of one change detection run.

    Attributes
    ----------
    mask : np.ndarray
        Cleaned bool change mask, ``(height, width)``.
    changed_pixels : int
        Number of set mask pixels.
    change_percentage : float
        ``100 * changed_pixels / (width * height)``.
    change_area_km2 : float, optional
        Changed ground area; ``None`` without a usable pixel scale.
    before_display, after_display, diff_display : np.ndarray
        uint8 change-profile stretches of the filtered rasters and their
        absolute difference.
    bounds : Tuple[float, float, float, float], optional
        Geographic bounds of the result grid.
    width, height : int
        Result grid size (the *after* raster's).
    debug : ChangeDebug, optional
        Intermediate rasters, present only for ``detect(..., debug=True)``.
    """

    mask: np.ndarray
    changed_pixels: int
    change_percentage: float
    change_area_km2: Optional[float]
    before_display: np.ndarray
    after_display: np.ndarray
    diff_display: np.ndarray
    bounds: Optional[Bounds]
    width: int
    height: int
    debug: Optional[ChangeDebug] = None

    def preview(self, max_edge: int = PREVIEW_MAX_EDGE) -> ChangePreview:
        """Display rasters shrunk so the longest edge is at most *max_edge*.

        The mask is reduced by majority vote, the display rasters by
        nearest neighbour.
        """
        w, h = preview_geometry(self.width, self.height, max_edge)
        if (w, h) == (self.width, self.height):
            mask = self.mask.copy()
        else:
            mask = downscale_mask(self.mask, w, h)
        return ChangePreview(
            width=w,
            height=h,
            before=downscale_for_preview(self.before_display, max_edge),
            after=downscale_for_preview(self.after_display, max_edge),
            diff=downscale_for_preview(self.diff_display, max_edge),
            mask=mask,
        )

    def __repr__(self) -> str:
        return (
            f"ChangeResult({self.width}x{self.height}, "
            f"changed={self.changed_pixels}, "
            f"pct={self.change_percentage:.3f})"
        )


RasterLike = Union[RasterBuffer, np.ndarray]


def _as_raster(source: RasterLike, name: str) -> RasterBuffer:
    if isinstance(source, RasterBuffer):
        return source
    if isinstance(source, np.ndarray):
        return RasterBuffer.from_array(source)
    raise ValidationError(
        f"{name} must be a RasterBuffer or 2D array, got {type(source).__name__}"
    )


class ChangeDetector:
    """Before/after change detection pipeline.

    Parameters
    ----------
    options : ChangeDetectionOptions, optional
        Segmentation, speckle and cleanup settings.  Defaults to Otsu with
        no speckle filter and no cleanup.

    Examples
    --------
    >>> options = ChangeDetectionOptions(
    ...     segmentation=KMeansOptions(clusters=3),
    ...     speckle=SpeckleOptions('lee', 5),
    ...     post_process=PostProcessOptions(closing_radius=1, min_blob_area=80),
    ... )
    >>> result = ChangeDetector(options).detect(before, after)
    >>> result.change_percentage
    """

    def __init__(self, options: Optional[ChangeDetectionOptions] = None) -> None:
        self.options = options if options is not None else ChangeDetectionOptions()

    def detect(
        self,
        before: RasterLike,
        after: RasterLike,
        debug: bool = False,
    ) -> ChangeResult:
        """Run the pipeline.

        Parameters
        ----------
        before, after : RasterBuffer or np.ndarray
            Co-registered intensity rasters.
        debug : bool
            Attach a ``ChangeDebug`` with the intermediate rasters.

        Returns
        -------
        ChangeResult
        """
        before = _as_raster(before, 'before')
        after = _as_raster(after, 'after')
        opts = self.options

        if before.shape != after.shape:
            logger.info(
                "Resampling before raster %dx%d to after geometry %dx%d",
                before.width, before.height, after.width, after.height,
            )
        aligned = align_raster(before, after)
        width, height = after.width, after.height

        filtered_before = speckle_filter_2d(
            aligned.as_2d(), opts.speckle.kind, opts.speckle.window_size,
        )
        filtered_after = speckle_filter_2d(
            after.as_2d(), opts.speckle.kind, opts.speckle.window_size,
        )
        diff = abs_diff(filtered_before, filtered_after)
        before_display = normalize_to_byte(filtered_before, CHANGE_PROFILE)
        after_display = normalize_to_byte(filtered_after, CHANGE_PROFILE)
        diff_display = normalize_to_byte(diff, CHANGE_PROFILE)

        raw_mask = segment(diff_display, opts.segmentation)
        mask = post_process(raw_mask, opts.post_process)

        changed = int(np.count_nonzero(mask))
        percentage = changed / (width * height) * 100.0

        pixel_scale = after.pixel_scale or before.pixel_scale
        area = pixel_area_m2(pixel_scale)
        area_km2 = changed * area / 1e6 if area is not None else None
        bounds = after.bounds or before.bounds

        logger.debug(
            "Change: %d of %d pixels (%.3f%%)", changed, width * height, percentage,
        )

        artifacts = None
        if debug:
            artifacts = ChangeDebug(
                aligned_before=aligned.as_2d(),
                filtered_before=filtered_before,
                filtered_after=filtered_after,
                diff=diff,
                raw_mask=raw_mask,
            )

        return ChangeResult(
            mask=mask,
            changed_pixels=changed,
            change_percentage=percentage,
            change_area_km2=area_km2,
            before_display=before_display,
            after_display=after_display,
            diff_display=diff_display,
            bounds=bounds,
            width=width,
            height=height,
            debug=artifacts,
        )


def analyze_change(
    before: RasterLike,
    after: RasterLike,
    options: Optional[ChangeDetectionOptions] = None,
) -> ChangeResult:
    """Functional form of :meth:`ChangeDetector.detect`."""
    return ChangeDetector(options).detect(before, after)
