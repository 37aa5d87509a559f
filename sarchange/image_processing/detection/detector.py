# -*- coding: utf-8 -*-
"""
Urban Feature Detector - Multi-scale bright-scatter detection and classification.

``ObjectDetector`` finds discrete urban and terrain features (buildings,
bridges, border walls, rivers, other scatter) in one radar intensity
raster.  The raster is stretched to 0-255 with the detection profile
(2nd-99.5th percentile) and handed to an ordered list of strategies.

Cascade
-------
1. **Multi-scale pass.**  ``ScaleStrategy`` at scales 1, 0.5 and 0.25:
   nearest-resample, threshold at the requested rank percentile of the
   scaled raster (``>=``), one 3x3 close, 8-connected components,
   measure / classify, map boxes back to native pixels.  Candidates from
   all scales are renumbered ``ms-<n>`` and merged with NMS (IoU 0.35).
2. **Fallback.**  When the merge is sparse (fewer than 12 boxes) or its
   boxes crowd the top of the image (mean vertical box centre above 20 %
   of the height), two further full-resolution masks are tried:
   ``PercentileStrategy`` at the percentile minus 8 and
   ``AdaptiveStrategy`` (64-pixel local mean minus 12).  Their boxes join
   the merged set, are renumbered ``m-<n>`` and merged with NMS again.
3. **Decoration.**  The final list is capped at ``max_detections`` and
   each box gets preview coordinates, a geographic footprint and ground
   area when the raster is georeferenced.

Strategies within a stage are independent and may run on a thread pool
(``parallel=True``); results are always joined in strategy order, so the
output does not depend on scheduling.

Confidence
----------
``0.5 * base + 0.5 * shape`` where ``base = clamp((mean - t) / max(1,
255 - t))`` for the threshold value ``t`` of the mask the component came
from, and ``shape`` is the classification score after the skeleton
linearity override.

Dependencies
------------
numpy, scipy, shapely

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
import dataclasses
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Annotated, Any, List, Optional, Sequence

# Third-party
import numpy as np

# sarchange internal
from sarchange.constants import (
    ADAPTIVE_MASK_OFFSET,
    ADAPTIVE_MASK_WINDOW,
    FALLBACK_MIN_DETECTIONS,
    FALLBACK_PERCENTILE_DROP,
    FALLBACK_TOP_FRACTION,
    NMS_IOU_THRESHOLD,
    PREVIEW_MAX_EDGE,
    SCALE_FACTORS,
)
from sarchange.exceptions import ProcessorError, SarChangeError, ValidationError
from sarchange.geolocation import build_polygon
from sarchange.image_processing.base import ImageDetector
from sarchange.image_processing.detection.classify import (
    ClassificationMetrics,
    apply_linearity_override,
    classify_urban_feature,
)
from sarchange.image_processing.detection.components import (
    adaptive_binary_mask,
    binary_threshold,
    close_mask,
    label_components,
    measure_components,
)
from sarchange.image_processing.detection.models import (
    BoundingBox,
    DebugArtifacts,
    DetectionBox,
    DetectionResult,
    DetectionStatistics,
    ObjectDetectionOptions,
)
from sarchange.image_processing.detection.nms import nms
from sarchange.image_processing.detection.skeleton import linearity, zhang_suen_thin
from sarchange.image_processing.intensity import (
    DETECTION_PROFILE,
    normalize_to_byte,
    percentile,
)
from sarchange.image_processing.params import Desc, Range
from sarchange.image_processing.resample import preview_geometry, resample_nearest
from sarchange.image_processing.utils import clamp, round_half_up
from sarchange.image_processing.versioning import processor_tags, processor_version
from sarchange.models import RasterBuffer, pixel_area_m2
from sarchange.vocabulary import ImageModality, ProcessorCategory

logger = logging.getLogger(__name__)


# ===================================================================
# Component -> box
# ===================================================================

def build_boxes(
    mask: np.ndarray,
    values: np.ndarray,
    threshold_value: float,
    options: ObjectDetectionOptions,
) -> List[DetectionBox]:
    """Measure, classify and score the components of one mask.

    Parameters
    ----------
    mask : np.ndarray
        Closed bool mask.
    values : np.ndarray
        0-255 raster the mask was derived from, same shape.
    threshold_value : float
        Brightness threshold the base confidence is measured against.
    options : ObjectDetectionOptions
        Minimum area and per-pass cap.

    Returns
    -------
    List[DetectionBox]
        Boxes in the mask's own pixel grid, ids ``det-<n>``, in component
        label (raster-scan) order.
    """
    labeled, count = label_components(mask)
    components = measure_components(
        labeled, count, values, min_pixels=options.min_area_pixels,
    )
    boxes: List[DetectionBox] = []
    for comp in components:
        if comp.bbox_area < options.min_area_pixels:
            continue

        base = clamp(
            (comp.mean_intensity - threshold_value)
            / max(1.0, 255.0 - threshold_value)
        )
        metrics = ClassificationMetrics.from_bbox(
            comp.pixels, comp.width, comp.height,
        )
        classification = classify_urban_feature(metrics)

        # one background pixel of padding so the component edge can thin
        crop = np.pad(mask[comp.rows, comp.cols], 1)
        skeleton = zhang_suen_thin(crop)[1:-1, 1:-1]
        own_pixels = labeled[comp.rows, comp.cols] == comp.label
        line_score = linearity(skeleton, own_pixels)
        category, shape_score = apply_linearity_override(
            classification, metrics, line_score,
        )

        boxes.append(DetectionBox(
            id=f"det-{len(boxes) + 1}",
            category=category,
            confidence=clamp(base * 0.5 + shape_score * 0.5),
            bbox=BoundingBox(comp.x, comp.y, comp.width, comp.height),
            area_pixels=comp.pixels,
            centroid=comp.centroid,
            notes=classification.notes,
        ))
        if options.max_detections and len(boxes) >= options.max_detections:
            break
    return boxes


def _to_native(box: DetectionBox, fx: float, fy: float) -> DetectionBox:
    """Map a box detected on a resampled grid back to native pixels."""
    x, y, w, h = box.bbox
    return dataclasses.replace(
        box,
        bbox=BoundingBox(
            round_half_up(x / fx),
            round_half_up(y / fy),
            max(1, round_half_up(w / fx)),
            max(1, round_half_up(h / fy)),
        ),
        area_pixels=max(1, round_half_up(box.area_pixels / (fx * fy))),
        centroid=(box.centroid[0] / fx, box.centroid[1] / fy),
    )


def renumber(boxes: Sequence[DetectionBox], prefix: str) -> List[DetectionBox]:
    """Copies of *boxes* with ids ``<prefix>-1``, ``<prefix>-2``, ..."""
    return [
        dataclasses.replace(b, id=f"{prefix}-{i + 1}")
        for i, b in enumerate(boxes)
    ]


def needs_fallback(boxes: Sequence[DetectionBox], height: int) -> bool:
    """Whether the multi-scale merge is too sparse or too top-heavy.

    True when fewer than 12 boxes survived, or the mean of
    ``bbox.y + bbox.height / 2`` lies above ``0.2 * height``.
    """
    if len(boxes) < FALLBACK_MIN_DETECTIONS:
        return True
    mean_center = sum(b.bbox.y + b.bbox.height / 2.0 for b in boxes) / len(boxes)
    return mean_center < height * FALLBACK_TOP_FRACTION


# ===================================================================
# Strategies
# ===================================================================

@dataclass(frozen=True)
class StrategyResult:
    """Boxes and closed mask produced by one strategy.

    ``mask`` is in the strategy's own grid (reduced for scales < 1);
    ``boxes`` are always in native pixels.
    """

    name: str
    boxes: List[DetectionBox]
    mask: np.ndarray
    threshold_value: float
    scale: Optional[float] = None


class DetectionStrategy(ABC):
    """One way of turning the normalized raster into candidate boxes."""

    name: str = 'strategy'

    @abstractmethod
    def run(
        self,
        normalized: np.ndarray,
        options: ObjectDetectionOptions,
    ) -> StrategyResult:
        """Produce candidate boxes from the 0-255 raster."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class ScaleStrategy(DetectionStrategy):
    """Percentile threshold on a nearest-resampled copy of the raster.

    Parameters
    ----------
    scale : float
        Resampling factor in (0, 1].  Target size is
        ``max(1, round_half_up(n * scale))`` per axis.
    """

    def __init__(self, scale: float) -> None:
        if not 0.0 < scale <= 1.0:
            raise ValidationError(f"scale must be in (0, 1], got {scale!r}")
        self.scale = float(scale)
        self.name = f"scale_{self.scale:g}"

    def run(
        self,
        normalized: np.ndarray,
        options: ObjectDetectionOptions,
    ) -> StrategyResult:
        height, width = normalized.shape
        target_w = max(1, round_half_up(width * self.scale))
        target_h = max(1, round_half_up(height * self.scale))
        if self.scale == 1.0:
            scaled = normalized
        else:
            scaled = resample_nearest(normalized, target_w, target_h)

        threshold_value = percentile(scaled, options.threshold_percentile)
        mask = close_mask(binary_threshold(scaled, threshold_value))
        boxes = build_boxes(mask, scaled, threshold_value, options)

        fx = target_w / width
        fy = target_h / height
        if fx != 1.0 or fy != 1.0:
            boxes = [_to_native(b, fx, fy) for b in boxes]

        logger.debug(
            "%s: %dx%d, threshold %.1f, %d boxes",
            self.name, target_w, target_h, threshold_value, len(boxes),
        )
        return StrategyResult(self.name, boxes, mask, threshold_value, self.scale)


class PercentileStrategy(DetectionStrategy):
    """Full-resolution threshold at a percentile below the requested one.

    Confidence is measured against the lowered threshold.

    Parameters
    ----------
    drop : float
        Percentile points subtracted from the requested percentile
        (floored at 0). Default 8.
    """

    name = 'alternate'

    def __init__(self, drop: float = FALLBACK_PERCENTILE_DROP) -> None:
        self.drop = float(drop)

    def run(
        self,
        normalized: np.ndarray,
        options: ObjectDetectionOptions,
    ) -> StrategyResult:
        lowered = max(0.0, options.threshold_percentile - self.drop)
        threshold_value = percentile(normalized, lowered)
        mask = close_mask(binary_threshold(normalized, threshold_value))
        pass_options = dataclasses.replace(options, threshold_percentile=lowered)
        boxes = build_boxes(mask, normalized, threshold_value, pass_options)
        logger.debug(
            "%s: percentile %.1f, threshold %.1f, %d boxes",
            self.name, lowered, threshold_value, len(boxes),
        )
        return StrategyResult(self.name, boxes, mask, threshold_value)


class AdaptiveStrategy(DetectionStrategy):
    """Locally adaptive mean threshold for unevenly lit scenes.

    Confidence is measured against the requested global percentile.

    Parameters
    ----------
    window : int
        Block size of the local mean. Default 64.
    offset : float
        Amount subtracted from the local mean. Default 12.
    """

    name = 'local'

    def __init__(
        self,
        window: int = ADAPTIVE_MASK_WINDOW,
        offset: float = ADAPTIVE_MASK_OFFSET,
    ) -> None:
        if window < 1:
            raise ValidationError(f"window must be >= 1, got {window!r}")
        self.window = int(window)
        self.offset = float(offset)

    def run(
        self,
        normalized: np.ndarray,
        options: ObjectDetectionOptions,
    ) -> StrategyResult:
        threshold_value = percentile(normalized, options.threshold_percentile)
        mask = close_mask(
            adaptive_binary_mask(normalized, self.window, self.offset)
        )
        boxes = build_boxes(mask, normalized, threshold_value, options)
        logger.debug("%s: %d boxes", self.name, len(boxes))
        return StrategyResult(self.name, boxes, mask, threshold_value)


def default_strategies() -> List[DetectionStrategy]:
    return [ScaleStrategy(s) for s in SCALE_FACTORS]


def default_fallback_strategies() -> List[DetectionStrategy]:
    return [PercentileStrategy(), AdaptiveStrategy()]


# ===================================================================
# Detector
# ===================================================================

@processor_version('1.0.0')
@processor_tags(
    category=ProcessorCategory.ANALYZE,
    modalities=[ImageModality.SAR],
    description='Multi-scale urban feature detection and classification',
)
class ObjectDetector(ImageDetector):
    """Detect and classify urban / terrain features in one raster.

    Parameters
    ----------
    options : ObjectDetectionOptions, optional
        Percentile, minimum area and detection cap.  Defaults to
        ``ObjectDetectionOptions()`` (95, 40, 200).
    parallel : bool
        Run the strategies of each stage on a thread pool.
    strategies : Sequence[DetectionStrategy], optional
        Primary stage.  Default: scales 1, 0.5, 0.25.
    fallback_strategies : Sequence[DetectionStrategy], optional
        Fallback stage.  Default: percentile - 8, then adaptive 64/12.
    iou_threshold : float
        NMS overlap threshold. Default 0.35.

    Examples
    --------
    >>> detector = ObjectDetector(ObjectDetectionOptions(threshold_percentile=97))
    >>> result = detector.detect(after_raster)
    >>> bridges = result.filter(FeatureCategory.BRIDGE, min_confidence=0.6)
    >>> traced = detector.detect(after_raster, debug=True).debug.merged
    """

    threshold_percentile: Annotated[
        float, Range(min=0.0, max=100.0), Desc('Brightness rank percentile'),
    ] = 95.0
    min_area_pixels: Annotated[
        int, Range(min=1), Desc('Minimum component area in pixels'),
    ] = 40
    parallel: Annotated[bool, Desc('Run strategies on a thread pool')] = False

    def __init__(
        self,
        options: Optional[ObjectDetectionOptions] = None,
        parallel: bool = False,
        strategies: Optional[Sequence[DetectionStrategy]] = None,
        fallback_strategies: Optional[Sequence[DetectionStrategy]] = None,
        iou_threshold: float = NMS_IOU_THRESHOLD,
    ) -> None:
        self.options = options if options is not None else ObjectDetectionOptions()
        self.threshold_percentile = self.options.threshold_percentile
        self.min_area_pixels = self.options.min_area_pixels
        self.parallel = bool(parallel)
        self.strategies = (
            list(strategies) if strategies is not None else default_strategies()
        )
        self.fallback_strategies = (
            list(fallback_strategies) if fallback_strategies is not None
            else default_fallback_strategies()
        )
        self.iou_threshold = float(iou_threshold)

    @staticmethod
    def _run_strategy(
        strategy: DetectionStrategy,
        normalized: np.ndarray,
        options: ObjectDetectionOptions,
    ) -> StrategyResult:
        try:
            return strategy.run(normalized, options)
        except SarChangeError:
            raise
        except Exception as exc:
            raise ProcessorError(
                f"Detection strategy {strategy.name!r} failed: {exc}"
            ) from exc

    def _run_stage(
        self,
        strategies: Sequence[DetectionStrategy],
        normalized: np.ndarray,
        options: ObjectDetectionOptions,
        parallel: bool,
    ) -> List[StrategyResult]:
        if parallel and len(strategies) > 1:
            with ThreadPoolExecutor(max_workers=len(strategies)) as pool:
                futures = [
                    pool.submit(self._run_strategy, s, normalized, options)
                    for s in strategies
                ]
                return [f.result() for f in futures]
        return [
            self._run_strategy(s, normalized, options) for s in strategies
        ]

    def detect(self, source: Any, **kwargs: Any) -> DetectionResult:
        """Detect features in a raster.

        Parameters
        ----------
        source : RasterBuffer or np.ndarray
            Single-band intensity raster.  A bare 2D array may be given
            ``bounds=`` and ``pixel_scale=`` keyword arguments.
        **kwargs
            ``threshold_percentile``, ``min_area_pixels`` and ``parallel``
            override the instance values; ``debug=True`` attaches
            ``DebugArtifacts``; ``progress_callback`` receives fractions
            in [0, 1].

        Returns
        -------
        DetectionResult
        """
        if isinstance(source, RasterBuffer):
            raster = source
        else:
            raster = RasterBuffer.from_array(
                source, kwargs.get('bounds'), kwargs.get('pixel_scale'),
            )
        fields = ('threshold_percentile', 'min_area_pixels')
        overrides = {name: kwargs[name] for name in fields if name in kwargs}
        current = {name: getattr(self, name) for name in fields}
        options = dataclasses.replace(self.options, **{**current, **overrides})
        kwargs.update({name: getattr(options, name) for name in fields})
        params = self._resolve_params(kwargs)
        want_debug = bool(kwargs.get('debug', False))
        width, height = raster.width, raster.height

        normalized = normalize_to_byte(raster.as_2d(), DETECTION_PROFILE)
        threshold_value = percentile(normalized, options.threshold_percentile)
        debug = DebugArtifacts() if want_debug else None

        primary = self._run_stage(
            self.strategies, normalized, options, params['parallel'],
        )
        self._report_progress(kwargs, 0.5)
        if debug is not None:
            self._record(debug, primary)
            if debug.primary is None:
                debug.primary = close_mask(
                    binary_threshold(normalized, threshold_value)
                )

        candidates = [b for r in primary for b in r.boxes]
        boxes = nms(renumber(candidates, 'ms'), self.iou_threshold)
        logger.debug(
            "Multi-scale merge kept %d of %d candidates",
            len(boxes), len(candidates),
        )

        if self.fallback_strategies and needs_fallback(boxes, height):
            logger.debug("Running %d fallback strategies", len(self.fallback_strategies))
            fallback = self._run_stage(
                self.fallback_strategies, normalized, options, params['parallel'],
            )
            if debug is not None:
                self._record(debug, fallback)
            merged = boxes + [b for r in fallback for b in r.boxes]
            boxes = nms(renumber(merged, 'm'), self.iou_threshold)
            logger.debug("Fallback merge kept %d of %d boxes", len(boxes), len(merged))
        self._report_progress(kwargs, 0.9)

        if options.max_detections:
            boxes = boxes[:options.max_detections]

        preview_w, preview_h = preview_geometry(width, height, PREVIEW_MAX_EDGE)
        boxes = self._decorate(
            boxes, raster, preview_w / width, preview_h / height,
        )

        stats = DetectionStatistics(
            total_detections=len(boxes),
            threshold=options.threshold_percentile,
            threshold_value=threshold_value,
            minimum_area=options.min_area_pixels,
            average_confidence=(
                sum(b.confidence for b in boxes) / len(boxes) if boxes else 0.0
            ),
        )
        self._report_progress(kwargs, 1.0)
        logger.debug("Detected %d features", len(boxes))

        return DetectionResult(
            boxes=tuple(boxes),
            stats=stats,
            threshold_value=threshold_value,
            width=width,
            height=height,
            preview_width=preview_w,
            preview_height=preview_h,
            bounds=raster.bounds,
            pixel_scale=raster.pixel_scale,
            debug=debug,
        )

    @staticmethod
    def _record(debug: DebugArtifacts, results: Sequence[StrategyResult]) -> None:
        for r in results:
            if r.scale is not None:
                debug.scale_masks[r.scale] = r.mask
                if r.scale == 1.0:
                    debug.primary = r.mask
            elif r.name == 'alternate':
                debug.alternate = r.mask
            elif r.name == 'local':
                debug.local = r.mask

    @staticmethod
    def _decorate(
        boxes: Sequence[DetectionBox],
        raster: RasterBuffer,
        sx: float,
        sy: float,
    ) -> List[DetectionBox]:
        area = pixel_area_m2(raster.pixel_scale)
        decorated = []
        for b in boxes:
            decorated.append(dataclasses.replace(
                b,
                preview_box=b.bbox.scaled(sx, sy),
                preview_centroid=(b.centroid[0] * sx, b.centroid[1] * sy),
                footprint=build_polygon(
                    b.bbox, raster.bounds, raster.width, raster.height,
                ),
                area_m2=b.area_pixels * area if area is not None else None,
            ))
        return decorated
