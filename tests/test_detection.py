# -*- coding: utf-8 -*-
"""
Object Detection Tests - Classification, thinning, NMS and the multi-scale
ObjectDetector.

Dependencies
------------
pytest
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

import logging

import numpy as np
import pytest
from scipy.ndimage import label

from sarchange.constants import (
    BRIDGE_WEIGHTS,
    BUILDING_WEIGHTS,
    RIVER_WEIGHTS,
    WALL_WEIGHTS,
)
from sarchange.image_processing.detection import (
    AdaptiveStrategy,
    BoundingBox,
    Classification,
    ClassificationMetrics,
    DetectionBox,
    DetectionStrategy,
    ObjectDetectionOptions,
    ObjectDetector,
    PercentileStrategy,
    ScaleStrategy,
    adaptive_binary_mask,
    apply_linearity_override,
    build_boxes,
    classify_urban_feature,
    iou,
    linearity,
    needs_fallback,
    nms,
    zhang_suen_thin,
)
from sarchange.image_processing.detection.classify import (
    building_score,
    river_score,
    wall_score,
)
from sarchange.exceptions import ProcessorError, ValidationError
from sarchange.vocabulary import FeatureCategory


def make_box(confidence, x, y, w, h, box_id='b'):
    return DetectionBox(
        id=box_id,
        category=FeatureCategory.URBAN_FEATURE,
        confidence=confidence,
        bbox=BoundingBox(x, y, w, h),
        area_pixels=w * h,
        centroid=(x + w / 2.0, y + h / 2.0),
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassification:
    """Test the urban feature classifier."""

    def test_metrics_from_bbox(self):
        m = ClassificationMetrics.from_bbox(150, 30, 10)
        assert m.bounding_area == 300
        assert m.fill_ratio == pytest.approx(0.5)
        assert m.aspect_ratio == pytest.approx(3.0)
        assert (m.major_axis, m.minor_axis) == (30, 10)

    def test_compact_block_is_building(self):
        result = classify_urban_feature(ClassificationMetrics.from_bbox(1600, 40, 40))
        assert result.category is FeatureCategory.BUILDING
        assert 0.55 < result.shape_score <= 1.0
        assert "building" in result.notes

    def test_dense_span_is_bridge(self):
        result = classify_urban_feature(ClassificationMetrics.from_bbox(1200, 120, 10))
        assert result.category is FeatureCategory.BRIDGE
        # elongation 1, span 80/140, density 1, width 1 - 8/28
        bridge = 0.35 + 0.25 * 80 / 140 + 0.25 + 0.15 * (1 - 8 / 28)
        assert result.shape_score == pytest.approx(0.5 + 0.5 * bridge)

    def test_competing_scores(self):
        m = ClassificationMetrics.from_bbox(1200, 120, 10)
        assert building_score(m) == pytest.approx(0.4)
        assert wall_score(m) == pytest.approx(0.45 * 0.75 + 0.35 * (1 - 7 / 22))
        assert river_score(m) == pytest.approx(
            0.35 * 1200 / 20000 + 0.2 + 0.1 * 4 / 40
        )

    def test_term_weights_are_normalized(self):
        for weights in (BUILDING_WEIGHTS, BRIDGE_WEIGHTS, WALL_WEIGHTS, RIVER_WEIGHTS):
            assert sum(weights) == pytest.approx(1.0)

    def test_thin_diffuse_line_is_wall(self):
        result = classify_urban_feature(ClassificationMetrics.from_bbox(200, 200, 4))
        assert result.category is FeatureCategory.BORDER_WALL

    def test_broad_diffuse_region_is_river(self):
        result = classify_urban_feature(ClassificationMetrics.from_bbox(1440, 480, 60))
        assert result.category is FeatureCategory.RIVER

    def test_small_blob_falls_back(self):
        result = classify_urban_feature(ClassificationMetrics.from_bbox(50, 10, 10))
        assert result.category is FeatureCategory.URBAN_FEATURE
        expected = 0.35 + 0.4 * (0.5 * 50 / 6000 + 0.5)
        assert result.shape_score == pytest.approx(expected)

    def test_labels(self):
        assert FeatureCategory.BORDER_WALL.label == "Border Wall"
        assert FeatureCategory.URBAN_FEATURE.label == "Urban Feature"


class TestLinearityOverride:
    """Test the skeleton-based category override."""

    @pytest.fixture
    def urban(self):
        return Classification(FeatureCategory.URBAN_FEATURE, 0.4, "")

    def test_elongated_becomes_bridge(self, urban):
        metrics = ClassificationMetrics.from_bbox(60, 30, 2)
        category, score = apply_linearity_override(urban, metrics, 0.5)
        assert category is FeatureCategory.BRIDGE
        assert score == pytest.approx(0.8)

    def test_stubby_becomes_wall(self, urban):
        metrics = ClassificationMetrics.from_bbox(300, 30, 15)
        category, score = apply_linearity_override(urban, metrics, 0.5)
        assert category is FeatureCategory.BORDER_WALL
        assert score == pytest.approx(0.725)

    def test_keeps_higher_score(self):
        strong = Classification(FeatureCategory.BUILDING, 0.95, "")
        metrics = ClassificationMetrics.from_bbox(60, 30, 2)
        _, score = apply_linearity_override(strong, metrics, 0.3)
        assert score == pytest.approx(0.95)

    @pytest.mark.parametrize('lin, bbox', [
        (0.25, (60, 30, 2)),   # threshold is strict
        (0.9, (19, 19, 1)),    # major axis too short
    ])
    def test_no_override(self, urban, lin, bbox):
        metrics = ClassificationMetrics.from_bbox(*bbox)
        assert apply_linearity_override(urban, metrics, lin) == (
            FeatureCategory.URBAN_FEATURE, 0.4,
        )


# ---------------------------------------------------------------------------
# Thinning
# ---------------------------------------------------------------------------

class TestZhangSuen:
    """Test skeletonization."""

    def test_thick_bar_thins_to_connected_skeleton(self):
        mask = np.zeros((11, 40), dtype=bool)
        mask[3:8, 2:38] = True
        skel = zhang_suen_thin(mask)
        assert skel.dtype == bool
        assert not (skel & ~mask).any()
        assert 0 < np.count_nonzero(skel) < np.count_nonzero(mask) // 3
        _, n = label(skel, structure=np.ones((3, 3)))
        assert n == 1

    def test_one_pixel_line_is_fixed_point(self):
        mask = np.zeros((5, 12), dtype=bool)
        mask[2, 1:11] = True
        np.testing.assert_array_equal(zhang_suen_thin(mask), mask)

    def test_input_not_modified(self):
        mask = np.zeros((9, 9), dtype=np.uint8)
        mask[2:7, 2:7] = 1
        before = mask.copy()
        zhang_suen_thin(mask)
        np.testing.assert_array_equal(mask, before)

    def test_tiny_array_unchanged(self):
        mask = np.ones((2, 5), dtype=bool)
        np.testing.assert_array_equal(zhang_suen_thin(mask), mask)

    def test_linearity(self):
        line = np.zeros((3, 10), dtype=bool)
        line[1] = True
        assert linearity(line, line) == 1.0
        assert linearity(line, np.zeros_like(line)) == 0.0
        block = np.ones((3, 10), dtype=bool)
        assert linearity(line, block) == pytest.approx(1 / 3)


# ---------------------------------------------------------------------------
# NMS
# ---------------------------------------------------------------------------

class TestNms:
    """Test IoU and greedy suppression."""

    def test_iou(self):
        a = BoundingBox(0, 0, 10, 10)
        assert iou(a, a) == pytest.approx(1.0)
        assert iou(a, BoundingBox(20, 20, 5, 5)) == 0.0
        assert iou(a, BoundingBox(5, 0, 10, 10)) == pytest.approx(1 / 3)

    def test_suppresses_overlap(self):
        a = make_box(0.9, 0, 0, 10, 10, 'a')
        b = make_box(0.8, 0, 0, 10, 8, 'b')
        c = make_box(0.7, 50, 50, 10, 10, 'c')
        kept = nms([c, b, a])
        assert [k.id for k in kept] == ['a', 'c']
        assert kept[0] is a

    def test_ties_keep_input_order(self):
        boxes = [make_box(0.5, 20 * i, 0, 10, 10, str(i)) for i in range(4)]
        assert [k.id for k in nms(boxes)] == ['0', '1', '2', '3']

    def test_random_boxes(self, rng):
        boxes = [
            make_box(
                float(rng.random()),
                int(rng.integers(0, 80)), int(rng.integers(0, 80)),
                int(rng.integers(1, 30)), int(rng.integers(1, 30)),
                f"r{i}",
            )
            for i in range(60)
        ]
        kept = nms(boxes, 0.35)
        assert all(any(k is b for b in boxes) for k in kept)
        conf = [k.confidence for k in kept]
        assert conf == sorted(conf, reverse=True)
        for i, a in enumerate(kept):
            for b in kept[i + 1:]:
                assert iou(a.bbox, b.bbox) < 0.35

    def test_empty(self):
        assert nms([]) == []


# ---------------------------------------------------------------------------
# Component extraction
# ---------------------------------------------------------------------------

class TestBuildBoxes:
    """Test mask -> classified boxes."""

    def test_single_block(self):
        mask = np.zeros((30, 30), dtype=bool)
        mask[5:15, 8:18] = True
        values = np.where(mask, 255.0, 0.0)
        boxes = build_boxes(mask, values, 200.0, ObjectDetectionOptions())
        assert len(boxes) == 1
        box = boxes[0]
        assert box.id == 'det-1'
        assert tuple(box.bbox) == (8, 5, 10, 10)
        assert box.area_pixels == 100
        assert box.centroid == pytest.approx((12.5, 9.5))
        assert box.category is FeatureCategory.URBAN_FEATURE
        # base confidence is 1 at full brightness
        assert box.confidence >= 0.5

    def test_small_components_skipped(self):
        mask = np.zeros((20, 20), dtype=bool)
        mask[2:7, 2:7] = True
        values = mask * 255.0
        assert build_boxes(mask, values, 100.0, ObjectDetectionOptions()) == []

    def test_per_pass_cap(self):
        mask = np.zeros((20, 80), dtype=bool)
        for i in range(5):
            mask[4:12, 2 + 15 * i:10 + 15 * i] = True
        values = mask * 255.0
        opts = ObjectDetectionOptions(max_detections=2)
        boxes = build_boxes(mask, values, 100.0, opts)
        assert [b.id for b in boxes] == ['det-1', 'det-2']

    def test_adaptive_mask_flags_local_peaks(self):
        values = np.full((20, 20), 100.0)
        values[5, 5] = 50.0
        mask = adaptive_binary_mask(values, window=8, offset=12.0)
        assert not mask[5, 5]
        assert mask[0, 0]

    def test_fallback_predicate(self):
        bottom = [make_box(0.5, 0, 180, 10, 10) for _ in range(12)]
        top = [make_box(0.5, 0, 0, 10, 10) for _ in range(12)]
        assert needs_fallback(bottom[:11], 200)
        assert not needs_fallback(bottom, 200)
        assert needs_fallback(top, 200)


class TestOptions:
    """Test detector options clamping."""

    def test_defaults(self):
        opts = ObjectDetectionOptions()
        assert (opts.threshold_percentile, opts.min_area_pixels, opts.max_detections) == (
            95.0, 40, 200,
        )

    def test_clamped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            opts = ObjectDetectionOptions(
                threshold_percentile=150, min_area_pixels=0, max_detections=0,
            )
        assert opts.threshold_percentile == 100.0
        assert opts.min_area_pixels == 1
        assert opts.max_detections == 1
        assert "clamped" in caplog.text

    def test_unlimited(self):
        assert ObjectDetectionOptions(max_detections=None).max_detections is None

    def test_bad_strategy_arguments(self):
        with pytest.raises(ValidationError):
            ScaleStrategy(1.5)
        with pytest.raises(ValidationError):
            AdaptiveStrategy(window=0)
        assert ScaleStrategy(0.5).name == 'scale_0.5'

    def test_reduced_scale_area_in_native_pixels(self):
        values = np.zeros((64, 64))
        values[10:30, 10:30] = 200.0
        opts = ObjectDetectionOptions()
        native = ScaleStrategy(1.0).run(values, opts).boxes
        half = ScaleStrategy(0.5).run(values, opts).boxes
        assert len(native) == len(half) == 1
        # 10x10 block on the half grid, mapped back to 20x20
        assert tuple(half[0].bbox) == (10, 10, 20, 20)
        assert half[0].area_pixels == native[0].area_pixels == 400


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------

class TestObjectDetector:
    """Test the full multi-scale detector on a synthetic scene."""

    def test_scene_detections(self, scatter_scene):
        result = ObjectDetector().detect(scatter_scene)
        assert len(result) == 18
        counts = result.category_counts()
        assert counts[FeatureCategory.BUILDING] == 1
        assert counts[FeatureCategory.BRIDGE] == 1
        assert counts[FeatureCategory.URBAN_FEATURE] == 16

        building = result.filter(FeatureCategory.BUILDING)[0]
        assert tuple(building.bbox) == (20, 130, 40, 40)
        bridge = result.filter(FeatureCategory.BRIDGE)[0]
        assert tuple(bridge.bbox) == (40, 185, 120, 3)

    def test_result_invariants(self, scatter_scene):
        result = ObjectDetector().detect(scatter_scene)
        ids = [b.id for b in result]
        assert len(set(ids)) == len(ids)
        assert all(i.startswith('ms-') for i in ids)
        conf = [b.confidence for b in result]
        assert all(0.0 <= c <= 1.0 for c in conf)
        assert conf == sorted(conf, reverse=True)
        assert result.stats.total_detections == len(result)
        assert result.stats.threshold == 95.0
        assert result.stats.average_confidence == pytest.approx(np.mean(conf))
        assert 0 <= result.threshold_value <= 255
        assert result.debug is None
        for b in result:
            assert b.bbox.width >= 1 and b.bbox.height >= 1
            assert b.footprint is None
            assert b.area_m2 is None
            assert tuple(b.preview_box) == tuple(b.bbox)

    def test_georeferenced(self, georeferenced_raster):
        result = ObjectDetector().detect(georeferenced_raster)
        assert result.bounds == georeferenced_raster.bounds
        for b in result:
            assert b.footprint is not None
            assert len(b.footprint.exterior.coords) == 5
            assert b.area_m2 == pytest.approx(b.area_pixels * 100.0)
            assert b.footprint.bounds[0] >= 10.0 - 1e-9
            assert b.footprint.bounds[2] <= 10.2 + 1e-9

    def test_bare_array_with_georeferencing(self, scatter_scene):
        result = ObjectDetector().detect(
            scatter_scene, bounds=(0, 0, 1, 1), pixel_scale=(2, 2),
        )
        assert result.pixel_scale == (2.0, 2.0)
        assert result[0].area_m2 == pytest.approx(result[0].area_pixels * 4.0)

    def test_parallel_matches_serial(self, scatter_scene):
        def key(result):
            return [(b.id, b.category, b.confidence, tuple(b.bbox)) for b in result]

        serial = ObjectDetector().detect(scatter_scene)
        parallel = ObjectDetector(parallel=True).detect(scatter_scene)
        assert key(parallel) == key(serial)

    def test_max_detections_caps_result(self, scatter_scene):
        detector = ObjectDetector(ObjectDetectionOptions(max_detections=5))
        result = detector.detect(scatter_scene)
        assert len(result) == 5
        conf = [b.confidence for b in result]
        assert conf == sorted(conf, reverse=True)

    def test_debug_without_fallback(self, scatter_scene):
        result = ObjectDetector().detect(scatter_scene, debug=True)
        debug = result.debug
        assert set(debug.scale_masks) == {1.0, 0.5, 0.25}
        assert debug.scale_masks[0.5].shape == (100, 100)
        assert debug.primary.shape == (200, 200)
        assert debug.alternate is None and debug.local is None
        np.testing.assert_array_equal(debug.merged, debug.primary)
        assert debug.native_scale_mask(0.25).shape == (200, 200)

    def test_fallback_runs_when_sparse(self, scatter_scene):
        result = ObjectDetector().detect(
            scatter_scene, min_area_pixels=100, debug=True,
        )
        assert len(result) >= 1
        assert all(b.id.startswith('m-') for b in result)
        assert result.stats.minimum_area == 100
        assert result.debug.alternate is not None
        assert result.debug.local is not None

    def test_no_fallback_strategies(self, scatter_scene):
        detector = ObjectDetector(fallback_strategies=[])
        result = detector.detect(scatter_scene, min_area_pixels=100)
        assert all(b.id.startswith('ms-') for b in result)

    def test_out_of_range_overrides_clamped(self, scatter_scene, caplog):
        detector = ObjectDetector()
        with caplog.at_level(logging.WARNING):
            result = detector.detect(
                scatter_scene, threshold_percentile=150.0, min_area_pixels=0,
            )
        assert "clamped" in caplog.text
        assert result.stats.threshold == 100.0
        assert result.stats.minimum_area == 1
        assert result.threshold_value == 255
        assert detector.threshold_percentile == 95.0

    def test_custom_strategies(self, scatter_scene):
        detector = ObjectDetector(
            strategies=[ScaleStrategy(1.0)],
            fallback_strategies=[PercentileStrategy(drop=2)],
        )
        assert len(detector.detect(scatter_scene)) == 18

    @pytest.mark.parametrize('parallel', [False, True])
    def test_failing_strategy_raises_processor_error(self, scatter_scene, parallel):
        class _Broken(DetectionStrategy):
            name = 'broken'

            def run(self, normalized, options):
                raise RuntimeError('boom')

        detector = ObjectDetector(
            strategies=[ScaleStrategy(1.0), _Broken()], parallel=parallel,
        )
        with pytest.raises(ProcessorError, match='broken'):
            detector.detect(scatter_scene)

    def test_progress_callback(self, scatter_scene):
        seen = []
        ObjectDetector().detect(scatter_scene, progress_callback=seen.append)
        assert seen == [0.5, 0.9, 1.0]

    def test_processor_metadata(self):
        assert ObjectDetector.__processor_version__ == '1.0.0'
        names = {s.name for s in ObjectDetector.__param_specs__}
        assert names == {'threshold_percentile', 'min_area_pixels', 'parallel'}
