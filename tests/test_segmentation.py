# -*- coding: utf-8 -*-
"""
Segmentation Tests - Otsu, k-means, rank-quantile and local-mean change masks.

Dependencies
------------
pytest

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
import math

import numpy as np
import pytest

from sarchange.constants import DEFAULT_CONTAMINATION
from sarchange.exceptions import ValidationError
from sarchange.image_processing.segmentation import (
    AdaptiveOptions,
    IsolationForestOptions,
    KMeansOptions,
    LofOptions,
    OtsuOptions,
    PcaOptions,
    SegmentationEngine,
    brightest_cluster,
    kmeans_1d,
    make_segmentation_options,
    otsu_threshold,
    resolve_algorithm,
    segment,
)
from sarchange.vocabulary import SegmentationAlgorithm


@pytest.fixture
def bimodal():
    """10x10 raster: left half 10, right half 200."""
    img = np.full((10, 10), 10, dtype=np.uint8)
    img[:, 5:] = 200
    return img


@pytest.fixture
def single_spike():
    img = np.zeros((9, 9), dtype=np.float64)
    img[4, 4] = 100.0
    return img


# ---------------------------------------------------------------------------
# Otsu
# ---------------------------------------------------------------------------

class TestOtsu:
    """Test the histogram threshold."""

    def test_separates_two_levels(self, bimodal):
        t = otsu_threshold(bimodal)
        assert 10 <= t < 200
        mask = segment(bimodal, OtsuOptions())
        assert mask[:, 5:].all()
        assert not mask[:, :5].any()

    def test_constant_raster_gives_zero(self):
        assert otsu_threshold(np.full((4, 4), 77)) == 0

    def test_threshold_in_byte_range(self, rng):
        values = rng.integers(0, 256, size=(32, 32))
        assert 0 <= otsu_threshold(values) <= 255

    def test_manual_threshold(self):
        diff = np.array([[128, 129], [0, 255]], dtype=np.uint8)
        mask = segment(diff, OtsuOptions(manual_threshold=0.5))
        # round_half_up(127.5) = 128, strict comparison
        np.testing.assert_array_equal(mask, [[False, True], [False, True]])

    def test_manual_threshold_must_be_finite(self):
        with pytest.raises(ValidationError):
            OtsuOptions(manual_threshold=math.nan)


# ---------------------------------------------------------------------------
# k-means
# ---------------------------------------------------------------------------

class TestKMeans:
    """Test one-dimensional k-means."""

    def test_two_clusters(self):
        centers, labels = kmeans_1d(np.array([0, 0, 0, 100, 100, 100]), 2, 2)
        np.testing.assert_allclose(centers, [0.0, 100.0])
        np.testing.assert_array_equal(labels, [0, 0, 0, 1, 1, 1])

    def test_empty_raises(self):
        with pytest.raises(ValidationError):
            kmeans_1d(np.array([]), 2, 1)

    def test_byte_histogram_matches_float_path(self, rng):
        values = rng.integers(0, 256, size=(60, 50)).astype(np.uint8)
        centers, labels = kmeans_1d(values, 4, 5)
        ref_centers, ref_labels = kmeans_1d(values.astype(np.float64), 4, 5)
        np.testing.assert_array_equal(centers, ref_centers)
        np.testing.assert_array_equal(labels, ref_labels)
        assert labels.shape == (3000,)

    def test_byte_input_empty_cluster_keeps_centre(self):
        values = np.array([7, 7, 7, 7], dtype=np.uint8)
        centers, labels = kmeans_1d(values, 2, 3)
        np.testing.assert_array_equal(centers, [7.0, 7.0])
        np.testing.assert_array_equal(labels, [0, 0, 0, 0])

    def test_brightest_cluster_takes_last_tie(self):
        assert brightest_cluster(np.array([5.0, 9.0, 9.0])) == 2
        assert brightest_cluster(np.array([9.0, 1.0])) == 0

    def test_mask_is_bright_cluster(self, bimodal):
        mask = segment(bimodal, KMeansOptions())
        np.testing.assert_array_equal(mask, bimodal == 200)


# ---------------------------------------------------------------------------
# Rank-quantile and local-mean algorithms
# ---------------------------------------------------------------------------

class TestOutlierAlgorithms:
    """Test isolation-forest, PCA, adaptive and LOF masks."""

    def test_isolation_forest_marks_top_fraction(self):
        values = np.arange(1000, dtype=np.float64).reshape(25, 40)
        mask = segment(values, IsolationForestOptions(contamination=0.01))
        assert np.count_nonzero(mask) == 10
        assert mask.ravel()[-10:].all()

    def test_pca_marks_both_tails(self):
        values = np.arange(1000, dtype=np.float64).reshape(25, 40)
        mask = segment(values, PcaOptions(contamination=0.01)).ravel()
        assert np.count_nonzero(mask) == 10
        assert mask[:5].all()
        assert mask[-5:].all()

    def test_adaptive_isolates_spike(self, single_spike):
        mask = segment(single_spike, AdaptiveOptions(radius=1, offset=8.0))
        assert mask[4, 4]
        assert np.count_nonzero(mask) == 1

    def test_lof_isolates_spike(self, single_spike):
        mask = segment(single_spike, LofOptions(radius=1, offset=12.0))
        assert mask[4, 4]
        assert np.count_nonzero(mask) == 1

    @pytest.mark.parametrize('options', [
        OtsuOptions(), AdaptiveOptions(), KMeansOptions(),
        IsolationForestOptions(), LofOptions(), PcaOptions(),
    ])
    def test_mask_shape_and_dtype(self, rng, options):
        diff = rng.integers(0, 256, size=(16, 12)).astype(np.uint8)
        mask = segment(diff, options)
        assert mask.shape == diff.shape
        assert mask.dtype == bool

    def test_unsupported_options(self, bimodal):
        with pytest.raises(ValidationError, match="Unsupported"):
            segment(bimodal, object())


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class TestOptions:
    """Test option clamping and construction."""

    def test_kmeans_clamped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            opts = KMeansOptions(clusters=1, iterations=0)
        assert opts.clusters == 2
        assert opts.iterations == 1
        assert "clamped" in caplog.text

    def test_contamination_bounds(self):
        assert IsolationForestOptions(contamination=0.9).contamination == 0.5
        assert PcaOptions(contamination=0.0).contamination == 0.0005
        assert (
            IsolationForestOptions(contamination=math.inf).contamination
            == DEFAULT_CONTAMINATION
        )

    def test_negative_radius_clamped(self):
        assert AdaptiveOptions(radius=-3).radius == 0
        assert LofOptions(radius=-1).radius == 0

    def test_algorithm_discriminant(self):
        assert KMeansOptions.algorithm is SegmentationAlgorithm.KMEANS
        assert resolve_algorithm('ISOLATION_FOREST') is (
            SegmentationAlgorithm.ISOLATION_FOREST
        )

    def test_make_options(self):
        opts = make_segmentation_options('kmeans', clusters=3, iterations=None)
        assert opts == KMeansOptions(clusters=3)

    def test_make_options_unknown_param(self):
        with pytest.raises(ValidationError, match="does not accept"):
            make_segmentation_options('otsu', clusters=3)

    def test_make_options_unknown_algorithm(self):
        with pytest.raises(ValidationError, match="Unknown segmentation"):
            make_segmentation_options('watershed')


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------

class TestSegmentationEngine:
    """Test the SegmentationEngine processor."""

    def test_default_is_otsu(self, bimodal):
        engine = SegmentationEngine()
        assert engine.algorithm == 'otsu'
        np.testing.assert_array_equal(
            engine.apply(bimodal), segment(bimodal, OtsuOptions()),
        )

    def test_configured_options_used(self, bimodal):
        opts = IsolationForestOptions(contamination=0.1)
        engine = SegmentationEngine(opts)
        assert engine.algorithm == 'isolation_forest'
        np.testing.assert_array_equal(
            engine.apply(bimodal), segment(bimodal, opts),
        )

    def test_algorithm_override_uses_defaults(self, bimodal):
        engine = SegmentationEngine(OtsuOptions(manual_threshold=0.99))
        out = engine.apply(bimodal, algorithm='kmeans')
        np.testing.assert_array_equal(out, segment(bimodal, KMeansOptions()))

    def test_options_override(self, bimodal):
        out = SegmentationEngine().apply(
            bimodal, options=OtsuOptions(manual_threshold=1.0),
        )
        assert not out.any()

    def test_invalid_algorithm_rejected(self, bimodal):
        with pytest.raises(ValueError):
            SegmentationEngine().apply(bimodal, algorithm='watershed')
