# -*- coding: utf-8 -*-
"""
Intensity and Resampling Tests - Percentiles, byte stretch, nearest resample.

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

import numpy as np
import pytest

from sarchange.exceptions import ValidationError
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
    align_raster,
    downscale_for_preview,
    downscale_mask,
    preview_geometry,
    resample_nearest,
)
from sarchange.image_processing.utils import round_half_up
from sarchange.models import RasterBuffer


class TestRoundHalfUp:
    """Half-way cases round toward +inf, unlike Python's round."""

    def test_scalars(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(-0.5) == 0
        assert round_half_up(-1.5) == -1
        assert round_half_up(1.49) == 1

    def test_arrays(self):
        out = round_half_up(np.array([0.5, 1.5, 2.5, -2.5]))
        np.testing.assert_array_equal(out, [1.0, 2.0, 3.0, -2.0])


# ---------------------------------------------------------------------------
# Percentile / normalization
# ---------------------------------------------------------------------------

class TestPercentile:
    """Test rank percentiles."""

    def test_rank_selection(self):
        values = np.arange(11, dtype=np.float32)
        assert percentile(values, 0) == 0.0
        assert percentile(values, 100) == 10.0
        assert percentile(values, 50) == 5.0

    def test_half_rank_rounds_up(self):
        # 0.375 * 4 = 1.5 -> rank 2
        assert percentile(np.arange(5.0), 37.5) == 2.0

    def test_non_finite_excluded(self):
        values = np.array([np.nan, 3.0, np.inf, 1.0, -np.inf, 2.0])
        assert percentile(values, 0) == 1.0
        assert percentile(values, 100) == 3.0

    def test_empty_returns_zero(self):
        assert percentile(np.array([np.nan, np.nan]), 50) == 0.0
        assert percentile(np.array([]), 50) == 0.0

    def test_result_is_a_sample(self, rng):
        values = rng.random(37)
        assert percentile(values, 63.3) in set(values.tolist())


class TestNormalizeToByte:
    """Test byte normalization."""

    def test_profiles_distinct(self):
        assert CHANGE_PROFILE == NormalizationProfile(2.0, 98.0)
        assert DETECTION_PROFILE == NormalizationProfile(2.0, 99.5)

    def test_linear_ramp(self):
        values = np.arange(101, dtype=np.float32)
        out = normalize_to_byte(values, NormalizationProfile(0.0, 100.0))
        assert out.dtype == np.uint8
        assert out[0] == 0
        assert out[100] == 255
        # 50 / 100 * 255 = 127.5 rounds half up
        assert out[50] == 128

    def test_clipping(self):
        values = np.concatenate([np.zeros(1), np.linspace(10, 20, 98), [1000.0]])
        out = normalize_to_byte(values, CHANGE_PROFILE)
        assert out[0] == 0
        assert out[-1] == 255

    def test_non_finite_maps_to_zero(self):
        values = np.array([[np.nan, 1.0], [2.0, np.inf]])
        out = normalize_to_byte(values)
        assert out[0, 0] == 0
        assert out[1, 1] == 0
        assert out.shape == (2, 2)

    def test_constant_input(self, flat_image):
        out = normalize_to_byte(flat_image)
        np.testing.assert_array_equal(out, 0)

    def test_invalid_profile(self):
        with pytest.raises(ValidationError):
            NormalizationProfile(90.0, 10.0)


class TestAbsDiff:
    """Test absolute differencing."""

    def test_symmetric_and_float32(self):
        a = np.array([[1.0, 5.0]])
        b = np.array([[4.0, 2.0]])
        out = abs_diff(a, b)
        assert out.dtype == np.float32
        np.testing.assert_array_equal(out, [[3.0, 3.0]])
        np.testing.assert_array_equal(abs_diff(b, a), out)

    def test_non_finite_treated_as_zero(self):
        out = abs_diff(np.array([np.nan, 2.0]), np.array([5.0, np.inf]))
        np.testing.assert_array_equal(out, [5.0, 2.0])

    def test_shape_mismatch(self):
        with pytest.raises(ValidationError):
            abs_diff(np.zeros((2, 2)), np.zeros((2, 3)))


class TestByteStretch:
    """Test the ByteStretch processor."""

    def test_matches_functional_form(self, speckle_image):
        stretch = ByteStretch.from_profile(DETECTION_PROFILE)
        np.testing.assert_array_equal(
            stretch.apply(speckle_image),
            normalize_to_byte(speckle_image, DETECTION_PROFILE),
        )

    def test_out_of_range_override_rejected(self, speckle_image):
        with pytest.raises(ValueError):
            ByteStretch().apply(speckle_image, phigh=120.0)


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------

class TestResampleNearest:
    """Test nearest-neighbour resampling."""

    def test_same_geometry_copies(self, rng):
        img = rng.random((5, 6))
        out = resample_nearest(img, 6, 5)
        np.testing.assert_array_equal(out, img)
        assert not np.shares_memory(out, img)

    def test_halving_picks_pixel_centres(self):
        img = np.arange(16).reshape(4, 4)
        out = resample_nearest(img, 2, 2)
        # (i + 0.5) * 2 - 0.5 = 0.5, 2.5 -> rows/cols 1, 3
        np.testing.assert_array_equal(out, [[5, 7], [13, 15]])

    def test_upsampling(self):
        img = np.array([[1, 2]])
        out = resample_nearest(img, 4, 2)
        np.testing.assert_array_equal(out, [[1, 1, 2, 2], [1, 1, 2, 2]])

    def test_dtype_preserved(self):
        img = np.zeros((3, 3), dtype=np.uint8)
        assert resample_nearest(img, 2, 2).dtype == np.uint8

    def test_invalid_target(self):
        with pytest.raises(ValidationError):
            resample_nearest(np.zeros((2, 2)), 0, 2)

    def test_align_raster_keeps_georeferencing(self):
        src = RasterBuffer.from_array(np.ones((2, 2)), bounds=(0, 0, 1, 1))
        target = RasterBuffer.from_array(np.zeros((4, 4)))
        out = align_raster(src, target)
        assert out.shape == (4, 4)
        assert out.bounds == (0.0, 0.0, 1.0, 1.0)


class TestPreview:
    """Test preview downscaling."""

    def test_geometry_within_limit(self):
        assert preview_geometry(800, 600, 1200) == (800, 600)

    def test_geometry_scaled(self):
        assert preview_geometry(2400, 1000, 1200) == (1200, 500)

    def test_downscale_returns_source_when_small(self, rng):
        img = rng.random((10, 10))
        assert downscale_for_preview(img, 20) is img

    def test_downscale_longest_edge(self):
        img = np.zeros((30, 60))
        assert downscale_for_preview(img, 20).shape == (10, 20)

    def test_mask_majority_vote(self):
        mask = np.zeros((4, 4), dtype=bool)
        mask[0:2, 0:2] = True
        mask[2, 2] = True
        out = downscale_mask(mask, 2, 2)
        assert out.dtype == bool
        assert out[0, 0]
        assert not out[1, 1]
