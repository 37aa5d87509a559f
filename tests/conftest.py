# -*- coding: utf-8 -*-
"""
Shared Test Fixtures - Synthetic rasters for the sarchange test suite.

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

from sarchange.models import RasterBuffer


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def flat_image():
    """32x32 constant image of value 5."""
    return np.full((32, 32), 5.0, dtype=np.float32)


@pytest.fixture
def speckle_image(rng):
    """64x64 unit-mean gamma speckle (4 looks) over a brighter square."""
    base = np.ones((64, 64), dtype=np.float64)
    base[20:44, 20:44] = 4.0
    return (base * rng.gamma(4.0, 0.25, size=base.shape)).astype(np.float32)


@pytest.fixture
def before_after_4x4():
    """Constant 10 before; after has a 2x2 block of 250 at rows/cols 1-2."""
    before = np.full((4, 4), 10.0, dtype=np.float32)
    after = before.copy()
    after[1:3, 1:3] = 250.0
    return RasterBuffer.from_array(before), RasterBuffer.from_array(after)


@pytest.fixture
def scatter_scene():
    """200x200 dark scene with bright features spread over the whole image.

    - a 40x40 filled block (compact blob) near the bottom-left,
    - a 3-pixel-thick 120-pixel horizontal line near the bottom,
    - sixteen 8x8 squares on a grid.
    """
    img = np.full((200, 200), 10.0, dtype=np.float32)
    img[130:170, 20:60] = 200.0
    img[185:188, 40:160] = 220.0
    for r in range(4):
        for c in range(4):
            y, x = 15 + r * 28, 90 + c * 26
            img[y:y + 8, x:x + 8] = 180.0
    return img


@pytest.fixture
def georeferenced_raster(scatter_scene):
    return RasterBuffer.from_array(
        scatter_scene,
        bounds=(10.0, 40.0, 10.2, 40.2),
        pixel_scale=(10.0, -10.0),
    )
