# -*- coding: utf-8 -*-
"""
Geolocation - Linear pixel/geographic mapping over a raster bounding box.

Rasters carry only a geographic bounding box, so pixel coordinates map to
longitude/latitude linearly: pixel column 0 sits on ``min_x`` and column
``width - 1`` on ``max_x``; row 0 sits on ``max_y`` (north up) and row
``height - 1`` on ``min_y``::

    lon = min_x + px / max(width - 1, 1) * (max_x - min_x)
    lat = max_y - py / max(height - 1, 1) * (max_y - min_y)

No projection or datum handling is attempted.

Dependencies
------------
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

# Standard library
import math
from typing import Optional, Sequence, Tuple

# Third-party
from shapely.geometry import Polygon

# sarchange internal
from sarchange.exceptions import ValidationError
from sarchange.models import Bounds, pixel_area_m2

__all__ = [
    'build_polygon',
    'geo_to_pixel',
    'pixel_area_m2',
    'pixel_to_geo',
]


def _spans(bounds: Bounds) -> Tuple[float, float]:
    min_x, min_y, max_x, max_y = bounds
    return max_x - min_x, max_y - min_y


def pixel_to_geo(
    px: float,
    py: float,
    bounds: Bounds,
    width: int,
    height: int,
) -> Tuple[float, float]:
    """Map pixel ``(x, y)`` to ``(lon, lat)``."""
    min_x, _, _, max_y = bounds
    lon_span, lat_span = _spans(bounds)
    lon = min_x + (px / max(width - 1, 1)) * lon_span
    lat = max_y - (py / max(height - 1, 1)) * lat_span
    return lon, lat


def geo_to_pixel(
    lon: float,
    lat: float,
    bounds: Bounds,
    width: int,
    height: int,
) -> Tuple[float, float]:
    """Map ``(lon, lat)`` back to fractional pixel ``(x, y)``.

    Raises
    ------
    ValidationError
        If the bounds have a zero or non-finite span.
    """
    min_x, _, _, max_y = bounds
    lon_span, lat_span = _spans(bounds)
    if (
        not math.isfinite(lon_span) or not math.isfinite(lat_span)
        or lon_span == 0.0 or lat_span == 0.0
    ):
        raise ValidationError(f"Bounds {tuple(bounds)!r} have a degenerate span")
    px = (lon - min_x) / lon_span * max(width - 1, 1)
    py = (max_y - lat) / lat_span * max(height - 1, 1)
    return px, py


def build_polygon(
    bbox: Sequence[float],
    bounds: Optional[Bounds],
    width: int,
    height: int,
) -> Optional[Polygon]:
    """Geographic footprint of a pixel bounding box.

    Parameters
    ----------
    bbox : Sequence[float]
        ``(x, y, width, height)`` in pixels.
    bounds : Tuple[float, float, float, float], optional
        Raster ``(min_x, min_y, max_x, max_y)``.
    width, height : int
        Raster dimensions.

    Returns
    -------
    shapely.geometry.Polygon or None
        Ring ``(x0, y1), (x1, y1), (x1, y0), (x0, y0), (x0, y1)`` with
        ``x1 = x + w`` and ``y1 = y + h``, mapped to ``(lon, lat)``.
        ``None`` when there are no bounds or their spans are not finite.
    """
    if bounds is None:
        return None
    lon_span, lat_span = _spans(bounds)
    if not math.isfinite(lon_span) or not math.isfinite(lat_span):
        return None

    x, y, w, h = bbox
    x0, y0, x1, y1 = x, y, x + w, y + h

    def to_geo(px: float, py: float) -> Tuple[float, float]:
        return pixel_to_geo(px, py, bounds, width, height)

    return Polygon([
        to_geo(x0, y1),
        to_geo(x1, y1),
        to_geo(x1, y0),
        to_geo(x0, y0),
        to_geo(x0, y1),
    ])
