# -*- coding: utf-8 -*-
"""
Skeleton Linearity - Zhang-Suen thinning and skeleton-to-area ratio.

Thin, line-like scatter (walls, bridge decks) keeps a large fraction of
its pixels under thinning, while compact blobs collapse to a short spine.
The ratio of skeleton pixels to component pixels is the component's
*linearity*.

Thinning follows Zhang & Suen (1984).  With the 8-neighbours of ``P1``
named clockwise from north as ``P2 (N), P3 (NE), P4 (E), ..., P9 (NW)``,
an interior foreground pixel is deleted in a sub-iteration when

- ``2 <= B(P1) <= 6`` (foreground neighbour count),
- ``A(P1) == 1`` (0 -> 1 transitions around the ring),
- sub-iteration 1: ``P2*P4*P6 == 0`` and ``P4*P6*P8 == 0``,
- sub-iteration 2: ``P2*P4*P8 == 0`` and ``P2*P6*P8 == 0``.

Deletions within a sub-iteration are applied together; rounds repeat until
neither sub-iteration deletes anything.  Pixels on the array border are
never deleted.

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

# Third-party
import numpy as np

# sarchange internal
from sarchange.models import ensure_2d

logger = logging.getLogger(__name__)


def _deletable(img: np.ndarray, first: bool) -> np.ndarray:
    """Interior pixels removable in one sub-iteration (shape ``(h-2, w-2)``)."""
    p1 = img[1:-1, 1:-1]
    ring = [
        img[:-2, 1:-1],   # P2 N
        img[:-2, 2:],     # P3 NE
        img[1:-1, 2:],    # P4 E
        img[2:, 2:],      # P5 SE
        img[2:, 1:-1],    # P6 S
        img[2:, :-2],     # P7 SW
        img[1:-1, :-2],   # P8 W
        img[:-2, :-2],    # P9 NW
    ]
    n, _, e, _, s, _, w, _ = ring

    count = np.zeros(p1.shape, dtype=np.int16)
    for p in ring:
        count += p
    transitions = np.zeros(p1.shape, dtype=np.int16)
    for k in range(8):
        transitions += (ring[k] == 0) & (ring[(k + 1) % 8] == 1)

    if first:
        keep_a = n & e & s
        keep_b = e & s & w
    else:
        keep_a = n & e & w
        keep_b = n & s & w

    return (
        (p1 == 1)
        & (count >= 2) & (count <= 6)
        & (transitions == 1)
        & (keep_a == 0)
        & (keep_b == 0)
    )


def zhang_suen_thin(mask: np.ndarray) -> np.ndarray:
    """Thin a binary mask to a one-pixel-wide skeleton.

    Parameters
    ----------
    mask : np.ndarray
        2D binary mask.

    Returns
    -------
    np.ndarray
        bool skeleton, same shape.  The input is not modified.
    """
    img = (ensure_2d(mask, 'mask') != 0).astype(np.uint8)
    if img.shape[0] < 3 or img.shape[1] < 3:
        return img.astype(bool)

    interior = img[1:-1, 1:-1]
    rounds = 0
    changed = True
    while changed:
        changed = False
        for first in (True, False):
            remove = _deletable(img, first)
            if remove.any():
                interior[remove] = 0
                changed = True
        rounds += 1

    logger.debug("Zhang-Suen thinning converged after %d rounds", rounds)
    return img.astype(bool)


def linearity(skeleton: np.ndarray, component: np.ndarray) -> float:
    """Fraction of *component* pixels that survive on *skeleton*, in [0, 1].

    Both arrays must share a shape; *component* selects the pixels of one
    connected component.
    """
    component = np.asarray(component, dtype=bool)
    pixels = int(np.count_nonzero(component))
    on_skeleton = int(np.count_nonzero(np.asarray(skeleton, dtype=bool) & component))
    return min(1.0, max(0.0, on_skeleton / max(1, pixels)))
