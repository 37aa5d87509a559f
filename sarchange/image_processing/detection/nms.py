# -*- coding: utf-8 -*-
"""
Detection Merging - Intersection-over-union and greedy non-maximum suppression.

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
from typing import List, Sequence

# sarchange internal
from sarchange.constants import NMS_IOU_THRESHOLD
from sarchange.image_processing.detection.models import BoundingBox, DetectionBox


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """Intersection over union of two ``(x, y, width, height)`` boxes.

    Returns 0 when the union is empty.
    """
    x0 = max(a.x, b.x)
    y0 = max(a.y, b.y)
    x1 = min(a.x + a.width, b.x + b.width)
    y1 = min(a.y + a.height, b.y + b.height)
    inter = max(0, x1 - x0) * max(0, y1 - y0)
    union = a.width * a.height + b.width * b.height - inter
    return inter / union if union > 0 else 0.0


def nms(
    boxes: Sequence[DetectionBox],
    iou_threshold: float = NMS_IOU_THRESHOLD,
) -> List[DetectionBox]:
    """Greedy non-maximum suppression.

    Boxes are visited in descending confidence (stable, so equal
    confidences keep their input order); a box is kept unless its IoU
    with an already kept box is at least *iou_threshold*.

    Returns
    -------
    List[DetectionBox]
        The kept boxes themselves (not copies), in descending confidence.
    """
    ordered = sorted(boxes, key=lambda b: -b.confidence)
    keep: List[DetectionBox] = []
    for candidate in ordered:
        if all(iou(candidate.bbox, k.bbox) < iou_threshold for k in keep):
            keep.append(candidate)
    return keep
