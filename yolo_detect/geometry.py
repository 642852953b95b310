from __future__ import annotations

from typing import Sequence

# Added to the IoU denominator. Changing it moves the suppression boundary
# for boxes whose IoU sits right at the threshold.
IOU_EPS = 1e-6


def box_area(box: Sequence[float]) -> float:
    """Signed area; zero or negative for degenerate boxes."""
    return (box[2] - box[0]) * (box[3] - box[1])


def iou(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Intersection over union of two xyxy boxes.

    Degenerate boxes (zero or negative width/height) have no intersection
    with anything and yield 0.0 instead of dividing by zero.
    """

    inter_w = max(0.0, min(a[2], b[2]) - max(a[0], b[0]))
    inter_h = max(0.0, min(a[3], b[3]) - max(a[1], b[1]))
    inter = inter_w * inter_h
    if inter <= 0.0:
        return 0.0

    union = box_area(a) + box_area(b) - inter + IOU_EPS
    return inter / union
