from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from .geometry import iou
from .types import Detection

logger = logging.getLogger(__name__)


def _greedy(group: List[Detection], iou_threshold: float) -> List[Detection]:
    # sorted() is stable, so equal confidences keep their input order.
    remaining = sorted(group, key=lambda d: d.confidence, reverse=True)
    kept: List[Detection] = []
    while remaining:
        best = remaining[0]
        kept.append(best)
        remaining = [d for d in remaining[1:] if iou(best.box, d.box) < iou_threshold]
    return kept


def suppress(detections: Sequence[Detection], iou_threshold: float) -> List[Detection]:
    """
    Class-wise greedy NMS.

    Detections are grouped by label. Within a group the most confident box is
    kept and every other box with IoU >= `iou_threshold` against it is
    dropped, repeated until the group is exhausted. Groups are emitted in
    class id order (labels without a class id follow, in first-seen order).
    Returns a new list; the input is left untouched.
    """

    groups: Dict[str, List[Detection]] = {}
    first_seen: Dict[str, int] = {}
    for pos, det in enumerate(detections):
        if det.label not in groups:
            groups[det.label] = []
            first_seen[det.label] = pos
        groups[det.label].append(det)

    def group_key(label: str) -> Tuple[int, int, int]:
        cls_id = groups[label][0].class_id
        if cls_id is None:
            return (1, 0, first_seen[label])
        return (0, cls_id, first_seen[label])

    out: List[Detection] = []
    for label in sorted(groups, key=group_key):
        out.extend(_greedy(groups[label], iou_threshold))

    logger.debug("nms kept %d of %d detections (iou %.3f)", len(out), len(detections), iou_threshold)
    return out
