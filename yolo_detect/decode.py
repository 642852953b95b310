from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

import numpy as np

from .errors import MalformedTensorError
from .types import Detection

logger = logging.getLogger(__name__)

# cx, cy, w, h, objectness
ROW_HEADER = 5

TensorLike = Union[np.ndarray, Sequence[float]]


def decode(
    tensor: TensorLike,
    num_classes: int,
    conf_threshold: float,
    labels: Optional[Sequence[str]] = None,
) -> List[Detection]:
    """
    Decode a raw (N, 5 + C) YOLO output into detections in model input space.

    Each row is [cx, cy, w, h, obj, class_scores...]. Any array shape is
    accepted and flattened in C order, so the (1, N, 5 + C) output of an ONNX
    session can be passed straight in. Rows whose obj * best class score is
    below `conf_threshold` are dropped. Output keeps row order.

    Args:
        tensor: raw model output for a single image
        num_classes: number of trailing class scores per row
        conf_threshold: minimum confidence to keep a row
        labels: optional vocabulary, must have exactly `num_classes` entries
    """

    if num_classes < 1:
        raise ValueError(f"num_classes must be >= 1 (got {num_classes}).")
    if labels is not None and len(labels) != num_classes:
        raise ValueError(f"Expected {num_classes} labels, got {len(labels)}.")

    flat = np.asarray(tensor, dtype=np.float64).ravel()
    stride = ROW_HEADER + num_classes
    if flat.size % stride != 0:
        raise MalformedTensorError(int(flat.size), stride)

    rows = flat.reshape(-1, stride)
    if rows.shape[0] == 0:
        return []

    class_scores = rows[:, ROW_HEADER:]
    # np.argmax returns the first index on ties.
    class_ids = np.argmax(class_scores, axis=1)
    class_conf = class_scores[np.arange(rows.shape[0]), class_ids]
    scores = rows[:, 4] * class_conf

    # NaN compares False, so it never passes.
    keep = np.nonzero(scores >= conf_threshold)[0]
    logger.debug("decoded %d rows, %d above conf %.3f", rows.shape[0], keep.size, conf_threshold)
    if keep.size == 0:
        return []

    # Convert cxcywh -> xyxy
    cx, cy, w_box, h_box = rows[keep, 0:4].T
    x1 = cx - w_box / 2
    y1 = cy - h_box / 2
    x2 = cx + w_box / 2
    y2 = cy + h_box / 2

    detections: List[Detection] = []
    for j, i in enumerate(keep):
        cls_id = int(class_ids[i])
        label = labels[cls_id] if labels is not None else str(cls_id)
        detections.append(
            Detection(
                label=label,
                confidence=float(scores[i]),
                box=(float(x1[j]), float(y1[j]), float(x2[j]), float(y2[j])),
                class_id=cls_id,
            )
        )
    return detections
