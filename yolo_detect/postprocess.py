from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .decode import TensorLike, decode
from .letterbox import ResizeInfo, ResizeMode
from .nms import suppress
from .rescale import rescale_detections
from .types import ClassVocabulary, Detection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YoloPostConfig:
    """
    Post-processing settings for (N, 5 + C) YOLO outputs.
    """

    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    # If False, skip NMS and return every detection above conf_threshold.
    apply_nms: bool = True
    # Optional labels to keep; None keeps all.
    keep_labels: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError(f"conf_threshold must be in [0, 1] (got {self.conf_threshold}).")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(f"iou_threshold must be in [0, 1] (got {self.iou_threshold}).")
        if self.keep_labels is not None:
            object.__setattr__(self, "keep_labels", tuple(self.keep_labels))


class YoloPostprocessor:
    """
    Raw tensor -> decode + confidence filter -> class-wise NMS -> rescale.

    Stateless between calls: the vocabulary and config are read-only, so one
    instance can serve concurrent requests.
    """

    def __init__(self, cfg: YoloPostConfig, vocabulary: Optional[ClassVocabulary] = None):
        self.cfg = cfg
        self.vocabulary = vocabulary if vocabulary is not None else ClassVocabulary.coco80()
        if cfg.keep_labels is not None:
            unknown = [lbl for lbl in cfg.keep_labels if lbl not in self.vocabulary]
            if unknown:
                raise ValueError(f"keep_labels not in vocabulary: {unknown}")

    def detect(self, preds: TensorLike) -> List[Detection]:
        """
        Decode and suppress, leaving boxes in model input space.
        """

        detections = decode(
            preds,
            num_classes=len(self.vocabulary),
            conf_threshold=self.cfg.conf_threshold,
            labels=self.vocabulary.names,
        )

        if self.cfg.keep_labels is not None:
            wanted = set(self.cfg.keep_labels)
            detections = [d for d in detections if d.label in wanted]

        if detections and self.cfg.apply_nms:
            detections = suppress(detections, self.cfg.iou_threshold)
        return detections

    def process(
        self,
        preds: TensorLike,
        orig_size: Tuple[int, int],
        model_size: Tuple[int, int] = (640, 640),
        resize_info: Optional[ResizeInfo] = None,
    ) -> List[Detection]:
        """
        Convert raw model output into detections in original image coordinates.

        Args:
            preds: model output for a single image
            orig_size: (width, height) of the original image
            model_size: (width, height) of the model input
            resize_info: how the image was resized; None means a plain stretch
        """

        if resize_info is None:
            mw, mh = model_size
            ow, oh = orig_size
            resize_info = ResizeInfo(mode=ResizeMode.STRETCH, ratio=(mw / ow, mh / oh))

        detections = self.detect(np.asarray(preds))
        if not detections:
            return []
        return rescale_detections(detections, resize_info, model_size=model_size, target_size=orig_size)
