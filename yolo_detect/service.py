from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from .runtime import YoloPipeline
from .types import Detection
from .visualize import draw_detections

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

RESULT_PREFIX = "result_"


@dataclass(frozen=True)
class DetectionResult:
    detections: List[Detection]
    image: np.ndarray
    result_path: Optional[Path] = None


def read_image(path: PathLike) -> np.ndarray:
    import cv2  # type: ignore

    img = cv2.imread(str(path))
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return img


class DetectionService:
    """
    Image file in, detections plus an annotated copy out.

    The annotated image is written as `result_<name>` beside the input, or
    into `out_dir` when given.
    """

    def __init__(self, pipeline: YoloPipeline):
        self.pipeline = pipeline

    def detect_image(self, image_bgr: np.ndarray) -> DetectionResult:
        detections = self.pipeline(image_bgr)
        return DetectionResult(detections=detections, image=draw_detections(image_bgr, detections))

    def detect_file(self, image_path: PathLike, out_dir: Optional[PathLike] = None) -> DetectionResult:
        import cv2  # type: ignore

        src = Path(image_path)
        result = self.detect_image(read_image(src))

        target_dir = Path(out_dir) if out_dir is not None else src.parent
        target_dir.mkdir(parents=True, exist_ok=True)
        result_path = target_dir / f"{RESULT_PREFIX}{src.name}"
        if not cv2.imwrite(str(result_path), result.image):
            raise RuntimeError(f"Failed to write output image: {result_path}")

        logger.info("%s: %d detections -> %s", src.name, len(result.detections), result_path)
        return DetectionResult(detections=result.detections, image=result.image, result_path=result_path)
