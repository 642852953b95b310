"""
YOLO detection decoding and suppression.

Turns the flat (N, 5 + C) output of a single-stage detector into labeled,
non-overlapping boxes in original image coordinates. The core (decode, NMS,
rescale) only needs NumPy; OpenCV is needed for resizing/drawing and
onnxruntime for inference.
"""

from .types import Box, COCO80_CLASSES, ClassVocabulary, Detection
from .errors import MalformedTensorError
from .geometry import IOU_EPS, iou
from .decode import decode
from .nms import suppress
from .letterbox import ResizeInfo, ResizeMode, resize_for_model
from .rescale import rescale_box, rescale_detections, unletterbox_box
from .postprocess import YoloPostConfig, YoloPostprocessor
from .config import DetectorConfig, load_detector_config
from .metadata import load_class_names
from .runtime import YoloPipeline, load_pipeline, find_project_root, resolve_path
from .visualize import draw_detections, format_caption
from .service import DetectionResult, DetectionService

__all__ = [
    "Box",
    "COCO80_CLASSES",
    "ClassVocabulary",
    "Detection",
    "MalformedTensorError",
    "IOU_EPS",
    "iou",
    "decode",
    "suppress",
    "ResizeInfo",
    "ResizeMode",
    "resize_for_model",
    "rescale_box",
    "rescale_detections",
    "unletterbox_box",
    "YoloPostConfig",
    "YoloPostprocessor",
    "DetectorConfig",
    "load_detector_config",
    "load_class_names",
    "YoloPipeline",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "draw_detections",
    "format_caption",
    "DetectionResult",
    "DetectionService",
]
