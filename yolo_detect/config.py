from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .letterbox import ResizeMode
from .metadata import load_class_names
from .postprocess import YoloPostConfig
from .types import COCO80_CLASSES, ClassVocabulary


@dataclass(frozen=True)
class DetectorConfig:
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    input_width: int = 640
    input_height: int = 640
    resize_mode: ResizeMode = ResizeMode.STRETCH
    class_names: Tuple[str, ...] = COCO80_CLASSES
    keep_labels: Optional[Tuple[str, ...]] = None
    model_path: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.input_width < 32 or self.input_height < 32:
            raise ValueError("input_width and input_height must be >= 32")
        object.__setattr__(self, "resize_mode", ResizeMode(self.resize_mode))
        object.__setattr__(self, "class_names", tuple(self.class_names))
        if self.keep_labels is not None:
            object.__setattr__(self, "keep_labels", tuple(self.keep_labels))
        # Validates emptiness / duplicates.
        vocab = ClassVocabulary(self.class_names)
        if self.keep_labels is not None:
            unknown = [lbl for lbl in self.keep_labels if lbl not in vocab]
            if unknown:
                raise ValueError(f"keep_labels not in class_names: {unknown}")

    @property
    def input_size(self) -> Tuple[int, int]:
        return self.input_width, self.input_height

    def vocabulary(self) -> ClassVocabulary:
        return ClassVocabulary(self.class_names)

    def post_config(self) -> YoloPostConfig:
        return YoloPostConfig(
            conf_threshold=self.conf_threshold,
            iou_threshold=self.iou_threshold,
            keep_labels=self.keep_labels,
        )


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_str_list(payload: Dict[str, Any], key: str) -> List[str]:
    value = payload[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{key} must be a list of strings")
    return value


def load_detector_config(path: Path) -> DetectorConfig:
    """
    Load a detector config from JSON. Every key is optional; unknown keys are
    rejected. `metadata_path` (relative to the config file) may be given
    instead of an inline `class_names` list.
    """

    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = {
        "conf_threshold",
        "iou_threshold",
        "input_width",
        "input_height",
        "resize_mode",
        "class_names",
        "metadata_path",
        "keep_labels",
        "model_path",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")
    if "class_names" in payload and "metadata_path" in payload:
        raise ValueError("Use either 'class_names' or 'metadata_path', not both.")

    kwargs: Dict[str, Any] = {}
    for key in ("conf_threshold", "iou_threshold"):
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    for key in ("input_width", "input_height"):
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    if "resize_mode" in payload:
        value = payload["resize_mode"]
        try:
            kwargs["resize_mode"] = ResizeMode(value)
        except ValueError as exc:
            choices = [m.value for m in ResizeMode]
            raise ValueError(f"resize_mode must be one of {choices}") from exc
    if "class_names" in payload:
        kwargs["class_names"] = tuple(_require_str_list(payload, "class_names"))
    if "metadata_path" in payload:
        meta = payload["metadata_path"]
        if not isinstance(meta, str):
            raise ValueError("metadata_path must be a string")
        meta_path = Path(meta)
        if not meta_path.is_absolute():
            meta_path = path.parent / meta_path
        kwargs["class_names"] = load_class_names(meta_path).names
    if "keep_labels" in payload:
        kwargs["keep_labels"] = tuple(_require_str_list(payload, "keep_labels"))
    if "model_path" in payload:
        model_path = payload["model_path"]
        if not isinstance(model_path, str):
            raise ValueError("model_path must be a string")
        kwargs["model_path"] = model_path

    return DetectorConfig(**kwargs)
