from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import DetectorConfig
from .letterbox import ResizeInfo, ResizeMode, resize_for_model
from .postprocess import YoloPostConfig, YoloPostprocessor
from .types import ClassVocabulary, Detection

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, so `Models/yolov5s.onnx` resolves the
    same way no matter where a script is launched from.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths are returned as-is; relative ones resolve against `root`,
    or the project root when `root` is "auto"/None.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]
    resize_info: ResizeInfo


class YoloPipeline:
    """
    preprocess (resize + normalize) -> inference -> postprocess.

    Expects BGR images (OpenCV-style) as `np.ndarray` and returns detections
    in original image coordinates. Inference errors propagate unchanged.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        *,
        input_size: Tuple[int, int] = (640, 640),
        resize_mode: ResizeMode = ResizeMode.STRETCH,
        post_cfg: YoloPostConfig = YoloPostConfig(),
        vocabulary: Optional[ClassVocabulary] = None,
    ):
        self._infer_fn = infer_fn
        self.input_size = (int(input_size[0]), int(input_size[1]))
        self.resize_mode = ResizeMode(resize_mode)
        self.post = YoloPostprocessor(post_cfg, vocabulary)

    @property
    def vocabulary(self) -> ClassVocabulary:
        return self.post.vocabulary

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        orig_h, orig_w = image_bgr.shape[:2]
        img, info = resize_for_model(image_bgr, new_shape=self.input_size, mode=self.resize_mode)

        # BGR -> RGB, normalize, HWC -> CHW, add batch
        blob = img[:, :, ::-1].astype(np.float32) / 255.0
        blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

        return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h), resize_info=info)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        return self._infer_fn(blob)

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        prep = self.preprocess(image_bgr)
        preds = self.infer(prep.blob)
        detections = self.post.process(
            preds,
            orig_size=prep.orig_size,
            model_size=self.input_size,
            resize_info=prep.resize_info,
        )
        logger.debug("%d detections for %dx%d image", len(detections), *prep.orig_size)
        return detections


def load_pipeline(
    model_path: Optional[PathLike] = None,
    *,
    config: DetectorConfig = DetectorConfig(),
    root: Optional[PathLike] = "auto",
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
) -> YoloPipeline:
    """
    Build a pipeline for an ONNX model on disk.

        pipe = load_pipeline("Models/yolov5s.onnx")

    Args:
        model_path: path to the .onnx file; falls back to `config.model_path`.
            Relative paths resolve against the project root by default.
        config: thresholds, input size, resize mode and class vocabulary
        root: base directory for resolving relative model paths
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    path = model_path if model_path is not None else config.model_path
    if path is None:
        raise ValueError("No model path given (pass model_path or set config.model_path).")
    resolved = resolve_path(path, root=root)
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Expected an .onnx model, got '{resolved.suffix}'.")

    ort_backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(
            providers=onnx_providers,
            input_name=onnx_input_name,
            output_name=onnx_output_name,
        ),
    )
    declared = ort_backend.input_size()
    if declared is not None and declared != config.input_size:
        raise ValueError(
            f"Model expects input {declared[0]}x{declared[1]} but config says "
            f"{config.input_width}x{config.input_height}."
        )

    return YoloPipeline(
        ort_backend.infer,
        input_size=config.input_size,
        resize_mode=config.resize_mode,
        post_cfg=config.post_config(),
        vocabulary=config.vocabulary(),
    )
