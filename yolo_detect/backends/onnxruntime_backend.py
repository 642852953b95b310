from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    - providers: ORT execution providers, e.g. ["CPUExecutionProvider"]
    - input_name/output_name: override the first input/output of the graph
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


def node_shape(nodes: Sequence[Any], name: str, kind: str) -> Tuple[Any, ...]:
    """Shape of the graph input/output called `name`."""
    for node in nodes:
        if node.name == name:
            return tuple(node.shape)
    available = [node.name for node in nodes]
    raise ValueError(f"Model has no {kind} named {name!r}. Available: {available}")


class OnnxRuntimeBackend:
    """
    ONNX Runtime session for a single-image detector.

    Takes a float32 NCHW blob shaped (1, 3, H, W) and returns the raw primary
    output, e.g. (1, N, 5 + C) for YOLOv5 exports. Session errors are not
    caught here.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), providers=providers)

        inputs = self.session.get_inputs()
        outputs = self.session.get_outputs()
        self.input_name = cfg.input_name or inputs[0].name
        self.output_name = cfg.output_name or outputs[0].name
        self._input_shape = node_shape(inputs, self.input_name, "input")
        node_shape(outputs, self.output_name, "output")
        logger.debug(
            "loaded %s (input %s %s, output %s, providers %s)",
            self.model_path.name,
            self.input_name,
            self._input_shape,
            self.output_name,
            self.session.get_providers(),
        )

    def input_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) declared by the model, or None for dynamic axes."""
        # Dynamic axes come back as strings or None.
        if len(self._input_shape) != 4:
            return None
        h, w = self._input_shape[2], self._input_shape[3]
        if isinstance(h, int) and isinstance(w, int):
            return w, h
        return None

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if blob.ndim != 4 or blob.shape[0] != 1:
            raise ValueError(f"Expected a (1, 3, H, W) blob, got shape {blob.shape}. Pass one image at a time.")
        outputs = self.session.run([self.output_name], {self.input_name: blob.astype(np.float32, copy=False)})
        return outputs[0]
