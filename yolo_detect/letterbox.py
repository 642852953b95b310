from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np


class ResizeMode(str, Enum):
    # Non-aspect-preserving resize straight to the model input size.
    STRETCH = "stretch"
    # Aspect-preserving resize, padded to the model input size.
    LETTERBOX = "letterbox"


@dataclass(frozen=True)
class ResizeInfo:
    """
    How an image was mapped into model input space.

    ratio: (w_ratio, h_ratio), model pixels per original pixel
    pad: (dw, dh) left/top padding in model pixels (zero for stretch)
    """

    mode: ResizeMode
    ratio: Tuple[float, float]
    pad: Tuple[float, float] = (0.0, 0.0)


def resize_for_model(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (640, 640),
    mode: ResizeMode = ResizeMode.STRETCH,
    color: Tuple[int, int, int] = (114, 114, 114),
) -> Tuple[np.ndarray, ResizeInfo]:
    """
    Resize an (H, W, 3) image to `new_shape` = (width, height).

    Stretch distorts the aspect ratio when it doesn't match the model input.
    Letterbox keeps it and pads the remainder (split evenly left/right and
    top/bottom) with `color`.
    """

    mode = ResizeMode(mode)
    h, w = image.shape[:2]
    if w <= 0 or h <= 0:
        raise ValueError(f"Image has no pixels (shape {image.shape}).")
    new_w, new_h = new_shape

    if mode is ResizeMode.STRETCH:
        info = ResizeInfo(mode=mode, ratio=(new_w / w, new_h / h))
        return _resize(image, new_w, new_h), info

    r = min(new_w / w, new_h / h)
    # At least one pixel per axis, even for extreme aspect ratios.
    resized_w, resized_h = max(1, int(round(w * r))), max(1, int(round(h * r)))
    dw = (new_w - resized_w) / 2
    dh = (new_h - resized_h) / 2

    image = _resize(image, resized_w, resized_h)
    top, bottom = int(round(dh - 0.1)), int(round(dh + 0.1))
    left, right = int(round(dw - 0.1)), int(round(dw + 0.1))
    if top or bottom or left or right:
        cv2 = _cv2()
        image = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)

    return image, ResizeInfo(mode=mode, ratio=(r, r), pad=(dw, dh))


def _resize(image: np.ndarray, width: int, height: int) -> np.ndarray:
    if image.shape[1] == width and image.shape[0] == height:
        return image
    cv2 = _cv2()
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)


def _cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for resizing. Install with `pip install opencv-python`.") from e
    return cv2
