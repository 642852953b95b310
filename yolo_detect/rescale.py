"""
Map boxes from model input space back to original image space.

`rescale_box` is the plain per-axis inverse of a *stretch* resize. It is wrong
for letterboxed input: padding shifts and uniform scaling need
`unletterbox_box` instead. `rescale_detections` takes the `ResizeInfo`
produced by preprocessing so the caller always states which one applies.
Neither function clips to the image bounds.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .letterbox import ResizeInfo, ResizeMode
from .types import Box, Detection


def _require_positive(**dims: float) -> None:
    for name, value in dims.items():
        if not value > 0:
            raise ValueError(f"{name} must be > 0 (got {value}).")


def rescale_box(
    box: Sequence[float],
    model_width: float,
    model_height: float,
    target_width: float,
    target_height: float,
) -> Box:
    _require_positive(
        model_width=model_width,
        model_height=model_height,
        target_width=target_width,
        target_height=target_height,
    )
    x1, y1, x2, y2 = box
    return (
        x1 / model_width * target_width,
        y1 / model_height * target_height,
        x2 / model_width * target_width,
        y2 / model_height * target_height,
    )


def unletterbox_box(box: Sequence[float], ratio: Tuple[float, float], pad: Tuple[float, float]) -> Box:
    rw, rh = ratio
    _require_positive(w_ratio=rw, h_ratio=rh)
    dw, dh = pad
    x1, y1, x2, y2 = box
    return ((x1 - dw) / rw, (y1 - dh) / rh, (x2 - dw) / rw, (y2 - dh) / rh)


def rescale_detections(
    detections: Sequence[Detection],
    resize_info: ResizeInfo,
    model_size: Tuple[int, int],
    target_size: Tuple[int, int],
) -> List[Detection]:
    """
    Rescale every detection with the inverse of the resize that produced the
    model input. Sizes are (width, height). Returns new Detection objects.
    """

    if resize_info.mode is ResizeMode.STRETCH:
        mw, mh = model_size
        tw, th = target_size
        return [d.with_box(rescale_box(d.box, mw, mh, tw, th)) for d in detections]
    if resize_info.mode is ResizeMode.LETTERBOX:
        return [d.with_box(unletterbox_box(d.box, resize_info.ratio, resize_info.pad)) for d in detections]
    raise ValueError(f"Unsupported resize mode: {resize_info.mode!r}")
