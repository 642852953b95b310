"""
Inference engines for yolo_detect.

Kept apart from the core so decoding, NMS and rescaling can be used without
installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
