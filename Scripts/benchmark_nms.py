from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import List

import numpy as np

from yolo_detect import ClassVocabulary, YoloPostConfig, YoloPostprocessor


@dataclass(frozen=True)
class TimingSummary:
    n: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float


def _percentile(sorted_values: List[float], q: float) -> float:
    if not sorted_values:
        raise ValueError("No values provided.")
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    # Linear interpolation between closest ranks.
    pos = (q / 100.0) * (len(sorted_values) - 1)
    lo = int(np.floor(pos))
    hi = int(np.ceil(pos))
    if lo == hi:
        return float(sorted_values[lo])
    t = pos - lo
    return float(sorted_values[lo] * (1.0 - t) + sorted_values[hi] * t)


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms_sorted = sorted(v * 1000.0 for v in values_s)
    return TimingSummary(
        n=len(ms_sorted),
        mean_ms=float(statistics.fmean(ms_sorted)),
        p50_ms=_percentile(ms_sorted, 50.0),
        p90_ms=_percentile(ms_sorted, 90.0),
        p95_ms=_percentile(ms_sorted, 95.0),
    )


def _format_summary(label: str, s: TimingSummary) -> str:
    return (
        f"{label}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms "
        f"p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"
    )


def synthetic_tensor(n_boxes: int, n_classes: int, imgsz: int, seed: int = 0) -> np.ndarray:
    """Random (1, N, 5 + C) output with clustered boxes so NMS has work to do."""
    rng = np.random.default_rng(seed)
    centers = rng.uniform(0, imgsz, size=(max(1, n_boxes // 8), 2))
    picks = rng.integers(0, centers.shape[0], size=n_boxes)
    cxcy = centers[picks] + rng.normal(0, 4.0, size=(n_boxes, 2))
    wh = rng.uniform(10, 120, size=(n_boxes, 2))
    obj = rng.uniform(0.0, 1.0, size=(n_boxes, 1))
    cls = rng.uniform(0.0, 1.0, size=(n_boxes, n_classes))
    return np.concatenate([cxcy, wh, obj, cls], axis=1)[None, ...].astype(np.float32)


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark decode + class-wise NMS on a synthetic YOLO output.")
    parser.add_argument("--boxes", type=int, default=25200, help="Rows in the synthetic output (yolov5 @640 = 25200).")
    parser.add_argument("--classes", type=int, default=80, help="Number of classes.")
    parser.add_argument("--imgsz", type=int, default=640, help="Model input size.")
    parser.add_argument("--conf", type=float, default=0.25, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--warmup", type=int, default=5, help="Warmup runs not recorded.")
    parser.add_argument("--repeats", type=int, default=50, help="Recorded runs.")
    args = parser.parse_args()

    if args.boxes < 1:
        raise ValueError("--boxes must be >= 1")
    if args.classes < 1:
        raise ValueError("--classes must be >= 1")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")

    vocab = ClassVocabulary([f"class_{i}" for i in range(args.classes)])
    preds = synthetic_tensor(args.boxes, args.classes, args.imgsz)
    orig = (args.imgsz, args.imgsz)
    model = (args.imgsz, args.imgsz)

    with_nms = YoloPostprocessor(YoloPostConfig(conf_threshold=args.conf, iou_threshold=args.iou), vocab)
    no_nms = YoloPostprocessor(
        YoloPostConfig(conf_threshold=args.conf, iou_threshold=args.iou, apply_nms=False), vocab
    )

    t_nms: List[float] = []
    t_no: List[float] = []
    kept = candidates = 0
    for i in range(args.warmup + args.repeats):
        t0 = time.perf_counter()
        kept = len(with_nms.process(preds, orig_size=orig, model_size=model))
        t1 = time.perf_counter()
        candidates = len(no_nms.process(preds, orig_size=orig, model_size=model))
        t2 = time.perf_counter()
        if i >= args.warmup:
            t_nms.append(t1 - t0)
            t_no.append(t2 - t1)

    print(_format_summary("postprocess_with_nms", _summarize_ms(t_nms)))
    print(_format_summary("postprocess_no_nms", _summarize_ms(t_no)))
    print(f"boxes={args.boxes} candidates={candidates} kept={kept}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
