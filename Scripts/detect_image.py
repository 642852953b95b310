import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from yolo_detect import (
    DetectionService,
    DetectorConfig,
    ResizeMode,
    load_class_names,
    load_detector_config,
    load_pipeline,
)


def _build_config(args: argparse.Namespace) -> DetectorConfig:
    base = load_detector_config(Path(args.config)) if args.config else DetectorConfig()

    # CLI flags override the config file.
    overrides = {}
    if args.conf is not None:
        overrides["conf_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.imgsz is not None:
        overrides["input_width"] = args.imgsz
        overrides["input_height"] = args.imgsz
    if args.resize is not None:
        overrides["resize_mode"] = ResizeMode(args.resize)
    if args.metadata:
        overrides["class_names"] = load_class_names(args.metadata).names
    if args.model:
        overrides["model_path"] = args.model
    # replace() re-runs DetectorConfig validation on the merged values.
    return dataclasses.replace(base, **overrides)


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect objects in an image and save an annotated copy.")
    parser.add_argument("image", help="Path to the input image.")
    parser.add_argument("--config", default=None, help="Detector config JSON.")
    parser.add_argument("--model", default=None, help="Path to a YOLOv5-style .onnx model (default: Models/yolov5s.onnx).")
    parser.add_argument("--metadata", default=None, help="Class names file (names: mapping or one label per line).")
    parser.add_argument("--imgsz", type=int, default=None, help="Square model input size (e.g., 640).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument(
        "--resize",
        choices=[m.value for m in ResizeMode],
        default=None,
        help="How the image is fit to the model input. Must match how the model expects it.",
    )
    parser.add_argument("--out-dir", default=None, help="Directory for result_<name> (default: next to the input).")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = _build_config(args)
    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    pipeline = load_pipeline(
        cfg.model_path or "Models/yolov5s.onnx",
        config=cfg,
        onnx_providers=onnx_providers,
    )
    result = DetectionService(pipeline).detect_file(args.image, out_dir=args.out_dir)

    for det in result.detections:
        x1, y1, x2, y2 = det.as_xyxy()
        print(f"{det.label}\t{det.confidence:.3f}\t{x1:.1f},{y1:.1f},{x2:.1f},{y2:.1f}")
    if not result.detections:
        print("no detections", file=sys.stderr)
    print(f"saved {result.result_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
