import tempfile
import unittest
from pathlib import Path

import numpy as np

from yolo_detect.letterbox import ResizeInfo, ResizeMode
from yolo_detect.postprocess import YoloPostConfig, YoloPostprocessor
from yolo_detect.runtime import YoloPipeline, load_pipeline, resolve_path
from yolo_detect.service import DetectionService
from yolo_detect.types import ClassVocabulary

try:
    import cv2  # type: ignore
except ImportError:  # pragma: no cover
    cv2 = None


VOCAB = ClassVocabulary(["person", "car", "dog"])


def _raw(rows):
    # (1, N, 5 + C) like an ONNX session returns.
    return np.array(rows, dtype=np.float64)[None, ...]


PREDS = _raw(
    [
        [50, 50, 100, 100, 0.9, 0.0, 1.0, 0.0],  # car 0.9 -> box (0, 0, 100, 100)
        [60, 60, 100, 100, 0.8, 0.0, 1.0, 0.0],  # car 0.8, IoU ~0.68 with the first
        [400, 400, 40, 40, 0.7, 0.9, 0.1, 0.0],  # person 0.63
        [10, 10, 4, 4, 0.1, 0.1, 0.1, 0.1],  # below threshold
    ]
)


class TestYoloPostprocessor(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = YoloPostConfig()
        self.assertEqual((cfg.conf_threshold, cfg.iou_threshold), (0.25, 0.45))
        self.assertEqual(len(YoloPostprocessor(cfg).vocabulary), 80)

    def test_detect_runs_decode_then_nms(self) -> None:
        post = YoloPostprocessor(YoloPostConfig(), VOCAB)
        dets = post.detect(PREDS)
        self.assertEqual([d.label for d in dets], ["person", "car"])
        self.assertAlmostEqual(dets[1].confidence, 0.9)
        self.assertEqual(dets[1].box, (0.0, 0.0, 100.0, 100.0))

    def test_nms_can_be_disabled(self) -> None:
        post = YoloPostprocessor(YoloPostConfig(apply_nms=False), VOCAB)
        self.assertEqual(len(post.detect(PREDS)), 3)

    def test_keep_labels(self) -> None:
        post = YoloPostprocessor(YoloPostConfig(keep_labels=["person"]), VOCAB)
        self.assertEqual([d.label for d in post.detect(PREDS)], ["person"])
        with self.assertRaises(ValueError):
            YoloPostprocessor(YoloPostConfig(keep_labels=["zebra"]), VOCAB)

    def test_process_rescales_stretch_by_default(self) -> None:
        post = YoloPostprocessor(YoloPostConfig(), VOCAB)
        dets = post.process(PREDS, orig_size=(1280, 320), model_size=(640, 640))
        person, car = dets
        self.assertEqual(car.box, (0.0, 0.0, 200.0, 50.0))
        self.assertEqual(person.box, (760.0, 190.0, 840.0, 210.0))

    def test_process_letterbox(self) -> None:
        post = YoloPostprocessor(YoloPostConfig(), VOCAB)
        info = ResizeInfo(ResizeMode.LETTERBOX, ratio=(0.5, 0.5), pad=(0.0, 160.0))
        person, _ = post.process(PREDS, orig_size=(1280, 640), model_size=(640, 640), resize_info=info)
        self.assertEqual(person.box, (760.0, 440.0, 840.0, 520.0))

    def test_process_empty(self) -> None:
        post = YoloPostprocessor(YoloPostConfig(conf_threshold=0.99), VOCAB)
        self.assertEqual(post.process(PREDS, orig_size=(640, 640)), [])

    def test_invalid_config(self) -> None:
        with self.assertRaises(ValueError):
            YoloPostConfig(conf_threshold=1.5)
        with self.assertRaises(ValueError):
            YoloPostConfig(iou_threshold=-0.1)
        with self.assertRaises(ValueError):
            YoloPostConfig(iou_threshold=1.5)

    def test_iou_threshold_drives_suppression(self) -> None:
        # The two cars overlap with IoU ~0.68.
        loose = YoloPostprocessor(YoloPostConfig(iou_threshold=0.7), VOCAB)
        self.assertEqual([d.label for d in loose.detect(PREDS)], ["person", "car", "car"])
        strict = YoloPostprocessor(YoloPostConfig(iou_threshold=0.6), VOCAB)
        self.assertEqual([d.label for d in strict.detect(PREDS)], ["person", "car"])


class TestYoloPipeline(unittest.TestCase):
    def _pipeline(self, seen):
        def infer(blob):
            seen.append(blob)
            return PREDS

        return YoloPipeline(infer, input_size=(640, 640), vocabulary=VOCAB)

    def test_preprocess_blob_layout(self) -> None:
        seen = []
        pipe = self._pipeline(seen)
        img = np.zeros((640, 640, 3), dtype=np.uint8)
        img[..., 2] = 255  # red in BGR
        dets = pipe(img)

        (blob,) = seen
        self.assertEqual(blob.shape, (1, 3, 640, 640))
        self.assertEqual(blob.dtype, np.float32)
        # RGB order, normalized to [0, 1]
        self.assertTrue(np.all(blob[0, 0] == 1.0))
        self.assertTrue(np.all(blob[0, 1:] == 0.0))
        self.assertEqual([d.label for d in dets], ["person", "car"])

    def test_inference_errors_propagate(self) -> None:
        def infer(blob):
            raise RuntimeError("session failed")

        pipe = YoloPipeline(infer, vocabulary=VOCAB)
        with self.assertRaises(RuntimeError):
            pipe(np.zeros((640, 640, 3), dtype=np.uint8))

    def test_rejects_non_image(self) -> None:
        pipe = self._pipeline([])
        with self.assertRaises(ValueError):
            pipe(np.zeros((640, 640), dtype=np.uint8))
        with self.assertRaises(TypeError):
            pipe(None)

    @unittest.skipIf(cv2 is None, "OpenCV not installed")
    def test_stretch_maps_back_to_original_size(self) -> None:
        pipe = self._pipeline([])
        dets = pipe(np.zeros((320, 1280, 3), dtype=np.uint8))
        self.assertEqual(dets[1].box, (0.0, 0.0, 200.0, 50.0))


class TestLoadPipeline(unittest.TestCase):
    def test_requires_model_path(self) -> None:
        with self.assertRaises(ValueError):
            load_pipeline()

    def test_requires_onnx_file(self) -> None:
        with self.assertRaises(ValueError):
            load_pipeline("Models/yolov5s.pt")

    def test_missing_model(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                load_pipeline("missing.onnx", root=tmp)


class TestResolvePath(unittest.TestCase):
    def test_absolute_path_unchanged(self) -> None:
        p = Path(tempfile.gettempdir()).resolve() / "model.onnx"
        self.assertEqual(resolve_path(p), p)

    def test_relative_to_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self.assertEqual(resolve_path("Models/x.onnx", root=root), root / "Models" / "x.onnx")


@unittest.skipIf(cv2 is None, "OpenCV not installed")
class TestDetectionService(unittest.TestCase):
    def test_detect_file_writes_result(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        src = Path(tmpdir.name) / "upload.png"
        cv2.imwrite(str(src), np.zeros((640, 640, 3), dtype=np.uint8))

        service = DetectionService(YoloPipeline(lambda blob: PREDS, vocabulary=VOCAB))
        result = service.detect_file(src, out_dir=Path(tmpdir.name) / "out")

        self.assertEqual(result.result_path, Path(tmpdir.name) / "out" / "result_upload.png")
        self.assertTrue(result.result_path.exists())
        self.assertEqual(len(result.detections), 2)
        # Something was drawn.
        self.assertGreater(int(result.image.sum()), 0)

    def test_missing_file(self) -> None:
        service = DetectionService(YoloPipeline(lambda blob: PREDS, vocabulary=VOCAB))
        with self.assertRaises(FileNotFoundError):
            service.detect_file(Path(tempfile.gettempdir()) / "does-not-exist.png")


if __name__ == "__main__":
    unittest.main()
