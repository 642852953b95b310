import unittest

import numpy as np

from yolo_detect.geometry import iou
from yolo_detect.nms import suppress
from yolo_detect.types import Detection


def _det(label, conf, box, class_id=None):
    return Detection(label=label, confidence=conf, box=tuple(float(v) for v in box), class_id=class_id)


class TestSuppress(unittest.TestCase):
    def test_overlapping_same_label_keeps_best(self) -> None:
        a = _det("car", 0.9, (0, 0, 100, 100))
        b = _det("car", 0.8, (10, 10, 110, 110))
        self.assertEqual(suppress([a, b], 0.45), [a])
        # Input order must not matter.
        self.assertEqual(suppress([b, a], 0.45), [a])

    def test_non_overlapping_same_label_both_survive(self) -> None:
        a = _det("car", 0.3, (0, 0, 10, 10))
        b = _det("car", 0.7, (50, 50, 60, 60))
        for thr in [0.0001, 0.45, 1.0]:
            out = suppress([a, b], thr)
            self.assertEqual(len(out), 2)
            self.assertEqual(out, [b, a])

    def test_different_labels_are_not_suppressed(self) -> None:
        a = _det("car", 0.9, (0, 0, 100, 100), class_id=2)
        b = _det("truck", 0.8, (0, 0, 100, 100), class_id=7)
        self.assertEqual(suppress([b, a], 0.45), [a, b])

    def test_iou_equal_to_threshold_is_suppressed(self) -> None:
        a = _det("dog", 0.9, (0, 0, 100, 100))
        b = _det("dog", 0.5, (10, 10, 110, 110))
        thr = iou(a.box, b.box)
        self.assertEqual(suppress([a, b], thr), [a])
        self.assertEqual(suppress([a, b], thr + 1e-9), [a, b])

    def test_equal_confidence_keeps_input_order(self) -> None:
        a = _det("cat", 0.5, (0, 0, 10, 10))
        b = _det("cat", 0.5, (1, 1, 11, 11))
        self.assertEqual(suppress([a, b], 0.45), [a])
        self.assertEqual(suppress([b, a], 0.45), [b])

    def test_groups_ordered_by_class_id(self) -> None:
        dets = [
            _det("dog", 0.6, (0, 0, 10, 10), class_id=16),
            _det("person", 0.7, (0, 0, 10, 10), class_id=0),
            _det("car", 0.8, (0, 0, 10, 10), class_id=2),
        ]
        self.assertEqual([d.label for d in suppress(dets, 0.45)], ["person", "car", "dog"])

    def test_chain_suppression_is_greedy(self) -> None:
        # b overlaps a and c, a and c don't overlap: b is removed by a, c survives.
        a = _det("x", 0.9, (0, 0, 10, 10))
        b = _det("x", 0.8, (2, 0, 12, 10))
        c = _det("x", 0.7, (10, 0, 20, 10))
        self.assertEqual(suppress([a, b, c], 0.5), [a, c])

    def test_empty_input(self) -> None:
        self.assertEqual(suppress([], 0.45), [])

    def test_input_not_mutated(self) -> None:
        dets = [_det("car", 0.8, (10, 10, 110, 110)), _det("car", 0.9, (0, 0, 100, 100))]
        snapshot = list(dets)
        suppress(dets, 0.45)
        self.assertEqual(dets, snapshot)

    def test_idempotent_and_never_grows(self) -> None:
        rng = np.random.default_rng(11)
        labels = ["a", "b", "c"]
        dets = []
        for _ in range(120):
            x, y = rng.uniform(0, 200, size=2)
            w, h = rng.uniform(5, 60, size=2)
            k = int(rng.integers(0, 3))
            dets.append(_det(labels[k], float(rng.uniform(0, 1)), (x, y, x + w, y + h), class_id=k))

        for thr in [0.1, 0.3, 0.45, 0.7]:
            once = suppress(dets, thr)
            self.assertLessEqual(len(once), len(dets))
            self.assertEqual(suppress(once, thr), once)


if __name__ == "__main__":
    unittest.main()
