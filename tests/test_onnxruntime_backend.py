import unittest
from types import SimpleNamespace

from yolo_detect.backends.onnxruntime_backend import node_shape


NODES = [
    SimpleNamespace(name="images", shape=[1, 3, 640, 640]),
    SimpleNamespace(name="mask", shape=["batch", 1]),
]


class TestNodeShape(unittest.TestCase):
    def test_finds_named_node(self) -> None:
        self.assertEqual(node_shape(NODES, "images", "input"), (1, 3, 640, 640))
        self.assertEqual(node_shape(NODES, "mask", "input"), ("batch", 1))

    def test_unknown_name_is_value_error(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            node_shape(NODES, "input0", "input")
        self.assertIn("input0", str(ctx.exception))
        self.assertIn("images", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
