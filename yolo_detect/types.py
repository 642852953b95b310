from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional, Sequence, Tuple

Box = Tuple[float, float, float, float]


COCO80_CLASSES: Tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train",
    "truck", "boat", "traffic light", "fire hydrant", "stop sign", "parking meter",
    "bench", "bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear",
    "zebra", "giraffe", "backpack", "umbrella", "handbag", "tie", "suitcase",
    "frisbee", "skis", "snowboard", "sports ball", "kite", "baseball bat",
    "baseball glove", "skateboard", "surfboard", "tennis racket", "bottle",
    "wine glass", "cup", "fork", "knife", "spoon", "bowl", "banana", "apple",
    "sandwich", "orange", "broccoli", "carrot", "hot dog", "pizza", "donut",
    "cake", "chair", "couch", "potted plant", "bed", "dining table", "toilet",
    "tv", "laptop", "mouse", "remote", "keyboard", "cell phone", "microwave",
    "oven", "toaster", "sink", "refrigerator", "book", "clock", "vase",
    "scissors", "teddy bear", "hair drier", "toothbrush",
)


@dataclass(frozen=True)
class Detection:
    """
    A decoded prediction. `box` is (x1, y1, x2, y2) in whatever coordinate
    space the producing stage works in (model input space until rescaled).
    """

    label: str
    confidence: float
    box: Box
    class_id: Optional[int] = None

    def as_xyxy(self) -> Box:
        return self.box

    def with_box(self, box: Box) -> "Detection":
        return replace(self, box=(float(box[0]), float(box[1]), float(box[2]), float(box[3])))


class ClassVocabulary:
    """
    Immutable, ordered class labels. Position i is the label for class score i
    in the model output, so the order must always match the model.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Sequence[str]):
        cleaned = tuple(str(n) for n in names)
        if not cleaned:
            raise ValueError("Class vocabulary must contain at least one label.")
        if any(not n.strip() for n in cleaned):
            raise ValueError("Class vocabulary must not contain empty labels.")
        if len(set(cleaned)) != len(cleaned):
            dupes = sorted({n for n in cleaned if cleaned.count(n) > 1})
            raise ValueError(f"Class vocabulary has duplicate labels: {dupes}")
        self._names = cleaned

    @classmethod
    def coco80(cls) -> "ClassVocabulary":
        return cls(COCO80_CLASSES)

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def __len__(self) -> int:
        return len(self._names)

    def __getitem__(self, index: int) -> str:
        return self._names[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __contains__(self, label: object) -> bool:
        return label in self._names

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ClassVocabulary):
            return self._names == other._names
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"ClassVocabulary({len(self._names)} labels)"
