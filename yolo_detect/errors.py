from __future__ import annotations


class MalformedTensorError(ValueError):
    """
    Raw output length is not a whole number of (5 + num_classes) rows.

    Retrying the same tensor cannot succeed, so callers should surface it.
    """

    def __init__(self, length: int, stride: int):
        self.length = length
        self.stride = stride
        super().__init__(
            f"Output tensor length {length} is not a multiple of 5 + num_classes = {stride} "
            f"(remainder {length % stride if stride else length})."
        )
