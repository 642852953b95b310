from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union

from .types import ClassVocabulary


def _parse_names_block(lines: List[str]) -> Dict[int, str]:
    names: Dict[int, str] = {}
    in_names = False
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line == "names:":
            in_names = True
            continue
        if not in_names:
            continue

        # A new top-level key ends the block.
        if not raw[:1].isspace() and not line[:1].isdigit():
            break

        # Parse "id: label"
        if ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        right = right.strip().strip("'").strip('"')
        if not left.isdigit():
            continue
        names[int(left)] = right
    return names


YAML_SUFFIXES = (".yaml", ".yml")


def load_class_names(metadata_path: Union[str, Path]) -> ClassVocabulary:
    """
    Load the class vocabulary for a model.

    `.yaml`/`.yml` files use the lightweight exporter metadata:

        names:
          0: person
          1: bicycle
          ...

    Ids in the `names:` block must be contiguous from 0. Inline forms such as
    `names: [cat, dog]` are rejected, not guessed at. Any other file is read
    as plain text with one label per line (line order = class id).
    """

    path = Path(metadata_path)
    if not path.exists():
        raise FileNotFoundError(f"Class metadata not found: {path}")

    lines = path.read_text(encoding="utf-8").splitlines()
    if path.suffix.lower() in YAML_SUFFIXES:
        inline = [line.strip() for line in lines if line.startswith("names:") and line.strip() != "names:"]
        if inline:
            raise ValueError(
                f"Inline class names are not supported in {path} ({inline[0]!r}); "
                "use a 'names:' block with one 'id: label' per line."
            )
        if not any(line.strip() == "names:" for line in lines):
            raise ValueError(f"No 'names:' block found in {path}")
        names = _parse_names_block(lines)
        if not names:
            raise ValueError(f"No class names found under 'names:' in {path}")
        expected = list(range(len(names)))
        if sorted(names) != expected:
            raise ValueError(f"Class ids in {path} must be contiguous from 0 (got {sorted(names)})")
        return ClassVocabulary([names[i] for i in expected])

    labels = [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]
    if not labels:
        raise ValueError(f"No class names found in {path}")
    return ClassVocabulary(labels)
