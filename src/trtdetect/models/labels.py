"""
Class label table.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Iterator, Tuple

from trtdetect.errors import DetectIOError, PathNotFoundError, RenderError

logger = logging.getLogger(__name__)


class LabelTable:
    """Ordered class names; the index of a name is its class id."""

    def __init__(self, labels: Iterable[str]):
        self._labels: Tuple[str, ...] = tuple(labels)

    @classmethod
    def load(cls, path: str) -> "LabelTable":
        """
        Read one label per line.

        Only newlines separate labels (universal-newline reading folds CRLF
        and CR into LF) and nothing else is stripped: blank lines and
        surrounding whitespace are kept so line numbers stay aligned with
        class ids.
        """
        if not os.path.exists(path):
            raise PathNotFoundError(f"Label path does not exist: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise DetectIOError(f"Labels file is not valid UTF-8: {path}: {e}") from e
        except OSError as e:
            raise DetectIOError(f"Failed to open labels file: {path}: {e}") from e

        labels = text.split("\n")
        if labels[-1] == "":
            labels.pop()

        logger.debug(f"Loaded {len(labels)} labels from {path}")
        return cls(labels)

    def name_for(self, class_id: int) -> str:
        """Return the label for class_id, raising RenderError when out of range."""
        if class_id < 0 or class_id >= len(self._labels):
            raise RenderError(class_id, len(self._labels))
        return self._labels[class_id]

    def __len__(self) -> int:
        return len(self._labels)

    def __getitem__(self, class_id: int) -> str:
        return self.name_for(class_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __repr__(self) -> str:
        return f"LabelTable({len(self._labels)} labels)"
