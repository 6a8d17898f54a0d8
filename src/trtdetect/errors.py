"""
Exception taxonomy.

Every error raised by the package derives from DetectError so the CLI can
report it and exit with a failure status. Nothing is retried.
"""

from __future__ import annotations

from typing import Optional, Sequence


class DetectError(Exception):
    """Base error for known failures."""


# Paths

class PathError(DetectError):
    """Raised when a path has the wrong kind or cannot be found."""


class PathNotFoundError(PathError, FileNotFoundError):
    """Raised when a required path does not exist."""


class InvalidInputError(PathError):
    """Raised when the input is neither a regular file nor a directory."""


class EmptyDirectoryError(PathError):
    """Raised when a directory contains no eligible images."""


class OutputPathError(PathError):
    """Raised when the output directory cannot be created or is not a directory."""


# Configuration

class ConfigError(DetectError):
    """Raised when a required option is missing or settings are invalid."""


# I/O

class DetectIOError(DetectError, OSError):
    """Raised on file open, read or write failure."""


class ImageDecodeError(DetectIOError):
    """Raised when an image cannot be read or decoded."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Failed to read image from path: {path}")


class ImageEncodeError(DetectIOError):
    """Raised when an image cannot be encoded or written."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Failed to write image to path: {path}")


# Engine

class EngineError(DetectError):
    """Base for inference engine failures."""


class EngineLoadError(EngineError):
    """Raised when an engine artifact is missing or cannot be deserialized."""


class ShapeMismatchError(EngineError):
    """
    Raised when a predict call does not fit the shape a backend accepts.

    For the graph-captured backend this is any deviation from the captured
    shape; for the standard backend it is exceeding the engine batch size.
    """

    def __init__(
        self,
        message: str,
        expected: Optional[Sequence[int]] = None,
        actual: Optional[Sequence[int]] = None,
    ):
        self.expected = tuple(expected) if expected is not None else None
        self.actual = tuple(actual) if actual is not None else None
        super().__init__(message)


class InferenceError(EngineError):
    """Raised when engine execution fails."""


# Internal usage

class TimerStateError(DetectError):
    """Raised on double start or stop of a timer."""


# Rendering

class RenderError(DetectError, IndexError):
    """Raised when a detection refers to a class id the label table lacks."""

    def __init__(self, class_id: int, label_count: int):
        self.class_id = class_id
        self.label_count = label_count
        super().__init__(
            f"Class id {class_id} is out of range for a label table of {label_count} entries"
        )
