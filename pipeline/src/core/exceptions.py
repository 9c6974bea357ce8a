"""
Error taxonomy for the animation pipeline.

Per-clip and per-character errors are caught by the build service and
recorded in the run report. Only StoreTransactionError aborts a whole run.
"""

from typing import Optional

from common.src.sprites.naming import NotMatched


class PipelineError(Exception):
    """Base class for pipeline errors. `code` is stable and used in reports."""

    code = "PIPELINE_ERROR"

    def __init__(self, message: str, character: Optional[str] = None, animation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.character = character
        self.animation = animation


class EmptyGroupError(PipelineError):
    """A character or animation group produced zero valid frames."""

    code = "EMPTY_GROUP"


class CorruptClipError(PipelineError):
    """A clip still had zero keyframes after the single recreate attempt."""

    code = "CORRUPT_CLIP"

    def __init__(self, path: str, character: str, animation: str, attempts: int = 2):
        super().__init__(
            f"Clip '{path}' has 0 keyframes even after recreate ({attempts} attempts)",
            character=character,
            animation=animation,
        )
        self.path = path
        self.attempts = attempts


class MissingRequiredClipError(PipelineError):
    """Controller synthesis was requested without any clip."""

    code = "MISSING_REQUIRED_CLIP"


class InvalidSettingsError(PipelineError):
    """A configuration value is missing or out of range."""

    code = "INVALID_SETTINGS"


class StoreTransactionError(PipelineError):
    """The artifact store could not open or close a batch. Aborts the run."""

    code = "STORE_TRANSACTION"


class ArtifactWriteError(PipelineError):
    """The store failed to write or delete an artifact. Fatal for that clip or character only."""

    code = "ARTIFACT_WRITE"

    def __init__(self, path: str, reason: str, character: Optional[str] = None, animation: Optional[str] = None):
        super().__init__(f"Cannot write artifact '{path}': {reason}", character=character, animation=animation)
        self.path = path
        self.reason = reason


class ArtifactDecodeError(PipelineError):
    """A stored artifact exists but cannot be decoded."""

    code = "ARTIFACT_DECODE"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot decode artifact '{path}': {reason}")
        self.path = path
        self.reason = reason


__all__ = [
    "NotMatched",
    "PipelineError",
    "EmptyGroupError",
    "CorruptClipError",
    "MissingRequiredClipError",
    "InvalidSettingsError",
    "StoreTransactionError",
    "ArtifactDecodeError",
    "ArtifactWriteError",
]
