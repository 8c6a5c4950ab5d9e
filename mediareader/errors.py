from __future__ import annotations

from typing import Optional


class MediaReaderError(RuntimeError):
    """Base class for errors raised by the media reader."""


class MediaEncodingError(MediaReaderError):
    """Raised when a media reference cannot be turned into a request payload."""


class InferenceError(MediaReaderError):
    """Raised when the inference endpoint returns an error or cannot be reached."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(MediaReaderError, ValueError):
    """Raised when run settings are incomplete or out of range."""
