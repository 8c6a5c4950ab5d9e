from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

from .constants import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE, SUPPORTED_MODELS
from .errors import ConfigError, MediaEncodingError

DEFAULT_MIME_TYPE = "application/octet-stream"


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"

    @property
    def content_type(self) -> str:
        return f"{self.value}_url"

    @classmethod
    def for_mime_type(cls, mime_type: str) -> "MediaKind":
        return cls.VIDEO if (mime_type or "").lower().startswith("video/") else cls.IMAGE

    @classmethod
    def for_url(cls, url: str) -> "MediaKind":
        path = urlparse(url).path or url
        return cls.VIDEO if path.lower().endswith(".mp4") else cls.IMAGE


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ABORTING = "aborting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        return self in (RunState.RUNNING, RunState.PAUSED, RunState.ABORTING)


@dataclass(frozen=True)
class FileRef:
    """Local file; bytes are either given up front or read from ``path`` on demand."""

    name: str
    mime_type: str
    data: Optional[bytes] = field(default=None, repr=False)
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], mime_type: Optional[str] = None) -> "FileRef":
        resolved = Path(path).expanduser()
        guessed, _ = mimetypes.guess_type(resolved.name)
        return cls(name=resolved.name, mime_type=mime_type or guessed or DEFAULT_MIME_TYPE, path=resolved)

    @property
    def label(self) -> str:
        return self.name

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise MediaEncodingError(f"No content available for file '{self.name}'.")
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise MediaEncodingError(f"Failed to read file '{self.name}': {exc}") from exc


@dataclass(frozen=True)
class UrlRef:
    url: str

    @property
    def label(self) -> str:
        return self.url


MediaReference = Union[FileRef, UrlRef]


@dataclass(frozen=True)
class MediaPayload:
    kind: MediaKind
    content: str
    # Set only for inline base64 content.
    mime_type: Optional[str] = None

    @property
    def is_inline(self) -> bool:
        return self.mime_type is not None

    @property
    def url(self) -> str:
        if self.is_inline:
            return f"data:{self.mime_type};base64,{self.content}"
        return self.content

    def to_content_part(self) -> Dict[str, Any]:
        key = self.kind.content_type
        return {"type": key, key: {"url": self.url}}


@dataclass(frozen=True)
class RunConfig:
    api_key: str
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    prompt_text: str = ""

    def validate(self) -> None:
        missing: list[str] = []
        if not (self.api_key or "").strip():
            missing.append("API key")
        if not (self.model or "").strip():
            missing.append("model")
        if missing:
            raise ConfigError(f"Run settings incomplete: {', '.join(missing)} required.")
        if self.model not in SUPPORTED_MODELS:
            raise ConfigError(
                f"Unsupported model '{self.model}'. Choose one of: {', '.join(SUPPORTED_MODELS)}."
            )
        if isinstance(self.temperature, bool) or not isinstance(self.temperature, (int, float)):
            raise ConfigError("Temperature must be a number between 0 and 1.")
        if not 0.0 <= float(self.temperature) <= 1.0:
            raise ConfigError(f"Temperature must be between 0 and 1, got {self.temperature}.")
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise ConfigError(f"Max tokens must be a positive integer, got {self.max_tokens!r}.")


@dataclass(frozen=True)
class ItemResult:
    source_label: str
    text: str
    is_error: bool = False

    @classmethod
    def success(cls, source_label: str, text: str) -> "ItemResult":
        return cls(source_label=source_label, text=text, is_error=False)

    @classmethod
    def failure(cls, source_label: str, message: str) -> "ItemResult":
        return cls(source_label=source_label, text=f"Error: {message}", is_error=True)

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source_label, "text": self.text, "is_error": self.is_error}


@dataclass(frozen=True)
class RunSnapshot:
    """Read-only view of a run handed out by the controller."""

    state: RunState
    progress: float
    results: Tuple[ItemResult, ...] = ()
    error: Optional[str] = None
    total_items: int = 0
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.results if not item.is_error)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.results if item.is_error)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return round(self.finished_at - self.started_at, 2)
