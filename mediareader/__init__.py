"""Batch submission of images and videos to a multimodal chat-completions API."""

from .client import InferenceClient
from .controller import RunController
from .encoder import MediaEncoder
from .errors import ConfigError, InferenceError, MediaEncodingError, MediaReaderError
from .executor import RequestExecutor
from .models import (
    FileRef,
    ItemResult,
    MediaKind,
    MediaPayload,
    RunConfig,
    RunSnapshot,
    RunState,
    UrlRef,
)
from .scheduler import BatchScheduler, RunSignals, partition

__all__ = [
    "BatchScheduler",
    "ConfigError",
    "FileRef",
    "InferenceClient",
    "InferenceError",
    "ItemResult",
    "MediaEncoder",
    "MediaEncodingError",
    "MediaKind",
    "MediaPayload",
    "MediaReaderError",
    "RequestExecutor",
    "RunConfig",
    "RunController",
    "RunSignals",
    "RunSnapshot",
    "RunState",
    "UrlRef",
    "partition",
]
