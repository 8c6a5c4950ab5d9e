from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .client import InferenceClient
from .constants import MAX_RETRIES, RETRY_BASE_DELAY
from .encoder import MediaEncoder
from .errors import MediaReaderError
from .models import ItemResult, MediaReference, RunConfig

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Runs one media item through encode + request with bounded linear-backoff retries.

    ``execute`` never raises: every failure ends up as an error ``ItemResult``.
    """

    def __init__(
        self,
        client: InferenceClient,
        encoder: Optional[MediaEncoder] = None,
        *,
        max_retries: int = MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = client
        self._encoder = encoder or MediaEncoder()
        self._max_retries = max(0, max_retries)
        self._retry_base_delay = retry_base_delay
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self._max_retries + 1

    def execute(self, item: MediaReference, prompt: str, config: RunConfig) -> ItemResult:
        label = _label_for(item)
        last_error = "Request failed."
        for attempt in range(1, self.max_attempts + 1):
            try:
                payload = self._encoder.encode(item)
                text = self._client.complete(prompt, payload, config)
            except MediaReaderError as exc:
                last_error = str(exc)
                logger.warning("%s: attempt %d/%d failed: %s", label, attempt, self.max_attempts, exc)
            except Exception as exc:  # pragma: no cover - defensive
                last_error = str(exc) or exc.__class__.__name__
                logger.exception("%s: unexpected error on attempt %d/%d", label, attempt, self.max_attempts)
            else:
                if attempt > 1:
                    logger.info("%s: succeeded on attempt %d.", label, attempt)
                return ItemResult.success(label, text)
            if attempt < self.max_attempts:
                self._sleep(self._retry_delay(attempt))
        return ItemResult.failure(label, last_error)

    def _retry_delay(self, attempt: int) -> float:
        return self._retry_base_delay * attempt


def _label_for(item: object) -> str:
    label = getattr(item, "label", None)
    return label if isinstance(label, str) else repr(item)
