"""Batch scheduler: fixed-size concurrent batches separated by a rate-limit delay."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from .constants import API_BATCH_SIZE, API_RATE_LIMIT, inter_batch_delay
from .executor import RequestExecutor
from .models import ItemResult, MediaReference, RunConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

BatchCallback = Callable[[int, List[ItemResult]], None]


def partition(items: Sequence[T], size: int = API_BATCH_SIZE) -> List[List[T]]:
    """Split ``items`` into contiguous, order-preserving slices of at most ``size``."""
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}.")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


class RunSignals:
    """Pause gate and abort flag shared between a controller and its scheduler."""

    def __init__(self) -> None:
        self._resume_gate = threading.Event()
        self._resume_gate.set()
        self._abort = threading.Event()

    @property
    def paused(self) -> bool:
        return not self._resume_gate.is_set()

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    def pause(self) -> None:
        if not self._abort.is_set():
            self._resume_gate.clear()

    def resume(self) -> None:
        self._resume_gate.set()

    def abort(self) -> None:
        self._abort.set()
        # Wake a scheduler parked on the gate so it can observe the abort.
        self._resume_gate.set()

    def wait_until_runnable(self, timeout: Optional[float] = None) -> bool:
        """Block while paused. Returns False once the run has been aborted."""
        if self._abort.is_set():
            return False
        if not self._resume_gate.wait(timeout):
            return False
        return not self._abort.is_set()

    def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``; returns True if the wait was cut short by an abort."""
        return self._abort.wait(seconds)


class BatchScheduler:
    def __init__(
        self,
        executor: RequestExecutor,
        *,
        batch_size: int = API_BATCH_SIZE,
        rate_limit: int = API_RATE_LIMIT,
        batch_delay: Optional[float] = None,
    ):
        if batch_size <= 0:
            raise ValueError("Batch size must be positive.")
        self._executor = executor
        self.batch_size = batch_size
        self.batch_delay = inter_batch_delay(rate_limit) if batch_delay is None else max(0.0, batch_delay)

    def run(
        self,
        items: Sequence[MediaReference],
        prompt: str,
        config: RunConfig,
        signals: RunSignals,
        on_batch: BatchCallback,
    ) -> int:
        batches = partition(items, self.batch_size)
        total_batches = len(batches)
        produced = 0
        if not total_batches:
            logger.info("Nothing to submit.")
            return produced
        logger.info("Submitting %d item(s) in %d batch(es).", len(items), total_batches)
        with ThreadPoolExecutor(max_workers=self.batch_size, thread_name_prefix="media-request") as pool:
            for index, batch in enumerate(batches):
                if not signals.wait_until_runnable():
                    logger.info("Run stopped; %d batch(es) not started.", total_batches - index)
                    break
                logger.info("Batch %d/%d: %d item(s).", index + 1, total_batches, len(batch))
                futures = [pool.submit(self._executor.execute, item, prompt, config) for item in batch]
                # Collected in submission order, not completion order.
                results = [future.result() for future in futures]
                produced += len(results)
                on_batch(index, results)
                if index < total_batches - 1 and self.batch_delay > 0:
                    logger.debug("Waiting %.1fs before the next batch.", self.batch_delay)
                    signals.sleep(self.batch_delay)
        return produced
