from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from .models import ItemResult, MediaReference, RunConfig, RunSnapshot, RunState
from .scheduler import BatchScheduler, RunSignals

LogCallback = Callable[[str, str], None]
ProgressCallback = Callable[[float], None]
ResultsCallback = Callable[[List[ItemResult]], None]

logger = logging.getLogger(__name__)


class RunController:
    """Owns the lifecycle, progress and ordered results of a single run.

    The scheduler is the only writer of results and progress, and it writes them
    through ``_record_batch``. Callers get copies via the read accessors.
    """

    def __init__(
        self,
        scheduler: BatchScheduler,
        *,
        log_callback: Optional[LogCallback] = None,
        progress_callback: Optional[ProgressCallback] = None,
        results_callback: Optional[ResultsCallback] = None,
        log_dir: Optional[Path] = None,
    ):
        self._scheduler = scheduler
        self._log_callback = log_callback
        self._progress_callback = progress_callback
        self._results_callback = results_callback
        self._lock = threading.Lock()
        self._signals = RunSignals()
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state = RunState.IDLE
        self._progress = 0.0
        self._results: List[ItemResult] = []
        self._error: Optional[str] = None
        self._total = 0
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None
        self._log_path: Optional[Path] = None
        if log_dir is not None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self._log_path = Path(log_dir) / f"run_{timestamp}.log"

    # Read accessors ------------------------------------------------------
    @property
    def state(self) -> RunState:
        with self._lock:
            return self._state

    @property
    def progress(self) -> float:
        with self._lock:
            return self._progress

    @property
    def results(self) -> Tuple[ItemResult, ...]:
        with self._lock:
            return tuple(self._results)

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    @property
    def log_path(self) -> Optional[Path]:
        return self._log_path

    def snapshot(self) -> RunSnapshot:
        with self._lock:
            return RunSnapshot(
                state=self._state,
                progress=self._progress,
                results=tuple(self._results),
                error=self._error,
                total_items=self._total,
                started_at=self._started_at,
                finished_at=self._finished_at,
            )

    # Commands -------------------------------------------------------------
    def start(self, items: Iterable[MediaReference], config: RunConfig, prompt: Optional[str] = None) -> bool:
        """Launch the run on a background thread. Ignored unless the controller is idle."""
        with self._lock:
            if self._state is not RunState.IDLE:
                logger.warning("start() ignored: run is %s.", self._state.value)
                return False
            self._state = RunState.RUNNING
            self._started_at = time.time()
            prompt_text = config.prompt_text if prompt is None else prompt
            self._thread = threading.Thread(
                target=self._run,
                args=(items, prompt_text, config),
                name="media-reader-run",
                daemon=True,
            )
            self._thread.start()
        return True

    def pause(self) -> bool:
        with self._lock:
            if self._state is not RunState.RUNNING:
                return False
            self._state = RunState.PAUSED
            self._signals.pause()
        self._log("info", "Run paused; the current batch will finish first.")
        return True

    def resume(self) -> bool:
        with self._lock:
            if self._state is not RunState.PAUSED:
                return False
            self._state = RunState.RUNNING
            self._signals.resume()
        self._log("info", "Run resumed.")
        return True

    def stop(self) -> bool:
        with self._lock:
            if self._state is RunState.ABORTING:
                return True
            if self._state not in (RunState.RUNNING, RunState.PAUSED):
                return False
            self._state = RunState.ABORTING
            self._signals.abort()
        self._log("warning", "Stop requested; no further batches will start.")
        return True

    def report_error(self, message: str) -> bool:
        """Escalate a run-level failure reported from outside the scheduler."""
        with self._lock:
            if not self._state.is_active:
                return False
            self._state = RunState.FAILED
            self._error = message
            self._signals.abort()
        self._log("error", message)
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the run reaches a terminal state. Returns False on timeout."""
        return self._done.wait(timeout)

    # Run thread -----------------------------------------------------------
    def _run(self, items: Iterable[MediaReference], prompt: str, config: RunConfig) -> None:
        try:
            config.validate()
            media = list(items)
            with self._lock:
                self._total = len(media)
            self._log("info", f"Starting run: {len(media)} item(s) with model {config.model}.")
            self._scheduler.run(media, prompt, config, self._signals, self._record_batch)
        except Exception as exc:
            logger.debug("Run failed.", exc_info=True)
            self._fail(str(exc) or exc.__class__.__name__)
        else:
            self._complete()
        finally:
            self._done.set()

    def _record_batch(self, index: int, batch_results: List[ItemResult]) -> None:
        with self._lock:
            self._results.extend(batch_results)
            completed = len(self._results)
            if self._total:
                self._progress = max(self._progress, min(100.0, completed / self._total * 100.0))
            progress = self._progress
            total = self._total
        failures = sum(1 for item in batch_results if item.is_error)
        level = "warning" if failures else "info"
        self._log(
            level,
            f"Batch {index + 1} done: {len(batch_results) - failures} ok, {failures} failed "
            f"({completed}/{total}, {progress:.0f}%).",
        )
        if self._results_callback:
            self._results_callback(list(batch_results))
        if self._progress_callback:
            self._progress_callback(progress)

    def _complete(self) -> None:
        with self._lock:
            if self._state is RunState.FAILED:
                self._finished_at = time.time()
                return
            aborted = self._state is RunState.ABORTING
            if not aborted:
                self._progress = 100.0
            self._state = RunState.COMPLETED
            self._finished_at = time.time()
            collected = len(self._results)
            total = self._total
            progress = self._progress
        if aborted:
            self._log("warning", f"Run stopped with {collected}/{total} result(s).")
        else:
            self._log("success", f"Run completed: {collected} result(s).")
        if self._progress_callback and not aborted:
            self._progress_callback(progress)

    def _fail(self, message: str) -> None:
        with self._lock:
            self._state = RunState.FAILED
            self._finished_at = time.time()
            if self._error is None:
                self._error = message
        self._log("error", f"Run failed: {message}")

    def _log(self, level: str, message: str) -> None:
        self._append_log_line(level, message)
        if self._log_callback:
            try:
                self._log_callback(level, message)
            except Exception:  # pragma: no cover
                logger.exception("Failed to emit log callback.")
        else:
            log_level = "info" if level == "success" else level
            getattr(logger, log_level, logger.info)(message)

    def _append_log_line(self, level: str, message: str) -> None:
        if self._log_path is None:
            return
        timestamp = datetime.now().isoformat(timespec="seconds")
        line = f"{timestamp} [{level.upper()}] {message}\n"
        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._log_path.open("a", encoding="utf-8") as handle:
                handle.write(line)
        except OSError:
            logger.exception("Failed to write run log.")
