from __future__ import annotations

import threading
import time
from queue import Empty, Full, Queue
from typing import Callable, Optional, Union

import numpy as np

from .config import POLL_INTERVAL_SECONDS, SESSION_LOG_REJECTIONS
from .detector import FaceDetector
from .enrollment import EnrollmentCapturer
from .exceptions import DetectorError, TimeClockError
from .logger import setup_logger
from .pipeline import IdentityVerifier
from .types import FrameOutcome, OutcomeStatus

FrameProcessor = Union[IdentityVerifier, EnrollmentCapturer]
FrameSource = Callable[[], np.ndarray]
OutcomeCallback = Callable[[FrameOutcome], None]


def _put_latest(queue_obj: Queue, item: FrameOutcome) -> None:
    while True:
        try:
            queue_obj.put_nowait(item)
            return
        except Full:
            try:
                queue_obj.get_nowait()
            except Empty:
                pass


class CaptureSession:
    """Polls the detector at a fixed interval and feeds one processor.

    Only one detection cycle is ever in flight. Results that come back after
    ``stop()`` or ``reset()`` are dropped instead of being applied to the
    processor. The session stops by itself on a terminal outcome.
    """

    def __init__(
        self,
        processor: FrameProcessor,
        detector: FaceDetector,
        frame_source: FrameSource,
        interval_seconds: float = POLL_INTERVAL_SECONDS,
        on_outcome: Optional[OutcomeCallback] = None,
    ):
        if interval_seconds <= 0.0:
            raise ValueError("interval_seconds must be positive.")
        self.processor = processor
        self.detector = detector
        self.frame_source = frame_source
        self.interval_seconds = interval_seconds
        self.on_outcome = on_outcome
        self.logger = setup_logger(self.__class__.__name__)

        self.worker: Optional[threading.Thread] = None
        self.stop_event = threading.Event()
        self.done_event = threading.Event()
        self.lock = threading.Lock()
        self.cycle_lock = threading.Lock()

        self.generation = 0
        self.frames_processed = 0
        self.frames_skipped = 0
        self.final_outcome: Optional[FrameOutcome] = None
        self.last_error: Optional[BaseException] = None
        self._outcomes: Queue = Queue(maxsize=1)

    def __enter__(self) -> "CaptureSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def is_running(self) -> bool:
        return self.worker is not None and self.worker.is_alive() and not self.stop_event.is_set()

    def start(self) -> None:
        if self.is_running:
            return

        with self.lock:
            self.generation += 1
            self.processor.reset()
            self.final_outcome = None
            self.last_error = None
        try:
            self._outcomes.get_nowait()
        except Empty:
            pass
        self.stop_event.clear()
        self.done_event.clear()
        self.worker = threading.Thread(target=self._loop, name="capture-session", daemon=True)
        self.worker.start()
        self.logger.info("Capture session started (interval=%.2fs)", self.interval_seconds)

    def stop(self, timeout: float = 3.0) -> None:
        self.stop_event.set()
        with self.lock:
            self.generation += 1

        worker = self.worker
        if worker is not None and worker.is_alive() and worker is not threading.current_thread():
            worker.join(timeout=timeout)
        self.worker = None
        self.done_event.set()
        self.logger.info(
            "Capture session stopped after %d frames (%d ticks skipped)",
            self.frames_processed,
            self.frames_skipped,
        )

    def reset(self) -> None:
        """Abort the current streak without ending the session."""
        with self.lock:
            self.generation += 1
            self.processor.reset()
            self.final_outcome = None
        try:
            self._outcomes.get_nowait()
        except Empty:
            pass

    def run_cycle(self) -> Optional[FrameOutcome]:
        """Run one detect-and-score cycle.

        Returns ``None`` when another cycle is still in flight or when the
        result was discarded because the session was stopped or reset.
        """
        if not self.cycle_lock.acquire(blocking=False):
            with self.lock:
                self.frames_skipped += 1
            return None

        try:
            with self.lock:
                generation = self.generation

            frame = self.frame_source()
            detection = self.detector.detect(frame)

            with self.lock:
                if self.stop_event.is_set() or generation != self.generation:
                    self.logger.debug("Discarding detection from a stopped or reset cycle")
                    return None
                outcome = self.processor.process(detection)
                self.frames_processed += 1
                if outcome.terminal:
                    self.final_outcome = outcome
        finally:
            self.cycle_lock.release()

        self._publish(outcome)
        return outcome

    def latest_outcome(self, timeout: Optional[float] = None) -> Optional[FrameOutcome]:
        try:
            if timeout is None:
                return self._outcomes.get_nowait()
            return self._outcomes.get(timeout=timeout)
        except Empty:
            return None

    def wait(self, timeout: Optional[float] = None) -> Optional[FrameOutcome]:
        """Block until the session ends and return its terminal outcome, if any."""
        self.done_event.wait(timeout)
        with self.lock:
            error = self.last_error
            outcome = self.final_outcome

        if error is not None:
            if isinstance(error, TimeClockError):
                raise error
            raise DetectorError(f"Capture session failed: {error}") from error
        return outcome

    def _publish(self, outcome: FrameOutcome) -> None:
        _put_latest(self._outcomes, outcome)
        if outcome.status is OutcomeStatus.REJECTED and SESSION_LOG_REJECTIONS:
            self.logger.info("Frame rejected: %s", outcome.message)
        if self.on_outcome is not None:
            self.on_outcome(outcome)

    def _loop(self) -> None:
        next_tick = time.monotonic()
        try:
            while not self.stop_event.is_set():
                outcome = self.run_cycle()
                if outcome is not None and outcome.terminal:
                    self.logger.info("Capture session finished: %s", outcome.message)
                    break

                next_tick += self.interval_seconds
                delay = next_tick - time.monotonic()
                if delay < 0.0:
                    # A slow cycle delays the schedule; missed ticks are not replayed.
                    next_tick = time.monotonic()
                    delay = 0.0
                self.stop_event.wait(delay)
        except Exception as exc:
            self.logger.exception("Capture session failed")
            with self.lock:
                self.last_error = exc
        finally:
            self.stop_event.set()
            self.done_event.set()
