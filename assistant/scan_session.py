"""
Scan Session
============

Runs inference off the owning thread and delivers results back to it.

- select_image() starts a new generation and submits build_report() to a
  single background worker. There is no cancellation.
- Workers only post (generation, report | error) to a queue.
- process_pending(), called on the owning thread, records every completed
  report in history, but only the newest generation updates
  current_report / error / is_analyzing. Older results are dropped from
  display (last write wins).
"""

import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

from assistant.pipeline import XRayPipeline
from common.errors import ClassificationError
from diagnosis.knowledge_base import Report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    generation: int
    report: Optional[Report] = None
    error: Optional[ClassificationError] = None


class ScanSession:
    """
    Presentation-side state for one scan screen.

    Attributes read by the UI (owning thread only):
        current_report: Report of the latest selection, once available
        error: Message of the latest selection's failure
        is_analyzing: True while the latest selection is in flight
    """

    def __init__(self, pipeline: XRayPipeline, executor: Optional[ThreadPoolExecutor] = None):
        self.pipeline = pipeline
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix='xray-inference')
        self._results: 'queue.Queue[ScanResult]' = queue.Queue()
        self._generation = 0

        self.selected_image = None
        self.current_report: Optional[Report] = None
        self.error: Optional[str] = None
        self.is_analyzing = False

    @property
    def generation(self) -> int:
        return self._generation

    def select_image(self, image) -> Future:
        """
        Start analysing a newly selected image.

        Any analysis still running keeps going; its result will be recorded
        in history but not displayed.
        """
        self._generation += 1
        generation = self._generation

        self.selected_image = image
        self.current_report = None
        self.error = None
        self.is_analyzing = True

        logger.info(f"Starting classification (generation {generation})")
        return self._executor.submit(self._run, generation, image)

    def _run(self, generation: int, image) -> None:
        # Worker thread: no session or history mutation here
        try:
            report = self.pipeline.build_report(image)
        except ClassificationError as e:
            self._results.put(ScanResult(generation, error=e))
        else:
            self._results.put(ScanResult(generation, report=report))

    def process_pending(self) -> List[ScanResult]:
        """
        Apply every result that has arrived. Call from the owning thread.

        Returns:
            The results applied, oldest first
        """
        applied = []
        while True:
            try:
                result = self._results.get_nowait()
            except queue.Empty:
                break
            self._apply(result)
            applied.append(result)
        return applied

    def wait_for_result(self, future: Future, timeout: Optional[float] = None) -> Optional[Report]:
        """
        Block until a submitted analysis finishes, then apply pending results.

        Unexpected worker exceptions are re-raised here.
        """
        future.result(timeout=timeout)
        self.process_pending()
        return self.current_report

    def _apply(self, result: ScanResult) -> None:
        if result.report is not None:
            self.pipeline.record(result.report)

        if result.generation != self._generation:
            logger.info(f"Discarding stale result from generation {result.generation}")
            return

        self.is_analyzing = False
        if result.error is not None:
            self.error = str(result.error)
        else:
            self.current_report = result.report

    def close(self, wait: bool = True) -> None:
        """Shut down the worker, unless it was passed in and is shared."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
