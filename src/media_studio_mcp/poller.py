import logging
import threading
import time
from typing import Any, Callable, Optional

from .errors import GenerationAPIError, PollingCancelledError, PollingTimeoutError
from .models import GenerationJob, JobState

logger = logging.getLogger(__name__)

WaitFunc = Callable[[float, Optional[threading.Event]], bool]


def wait_or_cancel(delay: float, cancel: Optional[threading.Event] = None) -> bool:
    """Blocks for ``delay`` seconds; returns True if ``cancel`` was set meanwhile."""
    if cancel is None:
        time.sleep(delay)
        return False
    return cancel.wait(delay)


class OperationPoller:
    """
    Drives a long-running provider operation to a terminal state.

    The first status check happens immediately. Between checks the poller
    waits ``interval_seconds``; the last wait is clipped so the waits add up
    to exactly ``max_wait_seconds``, after which one final check is made
    before the job is declared timed out.
    """

    def __init__(
        self,
        refresh: Callable[[Any], Any],
        interval_seconds: float = 10.0,
        max_wait_seconds: float = 600.0,
        wait: WaitFunc = wait_or_cancel,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if max_wait_seconds < 0:
            raise ValueError("max_wait_seconds must not be negative")
        self._refresh = refresh
        self.interval_seconds = interval_seconds
        self.max_wait_seconds = max_wait_seconds
        self._wait_for = wait

    def run(self, job: GenerationJob, cancel: Optional[threading.Event] = None) -> Any:
        """
        Polls until the job succeeds, fails, times out or is cancelled.

        Returns the completed operation. Failure, timeout and cancellation
        are raised as typed errors after the job reaches its terminal state.
        """
        job.transition(JobState.POLLING)
        waited = 0.0

        while True:
            self._check(job)
            if getattr(job.operation, "done", False):
                return self._finish(job)

            if waited >= self.max_wait_seconds:
                job.transition(JobState.TIMED_OUT)
                logger.error("Operation timed out after %ss", waited)
                raise PollingTimeoutError(
                    f"Video generation timed out after {waited:g} seconds",
                    waited_seconds=waited,
                )

            delay = min(self.interval_seconds, self.max_wait_seconds - waited)
            logger.debug("Operation still running; waiting %ss", delay)
            self._wait(job, delay, cancel)
            waited += delay

    def _check(self, job: GenerationJob) -> None:
        try:
            job.operation = self._refresh(job.operation)
        except Exception as e:
            job.transition(JobState.FAILED)
            logger.error("Operation status check failed: %s", e)
            raise GenerationAPIError(
                f"Failed to check video generation status: {e}",
                kind=GenerationAPIError.OPERATION_FAILED,
                detail=str(e),
            ) from e

    def _wait(self, job: GenerationJob, delay: float, cancel: Optional[threading.Event]) -> None:
        if self._wait_for(delay, cancel):
            job.transition(JobState.CANCELLED)
            logger.info("Operation polling cancelled")
            raise PollingCancelledError("Video generation was cancelled")

    def _finish(self, job: GenerationJob) -> Any:
        operation = job.operation
        error = getattr(operation, "error", None)
        if error:
            job.transition(JobState.FAILED)
            logger.error("Operation failed: %s", error)
            raise GenerationAPIError(
                f"Video generation failed: {error}",
                kind=GenerationAPIError.OPERATION_FAILED,
                detail=error,
            )
        job.transition(JobState.SUCCEEDED)
        return operation
