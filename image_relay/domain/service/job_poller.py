"""Job Poller Domain Service - Domain Layer"""

import asyncio
import logging
from typing import Awaitable, Callable

from ..entity.job import GenerationJob, JobUpdate
from ..errors import PollRequestError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.5
DEFAULT_MAX_ATTEMPTS = 60

StatusFetcher = Callable[[GenerationJob], Awaitable[JobUpdate]]


class JobPoller:
    """Drives an asynchronous job to a terminal state.

    One tick is: sleep the fixed interval, fetch the status, apply it. A
    failed fetch (PollRequestError) still consumes the attempt. When the
    attempts run out while the job is not terminal, the job is marked
    timed_out. Cancelling the awaiting task interrupts the sleep and no
    further fetch is made.
    """

    def __init__(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if interval < 0:
            raise ValueError("Poll interval cannot be negative")
        if max_attempts <= 0:
            raise ValueError("Max attempts must be positive")
        self._interval = interval
        self._max_attempts = max_attempts

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def wait(self, job: GenerationJob, fetch: StatusFetcher) -> GenerationJob:
        """Poll until the job is terminal.

        Args:
            job: Job as reported by the submission call
            fetch: Coroutine returning the current JobUpdate for the job

        Returns:
            The same job, now in a terminal state
        """
        last_error = None

        while not job.is_terminal:
            if job.attempts >= self._max_attempts:
                detail = f"Job {job.id} still {job.status.value} after {job.attempts} polls"
                if last_error:
                    detail = f"{detail} (last poll error: {last_error})"
                logger.warning(detail)
                job.time_out(detail)
                break

            await asyncio.sleep(self._interval)
            job.attempts += 1

            try:
                update = await fetch(job)
            except PollRequestError as e:
                last_error = str(e)
                logger.warning(
                    f"Poll {job.attempts}/{self._max_attempts} for job {job.id} failed: {e}"
                )
                continue

            job.apply(update)
            logger.debug(f"Poll {job.attempts}/{self._max_attempts}: job {job.id} is {job.status.value}")

        return job
