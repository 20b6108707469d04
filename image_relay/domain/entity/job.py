"""Generation Job Entity - Domain Layer"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import JobFailedError, JobStateError, PollTimedOutError


class JobStatus(str, Enum):
    """Lifecycle states of an asynchronous provider job."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({
    JobStatus.SUCCEEDED,
    JobStatus.FAILED,
    JobStatus.CANCELED,
    JobStatus.TIMED_OUT,
})


class StatusVocabulary:
    """Maps one provider's status strings onto JobStatus.

    Strings the provider invents later fall back to RUNNING so the poller
    keeps waiting instead of failing on an unknown word.
    """

    def __init__(self, mapping: Dict[str, JobStatus], default: JobStatus = JobStatus.RUNNING):
        self._mapping = {key.lower(): value for key, value in mapping.items()}
        self._default = default

    def translate(self, raw_status: Optional[str]) -> JobStatus:
        if not raw_status:
            return self._default
        return self._mapping.get(str(raw_status).lower(), self._default)


@dataclass
class JobUpdate:
    """One status observation fetched from the provider."""

    status: JobStatus
    result: Any = None
    error_detail: Optional[str] = None


@dataclass
class GenerationJob:
    """An in-flight provider job, alive for one request at most."""

    id: str
    status: JobStatus = JobStatus.PENDING
    status_url: Optional[str] = None
    result: Any = None
    error_detail: Optional[str] = None
    attempts: int = 0
    provider: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def apply(self, update: JobUpdate) -> None:
        """Move the job to the observed state.

        Raises:
            JobStateError: the job already reached a terminal state
        """
        if self.is_terminal:
            raise JobStateError(
                f"Job {self.id} is already {self.status.value}; cannot move to {update.status.value}"
            )

        self.status = update.status
        if update.status is JobStatus.SUCCEEDED:
            self.result = update.result
        elif update.status.is_terminal:
            self.error_detail = update.error_detail

    def time_out(self, detail: Optional[str] = None) -> None:
        self.apply(JobUpdate(status=JobStatus.TIMED_OUT, error_detail=detail))

    def raise_for_status(self) -> None:
        """Raise the matching error unless the job succeeded."""
        if self.status is JobStatus.SUCCEEDED:
            return
        if self.status is JobStatus.TIMED_OUT:
            raise PollTimedOutError(
                self.error_detail or f"Job {self.id} did not finish after {self.attempts} polls",
                provider=self.provider,
            )
        if self.status in (JobStatus.FAILED, JobStatus.CANCELED):
            detail = self.error_detail or "Generation failed"
            if self.status is JobStatus.CANCELED:
                detail = self.error_detail or "Generation was canceled by the provider"
            raise JobFailedError(detail, provider=self.provider)
        raise JobStateError(f"Job {self.id} is still {self.status.value}")
