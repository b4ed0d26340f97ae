# SPDX-License-Identifier: AGPL-3.0-or-later
"""Client side of the server-run legacy relationship conversion.

The job runs on the backend; the client triggers it and polls its status.
Status goes ``running`` then ``completed`` or ``failed`` and a failure is
reported as data on the status payload, not as an HTTP error.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

JobState = Literal["running", "completed", "failed"]
TERMINAL_STATES = frozenset({"completed", "failed"})


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CategoryProgress(_Wire):
    converted: int = 0
    errors: int = 0


class JobProgress(_Wire):
    items: CategoryProgress = Field(default_factory=CategoryProgress)
    purchases: CategoryProgress = Field(default_factory=CategoryProgress)
    sales: CategoryProgress = Field(default_factory=CategoryProgress)
    assets: CategoryProgress = Field(default_factory=CategoryProgress)
    total_converted: int = 0
    total_errors: int = 0
    current_phase: str = ""
    percent_complete: float = 0.0


class ConversionJobStatus(_Wire):
    status: JobState
    start_time: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    end_time: Optional[datetime] = None
    progress: JobProgress = Field(default_factory=JobProgress)
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def severity(self) -> str:
        if self.status == "failed":
            return "error"
        if self.status == "running":
            return "info"
        return "warning" if self.progress.total_errors > 0 else "success"

    def summary(self) -> str:
        if self.status == "failed":
            return f"Conversion failed: {self.error or 'Unknown error'}"
        if self.status == "running":
            return (
                f"Current phase: {self.progress.current_phase or 'starting'} "
                f"({round(self.progress.percent_complete)}%)"
            )
        message = f"{self.progress.total_converted} relationships successfully converted"
        if self.progress.total_errors > 0:
            message += f" with {self.progress.total_errors} errors"
        return message


class ConversionJobTicket(_Wire):
    job_id: str
    success: bool = True
    message: str = ""


class ConversionResult(_Wire):
    success: bool = False
    message: str = ""
    result: Any = None


class JobPollTimeout(TimeoutError):
    def __init__(self, job_id: str, waited: float, last: Optional[ConversionJobStatus] = None) -> None:
        super().__init__(f"conversion job {job_id} still running after {waited:.0f}s")
        self.job_id = job_id
        self.waited = waited
        self.last = last


class ConversionJobPoller:
    """Poll a conversion job on a fixed interval until it settles.

    Polling stops on the first terminal status and on the first polling
    error (which propagates). ``sleep`` and ``clock`` are injectable so the
    loop can be driven without real time passing.
    """

    def __init__(
        self,
        store,
        *,
        interval: float = 2.0,
        timeout: float = 600.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        self.store = store
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, store, settings, **kwargs: Any) -> "ConversionJobPoller":
        return cls(
            store,
            interval=settings.poll_interval_seconds,
            timeout=settings.poll_timeout_seconds,
            **kwargs,
        )

    def wait(
        self,
        job_id: str,
        on_update: Optional[Callable[[ConversionJobStatus], None]] = None,
    ) -> ConversionJobStatus:
        started = self._clock()
        polls = 0
        while True:
            status = self.store.get_conversion_job_status(job_id)
            polls += 1
            if on_update is not None:
                on_update(status)
            if status.is_terminal:
                logger.info("conversion job %s %s after %d polls", job_id, status.status, polls)
                return status
            waited = self._clock() - started
            if waited + self.interval > self.timeout:
                logger.warning("conversion job %s still running after %.0fs, giving up", job_id, waited)
                raise JobPollTimeout(job_id, waited, status)
            self._sleep(self.interval)

    def start_and_wait(
        self,
        on_update: Optional[Callable[[ConversionJobStatus], None]] = None,
    ) -> ConversionJobStatus:
        ticket = self.store.convert_all()
        logger.info("conversion job %s started", ticket.job_id)
        return self.wait(ticket.job_id, on_update=on_update)


__all__ = [
    "CategoryProgress",
    "ConversionJobPoller",
    "ConversionJobStatus",
    "ConversionJobTicket",
    "ConversionResult",
    "JobPollTimeout",
    "JobProgress",
    "TERMINAL_STATES",
]
