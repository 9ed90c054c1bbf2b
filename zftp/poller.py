"""
Completion Poller
Waits for a submitted job to show up in the spool and fetches its log
"""

import logging
import threading
import time
from enum import Enum
from typing import BinaryIO, Callable, Optional

from .errors import (
    JobIdNotAssigned,
    JobVanishedFromSpool,
    LoginError,
    TransportError,
    WaitInterrupted,
    WaitTimedOut,
    ZFTPError,
)
from .models import JobContext, PollOutcome
from .retriever import LogRetriever

logger = logging.getLogger(__name__)

# Ask the LPAR once every 10 seconds
DEFAULT_POLL_INTERVAL = 10.0


class CancellationToken:
    """Cancellable wait shared between the poller and whoever may abort it"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """
        Sleep for timeout seconds unless cancelled first

        Returns:
            bool: True if the token was cancelled
        """
        return self._event.wait(timeout)


class PollState(Enum):
    """Poller states. DONE, TIMED_OUT and FAILED are terminal."""
    WAITING = "waiting"
    OBSERVED = "observed"
    DONE = "done"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class CompletionPoller:
    """Poll the spool until the job log is fetched or the deadline passes"""

    def __init__(self, retriever: Optional[LogRetriever] = None,
                 interval: float = DEFAULT_POLL_INTERVAL,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize poller

        Args:
            retriever: Fetches the log once the job is listed
            interval: Seconds between polls
            clock: Monotonic clock, same one used for the submission deadline
        """
        self.retriever = retriever or LogRetriever()
        self.interval = interval
        self.clock = clock

    def check_availability(self, ctx: JobContext, observed: bool = False) -> PollOutcome:
        """
        Look for the job ID in the spool listing

        Args:
            ctx: Job context
            observed: Whether the job was listed on an earlier poll

        Returns:
            PollOutcome: FOUND, NOT_FOUND, NOT_FOUND_AFTER_BEING_FOUND or TRANSIENT_IO_ERROR
        """
        try:
            names = ctx.session.list_names("*")
        except ZFTPError as e:
            logger.warning(f"Listing spool failed, will retry: {e}")
            if isinstance(e, TransportError):
                ctx.session.invalidate()
            return PollOutcome.TRANSIENT_IO_ERROR

        if ctx.job_id in (name.strip() for name in names):
            return PollOutcome.FOUND

        if observed:
            ctx.error(f"Job [{ctx.job_id}] cannot be found in JES")
            return PollOutcome.NOT_FOUND_AFTER_BEING_FOUND

        logger.debug(f"Job [{ctx.job_id}] not listed yet")
        return PollOutcome.NOT_FOUND

    def wait_for_completion(self, ctx: JobContext, sink: Optional[BinaryIO]) -> PollState:
        """
        Run the poll loop to a terminal state

        Args:
            ctx: Job context with an assigned job ID
            sink: Receives the job log

        Returns:
            PollState: DONE once the log and completion code are fetched

        Raises:
            WaitInterrupted: Token cancelled during a wait
            WaitTimedOut: Deadline passed
            LoginError: Session could not be re-established
            JobVanishedFromSpool: Job disappeared before its log was fetched
            TransportError: I/O failure while fetching the log
            CouldNotRetrieveRC: Log fetched but completion code missing
        """
        if not ctx.job_id:
            raise JobIdNotAssigned("Cannot poll without a job ID")

        token = ctx.token or CancellationToken()
        deadline = ctx.submission.deadline
        state = PollState.WAITING

        while True:
            if token.wait(self.interval):
                ctx.error("Interrupted.")
                raise WaitInterrupted(f"Wait for [{ctx.job_id}] interrupted")

            try:
                ctx.session.ensure_session()
            except ZFTPError as e:
                ctx.error(f"Could not log on while waiting for [{ctx.job_id}]: {e}")
                raise LoginError(str(e)) from e

            outcome = self.check_availability(ctx, observed=(state == PollState.OBSERVED))
            logger.debug(f"Poll [{ctx.job_id}]: {outcome.value}")

            if outcome == PollOutcome.FOUND:
                state = PollState.OBSERVED
                if self.retriever.fetch_job_log(ctx, sink):
                    return PollState.DONE
            elif outcome == PollOutcome.NOT_FOUND_AFTER_BEING_FOUND:
                raise JobVanishedFromSpool(f"Job [{ctx.job_id}] vanished from spool before its log was fetched")

            if deadline is not None and self.clock() > deadline:
                logger.debug(f"Poll [{ctx.job_id}]: {PollOutcome.DEADLINE_EXCEEDED.value}")
                ctx.error(f"Job [{ctx.job_id}] did not finish in time")
                raise WaitTimedOut(f"Deadline passed while waiting for [{ctx.job_id}]")
