"""
Data model for a single job submission lifecycle
"""

import io
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Callable, Optional, Union

from .listener import JobListener, NullListener

# Reported when the gateway runs with JESINTERFACELEVEL=1
NO_RC_SENTINEL = "NO_RC - JESINTERFACELEVEL_IS_1"


@dataclass(frozen=True)
class Credentials:
    """FTP user and password"""
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class SessionSettings:
    """Everything needed to open a session to one LPAR"""
    host: str
    port: int = 21
    credentials: Optional[Credentials] = None
    jes_interface_level1: bool = False
    timeout: float = 30.0


class CompletionKind(Enum):
    """Variants a completed job can report"""
    NUMERIC = "numeric"
    ABEND = "abend"
    JCL_ERROR = "jcl_error"
    NON_NUMERIC = "non_numeric"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True)
class CompletionCode:
    """Tagged completion code of a finished job"""
    kind: CompletionKind
    value: str = ""

    @classmethod
    def numeric(cls, code: str) -> "CompletionCode":
        return cls(CompletionKind.NUMERIC, code)

    @classmethod
    def abend(cls, code: str) -> "CompletionCode":
        return cls(CompletionKind.ABEND, code)

    @classmethod
    def jcl_error(cls) -> "CompletionCode":
        return cls(CompletionKind.JCL_ERROR)

    @classmethod
    def non_numeric(cls, code: str) -> "CompletionCode":
        return cls(CompletionKind.NON_NUMERIC, code.upper())

    @classmethod
    def undetermined(cls) -> "CompletionCode":
        return cls(CompletionKind.UNDETERMINED)

    def __str__(self) -> str:
        if self.kind == CompletionKind.NUMERIC:
            return self.value
        if self.kind == CompletionKind.ABEND:
            return f"ABEND_{self.value}"
        if self.kind == CompletionKind.JCL_ERROR:
            return "JCL_ERROR"
        if self.kind == CompletionKind.NON_NUMERIC:
            return self.value
        return NO_RC_SENTINEL


class PollOutcome(Enum):
    """Result of one look at the spool listing"""
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_FOUND_AFTER_BEING_FOUND = "not_found_after_being_found"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    TRANSIENT_IO_ERROR = "transient_io_error"


@dataclass(frozen=True)
class JobSubmission:
    """
    Immutable description of what to submit

    Attributes:
        job_text: JCL as bytes
        wait: Wait for completion and fetch the log
        deadline: Monotonic deadline, None waits forever
        delete_log: Delete the spool entry after a successful fetch
    """
    job_text: bytes
    wait: bool = True
    deadline: Optional[float] = None
    delete_log: bool = False

    @classmethod
    def create(cls, job_text: Union[str, bytes], wait: bool = True, wait_time: int = 0,
               delete_log: bool = False, clock: Callable[[], float] = time.monotonic,
               encoding: str = "utf-8") -> "JobSubmission":
        """
        Build a submission, converting wait time to an absolute deadline

        Args:
            job_text: JCL text
            wait: Wait for the job to finish
            wait_time: Minutes to wait, 0 waits forever
            delete_log: Delete the job log from spool afterwards
            clock: Monotonic clock used for the deadline
            encoding: Encoding for str job text

        Returns:
            JobSubmission: The submission
        """
        if isinstance(job_text, str):
            job_text = job_text.encode(encoding)
        if wait_time < 0:
            raise ValueError("wait_time must not be negative")

        deadline = None
        if wait_time:
            deadline = clock() + wait_time * 60

        return cls(job_text=job_text, wait=wait, deadline=deadline, delete_log=delete_log)

    @property
    def unbounded(self) -> bool:
        return self.deadline is None

    def open(self) -> BinaryIO:
        return io.BytesIO(self.job_text)


@dataclass
class JobHandle:
    """Identity and outcome of the submitted job"""
    job_id: str = ""
    job_name: str = ""
    completion_code: Optional[CompletionCode] = None

    def assign_id(self, job_id: str):
        if self.job_id:
            raise RuntimeError(f"Job ID already assigned: {self.job_id}")
        self.job_id = job_id


@dataclass(frozen=True)
class SubmissionResult:
    """What the connector hands back to the pipeline"""
    success: bool
    job_id: str = ""
    job_name: str = ""
    completion_code: str = ""


@dataclass
class JobContext:
    """Per-submission state passed through every operation"""
    submission: JobSubmission
    session: Any
    handle: JobHandle = field(default_factory=JobHandle)
    listener: JobListener = field(default_factory=NullListener)
    token: Any = None

    @property
    def job_id(self) -> str:
        return self.handle.job_id

    def info(self, text: str):
        self.listener.info(text)

    def error(self, text: str):
        self.listener.error(text)

    def result(self, success: bool, completion_code: Optional[str] = None) -> SubmissionResult:
        if completion_code is None:
            completion_code = str(self.handle.completion_code) if self.handle.completion_code else ""
        return SubmissionResult(
            success=success,
            job_id=self.handle.job_id,
            job_name=self.handle.job_name,
            completion_code=completion_code,
        )
