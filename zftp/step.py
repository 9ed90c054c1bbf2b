"""
Job build step
Turns a connector result into a pipeline pass/fail decision
"""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from .connector import ZFTPConnector
from .errors import Abend, CompletionCodeExceeded, JCLError, JobFailure, JobStepFailed
from .listener import JobListener, NullListener
from .models import SubmissionResult
from .poller import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_MAX_CC = "0000"


def normalize_max_cc(value: Optional[str]) -> str:
    """
    Normalize the accepted maximum completion code

    Empty means 0000. Shorter values are left padded with zeros to 4 digits.
    """
    if value is None:
        return DEFAULT_MAX_CC
    value = value.strip()
    if not value:
        return DEFAULT_MAX_CC
    if not re.fullmatch(r"\d{1,4}", value):
        raise ValueError(f"MaxCC must be up to 4 decimal digits, got {value!r}")
    return value.zfill(4)


def printable_cc(completion_code: Optional[str]) -> str:
    """Completion code with all whitespace removed"""
    if completion_code is None:
        return ""
    return re.sub(r"\s+", "", completion_code)


def check_completion(completion_code: str, max_cc: str):
    """
    Raise if a completion code is not acceptable

    Numeric codes are compared as strings after padding both sides to the
    same width. String order matches numeric order only at equal width.

    Raises:
        JCLError: Job had a JCL error
        Abend: Job abended
        JobFailure: Status is not numeric
        CompletionCodeExceeded: RC above max_cc
    """
    if completion_code == "JCL_ERROR":
        raise JCLError()
    if completion_code.startswith("ABEND"):
        raise Abend(completion_code[len("ABEND_"):])
    if not completion_code.isdigit():
        raise JobFailure(completion_code)

    width = max(len(completion_code), len(max_cc))
    if completion_code.zfill(width) > max_cc.zfill(width):
        raise CompletionCodeExceeded(completion_code, max_cc)


def is_accepted(result: SubmissionResult, max_cc: str = DEFAULT_MAX_CC,
                jes_interface_level1: bool = False) -> bool:
    """
    Decide whether the job passed

    Args:
        result: Connector result
        max_cc: Highest accepted numeric completion code
        jes_interface_level1: RC is not available, accept any fetched job

    Returns:
        bool: True if the job is accepted
    """
    if not result.success:
        return False
    if jes_interface_level1:
        return True

    try:
        check_completion(printable_cc(result.completion_code), max_cc)
    except JobFailure as e:
        logger.debug(f"Job [{result.job_id}] rejected: {e}")
        return False
    return True


def build_report(result: SubmissionResult) -> str:
    """One line summary of how the job ended"""
    cc = printable_cc(result.completion_code)
    if cc.isdigit():
        return f"Job [{result.job_id}] processing finished. Captured RC = [{cc}]"
    if cc.startswith("ABEND"):
        return f"Job [{result.job_id}] processing ABnormally ENDed. ABEND code = [{cc}]"
    return f"Job [{result.job_id}] processing failed. Reason: [{cc}]"


def log_file_name(job_name: str, completion_code: str, host: str, job_id: str,
                  suffix: str = "") -> str:
    """File name for a saved job log"""
    name = f"{job_name} [{printable_cc(completion_code)}] ({host} - {job_id})"
    if suffix:
        name += f" {suffix}"
    return f"{name}.log"


@dataclass
class StepOutcome:
    """Everything the step learned about the job"""
    result: SubmissionResult
    accepted: bool
    printable_cc: str
    report: str
    log: bytes = b""

    def check(self):
        """Raise JobStepFailed unless the job was accepted"""
        if not self.accepted:
            raise JobStepFailed(self.printable_cc)


@dataclass
class JobStep:
    """
    Submit a job and judge it

    Attributes:
        host: LPAR name or IP address
        port: FTP port
        username: User ID
        password: User password
        job: JCL of the job
        wait: Wait for the job to complete
        wait_time: Minutes to wait, 0 waits forever
        delete_job_from_spool: Delete the job log after fetching it
        job_log_to_console: Echo the log through the listener
        max_cc: Highest accepted numeric RC
        jes_interface_level1: Server runs with JESINTERFACELEVEL=1
    """
    host: str
    username: str
    password: str
    job: str
    port: int = 21
    wait: bool = True
    wait_time: int = 0
    delete_job_from_spool: bool = False
    job_log_to_console: bool = False
    max_cc: Optional[str] = None
    jes_interface_level1: bool = False
    log_prefix: str = ""
    connector_options: dict = field(default_factory=dict)

    def __post_init__(self):
        self.host = re.sub(r"\s", "", self.host)
        self.username = re.sub(r"\s", "", self.username)
        self.password = re.sub(r"\s", "", self.password)
        self.max_cc = normalize_max_cc(self.max_cc)
        if self.wait_time < 0:
            raise ValueError("wait_time must not be negative")

    def connector(self) -> ZFTPConnector:
        return ZFTPConnector(
            self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            jes_interface_level1=self.jes_interface_level1,
            log_prefix=self.log_prefix,
            **self.connector_options,
        )

    def run(self, listener: Optional[JobListener] = None,
            token: Optional[CancellationToken] = None) -> StepOutcome:
        """
        Submit the job, report and judge the outcome

        Args:
            listener: Receives progress lines and the report
            token: Cancels the wait

        Returns:
            StepOutcome: Result, acceptance and the fetched log
        """
        listener = listener or NullListener()
        sink = io.BytesIO()

        result = self.connector().submit(
            self.job,
            wait=self.wait,
            wait_time=self.wait_time,
            sink=sink,
            delete_log=self.delete_job_from_spool,
            listener=listener,
            token=token,
        )

        cc = printable_cc(result.completion_code)
        logger.info(f"{self.log_prefix}Job [{result.job_id}] processing finished.")
        report = build_report(result)
        listener.info(report)

        log = sink.getvalue()
        if self.wait:
            if self.job_log_to_console:
                listener.info(log.decode("ascii", errors="replace"))
        else:
            cc = DEFAULT_MAX_CC

        if self.wait:
            accepted = is_accepted(result, self.max_cc, self.jes_interface_level1)
        else:
            accepted = result.success

        return StepOutcome(result=result, accepted=accepted, printable_cc=cc, report=report, log=log)
