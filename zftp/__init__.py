"""
Submit jobs to z/OS through the FTP JES interface, wait for them and fetch
their logs and completion codes
"""

from .connector import ZFTPConnector
from .listener import JobListener, LoggingListener, NullListener
from .models import CompletionCode, CompletionKind, JobSubmission, SubmissionResult
from .poller import CancellationToken
from .step import JobStep, StepOutcome

__version__ = "1.0.0"

__all__ = [
    "ZFTPConnector",
    "JobListener",
    "LoggingListener",
    "NullListener",
    "CompletionCode",
    "CompletionKind",
    "JobSubmission",
    "SubmissionResult",
    "CancellationToken",
    "JobStep",
    "StepOutcome",
]
