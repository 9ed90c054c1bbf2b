"""
Error taxonomy for the z/OS FTP job connector
Every error carries the completion code reported to the caller
"""

from typing import Optional


class ZFTPError(Exception):
    """Base class for connector errors"""

    code = "IO_ERROR"

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        if code is not None:
            self.code = code


# Transport level

class TransportError(ZFTPError):
    """Socket or data connection failure"""
    code = "IO_ERROR"


class ConnectionClosedByServer(TransportError):
    """Server dropped the control connection (EOF or 421 reply)"""
    code = "SERVER_CLOSED_CONNECTION"


class ReplyError(ZFTPError):
    """Server answered with a negative reply"""

    code = "IO_ERROR"

    def __init__(self, reply: str):
        super().__init__(reply)
        self.reply = reply
        self.reply_code = reply[:3]


# Session level

class SessionError(ZFTPError):
    """Session could not be established"""
    code = "COULD_NOT_CONNECT"


class ConnectionRefused(SessionError):
    """Server refused the connection"""


class AuthenticationFailed(SessionError):
    """Credentials were rejected"""


class SiteConfigurationRejected(SessionError):
    """SITE command for JES mode was rejected"""


class LoginError(SessionError):
    """Session could not be re-established while waiting for the job"""
    code = "FETCH_LOG_ERROR_LOGIN"


# Job lifecycle

class JobIdNotAssigned(ZFTPError):
    """Submission reply did not name a JES job ID"""
    code = "JOB_ID_NOT_ASSIGNED"


class JobNotFoundInSpool(ZFTPError):
    code = "JOB_NOT_FOUND_IN_JES"


class JobVanishedFromSpool(JobNotFoundInSpool):
    """Job was listed once and then purged before its log was fetched"""


class WaitInterrupted(ZFTPError):
    code = "WAIT_INTERRUPTED"


class WaitTimedOut(ZFTPError):
    code = "WAIT_ERROR"


class RetrieveFailedJobNotReady(ZFTPError):
    code = "RETR_ERR_JOB_NOT_FINISHED_OR_NOT_FOUND"


class CouldNotRetrieveRC(ZFTPError):
    code = "COULD_NOT_RETRIEVE_JOB_RC"


# Job outcome

class JobFailure(ZFTPError):
    """Job ran but its completion code is not acceptable"""

    def __init__(self, completion_code: str, message: str = ""):
        super().__init__(message or f"z/OS job failed with CC {completion_code}", code=completion_code)


class JCLError(JobFailure):
    def __init__(self, completion_code: str = "JCL_ERROR"):
        super().__init__(completion_code)


class Abend(JobFailure):
    def __init__(self, abend_code: str):
        self.abend_code = abend_code
        super().__init__(f"ABEND_{abend_code}")


class CompletionCodeExceeded(JobFailure):
    """Numeric RC above the accepted maximum"""

    def __init__(self, completion_code: str, max_cc: str):
        self.max_cc = max_cc
        super().__init__(completion_code)


class JobStepFailed(ZFTPError):
    """Raised by the build step when the job is not accepted"""

    def __init__(self, completion_code: str):
        super().__init__(f"z/OS job failed with CC {completion_code}", code=completion_code)
