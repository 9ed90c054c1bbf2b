"""
z/OS FTP Connector
Submits a job through the FTP JES gateway, waits for it, fetches its log and
completion code. The public submit() never raises.
"""

import logging
import time
from typing import BinaryIO, Callable, Optional, Union

from .cleaner import SpoolCleaner
from .commands import CommandBuilder
from .errors import ZFTPError
from .extractor import CompletionCodeExtractor
from .listener import JobListener, LoggingListener, TeeListener
from .models import Credentials, JobContext, JobSubmission, SessionSettings, SubmissionResult
from .parser import JesDialect, SpoolListingParser
from .poller import DEFAULT_POLL_INTERVAL, CancellationToken, CompletionPoller
from .retriever import LogRetriever
from .session import FTPSession
from .submitter import JobSubmitter
from .transport import TransportFactory

logger = logging.getLogger(__name__)


class ZFTPConnector:
    """FTP based communication with a z/OS-like system"""

    def __init__(self, host: str, port: int = 21, username: Optional[str] = None,
                 password: Optional[str] = None, jes_interface_level1: bool = False,
                 log_prefix: str = "", timeout: float = 30.0,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 dialect: Optional[JesDialect] = None,
                 commands: Optional[CommandBuilder] = None,
                 transport_factory: Optional[TransportFactory] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize connector

        Args:
            host: LPAR name or IP address
            port: FTP port
            username: User ID
            password: User password
            jes_interface_level1: Server runs with JESINTERFACELEVEL=1
            log_prefix: Prefix for log lines of this connector
            timeout: Socket timeout in seconds
            poll_interval: Seconds between spool polls
            dialect: Gateway reply patterns
            commands: Gateway command builder
            transport_factory: Builds the FTP transport for each session
            clock: Monotonic clock for deadlines
        """
        credentials = Credentials(username, password or "") if username else None
        self.settings = SessionSettings(
            host=host,
            port=port,
            credentials=credentials,
            jes_interface_level1=jes_interface_level1,
            timeout=timeout,
        )
        self.log_prefix = log_prefix
        self.dialect = dialect or JesDialect()
        self.commands = commands or CommandBuilder()
        self.transport_factory = transport_factory
        self.clock = clock

        self.submitter = JobSubmitter(self.dialect)
        self.extractor = CompletionCodeExtractor(SpoolListingParser(self.dialect))
        self.retriever = LogRetriever(self.extractor)
        self.poller = CompletionPoller(self.retriever, interval=poll_interval, clock=clock)
        self.cleaner = SpoolCleaner()

        logger.info(f"{self.log_prefix}Created ZFTPConnector for {host}:{port}")

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "ZFTPConnector":
        """
        Build a connector from application settings

        Args:
            settings: config.settings.Settings
            **kwargs: Overrides passed to the constructor
        """
        options = dict(
            host=settings.connection.host,
            port=settings.connection.port,
            username=settings.credentials.username,
            password=settings.credentials.password,
            jes_interface_level1=settings.job.jes_interface_level1,
            timeout=settings.connection.timeout,
            poll_interval=settings.job.poll_interval,
        )
        options.update(kwargs)
        return cls(**options)

    def new_session(self, listener: JobListener) -> FTPSession:
        """Sessions are never shared between submissions"""
        return FTPSession(
            self.settings,
            transport_factory=self.transport_factory,
            commands=self.commands,
            dialect=self.dialect,
            listener=listener,
        )

    def submit(self, job_text: Union[str, bytes], wait: bool = True, wait_time: int = 0,
               sink: Optional[BinaryIO] = None, delete_log: bool = False,
               listener: Optional[JobListener] = None,
               token: Optional[CancellationToken] = None) -> SubmissionResult:
        """
        Submit a job for execution

        Args:
            job_text: JCL of the job
            wait: Wait for the job to complete and fetch its log
            wait_time: Maximum wait in minutes, 0 waits forever
            sink: Binary stream receiving the job log
            delete_log: Delete the job log from spool after fetching it
            listener: Receives progress and error lines
            token: Cancels the wait when triggered

        Returns:
            SubmissionResult: success flag, job ID, job name and completion code
        """
        listener = TeeListener(LoggingListener(logger, self.log_prefix), listener)

        try:
            submission = JobSubmission.create(job_text, wait=wait, wait_time=wait_time,
                                              delete_log=delete_log, clock=self.clock)
        except ValueError as e:
            listener.error(f"Invalid submission: {e}")
            return SubmissionResult(success=False, completion_code="IO_ERROR")

        session = self.new_session(listener)
        ctx = JobContext(submission=submission, session=session, listener=listener,
                         token=token or CancellationToken())

        try:
            return self._run(ctx, sink)
        except ZFTPError as e:
            logger.debug(f"{self.log_prefix}Submission ended with {e.__class__.__name__}: {e}")
            return ctx.result(False, e.code)
        except Exception as e:
            logger.exception(f"{self.log_prefix}Unexpected error while processing job")
            listener.error(f"Unexpected error: {e}")
            return ctx.result(False, "IO_ERROR")
        finally:
            session.close()

    def _run(self, ctx: JobContext, sink: Optional[BinaryIO]) -> SubmissionResult:
        ctx.session.ensure_session()
        self.submitter.submit(ctx)

        if not ctx.submission.wait:
            return ctx.result(True, "")

        self.poller.wait_for_completion(ctx, sink)
        result = ctx.result(True)

        if ctx.submission.delete_log:
            self.cleaner.delete_job_log(ctx)

        return result
