"""
Log Retriever
Downloads the job's spool output and triggers completion-code extraction
"""

import io
import logging
from typing import BinaryIO, Optional

from .errors import ReplyError, RetrieveFailedJobNotReady, SessionError, TransportError
from .extractor import CompletionCodeExtractor
from .models import JobContext

logger = logging.getLogger(__name__)


class LogRetriever:
    """RETR the job output into a caller supplied sink"""

    def __init__(self, extractor: Optional[CompletionCodeExtractor] = None):
        self.extractor = extractor or CompletionCodeExtractor()

    def retrieve(self, ctx: JobContext, sink: Optional[BinaryIO]):
        """
        Download the whole job log

        Args:
            ctx: Job context with an assigned job ID
            sink: Binary stream receiving the log, None to discard it

        Raises:
            RetrieveFailedJobNotReady: Server refused, job still running or unknown
            TransportError: I/O failure during the transfer
        """
        session = ctx.session
        command = session.commands.build_retrieve(ctx.job_id)
        # Aborted transfers must not leave partial logs in the sink
        buffer = io.BytesIO()

        def write(line: str):
            buffer.write((line + "\n").encode(session.transport.encoding))

        try:
            session.run(lambda transport: transport.retrieve_lines(command, write))
        except ReplyError as e:
            logger.debug(f"RETR {ctx.job_id} refused: {e.reply}")
            raise RetrieveFailedJobNotReady(e.reply) from e
        except SessionError:
            raise
        except TransportError as e:
            ctx.error(f"I/O error while fetching log of [{ctx.job_id}]: {e}")
            raise TransportError(str(e), code="FETCH_LOG_IO_ERROR") from e

        if sink is not None:
            sink.write(buffer.getvalue())

    def fetch_job_log(self, ctx: JobContext, sink: Optional[BinaryIO]) -> bool:
        """
        Fetch the job log and extract its completion code

        Returns:
            bool: False while the log is not available yet

        Raises:
            TransportError: I/O failure during the transfer
            CouldNotRetrieveRC: Log fetched but no completion code found
        """
        try:
            self.retrieve(ctx, sink)
        except RetrieveFailedJobNotReady:
            return False

        ctx.info(f"Fetched log of job [{ctx.job_id}]")
        self.extractor.extract(ctx)
        return True
