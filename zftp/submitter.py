"""
Job Submitter
Stores the job stream in JES mode and picks the job ID out of the reply
"""

import logging
from typing import Optional

from .errors import JobIdNotAssigned, ReplyError
from .models import JobContext
from .parser import JesDialect

logger = logging.getLogger(__name__)


class JobSubmitter:
    """Upload JCL through the JES gateway"""

    def __init__(self, dialect: Optional[JesDialect] = None):
        self.dialect = dialect or JesDialect()

    def submit(self, ctx: JobContext) -> str:
        """
        Submit the job and record its JES job ID in the context

        Not idempotent: every call creates a new job on the remote system.

        Args:
            ctx: Job context with an open session

        Returns:
            str: Assigned job ID

        Raises:
            JobIdNotAssigned: Reply did not contain the job ID
            ConnectionClosedByServer: Connection dropped during the transfer
            TransportError: Any other I/O failure
        """
        session = ctx.session
        command = session.commands.build_store()

        with ctx.submission.open() as stream:
            try:
                reply = session.run(lambda transport: transport.store_lines(command, stream))
            except ReplyError as e:
                ctx.error(f"Job submission rejected: {e.reply}")
                raise JobIdNotAssigned(f"Submission rejected: {e.reply}") from e

        logger.debug(f"STOR reply: {reply!r}")
        job_id = self.dialect.parse_job_id(reply)
        if not job_id:
            ctx.error("Could not determine the JES job ID of the submitted job.")
            raise JobIdNotAssigned(f"No job ID in reply: {reply}")

        ctx.handle.assign_id(job_id)
        ctx.info(f"Submitted job [{job_id}]")
        return job_id
