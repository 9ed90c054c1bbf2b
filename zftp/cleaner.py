"""
Spool Cleaner
Best-effort removal of the job output from the JES spool
"""

import logging

from .errors import ZFTPError
from .models import JobContext

logger = logging.getLogger(__name__)


class SpoolCleaner:
    """Delete a job's spool entry once its log has been fetched"""

    def delete_job_log(self, ctx: JobContext) -> bool:
        """
        Delete the job from spool. Failures are logged and ignored.

        Returns:
            bool: Whether the server confirmed the deletion
        """
        if not ctx.job_id:
            return False

        job_id = ctx.job_id
        try:
            ctx.session.run(lambda transport: transport.delete(job_id))
        except ZFTPError as e:
            logger.warning(f"Could not delete job [{ctx.job_id}] from spool: {e}")
            return False

        ctx.info(f"Deleted job [{ctx.job_id}] from spool")
        return True
