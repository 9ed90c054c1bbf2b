"""
Completion-Code Extractor
Reads the job's completion code from the JES spool listing
"""

import logging
from typing import Optional

from .errors import CouldNotRetrieveRC, ZFTPError
from .models import CompletionCode, JobContext
from .parser import SpoolListingParser

logger = logging.getLogger(__name__)


class CompletionCodeExtractor:
    """Classify a finished job as RC, ABEND, JCL error or status"""

    def __init__(self, parser: Optional[SpoolListingParser] = None):
        self.parser = parser or SpoolListingParser()

    def extract(self, ctx: JobContext) -> CompletionCode:
        """
        Look the job up in the spool listing and record name and code

        With JESINTERFACELEVEL=1 the listing carries no RC, so the listing
        is not read and the undetermined code is reported as success.

        Args:
            ctx: Job context with an assigned job ID

        Returns:
            CompletionCode: Code recorded in ctx.handle

        Raises:
            CouldNotRetrieveRC: Listing failed or has no entry for the job
        """
        handle = ctx.handle

        if ctx.session.settings.jes_interface_level1:
            handle.completion_code = CompletionCode.undetermined()
            return handle.completion_code

        try:
            entries = ctx.session.list_entries("*")
        except ZFTPError as e:
            ctx.error(f"Could not list spool entries for [{handle.job_id}]: {e}")
            raise CouldNotRetrieveRC(f"Listing failed: {e}") from e

        found = self.parser.find_completion(entries, handle.job_id)
        if found is None:
            ctx.error(f"Could not find completion code of job [{handle.job_id}]")
            raise CouldNotRetrieveRC(f"No listing entry for {handle.job_id}")

        handle.job_name, handle.completion_code = found
        logger.info(f"Job {handle.job_name} [{handle.job_id}] completion: {handle.completion_code}")
        return handle.completion_code
