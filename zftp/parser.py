"""
JES gateway reply and spool listing parser
All patterns matched against server text live here
"""

import re
import logging
from typing import Iterable, List, Optional, Pattern, Tuple

from .models import CompletionCode

logger = logging.getLogger(__name__)


class JesDialect:
    """
    Patterns for the z/OS FTP server JES interface

    Subclass and override the pattern attributes to support another gateway
    phrasing. Job patterns are templates with a ``{job_id}`` placeholder and
    must match a whole listing line.
    """

    job_id_pattern = r"250-It is known to JES as (.*)"

    # Evaluated in this order, first match wins
    jcl_error_pattern = r"(\S+)\s+{job_id}.* \(JCL error\)\s+.*"
    abend_pattern = r"(\S+)\s+{job_id}.* ABEND=(.*?)\s+.*"
    rc_undefined_pattern = r"(\S+)\s+{job_id}.* RC\s+(\S+)\s+.*"
    rc_pattern = r"(\S+)\s+{job_id}.* RC=(.*?) .*"

    # Negative NLST/LIST reply meaning "nothing to list"
    empty_listing_pattern = r"550 No jobs found.*"

    def __init__(self):
        self._job_id_re = re.compile(self.job_id_pattern)
        self._empty_re = re.compile(self.empty_listing_pattern, re.IGNORECASE)

    def parse_job_id(self, reply: str) -> str:
        """
        Extract the JES job ID from a STOR reply

        Args:
            reply: Full, possibly multi-line, server reply

        Returns:
            str: Job ID or empty string when the reply does not name one
        """
        for line in reply.splitlines():
            match = self._job_id_re.fullmatch(line.rstrip("\r"))
            if match:
                return match.group(1).strip()
        return ""

    def is_empty_listing(self, reply: str) -> bool:
        return bool(self._empty_re.match(reply))

    def completion_patterns(self, job_id: str) -> List[Tuple[str, Pattern]]:
        """Compile the completion patterns for one job, in precedence order"""
        escaped = re.escape(job_id)
        return [
            ("jcl_error", re.compile(self.jcl_error_pattern.format(job_id=escaped))),
            ("abend", re.compile(self.abend_pattern.format(job_id=escaped))),
            ("rc_undefined", re.compile(self.rc_undefined_pattern.format(job_id=escaped))),
            ("rc", re.compile(self.rc_pattern.format(job_id=escaped))),
        ]


class SpoolListingParser:
    """Classify spool listing lines into completion codes"""

    def __init__(self, dialect: Optional[JesDialect] = None):
        self.dialect = dialect or JesDialect()

    def parse_entry(self, line: str, job_id: str) -> Optional[Tuple[str, CompletionCode]]:
        """
        Match one listing line against the completion patterns

        Args:
            line: Listing line as sent by the server
            job_id: Job to look for

        Returns:
            Optional[Tuple[str, CompletionCode]]: Job name and code, None if no match
        """
        return self._match(line.rstrip("\r\n"), self.dialect.completion_patterns(job_id))

    def find_completion(self, lines: Iterable[str], job_id: str) -> Optional[Tuple[str, CompletionCode]]:
        """
        Scan a listing for the first entry describing the job

        Args:
            lines: Listing lines
            job_id: Job to look for

        Returns:
            Optional[Tuple[str, CompletionCode]]: Job name and code, None if not found
        """
        patterns = self.dialect.completion_patterns(job_id)
        for line in lines:
            found = self._match(line.rstrip("\r\n"), patterns)
            if found:
                logger.debug(f"Completion entry for {job_id}: {line.strip()}")
                return found
        return None

    def _match(self, line: str, patterns: List[Tuple[str, Pattern]]) -> Optional[Tuple[str, CompletionCode]]:
        for kind, pattern in patterns:
            match = pattern.fullmatch(line)
            if not match:
                continue

            job_name = match.group(1)
            if kind == "jcl_error":
                return job_name, CompletionCode.jcl_error()
            if kind == "abend":
                return job_name, CompletionCode.abend(match.group(2))
            if kind == "rc_undefined":
                return job_name, CompletionCode.non_numeric(match.group(2))
            return job_name, CompletionCode.numeric(match.group(2))

        return None
