"""
Command Builder for the z/OS FTP JES gateway
Constructs the exact command strings the gateway expects
"""

from typing import Optional

# Remote name used for STOR in JES mode. The gateway ignores it.
DEFAULT_SUBMIT_NAME = "jenkins.sub"


class CommandBuilder:
    """Build and format gateway commands"""

    def __init__(self, submit_name: str = DEFAULT_SUBMIT_NAME):
        """
        Initialize command builder

        Args:
            submit_name: Remote file name used when storing the job stream
        """
        self.submit_name = submit_name

    def build_site_jes(self, job_name: str = "*", status: str = "ALL",
                       owner: Optional[str] = None) -> str:
        """
        Build SITE arguments switching the server to JES mode

        Args:
            job_name: JESJOBNAME filter
            status: JESSTATUS filter (ALL, INPUT, ACTIVE, OUTPUT)
            owner: JESOWNER filter, server default (current user) when None

        Returns:
            str: SITE arguments
        """
        args = f"filetype=jes jesjobname={job_name} jesstatus={status}"

        if owner:
            args += f" jesowner={owner}"

        return args

    def build_store(self) -> str:
        return f"STOR {self.submit_name}"

    def build_retrieve(self, job_id: str) -> str:
        """
        Build RETR for the whole spool output of a job

        Args:
            job_id: JES job ID (e.g. JOB12345)

        Returns:
            str: RETR command
        """
        if not job_id:
            raise ValueError("Job ID required for RETR")
        return f"RETR {job_id}"
