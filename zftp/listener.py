"""
Job listeners
Progress and error lines emitted by the connector go through a listener
"""

import logging
from typing import List, Optional


class JobListener:
    """Listener interface. The base class discards everything."""

    def info(self, text: str):
        pass

    def error(self, text: str):
        pass


class NullListener(JobListener):
    """Explicit no-op listener"""


class LoggingListener(JobListener):
    """Forward lines to a standard logger"""

    def __init__(self, logger: Optional[logging.Logger] = None, prefix: str = ""):
        self.logger = logger or logging.getLogger("zftp.job")
        self.prefix = prefix

    def info(self, text: str):
        self.logger.info(f"{self.prefix}{text}")

    def error(self, text: str):
        self.logger.error(f"{self.prefix}{text}")


class TeeListener(JobListener):
    """Send every line to several listeners"""

    def __init__(self, *listeners: JobListener):
        self.listeners = [listener for listener in listeners if listener is not None]

    def info(self, text: str):
        for listener in self.listeners:
            listener.info(text)

    def error(self, text: str):
        for listener in self.listeners:
            listener.error(text)


class RecordingListener(JobListener):
    """Keep every line in memory, mostly for reports and tests"""

    def __init__(self):
        self.lines: List[tuple] = []

    def info(self, text: str):
        self.lines.append(("info", text))

    def error(self, text: str):
        self.lines.append(("error", text))

    @property
    def errors(self) -> List[str]:
        return [text for level, text in self.lines if level == "error"]

    @property
    def infos(self) -> List[str]:
        return [text for level, text in self.lines if level == "info"]
