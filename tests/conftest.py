"""Shared fixtures: an in-memory JES gateway standing in for the FTP server"""

import sys
from pathlib import Path
from typing import Any, List, Optional

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from zftp.connector import ZFTPConnector
from zftp.errors import ReplyError

SUBMIT_REPLY = (
    "250-It is known to JES as JOB12345\n"
    "250 Transfer completed successfully."
)

LISTING_RC0 = [
    "JOBNAME  JOBID    OWNER    STATUS CLASS",
    "OTHERJOB JOB11111 USER1    OUTPUT A        RC=0012 4 spool files",
    "MYJOB    JOB12345 USER1    OUTPUT A        RC=0000 3 spool files",
]

JOB_LOG = [
    "                   J E S 2  J O B  L O G",
    "IEF142I MYJOB STEP1 - STEP WAS EXECUTED - COND CODE 0000",
]


def _next(script: List[Any]):
    """Pop the next scripted answer, repeating the last one forever"""
    item = script.pop(0) if len(script) > 1 else script[0]
    if isinstance(item, BaseException):
        raise item
    return item


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeToken:
    """Cancellation token whose wait advances a fake clock instead of sleeping"""

    def __init__(self, clock: FakeClock, cancel_after: Optional[int] = None):
        self.clock = clock
        self.cancel_after = cancel_after
        self.waits = 0
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def wait(self, timeout: float) -> bool:
        self.waits += 1
        if self.cancel_after is not None and self.waits > self.cancel_after:
            self.cancelled = True
        if self.cancelled:
            return True
        self.clock.now += timeout
        return False


class AbortedTransfer:
    """Scripted RETR that delivers some lines and then fails"""

    def __init__(self, lines: List[str], error: BaseException):
        self.lines = lines
        self.error = error


class FakeServer:
    """Scripted behaviour and call record of the remote gateway"""

    def __init__(self):
        self.connect_script: List[Any] = ["220 FTP server ready"]
        self.login_script: List[Any] = ["230 USER1 is logged on."]
        self.site_script: List[Any] = ["200 SITE command was accepted"]
        self.store_script: List[Any] = [SUBMIT_REPLY]
        self.nlst_script: List[Any] = [["JOB12345"]]
        self.list_script: List[Any] = [LISTING_RC0]
        self.retr_script: List[Any] = [JOB_LOG]
        self.delete_script: List[Any] = ["250 Cancel successful"]

        self.connects = 0
        self.quits = 0
        self.passive = 0
        self.logins: List[tuple] = []
        self.site_args: List[str] = []
        self.submitted: List[bytes] = []
        self.commands: List[str] = []
        self.deleted: List[str] = []


class FakeTransport:
    encoding = "latin-1"

    def __init__(self, server: FakeServer):
        self.server = server
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self, host: str, port: int = 21) -> str:
        self.server.connects += 1
        welcome = _next(self.server.connect_script)
        self._connected = True
        return welcome

    def login(self, username: str, password: str) -> str:
        self.server.logins.append((username, password))
        return _next(self.server.login_script)

    def site(self, args: str) -> str:
        self.server.site_args.append(args)
        return _next(self.server.site_script)

    def set_passive(self, passive: bool = True):
        self.server.passive += 1

    def store_lines(self, command: str, stream) -> str:
        self.server.commands.append(command)
        self.server.submitted.append(stream.read())
        return _next(self.server.store_script)

    def list_names(self, pattern: str = "*") -> List[str]:
        self.server.commands.append(f"NLST {pattern}")
        return list(_next(self.server.nlst_script))

    def list_entries(self, pattern: str = "*") -> List[str]:
        self.server.commands.append(f"LIST {pattern}")
        return list(_next(self.server.list_script))

    def retrieve_lines(self, command: str, callback) -> str:
        self.server.commands.append(command)
        item = _next(self.server.retr_script)
        if isinstance(item, AbortedTransfer):
            for line in item.lines:
                callback(line)
            raise item.error
        for line in item:
            callback(line)
        return "250 Transfer completed successfully."

    def delete(self, name: str) -> str:
        self.server.commands.append(f"DELE {name}")
        reply = _next(self.server.delete_script)
        self.server.deleted.append(name)
        return reply

    def quit(self):
        self.server.quits += 1
        self._connected = False

    def close(self):
        self._connected = False


def not_ready() -> ReplyError:
    return ReplyError("550 Job JOB12345 is not yet complete")


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token(clock) -> FakeToken:
    return FakeToken(clock)


@pytest.fixture
def make_connector(server, clock):
    def factory(**kwargs) -> ZFTPConnector:
        options = dict(
            username="USER1",
            password="SECRET",
            poll_interval=10,
            transport_factory=lambda: FakeTransport(server),
            clock=clock,
        )
        options.update(kwargs)
        return ZFTPConnector("mvs.example.com", **options)
    return factory
