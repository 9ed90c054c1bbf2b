"""
FTP Session Manager
Owns the control connection: connect, logon, JES mode, drop detection
"""

import logging
from typing import Callable, Optional, TypeVar

from .commands import CommandBuilder
from .errors import (
    AuthenticationFailed,
    ConnectionClosedByServer,
    ConnectionRefused,
    ReplyError,
    SiteConfigurationRejected,
    TransportError,
    ZFTPError,
)
from .listener import JobListener, NullListener
from .models import SessionSettings
from .parser import JesDialect
from .transport import FTPTransport, TransportFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FTPSession:
    """One authenticated control connection in JES mode"""

    def __init__(self, settings: SessionSettings,
                 transport_factory: Optional[TransportFactory] = None,
                 commands: Optional[CommandBuilder] = None,
                 dialect: Optional[JesDialect] = None,
                 listener: Optional[JobListener] = None):
        """
        Initialize session

        Args:
            settings: Host, port, credentials and interface level
            transport_factory: Builds a fresh transport for each connection
            commands: Gateway command builder
            dialect: Gateway reply patterns
            listener: Receives progress and error lines
        """
        self.settings = settings
        self.transport_factory = transport_factory or (lambda: FTPTransport(timeout=settings.timeout))
        self.commands = commands or CommandBuilder()
        self.dialect = dialect or JesDialect()
        self.listener = listener or NullListener()
        self.transport: Optional[FTPTransport] = None
        self.authenticated = False

    @property
    def connected(self) -> bool:
        return self.transport is not None and self.transport.connected

    def _log(self, text: str):
        self.listener.info(text)

    def _err(self, text: str):
        self.listener.error(text)

    def connect(self):
        """
        Open the control connection to host:port

        Raises:
            ConnectionRefused: Server answered with a negative reply
            TransportError: Socket level failure
        """
        self.invalidate()
        host, port = self.settings.host, self.settings.port
        transport = self.transport_factory()

        try:
            welcome = transport.connect(host, port)
        except ReplyError as e:
            transport.close()
            self._err("FTP server refused connection.")
            raise ConnectionRefused(f"{host}:{port} refused connection: {e.reply}") from e
        except TransportError as e:
            transport.close()
            self._err("Could not connect to server.")
            raise TransportError(f"Could not connect to {host}:{port}: {e}", code="COULD_NOT_CONNECT") from e

        self.transport = transport
        logger.debug(f"Welcome: {welcome}")
        self._log(f"FTP: connected to {host}:{port}")

    def authenticate(self):
        """
        Log on and switch the server to JES mode, connecting first if needed

        Raises:
            AuthenticationFailed: Credentials rejected
            SiteConfigurationRejected: SITE filetype=jes rejected
        """
        if not self.connected:
            self.connect()

        credentials = self.settings.credentials
        if credentials is None:
            self.invalidate()
            raise AuthenticationFailed("No credentials configured")

        try:
            self.transport.login(credentials.username, credentials.password)
        except ReplyError as e:
            self._err(f"FTP server rejected logon for {credentials.username}.")
            self.close()
            raise AuthenticationFailed(e.reply) from e
        except TransportError as e:
            self._err("Could not connect to server.")
            self.invalidate()
            raise TransportError(str(e), code="COULD_NOT_CONNECT") from e

        try:
            self.transport.site(self.commands.build_site_jes())
        except ReplyError as e:
            self._err("FTP server refused to change FileType and JESJobName.")
            self.invalidate()
            raise SiteConfigurationRejected(e.reply) from e
        except TransportError as e:
            self._err("Could not connect to server.")
            self.invalidate()
            raise TransportError(str(e), code="COULD_NOT_CONNECT") from e

        self.authenticated = True
        logger.debug(f"Logged on as {credentials.username}")

    def ensure_session(self):
        """Connect and log on unless already done. Safe to call repeatedly."""
        if self.connected and self.authenticated:
            return
        self.authenticated = False
        self.authenticate()

    def passive(self):
        """Enter passive mode before a data transfer"""
        self.transport.set_passive(True)

    def run(self, operation: Callable[[FTPTransport], T]) -> T:
        """
        Run one remote operation on the established session

        Passive mode is entered first. A dropped connection invalidates the
        session so the next ensure_session() reconnects.
        """
        self.ensure_session()
        self.passive()
        try:
            return operation(self.transport)
        except ConnectionClosedByServer:
            self._err("Server closed connection.")
            self.invalidate()
            raise

    def list_names(self, pattern: str = "*"):
        """NLST, treating the gateway's 'no jobs' reply as an empty listing"""
        try:
            return self.run(lambda transport: transport.list_names(pattern))
        except ReplyError as e:
            if self.dialect.is_empty_listing(e.reply):
                return []
            raise

    def list_entries(self, pattern: str = "*"):
        """LIST, treating the gateway's 'no jobs' reply as an empty listing"""
        try:
            return self.run(lambda transport: transport.list_entries(pattern))
        except ReplyError as e:
            if self.dialect.is_empty_listing(e.reply):
                return []
            raise

    def invalidate(self):
        """Drop the connection without talking to the server"""
        if self.transport is not None:
            self.transport.close()
        self.transport = None
        self.authenticated = False

    def close(self):
        """Log off and close the connection"""
        if self.transport is not None:
            try:
                self.transport.quit()
            except ZFTPError as e:
                logger.debug(f"Logoff failed: {e}")
        self.transport = None
        self.authenticated = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
