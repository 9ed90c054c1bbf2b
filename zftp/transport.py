"""
FTP transport
Thin facade over ftplib that speaks in connector errors instead of ftplib ones
"""

import ftplib
import logging
from contextlib import contextmanager
from typing import BinaryIO, Callable, List, Optional

from .errors import ConnectionClosedByServer, ReplyError, TransportError

logger = logging.getLogger(__name__)


class FTPTransport:
    """Control connection to one FTP server, backed by ftplib.FTP"""

    def __init__(self, timeout: float = 30.0, encoding: str = "latin-1", debug_level: int = 0):
        """
        Initialize transport

        Args:
            timeout: Socket timeout in seconds
            encoding: Character set of the control and ASCII data connections
            debug_level: ftplib debug level (0 = quiet)
        """
        self.timeout = timeout
        self.encoding = encoding
        self.debug_level = debug_level
        self.ftp: Optional[ftplib.FTP] = None

    @property
    def connected(self) -> bool:
        return self.ftp is not None and self.ftp.sock is not None

    @contextmanager
    def _translate_errors(self):
        """Convert ftplib and socket failures into connector errors"""
        try:
            yield
        except ftplib.error_temp as e:
            reply = str(e)
            if reply.startswith("421"):
                self.close()
                raise ConnectionClosedByServer(reply) from e
            raise ReplyError(reply) from e
        except (ftplib.error_perm, ftplib.error_reply) as e:
            raise ReplyError(str(e)) from e
        except (EOFError, ConnectionResetError, BrokenPipeError) as e:
            self.close()
            raise ConnectionClosedByServer(str(e) or "Connection closed by server") from e
        except (OSError, ftplib.error_proto) as e:
            raise TransportError(str(e) or e.__class__.__name__) from e

    def _require(self) -> ftplib.FTP:
        if not self.connected:
            raise ConnectionClosedByServer("Not connected")
        return self.ftp

    def connect(self, host: str, port: int = 21) -> str:
        """
        Open the control connection

        Returns:
            str: Server welcome message

        Raises:
            ReplyError: Negative welcome (e.g. 421), the server refused us
            TransportError: Socket level failure
        """
        self.ftp = ftplib.FTP(timeout=self.timeout, encoding=self.encoding)
        self.ftp.set_debuglevel(self.debug_level)
        try:
            with self._translate_errors():
                try:
                    return self.ftp.connect(host, port)
                except (ftplib.error_temp, ftplib.error_perm, ftplib.error_reply) as e:
                    # A 421 welcome is a refusal, not a dropped session
                    raise ReplyError(str(e)) from e
        except Exception:
            self.close()
            raise

    def login(self, username: str, password: str) -> str:
        with self._translate_errors():
            return self._require().login(username, password)

    def site(self, args: str) -> str:
        with self._translate_errors():
            return self._require().sendcmd(f"SITE {args}")

    def set_passive(self, passive: bool = True):
        self._require().set_pasv(passive)

    def store_lines(self, command: str, stream: BinaryIO) -> str:
        """
        Upload a text stream

        Returns:
            str: Final server reply, multi-line replies joined with newlines
        """
        with self._translate_errors():
            return self._require().storlines(command, stream)

    def list_names(self, pattern: str = "*") -> List[str]:
        with self._translate_errors():
            return self._require().nlst(pattern)

    def list_entries(self, pattern: str = "*") -> List[str]:
        lines: List[str] = []
        with self._translate_errors():
            self._require().retrlines(f"LIST {pattern}", lines.append)
        return lines

    def retrieve_lines(self, command: str, callback: Callable[[str], None]) -> str:
        with self._translate_errors():
            return self._require().retrlines(command, callback)

    def delete(self, name: str) -> str:
        with self._translate_errors():
            return self._require().delete(name)

    def quit(self):
        """Say goodbye to the server, falling back to closing the socket"""
        if self.ftp is None:
            return
        try:
            self.ftp.quit()
        except ftplib.all_errors as e:
            logger.debug(f"QUIT failed: {e}")
        finally:
            self.close()

    def close(self):
        if self.ftp is not None:
            try:
                self.ftp.close()
            except OSError as e:
                logger.debug(f"Close failed: {e}")
            self.ftp = None


TransportFactory = Callable[[], FTPTransport]
