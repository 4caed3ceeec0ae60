"""TCP link to a WiFly module.

The module bridges a UART to WiFi and exposes a line-oriented command
console over a plain TCP socket. This module handles:
- Opening the socket with the options the console needs
- Writing literal commands
- Accumulating replies in a ReceiveBuffer and waiting for patterns
- Aborting the socket from another thread to unblock a pending read

Note: This layer knows nothing about the console commands themselves.
      Use ProtocolSession for the handshake, sensor queries and relay.
"""
from __future__ import annotations

import logging
import socket
import threading
from typing import Optional

from ..errors import (
    ConnectError,
    ExpectTimeoutError,
    LinkClosedError,
    LinkError,
    ReadTimeoutError,
)
from .buffer import ReceiveBuffer

logger = logging.getLogger(__name__)

READ_TIMEOUT = 3.0  # seconds
READ_CHUNK_SIZE = 1024  # bytes


def printable(data: bytes) -> str:
    """Render wire bytes for logs with CR and LF escaped."""
    text = data.decode("ascii", errors="replace")
    return text.replace("\r", "\\r").replace("\n", "\\n")


class DeviceLink:
    """One connected socket plus its receive buffer.

    A link lives for exactly one connection attempt. It is a context manager
    so the socket is released on every exit path, errors included.

    Only the worker thread may call send/read/expect. Any thread may call
    abort(); a read blocked in the worker then fails promptly with
    LinkClosedError.

    Example:
        >>> with DeviceLink.open("10.0.0.1", 2000) as link:
        ...     link.expect(b"PASS?")
        ...     link.send(b"secret\\r")
        ...     link.expect(b"AOK")
    """

    def __init__(self, sock: socket.socket, chunk_size: int = READ_CHUNK_SIZE):
        """Wrap an already connected socket.

        Args:
            sock: Connected stream socket, with its timeout already set
            chunk_size: Maximum bytes to read per recv call
        """
        self._socket = sock
        self._chunk_size = chunk_size
        self._buffer = ReceiveBuffer()

        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def open(cls,
             host: str,
             port: int,
             timeout: float = READ_TIMEOUT,
             chunk_size: int = READ_CHUNK_SIZE) -> DeviceLink:
        """Connect to the module.

        The socket gets SO_REUSEADDR and TCP_NODELAY, and the timeout bounds
        both the connect and every later read.

        Args:
            host: Host name or IP address
            port: TCP port
            timeout: Seconds before a connect or read gives up

        Raises:
            ConnectError: If the host cannot be resolved or reached
        """
        try:
            addresses = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise ConnectError(f"Cannot resolve {host}: {e}") from e

        last_error: Optional[OSError] = None
        for family, socktype, proto, _, address in addresses:
            sock = socket.socket(family, socktype, proto)
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                sock.settimeout(timeout)
                sock.connect(address)
            except OSError as e:
                sock.close()
                last_error = e
                continue
            logger.info(f"Connected to {host}:{port}")
            return cls(sock, chunk_size=chunk_size)

        raise ConnectError(f"Cannot connect to {host}:{port}: {last_error}") from last_error

    @property
    def buffer(self) -> ReceiveBuffer:
        return self._buffer

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, data: bytes) -> None:
        """Write the exact bytes to the module.

        Raises:
            LinkError: If the write fails or the link was aborted
        """
        logger.debug(f"Sending {printable(data)}")
        try:
            self._socket.sendall(data)
        except socket.timeout as e:
            raise LinkError("Send timed out") from e
        except OSError as e:
            if self._closed:
                raise LinkClosedError("Link aborted") from e
            raise LinkError(f"Send failed: {e}") from e

    def read_chunk(self) -> int:
        """Block for one recv and append what arrived to the buffer.

        Returns:
            Number of bytes received

        Raises:
            ReadTimeoutError: If nothing arrived within the timeout
            LinkClosedError: If the peer closed or the link was aborted
            LinkError: On any other socket error
        """
        try:
            chunk = self._socket.recv(self._chunk_size)
        except socket.timeout as e:
            raise ReadTimeoutError(f"No data within {self._socket.gettimeout()}s") from e
        except OSError as e:
            if self._closed:
                raise LinkClosedError("Link aborted") from e
            raise LinkError(f"Read failed: {e}") from e

        if not chunk:
            raise LinkClosedError("Link aborted" if self._closed else "Connection closed by peer")

        self._buffer.append(chunk)
        logger.debug(f"Input buffer = {printable(bytes(self._buffer))}")
        return len(chunk)

    def expect(self, pattern: bytes) -> None:
        """Wait until pattern is buffered, then consume through its end.

        Bytes that arrive after the match stay in the buffer for the next
        call, so fields sent back to back are consumed in pattern order.
        Each rescan starts where a match split across reads could begin.

        Raises:
            ExpectTimeoutError: If a read times out before the pattern shows up
            LinkError: If the link fails while waiting
        """
        logger.debug(f"Expecting {printable(pattern)}")
        start = 0
        while True:
            offset = self._buffer.find(pattern, start)
            if offset >= 0:
                break
            start = max(0, len(self._buffer) - len(pattern) + 1)
            try:
                self.read_chunk()
            except ReadTimeoutError as e:
                raise ExpectTimeoutError(pattern) from e

        self._buffer.consume(offset + len(pattern))

    def read_exact(self, size: int) -> bytes:
        """Wait until size bytes are buffered and consume them."""
        while len(self._buffer) < size:
            self.read_chunk()
        return self._buffer.consume(size)

    def abort(self) -> None:
        """Shut the socket down and close it. Safe from any thread, idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        try:
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Peer already gone
            logger.debug(f"Socket shutdown: {e}")
        finally:
            self._socket.close()
        logger.info("Link closed")

    def close(self) -> None:
        self.abort()

    def __enter__(self) -> DeviceLink:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
