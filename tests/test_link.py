"""Unit tests for DeviceLink (socket ownership and pattern matching)."""
import socket
import threading
import time
import unittest
from unittest.mock import MagicMock, patch

from wifly.errors import (
    ConnectError,
    ExpectTimeoutError,
    LinkClosedError,
    LinkError,
    ReadTimeoutError,
)
from wifly.link.connection import DeviceLink, printable


def mock_link(*chunks):
    """DeviceLink over a mock socket whose recv returns the given chunks."""
    sock = MagicMock(spec=socket.socket)
    sock.recv.side_effect = list(chunks)
    sock.gettimeout.return_value = 3.0
    return DeviceLink(sock), sock


class TestExpect(unittest.TestCase):
    """Tests for expect() over arbitrary chunking."""

    def test_pattern_in_one_chunk(self):
        link, _ = mock_link(b"*HELLO*PASS?")
        link.expect(b"PASS?")
        self.assertEqual(link.buffer.size, 0)

    def test_pattern_split_across_reads(self):
        """AOK arriving as A then OK is still matched."""
        link, sock = mock_link(b"A", b"OK\r\n")
        link.expect(b"AOK")
        self.assertEqual(sock.recv.call_count, 2)
        self.assertEqual(bytes(link.buffer), b"\r\n")

    def test_pattern_split_across_three_reads(self):
        link, _ = mock_link(b"xxC", b"MD\r", b"\nshow")
        link.expect(b"CMD\r\n")
        self.assertEqual(bytes(link.buffer), b"show")

    def test_leftover_served_without_reading(self):
        """Fields sent back to back are consumed in pattern order."""
        link, sock = mock_link(b"PASS?AOKCMD\r\n")
        link.expect(b"PASS?")
        link.expect(b"AOK")
        link.expect(b"CMD\r\n")
        self.assertEqual(sock.recv.call_count, 1)
        self.assertEqual(link.buffer.size, 0)

    def test_first_occurrence_consumed(self):
        link, _ = mock_link(b"a>b>c")
        link.expect(b">")
        self.assertEqual(bytes(link.buffer), b"b>c")

    def test_timeout_raises_expect_timeout(self):
        link, _ = mock_link(b"ERR", socket.timeout("timed out"))
        with self.assertRaises(ExpectTimeoutError) as ctx:
            link.expect(b"AOK")
        self.assertEqual(ctx.exception.pattern, b"AOK")
        self.assertIsInstance(ctx.exception.__cause__, ReadTimeoutError)

    def test_eof_raises_link_closed(self):
        link, _ = mock_link(b"PA", b"")
        with self.assertRaises(LinkClosedError):
            link.expect(b"PASS?")

    def test_socket_error_raises_link_error(self):
        link, _ = mock_link(ConnectionResetError("reset"))
        with self.assertRaises(LinkError):
            link.expect(b"AOK")


class TestReadAndSend(unittest.TestCase):

    def test_read_chunk_appends(self):
        link, _ = mock_link(b"abc", b"de")
        self.assertEqual(link.read_chunk(), 3)
        self.assertEqual(link.read_chunk(), 2)
        self.assertEqual(bytes(link.buffer), b"abcde")

    def test_read_exact_waits_for_enough_bytes(self):
        link, sock = mock_link(b"1F", b"4A", b"0>")
        self.assertEqual(link.read_exact(5), b"1F4A0")
        self.assertEqual(sock.recv.call_count, 3)
        self.assertEqual(bytes(link.buffer), b">")

    def test_read_chunk_timeout(self):
        link, _ = mock_link(socket.timeout("timed out"))
        with self.assertRaises(ReadTimeoutError):
            link.read_chunk()

    def test_send_writes_exact_bytes(self):
        link, sock = mock_link()
        link.send(b"$$$")
        sock.sendall.assert_called_once_with(b"$$$")

    def test_send_error(self):
        link, sock = mock_link()
        sock.sendall.side_effect = BrokenPipeError("broken")
        with self.assertRaises(LinkError):
            link.send(b"show q 2\r")

    def test_printable_escapes_line_endings(self):
        self.assertEqual(printable(b"CMD\r\n"), "CMD\\r\\n")


class TestAbort(unittest.TestCase):

    def test_abort_is_idempotent(self):
        link, sock = mock_link()
        link.abort()
        link.abort()
        self.assertTrue(link.closed)
        sock.shutdown.assert_called_once_with(socket.SHUT_RDWR)
        sock.close.assert_called_once()

    def test_abort_tolerates_disconnected_socket(self):
        link, sock = mock_link()
        sock.shutdown.side_effect = OSError("not connected")
        link.abort()
        sock.close.assert_called_once()

    def test_context_manager_closes(self):
        link, sock = mock_link()
        with link:
            pass
        self.assertTrue(link.closed)
        sock.close.assert_called_once()


class TestDeviceLinkOpen(unittest.TestCase):
    """Tests against a real listening socket on localhost."""

    def setUp(self):
        self.server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server.bind(("127.0.0.1", 0))
        self.server.listen(1)
        self.port = self.server.getsockname()[1]

    def tearDown(self):
        self.server.close()

    def test_socket_options(self):
        with DeviceLink.open("127.0.0.1", self.port, timeout=2.0) as link:
            sock = link._socket
            self.assertNotEqual(sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY), 0)
            self.assertNotEqual(sock.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR), 0)
            self.assertEqual(sock.gettimeout(), 2.0)

    def test_round_trip(self):
        link = DeviceLink.open("127.0.0.1", self.port, timeout=2.0)
        peer, _ = self.server.accept()
        try:
            peer.sendall(b"*HELLO*PASS?")
            link.expect(b"PASS?")
            link.send(b"secret\r")
            self.assertEqual(peer.recv(64), b"secret\r")
        finally:
            link.close()
            peer.close()

    def test_abort_unblocks_pending_read(self):
        """A read blocked in another thread fails well before its timeout."""
        link = DeviceLink.open("127.0.0.1", self.port, timeout=5.0)
        peer, _ = self.server.accept()
        errors = []

        def reader():
            try:
                link.expect(b"PASS?")
            except Exception as e:
                errors.append(e)

        thread = threading.Thread(target=reader)
        thread.start()
        time.sleep(0.1)

        start = time.monotonic()
        link.abort()
        thread.join(timeout=2.0)
        peer.close()

        self.assertFalse(thread.is_alive())
        self.assertLess(time.monotonic() - start, 2.0)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], LinkError)

    def test_connection_refused(self):
        self.server.close()
        with self.assertRaises(ConnectError):
            DeviceLink.open("127.0.0.1", self.port, timeout=1.0)

    @patch('wifly.link.connection.socket.getaddrinfo')
    def test_unresolvable_host(self, mock_getaddrinfo):
        mock_getaddrinfo.side_effect = socket.gaierror("Name or service not known")
        with self.assertRaises(ConnectError):
            DeviceLink.open("door.invalid", 2000)


if __name__ == '__main__':
    unittest.main()
