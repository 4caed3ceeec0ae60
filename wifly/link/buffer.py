"""Receive buffer for the link layer.

An append-only accumulator of bytes from the module with a consume-prefix
operation. It belongs to one DeviceLink and is only touched by the worker
thread, so it carries no lock.
"""


class ReceiveBuffer:
    """Growing byte buffer with FIFO consumption."""

    def __init__(self):
        self._buffer = bytearray()

    def append(self, data: bytes) -> None:
        """Append newly received bytes."""
        if data:
            self._buffer.extend(data)

    def find(self, pattern: bytes, start: int = 0) -> int:
        """Offset of the first occurrence of pattern at or after start, or -1."""
        return self._buffer.find(pattern, start)

    def peek(self, size: int) -> bytes:
        """Return up to size leading bytes without consuming them."""
        return bytes(self._buffer[:size])

    def consume(self, size: int) -> bytes:
        """Remove and return the leading size bytes.

        Args:
            size: Number of bytes to drop. Clamped to the buffer length.

        Returns:
            The bytes removed.
        """
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    @property
    def size(self) -> int:
        """Current number of buffered bytes."""
        return len(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def __bytes__(self) -> bytes:
        return bytes(self._buffer)

    def clear(self) -> None:
        """Drop everything."""
        self._buffer.clear()
