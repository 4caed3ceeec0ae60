"""Link layer: one TCP socket to the WiFly module plus its receive buffer."""

from .buffer import ReceiveBuffer
from .connection import DeviceLink, READ_TIMEOUT, READ_CHUNK_SIZE, printable

__all__ = ["ReceiveBuffer", "DeviceLink", "READ_TIMEOUT", "READ_CHUNK_SIZE", "printable"]
