"""Wire table for the WiFly command console.

Every exchange is a literal byte string sent to the module and a literal
pattern expected back. Patterns are case sensitive and CR/LF sensitive.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import SensorParseError

PASSWORD_PROMPT = b"PASS?"
AOK = b"AOK"
ENTER_COMMAND_MODE = b"$$$"  # escape sequence, no line ending
COMMAND_MODE_PROMPT = b"CMD\r\n"
COMMAND_PROMPT = b">"

SENSOR_REPORT_MARKER = b"8"  # leads a fresh sensor report
SENSOR_VALUE_DIGITS = 5

RELAY_ON = b"set sys output 2\r"
RELAY_OFF = b"set sys output 0\r"

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


@dataclass(frozen=True)
class Exchange:
    """One step of the console dialogue.

    Attributes:
        send: Bytes written first, or None to only wait
        expect: Pattern that must appear in the reply stream
    """
    send: Optional[bytes]
    expect: bytes


def handshake(password: str) -> Tuple[Exchange, ...]:
    """Login and switch to command mode."""
    return (
        Exchange(None, PASSWORD_PROMPT),
        Exchange(password.encode("utf-8") + b"\r", AOK),
        Exchange(ENTER_COMMAND_MODE, COMMAND_MODE_PROMPT),
    )


RELAY_PRESS = Exchange(RELAY_ON, AOK)
RELAY_RELEASE = Exchange(RELAY_OFF, AOK)


def sensor_query(sensor_id: int) -> bytes:
    """Command asking for one sensor, e.g. b'show q 2\\r'."""
    return f"show q {sensor_id}\r".encode("ascii")


def sensor_echo(sensor_id: int) -> bytes:
    """Echoed command plus the report marker that precede the value."""
    return sensor_query(sensor_id) + b"\r\n" + SENSOR_REPORT_MARKER


def parse_sensor_value(digits: bytes) -> int:
    """Parse the five hex digits of a sensor report.

    Raises:
        SensorParseError: Unless digits is exactly five hex characters
    """
    if len(digits) != SENSOR_VALUE_DIGITS or not all(b in _HEX_DIGITS for b in digits):
        raise SensorParseError(f"Invalid sensor value: {digits!r}")
    return int(digits, 16)
