"""Protocol layer for the WiFly command console."""

from .commands import Exchange, parse_sensor_value, sensor_echo, sensor_query
from .session import ProtocolSession, POLL_INTERVAL, PRESS_HOLD

__all__ = [
    "Exchange",
    "parse_sensor_value",
    "sensor_echo",
    "sensor_query",
    "ProtocolSession",
    "POLL_INTERVAL",
    "PRESS_HOLD",
]
