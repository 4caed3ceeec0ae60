"""WiFly garage door connector - keeps a WiFly module connected, polled and controllable."""

from .config import ConnectionConfig, FileConfigSource, config_from_env, load_config
from .connector import DoorConnector
from .errors import (
    WiflyError,
    ConfigurationError,
    LinkError,
    ConnectError,
    LinkClosedError,
    ReadTimeoutError,
    ProtocolError,
    ExpectTimeoutError,
    SensorParseError,
)
from .listener import DoorListener
from .models import DoorState, SensorReading, classify

__all__ = [
    "ConnectionConfig",
    "FileConfigSource",
    "config_from_env",
    "load_config",
    "DoorConnector",
    "DoorListener",
    "DoorState",
    "SensorReading",
    "classify",
    "WiflyError",
    "ConfigurationError",
    "LinkError",
    "ConnectError",
    "LinkClosedError",
    "ReadTimeoutError",
    "ProtocolError",
    "ExpectTimeoutError",
    "SensorParseError",
]
