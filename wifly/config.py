"""Connection settings for the WiFly module.

The connector reads its settings once per connection attempt, so a source
may be a fixed ConnectionConfig or any zero-argument callable returning one.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 2000
ENV_PREFIX = "WIFLY_"


def parse_port(value: Union[int, str]) -> int:
    """Parse a TCP port from an int or a numeric string.

    Raises:
        ConfigurationError: If the value is not a number in 1..65535
    """
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid port: {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"Port out of range: {port}")
    return port


@dataclass(frozen=True)
class ConnectionConfig:
    """Where the module lives and how to log in.

    Attributes:
        host: Host name or IP address of the module
        port: TCP port, as an int or a numeric string
        password: Console password sent after the PASS? prompt
    """
    host: str
    port: Union[int, str] = DEFAULT_PORT
    password: str = ""

    @property
    def port_number(self) -> int:
        """Port as an integer.

        Raises:
            ConfigurationError: If the port is not a number in 1..65535
        """
        return parse_port(self.port)

    def validate(self) -> ConnectionConfig:
        """Check every field, returning self so calls can be chained."""
        if not self.host:
            raise ConfigurationError("Host address is not set")
        if self.password is None:
            raise ConfigurationError("Password is not set")
        parse_port(self.port)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> ConnectionConfig:
        """Build from a settings dict.

        Accepts both the short keys (host, port, password) and the legacy
        preference keys (host_address, host_port, password).
        """
        host = data.get("host", data.get("host_address"))
        port = data.get("port", data.get("host_port", DEFAULT_PORT))
        password = data.get("password")
        if host is None:
            raise ConfigurationError("Host address is not set")
        return cls(host=str(host), port=port, password=password)

    def __repr__(self) -> str:
        # Keep the password out of logs
        return f"ConnectionConfig(host={self.host!r}, port={self.port!r}, password='***')"


ConfigSource = Union[ConnectionConfig, Callable[[], ConnectionConfig]]


def resolve_config(source: ConfigSource) -> ConnectionConfig:
    """Read the current settings from a source."""
    if isinstance(source, ConnectionConfig):
        return source
    config = source()
    if not isinstance(config, ConnectionConfig):
        raise ConfigurationError(f"Config source returned {type(config).__name__}")
    return config


def load_config(path: Union[str, Path]) -> ConnectionConfig:
    """Load settings from a JSON file.

    Raises:
        ConfigurationError: If the file is missing or not valid JSON
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}") from None
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must hold a JSON object")
    return ConnectionConfig.from_dict(data)


def config_from_env(prefix: str = ENV_PREFIX) -> ConnectionConfig:
    """Load settings from <prefix>HOST, <prefix>PORT and <prefix>PASSWORD."""
    host = os.environ.get(f"{prefix}HOST")
    if not host:
        raise ConfigurationError(f"{prefix}HOST is not set")
    return ConnectionConfig(
        host=host,
        port=os.environ.get(f"{prefix}PORT", DEFAULT_PORT),
        password=os.environ.get(f"{prefix}PASSWORD", ""),
    )


class FileConfigSource:
    """Config source that re-reads a JSON file on every connection attempt.

    Edits made while the connector is running are picked up on the next
    reconnect.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self) -> ConnectionConfig:
        config = load_config(self._path)
        logger.debug(f"Loaded {config!r} from {self._path}")
        return config
