"""Exception hierarchy for the WiFly connector.

Every failure inside a connection attempt is one of these. The supervisor
treats them all the same way: log, report connection lost, retry.
"""


class WiflyError(Exception):
    """Base class for all connector errors."""


class ConfigurationError(WiflyError):
    """Connection settings are missing or malformed."""


class LinkError(WiflyError):
    """Socket-level failure on the link to the module."""


class ConnectError(LinkError):
    """Could not resolve or connect to the module."""


class LinkClosedError(LinkError):
    """The peer closed the connection, or the link was aborted."""


class ReadTimeoutError(LinkError):
    """No data arrived within the read timeout."""


class ProtocolError(WiflyError):
    """The module did not answer the way the command console should."""


class ExpectTimeoutError(ProtocolError):
    """An expected pattern never showed up before the read timed out."""

    def __init__(self, pattern: bytes):
        super().__init__(f"Timed out waiting for {pattern!r}")
        self.pattern = pattern


class SensorParseError(ProtocolError):
    """A sensor report did not carry five hexadecimal digits."""
