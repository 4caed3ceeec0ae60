"""Door connector: the public face of the package.

Owns one background worker that keeps a session with the WiFly module
alive for as long as the caller wants it open:

    Idle -> Connecting -> Connected -> Retrying -> Connecting | Idle

Any failure while connecting or during the session (unreachable host,
handshake mismatch, socket error, bad sensor payload, bad settings) is logged
and reported as a lost connection, followed by a fixed delay and a retry.
There is no retry limit.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .config import ConfigSource, resolve_config
from .control import ControlChannel, ControlCommand
from .errors import LinkClosedError, WiflyError
from .link import DeviceLink, READ_TIMEOUT
from .listener import DoorListener, notify_door_state
from .models import DoorState
from .protocol import POLL_INTERVAL, PRESS_HOLD, ProtocolSession

logger = logging.getLogger(__name__)

RETRY_DELAY = 3.0  # seconds between a lost session and the next attempt


class DoorConnector:
    """Keeps a garage door module connected, polled and controllable.

    open(), close() and press_button() are safe from any thread and return
    immediately. Listener and subscriber callbacks run on the worker thread.

    Example:
        >>> connector = DoorConnector(listener, ConnectionConfig("10.0.0.1", 2000, "secret"))
        >>> connector.open()
        >>> connector.press_button()
        >>> connector.close()
        >>> connector.shutdown()
    """

    def __init__(self,
                 listener: Optional[DoorListener],
                 config: ConfigSource,
                 *,
                 read_timeout: float = READ_TIMEOUT,
                 poll_interval: float = POLL_INTERVAL,
                 retry_delay: float = RETRY_DELAY,
                 press_hold: float = PRESS_HOLD,
                 autostart: bool = True):
        """Initialize the connector.

        Args:
            listener: Receives door events, or None
            config: ConnectionConfig, or a callable returning one; read on
                every connection attempt
            read_timeout: Seconds before a connect or read gives up
            poll_interval: Seconds between sensor polls
            retry_delay: Seconds to wait after a lost session
            press_hold: Seconds the relay stays on for a button press
            autostart: Start the worker thread right away
        """
        self._listener = listener
        self._config = config
        self._read_timeout = read_timeout
        self._poll_interval = poll_interval
        self._retry_delay = retry_delay
        self._press_hold = press_hold

        self._channel = ControlChannel()
        self._state = DoorState.UNKNOWN

        # Active link, so close() can abort a blocked read
        self._link: Optional[DeviceLink] = None
        self._link_lock = threading.Lock()

        self._subscribers: List[Callable[[DoorState], None]] = []
        self._subscriber_lock = threading.Lock()

        self._stopping = threading.Event()
        self._worker: Optional[threading.Thread] = None

        if autostart:
            self.start()

    # Control API

    def start(self) -> None:
        """Start the worker thread. Does nothing if already started."""
        if self._worker is not None:
            return
        self._worker = threading.Thread(
            target=self._run,
            daemon=True,
            name="DoorConnector"
        )
        self._worker.start()

    def open(self) -> None:
        """Ask for the connection to be established and kept up."""
        logger.debug("open()")
        self._channel.post(ControlCommand.OPEN)

    def close(self) -> None:
        """Drop the connection and stop retrying.

        An active socket is closed before returning so a blocked read in
        the worker fails right away.
        """
        logger.debug("close()")
        self._channel.post(ControlCommand.CLOSE)
        self._abort_link()

    def press_button(self) -> None:
        """Request one relay pulse. Repeated requests before it runs collapse."""
        logger.debug("press_button()")
        self._channel.post(ControlCommand.PRESS)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the worker for good.

        Args:
            timeout: Seconds to wait for the worker to exit, None to wait
        """
        self._stopping.set()
        self._channel.post(ControlCommand.SHUTDOWN)
        self._abort_link()
        if self._worker and self._worker.is_alive():
            self._worker.join(timeout=timeout)

    @property
    def state(self) -> DoorState:
        """Last classified door state, UNKNOWN while disconnected."""
        return self._state

    @property
    def is_connected(self) -> bool:
        with self._link_lock:
            return self._link is not None

    def subscribe_state(self, callback: Callable[[DoorState], None]) -> Callable[[], None]:
        """Subscribe to door state changes.

        The callback receives every reported DoorState, and UNKNOWN when a
        session ends.

        Returns:
            Unsubscribe function
        """
        with self._subscriber_lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._subscriber_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def __enter__(self) -> DoorConnector:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    # Worker

    def _run(self) -> None:
        """Supervisor loop. Only shutdown() ends it."""
        logger.debug("Connector worker started")

        while not self._stopping.is_set():
            self._channel.wait_until_opened()
            if self._channel.shutdown_requested:
                break

            try:
                self._run_session()
            except WiflyError as e:
                logger.warning(f"Connection failed: {e}")
            except Exception:
                logger.exception("Unexpected error in door session")

            self._connection_lost()

            logger.debug(f"Retrying in {self._retry_delay} seconds")
            if self._stopping.wait(self._retry_delay):
                break
            self._channel.drain()

        logger.debug("Connector worker exiting")

    def _run_session(self) -> None:
        """One connection attempt, from settings to the end of polling."""
        config = resolve_config(self._config).validate()
        logger.info(f"Opening link to {config.host}:{config.port}")

        with DeviceLink.open(config.host, config.port_number, timeout=self._read_timeout) as link:
            with self._link_lock:
                self._link = link
            try:
                # close() may have run before the link was registered
                self._channel.drain()
                if not self._channel.opened:
                    raise LinkClosedError("Closed while connecting")

                session = ProtocolSession(link, press_hold=self._press_hold)
                session.handshake(config.password)
                session.run(self._channel, self._report_state, self._poll_interval)
            finally:
                with self._link_lock:
                    self._link = None

    def _abort_link(self) -> None:
        with self._link_lock:
            link = self._link
        if link is not None:
            link.abort()

    def _report_state(self, state: DoorState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.info(f"Door state: {state.name}")

        if self._listener is not None:
            self._call_safely(notify_door_state, self._listener, state)
        self._notify_subscribers(state)

    def _connection_lost(self) -> None:
        self._state = DoorState.UNKNOWN
        if self._listener is not None:
            self._call_safely(self._listener.on_connection_lost)
        self._notify_subscribers(DoorState.UNKNOWN)

    def _notify_subscribers(self, state: DoorState) -> None:
        with self._subscriber_lock:
            callbacks = list(self._subscribers)

        for callback in callbacks:
            self._call_safely(callback, state)

    @staticmethod
    def _call_safely(callback, *args) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Error in door callback: {e}")
