"""Control messages from callers to the connector worker.

Callers on any thread post OPEN, CLOSE or PRESS. The worker drains the
queue in order and keeps its own view of whether the connection is wanted.
PRESS has room for one: posting it again while a press is still pending
does nothing, so rapid clicks collapse into a single relay pulse.
"""
from __future__ import annotations

import logging
import queue
import threading
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ControlCommand(Enum):
    """Messages understood by the worker."""
    OPEN = "open"
    CLOSE = "close"
    PRESS = "press"
    SHUTDOWN = "shutdown"


class ControlChannel:
    """Ordered message channel with press coalescing.

    post() may be called from any thread. Everything else belongs to the
    single consuming worker.
    """

    def __init__(self):
        self._queue: queue.Queue[ControlCommand] = queue.Queue()

        self._press_lock = threading.Lock()
        self._press_pending = False

        # Worker-side view, updated while draining
        self._opened = False
        self._shutdown = False

    def post(self, command: ControlCommand) -> None:
        """Deliver a message to the worker. Never blocks."""
        if command is ControlCommand.PRESS:
            with self._press_lock:
                if self._press_pending:
                    logger.debug("Press already pending, coalesced")
                    return
                self._press_pending = True
        self._queue.put(command)

    @property
    def opened(self) -> bool:
        """Whether the last drained OPEN/CLOSE asked for a connection."""
        return self._opened

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for a message, then drain everything queued behind it.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Returns:
            True if at least one message was handled
        """
        try:
            command = self._queue.get(timeout=timeout)
        except queue.Empty:
            return False
        self._apply(command)
        self.drain()
        return True

    def drain(self) -> None:
        """Handle every queued message without blocking."""
        while True:
            try:
                command = self._queue.get_nowait()
            except queue.Empty:
                return
            self._apply(command)

    def wait_until_opened(self) -> None:
        """Block until OPEN (or SHUTDOWN) has been drained."""
        self.drain()
        while not self._opened and not self._shutdown:
            self.wait()

    def take_press(self) -> bool:
        """Read and clear the pending press."""
        with self._press_lock:
            pressed = self._press_pending
            self._press_pending = False
        return pressed

    def _apply(self, command: ControlCommand) -> None:
        if command is ControlCommand.OPEN:
            self._opened = True
        elif command is ControlCommand.CLOSE:
            self._opened = False
        elif command is ControlCommand.SHUTDOWN:
            self._opened = False
            self._shutdown = True
        # PRESS only wakes the worker; the pending flag carries the request
