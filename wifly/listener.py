"""Listener interface for door events.

The connector calls these from its worker thread, one at a time and in
order. Implementations that drive a UI must hand the call over to their own
thread.
"""
from abc import ABC, abstractmethod

from .models import DoorState


class DoorListener(ABC):
    """Receives door state changes and connection loss."""

    @abstractmethod
    def on_door_opened(self) -> None:
        """Called when the door is opened."""
        pass

    @abstractmethod
    def on_door_moving(self) -> None:
        """Called when the door is neither opened nor closed."""
        pass

    @abstractmethod
    def on_door_closed(self) -> None:
        """Called when the door is closed."""
        pass

    @abstractmethod
    def on_door_invalid(self) -> None:
        """Called when both sensors are triggered at once."""
        pass

    @abstractmethod
    def on_connection_lost(self) -> None:
        """Called once every time a session ends, whatever the reason."""
        pass


def notify_door_state(listener: DoorListener, state: DoorState) -> None:
    """Invoke the callback matching state. UNKNOWN is never reported."""
    if state is DoorState.OPENED:
        listener.on_door_opened()
    elif state is DoorState.MOVING:
        listener.on_door_moving()
    elif state is DoorState.CLOSED:
        listener.on_door_closed()
    elif state is DoorState.INVALID:
        listener.on_door_invalid()
