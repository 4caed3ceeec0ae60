"""Protocol session over one connected link.

A session starts right after the socket connects: it logs in, enters
command mode, then polls the two door sensors about once a second and pulses
the relay when a press is pending. Any failure propagates to the caller,
which owns reconnecting.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, TYPE_CHECKING

from ..link import DeviceLink
from ..models import (
    BOTTOM_SENSOR_ID,
    TOP_SENSOR_ID,
    DoorState,
    SensorReading,
    classify_readings,
)
from . import commands
from .commands import Exchange

if TYPE_CHECKING:
    from ..control import ControlChannel

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0  # seconds between sensor polls
PRESS_HOLD = 0.25  # seconds the relay stays on


class ProtocolSession:
    """Console dialogue with the module for the lifetime of one link."""

    def __init__(self, link: DeviceLink, press_hold: float = PRESS_HOLD):
        self._link = link
        self._press_hold = press_hold

    def _run_exchanges(self, exchanges: Iterable[Exchange]) -> None:
        for exchange in exchanges:
            if exchange.send is not None:
                self._link.send(exchange.send)
            self._link.expect(exchange.expect)

    def handshake(self, password: str) -> None:
        """Enter the password and switch the module to command mode."""
        self._run_exchanges(commands.handshake(password))
        logger.info("Logged in, module in command mode")

    def read_sensor(self, sensor_id: int) -> SensorReading:
        """Query one sensor.

        Consumes the echoed command, the five hex digits and the trailing
        prompt, leaving the buffer clean for the next command.
        """
        self._link.send(commands.sensor_query(sensor_id))
        self._link.expect(commands.sensor_echo(sensor_id))
        digits = self._link.read_exact(commands.SENSOR_VALUE_DIGITS)
        value = commands.parse_sensor_value(digits)
        self._link.expect(commands.COMMAND_PROMPT)
        return SensorReading(sensor_id=sensor_id, value=value)

    def read_door_state(self) -> DoorState:
        """Read both sensors and classify the door position."""
        top = self.read_sensor(TOP_SENSOR_ID)
        logger.debug(f"Door opened sensor = {top.value}")
        bottom = self.read_sensor(BOTTOM_SENSOR_ID)
        logger.debug(f"Door closed sensor = {bottom.value}")
        return classify_readings(top, bottom)

    def press_button(self) -> None:
        """Pulse the relay that drives the door opener."""
        logger.info("Pressing door button")
        self._run_exchanges((commands.RELAY_PRESS,))
        time.sleep(self._press_hold)
        self._run_exchanges((commands.RELAY_RELEASE,))

    def run(self,
            channel: ControlChannel,
            report: Callable[[DoorState], None],
            poll_interval: float = POLL_INTERVAL) -> None:
        """Poll until the channel is no longer opened.

        Args:
            channel: Control messages; its opened flag ends the loop
            report: Called with every classified state, in order
            poll_interval: Longest wait for a control message between polls
        """
        while channel.opened:
            report(self.read_door_state())

            channel.wait(poll_interval)
            if channel.take_press():
                self.press_button()

        logger.debug("Polling stopped")
