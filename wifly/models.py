"""Door state model and sensor classification.

Readings are turned into a DoorState with a fixed bit encoding:
bit 1 is set when the top (door-open) sensor is triggered, bit 0 when the
bottom (door-closed) sensor is triggered.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

TOP_SENSOR_ID = 2     # triggered when the door is fully open
BOTTOM_SENSOR_ID = 3  # triggered when the door is fully closed

SENSOR_TRIGGER_THRESHOLD = 100000
SENSOR_MAX_VALUE = 0xFFFFF


class DoorState(Enum):
    """Position of the garage door.

    The integer values are the classification codes, UNKNOWN excepted.
    """
    UNKNOWN = -1
    MOVING = 0
    CLOSED = 1
    OPENED = 2
    INVALID = 3

    @property
    def is_known(self) -> bool:
        return self is not DoorState.UNKNOWN


@dataclass(frozen=True)
class SensorReading:
    """A single sensor report.

    Attributes:
        sensor_id: Sensor queried (TOP_SENSOR_ID or BOTTOM_SENSOR_ID)
        value: Raw reading, 0 to 0xFFFFF
    """
    sensor_id: int
    value: int

    @property
    def triggered(self) -> bool:
        """True when the sensor sees the door."""
        return self.value < SENSOR_TRIGGER_THRESHOLD


def classify(top: int, bottom: int) -> DoorState:
    """Classify door position from the two raw sensor values.

    Args:
        top: Reading of the door-open sensor
        bottom: Reading of the door-closed sensor

    Returns:
        MOVING when neither sensor is triggered, CLOSED or OPENED when one is,
        INVALID when both are (the door cannot be open and closed at once).

    Example:
        >>> classify(0x00032, 0x1F4A0)
        <DoorState.OPENED: 2>
    """
    code = (2 if top < SENSOR_TRIGGER_THRESHOLD else 0) | (
        1 if bottom < SENSOR_TRIGGER_THRESHOLD else 0
    )
    return DoorState(code)


def classify_readings(top: SensorReading, bottom: SensorReading) -> DoorState:
    """Classify from SensorReading objects."""
    return classify(top.value, bottom.value)
