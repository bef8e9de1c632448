"""
Catpoint Core Models

Sensor and status snapshot models. Uses Pydantic for validation and
serialization.
"""

from functools import total_ordering
from typing import Optional

from pydantic import BaseModel, Field

from .enums import AlarmStatus, ArmingStatus, SensorType


@total_ordering
class Sensor(BaseModel):
    """A binary detector.

    Identity is (name, sensor_type): two Sensor objects with the same key
    are the same sensor regardless of their ``active`` flag.
    """
    name: str = Field(min_length=1)
    sensor_type: SensorType
    active: bool = False

    @property
    def key(self) -> tuple[str, SensorType]:
        return (self.name, self.sensor_type)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return self.key == other.key

    def __lt__(self, other: "Sensor") -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return (self.name, self.sensor_type.value) < (other.name, other.sensor_type.value)

    def __hash__(self) -> int:
        return hash(self.key)


class SecuritySnapshot(BaseModel):
    """Consistent view of the whole security state."""
    arming_status: ArmingStatus
    alarm_status: AlarmStatus
    sensors: list[Sensor] = Field(default_factory=list)
    cat_detected: Optional[bool] = None

    @property
    def active_sensor_count(self) -> int:
        return sum(1 for s in self.sensors if s.active)
