"""
Catpoint Core Enums

Sensor types, arming modes and alarm escalation levels.
Values are lowercase strings so they serialize directly to JSON.
"""

from enum import Enum


# =============================================================================
# Sensors
# =============================================================================

class SensorType(str, Enum):
    """Physical sensor type."""
    DOOR = "door"
    WINDOW = "window"
    MOTION = "motion"


# =============================================================================
# Arming & Alarm
# =============================================================================

class ArmingStatus(str, Enum):
    """Arming mode selected by the user."""
    DISARMED = "disarmed"
    ARMED_HOME = "armed_home"
    ARMED_AWAY = "armed_away"

    @property
    def is_armed(self) -> bool:
        return self != ArmingStatus.DISARMED


class AlarmStatus(str, Enum):
    """Alarm escalation level.

    Only SecurityService moves between these states.
    """
    NO_ALARM = "no_alarm"             # Natural initial state
    PENDING_ALARM = "pending_alarm"   # One sensor tripped while armed
    ALARM = "alarm"                   # Full alarm, sticky against sensor churn
