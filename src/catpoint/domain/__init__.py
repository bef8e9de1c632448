"""Catpoint Domain Models"""

from .enums import (
    SensorType,
    ArmingStatus,
    AlarmStatus,
)

from .models import (
    Sensor,
    SecuritySnapshot,
)

__all__ = [
    # Enums
    'SensorType',
    'ArmingStatus',
    'AlarmStatus',

    # Models
    'Sensor',
    'SecuritySnapshot',
]
