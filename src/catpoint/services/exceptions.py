"""Errors raised by the security service and its collaborators."""

from ..domain.enums import SensorType


class CatpointError(Exception):
    """Base class for all catpoint errors."""


class UnknownSensorError(CatpointError, KeyError):
    """Operation referenced a sensor that is not in the repository."""

    def __init__(self, name: str, sensor_type: SensorType):
        self.name = name
        self.sensor_type = sensor_type
        super().__init__(f"Sensor {name!r} ({sensor_type.value}) not found")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class DuplicateSensorError(CatpointError, ValueError):
    """Sensor with the same (name, type) is already registered."""

    def __init__(self, name: str, sensor_type: SensorType):
        self.name = name
        self.sensor_type = sensor_type
        super().__init__(f"Sensor {name!r} ({sensor_type.value}) already exists")


class CollaboratorFailure(CatpointError):
    """A repository or classifier call failed."""


class RepositoryError(CollaboratorFailure):
    """Security state could not be loaded or persisted."""
