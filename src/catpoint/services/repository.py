"""
Security Repository - state store for the security service

Holds the arming status, the alarm status and the sensor collection:
- SecurityRepository: abstract contract consumed by SecurityService
- InMemorySecurityRepository: dict-backed store
- JsonFileSecurityRepository: in-memory store persisted to a JSON file
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from pydantic import ValidationError

from ..domain.enums import AlarmStatus, ArmingStatus
from ..domain.models import SecuritySnapshot, Sensor
from .exceptions import DuplicateSensorError, RepositoryError, UnknownSensorError

logger = logging.getLogger(__name__)


# =============================================================================
# Repository contract
# =============================================================================

class SecurityRepository(ABC):
    """Key-value store for the security state."""

    @abstractmethod
    def get_arming_status(self) -> ArmingStatus:
        pass

    @abstractmethod
    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        pass

    @abstractmethod
    def get_alarm_status(self) -> AlarmStatus:
        pass

    @abstractmethod
    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        pass

    @abstractmethod
    def get_sensors(self) -> set[Sensor]:
        """Return the stored sensor instances."""
        pass

    @abstractmethod
    def add_sensor(self, sensor: Sensor) -> None:
        pass

    @abstractmethod
    def remove_sensor(self, sensor: Sensor) -> None:
        pass

    @abstractmethod
    def update_sensor(self, sensor: Sensor) -> None:
        """Store the new state of an already registered sensor."""
        pass

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group the writes made inside the block.

        Persistent repositories keep all of them or none of them. The
        default groups nothing.
        """
        yield


# =============================================================================
# In-memory repository
# =============================================================================

class InMemorySecurityRepository(SecurityRepository):
    """
    Dict-backed repository

    Starts DISARMED with NO_ALARM and no sensors. Every write runs in a
    transaction: if the block raises, the state captured on entry is
    restored. Nested transactions join the outermost one.
    """

    def __init__(
        self,
        arming_status: ArmingStatus = ArmingStatus.DISARMED,
        alarm_status: AlarmStatus = AlarmStatus.NO_ALARM,
        sensors: Union[list[Sensor], set[Sensor], None] = None,
    ):
        self._arming_status = arming_status
        self._alarm_status = alarm_status
        self._sensors: dict[tuple, Sensor] = {}
        for sensor in sensors or ():
            self._sensors[sensor.key] = sensor
        self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_transaction:
            yield
            return

        saved = (
            self._arming_status,
            self._alarm_status,
            {key: s.model_copy() for key, s in self._sensors.items()},
        )
        self._in_transaction = True
        try:
            yield
            self._commit()
        except BaseException:
            self._arming_status, self._alarm_status, self._sensors = saved
            raise
        finally:
            self._in_transaction = False

    def _commit(self) -> None:
        """Called once when the outermost transaction succeeds."""

    def get_arming_status(self) -> ArmingStatus:
        return self._arming_status

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        with self.transaction():
            self._arming_status = arming_status

    def get_alarm_status(self) -> AlarmStatus:
        return self._alarm_status

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        with self.transaction():
            self._alarm_status = alarm_status

    def get_sensors(self) -> set[Sensor]:
        return set(self._sensors.values())

    def add_sensor(self, sensor: Sensor) -> None:
        if sensor.key in self._sensors:
            raise DuplicateSensorError(sensor.name, sensor.sensor_type)
        with self.transaction():
            self._sensors[sensor.key] = sensor

    def remove_sensor(self, sensor: Sensor) -> None:
        if sensor.key not in self._sensors:
            raise UnknownSensorError(sensor.name, sensor.sensor_type)
        with self.transaction():
            del self._sensors[sensor.key]

    def update_sensor(self, sensor: Sensor) -> None:
        if sensor.key not in self._sensors:
            raise UnknownSensorError(sensor.name, sensor.sensor_type)
        with self.transaction():
            self._sensors[sensor.key] = sensor


# =============================================================================
# JSON file repository
# =============================================================================

class JsonFileSecurityRepository(InMemorySecurityRepository):
    """
    Repository persisted to a single JSON file

    Features:
    - Loads the file on construction if it exists
    - Rewrites the file once per transaction (temp file + replace)
    - A failed write rolls the in-memory state back to the file's state
    - I/O and decode failures raise RepositoryError
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _commit(self) -> None:
        self._save()

    def _load(self) -> None:
        try:
            text = self.path.read_text(encoding="utf-8")
            snapshot = SecuritySnapshot.model_validate_json(text)
        except (OSError, ValidationError) as e:
            raise RepositoryError(f"Failed to load {self.path}: {e}") from e

        self._arming_status = snapshot.arming_status
        self._alarm_status = snapshot.alarm_status
        self._sensors = {s.key: s for s in snapshot.sensors}
        logger.info(
            "Loaded security state from %s (%d sensors)", self.path, len(self._sensors)
        )

    def _save(self) -> None:
        snapshot = SecuritySnapshot(
            arming_status=self._arming_status,
            alarm_status=self._alarm_status,
            sensors=sorted(self._sensors.values()),
        )
        data = snapshot.model_dump(mode="json", exclude={"cat_detected"})
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise RepositoryError(f"Failed to save {self.path}: {e}") from e
