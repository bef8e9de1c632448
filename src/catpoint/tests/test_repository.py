"""
Tests for security repositories and the Sensor model
"""

import json
from unittest.mock import patch

import pytest

from catpoint.domain.enums import AlarmStatus, ArmingStatus, SensorType
from catpoint.domain.models import Sensor
from catpoint.services.exceptions import (
    CollaboratorFailure,
    DuplicateSensorError,
    RepositoryError,
    UnknownSensorError,
)
from catpoint.services.repository import (
    InMemorySecurityRepository,
    JsonFileSecurityRepository,
)


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "state" / "catpoint.json"


class TestSensorModel:

    def test_identity_ignores_active_flag(self):
        a = Sensor(name="front", sensor_type=SensorType.DOOR, active=True)
        b = Sensor(name="front", sensor_type=SensorType.DOOR, active=False)

        assert a == b
        assert len({a, b}) == 1

    def test_type_is_part_of_identity(self):
        door = Sensor(name="front", sensor_type=SensorType.DOOR)
        window = Sensor(name="front", sensor_type=SensorType.WINDOW)

        assert door != window
        assert len({door, window}) == 2

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            Sensor(name="", sensor_type=SensorType.MOTION)


class TestInMemoryRepository:

    def test_initial_state(self):
        repo = InMemorySecurityRepository()

        assert repo.get_arming_status() == ArmingStatus.DISARMED
        assert repo.get_alarm_status() == AlarmStatus.NO_ALARM
        assert repo.get_sensors() == set()

    def test_sensor_lifecycle(self):
        repo = InMemorySecurityRepository()
        sensor = Sensor(name="hall", sensor_type=SensorType.MOTION)

        repo.add_sensor(sensor)
        repo.update_sensor(sensor.model_copy(update={"active": True}))

        (stored,) = repo.get_sensors()
        assert stored.active is True

        repo.remove_sensor(sensor)
        assert repo.get_sensors() == set()

    def test_errors(self):
        repo = InMemorySecurityRepository(sensors=[Sensor(name="hall", sensor_type=SensorType.MOTION)])
        other = Sensor(name="attic", sensor_type=SensorType.WINDOW)

        with pytest.raises(DuplicateSensorError):
            repo.add_sensor(Sensor(name="hall", sensor_type=SensorType.MOTION))
        with pytest.raises(UnknownSensorError):
            repo.update_sensor(other)
        with pytest.raises(UnknownSensorError):
            repo.remove_sensor(other)


class TestJsonFileRepository:

    def test_state_survives_reload(self, state_file):
        repo = JsonFileSecurityRepository(state_file)
        repo.add_sensor(Sensor(name="front", sensor_type=SensorType.DOOR, active=True))
        repo.add_sensor(Sensor(name="back", sensor_type=SensorType.WINDOW))
        repo.set_arming_status(ArmingStatus.ARMED_AWAY)
        repo.set_alarm_status(AlarmStatus.PENDING_ALARM)

        reloaded = JsonFileSecurityRepository(state_file)

        assert reloaded.get_arming_status() == ArmingStatus.ARMED_AWAY
        assert reloaded.get_alarm_status() == AlarmStatus.PENDING_ALARM
        by_name = {s.name: s for s in reloaded.get_sensors()}
        assert by_name["front"].active is True
        assert by_name["back"].sensor_type == SensorType.WINDOW

    def test_file_format(self, state_file):
        repo = JsonFileSecurityRepository(state_file)
        repo.add_sensor(Sensor(name="front", sensor_type=SensorType.DOOR))

        data = json.loads(state_file.read_text(encoding="utf-8"))

        assert data == {
            "arming_status": "disarmed",
            "alarm_status": "no_alarm",
            "sensors": [{"name": "front", "sensor_type": "door", "active": False}],
        }
        assert not state_file.with_name(state_file.name + ".tmp").exists()

    def test_missing_file_starts_empty(self, state_file):
        repo = JsonFileSecurityRepository(state_file)

        assert repo.get_sensors() == set()
        assert not state_file.exists()

    def test_corrupt_file_raises_repository_error(self, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(RepositoryError) as exc_info:
            JsonFileSecurityRepository(state_file)

        assert isinstance(exc_info.value, CollaboratorFailure)
        assert exc_info.value.__cause__ is not None

    def test_unwritable_location_raises_repository_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        repo = JsonFileSecurityRepository(blocker / "catpoint.json")

        with pytest.raises(RepositoryError):
            repo.set_arming_status(ArmingStatus.ARMED_HOME)

        assert repo.get_arming_status() == ArmingStatus.DISARMED


class TestTransactions:

    def test_rollback_restores_every_write(self):
        repo = InMemorySecurityRepository(sensors=[Sensor(name="hall", sensor_type=SensorType.MOTION)])

        with pytest.raises(RuntimeError):
            with repo.transaction():
                repo.set_arming_status(ArmingStatus.ARMED_AWAY)
                repo.set_alarm_status(AlarmStatus.ALARM)
                repo.update_sensor(Sensor(name="hall", sensor_type=SensorType.MOTION, active=True))
                repo.add_sensor(Sensor(name="attic", sensor_type=SensorType.WINDOW))
                raise RuntimeError("abort")

        assert repo.get_arming_status() == ArmingStatus.DISARMED
        assert repo.get_alarm_status() == AlarmStatus.NO_ALARM
        (hall,) = repo.get_sensors()
        assert hall.active is False

    def test_json_transaction_saves_once(self, state_file):
        repo = JsonFileSecurityRepository(state_file)

        with patch.object(repo, "_save", wraps=repo._save) as save:
            with repo.transaction():
                repo.add_sensor(Sensor(name="front", sensor_type=SensorType.DOOR))
                repo.set_arming_status(ArmingStatus.ARMED_HOME)
                repo.set_alarm_status(AlarmStatus.PENDING_ALARM)

        assert save.call_count == 1
        reloaded = JsonFileSecurityRepository(state_file)
        assert reloaded.get_alarm_status() == AlarmStatus.PENDING_ALARM
        assert len(reloaded.get_sensors()) == 1

    def test_failed_save_keeps_file_state_in_memory(self, state_file):
        repo = JsonFileSecurityRepository(state_file)
        repo.add_sensor(Sensor(name="front", sensor_type=SensorType.DOOR))

        with patch.object(repo, "_save", side_effect=RepositoryError("disk full")):
            with pytest.raises(RepositoryError):
                repo.update_sensor(Sensor(name="front", sensor_type=SensorType.DOOR, active=True))

        (front,) = repo.get_sensors()
        assert front.active is False
