"""
Catpoint Security Service - alarm state engine

Derives the alarm status from sensor activity, the arming mode and the
camera's cat classifier:

    NO_ALARM → PENDING_ALARM → ALARM

Key rules:
1. While DISARMED, sensor changes never affect the alarm status
2. Activation escalates one level per event; ALARM ignores sensor churn
3. Deactivation clears PENDING_ALARM only when no sensor is left active
4. Arming (HOME or AWAY) forces every sensor inactive
5. Disarming always returns to NO_ALARM
6. Cat while ARMED_HOME → ALARM; no cat and no active sensor → NO_ALARM
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from ..domain.enums import AlarmStatus, ArmingStatus, SensorType
from ..domain.models import SecuritySnapshot, Sensor
from ..hardware.image_service import ImageService
from .exceptions import DuplicateSensorError, UnknownSensorError
from .repository import SecurityRepository

logger = logging.getLogger(__name__)


class TransitionTrigger(str, Enum):
    """What caused an alarm status write."""
    SENSOR_ACTIVATED = "sensor_activated"
    SENSOR_DEACTIVATED = "sensor_deactivated"
    DISARM = "disarm"
    ARMED_WITH_CAT = "armed_with_cat"
    CAT_DETECTED = "cat_detected"
    NO_CAT_DETECTED = "no_cat_detected"


@dataclass
class TransitionResult:
    """Record of one alarm status write."""
    from_status: AlarmStatus
    to_status: AlarmStatus
    trigger: TransitionTrigger
    reason: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def changed(self) -> bool:
        return self.from_status != self.to_status


@dataclass
class SecurityServiceConfig:
    """Configuration for SecurityService."""
    # Passed to the classifier, in percent
    confidence_threshold: float = 50.0

    # Activating an already active sensor still escalates
    reactivation_escalates: bool = True

    # Arming HOME right after a cat was seen raises ALARM
    alarm_on_arm_home_with_cat: bool = False


class SecurityService:
    """Alarm state engine.

    Every public operation reads the current state, applies one delta rule
    and writes the result back while holding a single lock. All writes of
    one operation go through one repository transaction, so a failed write
    leaves the previous state in place. Repository and classifier errors
    propagate to the caller unchanged.
    """

    def __init__(
        self,
        repository: SecurityRepository,
        image_service: ImageService,
        config: Optional[SecurityServiceConfig] = None,
        on_state_change: Optional[Callable[[TransitionResult], None]] = None,
    ):
        self.config = config or SecurityServiceConfig()
        self.on_state_change = on_state_change

        self._repository = repository
        self._image_service = image_service
        self._lock = threading.RLock()

        # Most recent classifier answer (None until the first image)
        self._cat_detected: Optional[bool] = None

        self._transitions: list[TransitionResult] = []
        # Transitions written by the operation in progress
        self._pending: list[TransitionResult] = []

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def cat_detected(self) -> Optional[bool]:
        return self._cat_detected

    def get_alarm_status(self) -> AlarmStatus:
        return self._repository.get_alarm_status()

    def get_arming_status(self) -> ArmingStatus:
        return self._repository.get_arming_status()

    def get_sensors(self) -> list[Sensor]:
        return sorted(self._repository.get_sensors())

    def get_sensor(self, name: str, sensor_type: SensorType) -> Sensor:
        for sensor in self._repository.get_sensors():
            if sensor.key == (name, sensor_type):
                return sensor
        raise UnknownSensorError(name, sensor_type)

    def get_status(self) -> SecuritySnapshot:
        with self._lock:
            return SecuritySnapshot(
                arming_status=self._repository.get_arming_status(),
                alarm_status=self._repository.get_alarm_status(),
                sensors=[s.model_copy() for s in self.get_sensors()],
                cat_detected=self._cat_detected,
            )

    def get_transition_history(self) -> list[TransitionResult]:
        with self._lock:
            return list(self._transitions)

    def reset_history(self) -> None:
        with self._lock:
            self._transitions = []

    # =========================================================================
    # Sensor registry
    # =========================================================================

    def add_sensor(self, sensor: Sensor) -> None:
        with self._operation():
            if any(s.key == sensor.key for s in self._repository.get_sensors()):
                logger.warning("Rejected duplicate sensor %s", sensor.name)
                raise DuplicateSensorError(sensor.name, sensor.sensor_type)
            self._repository.add_sensor(sensor)
        logger.info("Added %s sensor %s", sensor.sensor_type.value, sensor.name)

    def remove_sensor(self, sensor: Sensor) -> None:
        with self._operation():
            stored = self.get_sensor(sensor.name, sensor.sensor_type)
            self._repository.remove_sensor(stored)
        logger.info("Removed %s sensor %s", sensor.sensor_type.value, sensor.name)

    # =========================================================================
    # Operations
    # =========================================================================

    def change_sensor_activation_status(self, sensor: Sensor, active: bool) -> None:
        """Apply a sensor activation or deactivation event.

        The sensor write and any alarm change are committed together.

        Raises:
            UnknownSensorError: sensor is not registered in the repository
        """
        with self._operation():
            try:
                stored = self.get_sensor(sensor.name, sensor.sensor_type)
            except UnknownSensorError:
                logger.warning("Activation change for unknown sensor %s", sensor.name)
                raise

            self._repository.update_sensor(stored.model_copy(update={"active": active}))
            self._apply_activation_rules(sensor, stored.active, active)
        sensor.active = active

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        """Change the arming mode.

        Arming resets every sensor to inactive; disarming clears the alarm.
        """
        with self._operation():
            self._repository.set_arming_status(arming_status)

            if arming_status == ArmingStatus.DISARMED:
                self._set_alarm_status(
                    AlarmStatus.NO_ALARM,
                    TransitionTrigger.DISARM,
                    "System disarmed",
                )
            else:
                for sensor in list(self._repository.get_sensors()):
                    self._repository.update_sensor(sensor.model_copy(update={"active": False}))

                if (
                    arming_status == ArmingStatus.ARMED_HOME
                    and self.config.alarm_on_arm_home_with_cat
                    and self._cat_detected
                ):
                    self._set_alarm_status(
                        AlarmStatus.ALARM,
                        TransitionTrigger.ARMED_WITH_CAT,
                        "Armed home while a cat is in view",
                    )
        logger.info("Arming status set to %s", arming_status.value)

    def process_image(self, image: Any) -> None:
        """Classify a camera image and apply the cat rules.

        The classifier runs outside the lock; the rules are applied to the
        state as it is when the answer arrives.
        """
        contains_cat = self._image_service.image_contains_cat(
            image, self.config.confidence_threshold
        )

        with self._lock:
            with self._operation():
                arming_status = self._repository.get_arming_status()

                if contains_cat and arming_status == ArmingStatus.ARMED_HOME:
                    self._set_alarm_status(
                        AlarmStatus.ALARM,
                        TransitionTrigger.CAT_DETECTED,
                        "Cat detected while armed home",
                    )
                elif not contains_cat and not self._any_sensor_active():
                    self._set_alarm_status(
                        AlarmStatus.NO_ALARM,
                        TransitionTrigger.NO_CAT_DETECTED,
                        "No cat and no active sensors",
                    )
                else:
                    logger.debug(
                        "Image processed (cat=%s, arming=%s), no change",
                        contains_cat, arming_status.value,
                    )
            self._cat_detected = contains_cat

    # =========================================================================
    # Internal
    # =========================================================================

    @contextmanager
    def _operation(self) -> Iterator[None]:
        """Lock, run the block in one repository transaction, then publish.

        Transitions are recorded only once the transaction has committed.
        """
        with self._lock:
            self._pending = []
            try:
                with self._repository.transaction():
                    yield
            except BaseException:
                self._pending = []
                raise
            pending, self._pending = self._pending, []
            for result in pending:
                self._record_transition(result)

    def _apply_activation_rules(self, sensor: Sensor, was_active: bool, active: bool) -> None:
        if was_active == active and not (active and self.config.reactivation_escalates):
            logger.debug("Sensor %s already %s, no change", sensor.name,
                         "active" if active else "inactive")
            return

        if self._repository.get_arming_status() == ArmingStatus.DISARMED:
            logger.debug("Sensor %s changed while disarmed, ignored", sensor.name)
            return

        if active:
            self._handle_sensor_activated(sensor)
        else:
            self._handle_sensor_deactivated(sensor)

    def _handle_sensor_activated(self, sensor: Sensor) -> None:
        alarm_status = self._repository.get_alarm_status()

        if alarm_status == AlarmStatus.NO_ALARM:
            self._set_alarm_status(
                AlarmStatus.PENDING_ALARM,
                TransitionTrigger.SENSOR_ACTIVATED,
                f"Sensor {sensor.name} activated",
            )
        elif alarm_status == AlarmStatus.PENDING_ALARM:
            self._set_alarm_status(
                AlarmStatus.ALARM,
                TransitionTrigger.SENSOR_ACTIVATED,
                f"Sensor {sensor.name} activated while pending",
            )
        else:
            logger.debug("Sensor %s activated during ALARM, ignored", sensor.name)

    def _handle_sensor_deactivated(self, sensor: Sensor) -> None:
        alarm_status = self._repository.get_alarm_status()

        if alarm_status == AlarmStatus.PENDING_ALARM and not self._any_sensor_active():
            self._set_alarm_status(
                AlarmStatus.NO_ALARM,
                TransitionTrigger.SENSOR_DEACTIVATED,
                f"Sensor {sensor.name} deactivated, no sensors active",
            )

    def _any_sensor_active(self) -> bool:
        return any(s.active for s in self._repository.get_sensors())

    def _set_alarm_status(
        self,
        alarm_status: AlarmStatus,
        trigger: TransitionTrigger,
        reason: str,
    ) -> TransitionResult:
        from_status = self._repository.get_alarm_status()
        self._repository.set_alarm_status(alarm_status)

        result = TransitionResult(
            from_status=from_status,
            to_status=alarm_status,
            trigger=trigger,
            reason=reason,
        )
        self._pending.append(result)
        return result

    def _record_transition(self, result: TransitionResult) -> None:
        """Record a committed transition and notify the callback."""
        self._transitions.append(result)
        if result.changed:
            logger.info(
                "Alarm %s → %s (%s)",
                result.from_status.value, result.to_status.value, result.reason,
            )
            if self.on_state_change:
                self.on_state_change(result)
