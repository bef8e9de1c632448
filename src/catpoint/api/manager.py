"""
Catpoint Manager API

REST endpoints for local control and simulation of the security service:
- Sensor registry (list, add, remove)
- Sensor activation toggling
- Arming mode changes
- Camera image upload
- Status and transition history
"""

import logging
from datetime import datetime
from typing import Optional

import cv2
import numpy as np
from fastapi import APIRouter, FastAPI, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from ..domain.enums import AlarmStatus, ArmingStatus, SensorType
from ..domain.models import SecuritySnapshot, Sensor
from ..services.exceptions import CollaboratorFailure, DuplicateSensorError, UnknownSensorError
from ..services.security_service import SecurityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["security"])


# =============================================================================
# Request/Response Models
# =============================================================================

class SensorCreate(BaseModel):
    """Register a sensor"""
    name: str = Field(..., min_length=1)
    sensor_type: SensorType


class ActivationChange(BaseModel):
    """Sensor activation change"""
    active: bool


class ArmingChange(BaseModel):
    """Arming mode change"""
    arming_status: ArmingStatus


class TransitionResponse(BaseModel):
    from_status: AlarmStatus
    to_status: AlarmStatus
    trigger: str
    reason: str
    timestamp: datetime


# =============================================================================
# Service injection
# =============================================================================

_service: Optional[SecurityService] = None


def set_service(service: SecurityService):
    """Install the SecurityService used by the endpoints"""
    global _service
    _service = service


def get_service() -> SecurityService:
    if _service is None:
        raise HTTPException(status_code=500, detail="Security service not initialized")
    return _service


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/status", response_model=SecuritySnapshot)
async def get_status():
    return get_service().get_status()


@router.get("/history", response_model=list[TransitionResponse])
async def get_history():
    """Alarm status writes, oldest first"""
    return [
        TransitionResponse(
            from_status=t.from_status,
            to_status=t.to_status,
            trigger=t.trigger.value,
            reason=t.reason,
            timestamp=t.timestamp,
        )
        for t in get_service().get_transition_history()
    ]


@router.get("/sensors", response_model=list[Sensor])
async def list_sensors():
    return get_service().get_sensors()


@router.post("/sensors", response_model=Sensor, status_code=201)
async def create_sensor(request: SensorCreate):
    sensor = Sensor(name=request.name, sensor_type=request.sensor_type)
    try:
        get_service().add_sensor(sensor)
    except DuplicateSensorError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CollaboratorFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return sensor


@router.delete("/sensors/{sensor_type}/{name}")
async def delete_sensor(sensor_type: SensorType, name: str):
    service = get_service()
    try:
        service.remove_sensor(Sensor(name=name, sensor_type=sensor_type))
    except UnknownSensorError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CollaboratorFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "deleted", "name": name, "sensor_type": sensor_type.value}


@router.post("/sensors/{sensor_type}/{name}/activation", response_model=SecuritySnapshot)
async def change_activation(sensor_type: SensorType, name: str, request: ActivationChange):
    """Simulate a sensor opening/closing or detecting motion"""
    service = get_service()
    try:
        service.change_sensor_activation_status(
            Sensor(name=name, sensor_type=sensor_type), request.active
        )
    except UnknownSensorError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CollaboratorFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return service.get_status()


@router.post("/arming", response_model=SecuritySnapshot)
async def set_arming(request: ArmingChange):
    service = get_service()
    try:
        service.set_arming_status(request.arming_status)
    except CollaboratorFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return service.get_status()


@router.post("/image", response_model=SecuritySnapshot)
async def process_image(file: UploadFile = File(...)):
    """Classify an uploaded camera image"""
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty image upload")
    frame = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame is None:
        logger.warning("Rejected undecodable image %r", file.filename)
        raise HTTPException(status_code=400, detail=f"Cannot decode image {file.filename!r}")

    service = get_service()
    try:
        await run_in_threadpool(service.process_image, frame)
    except CollaboratorFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return service.get_status()


def create_app(service: Optional[SecurityService] = None) -> FastAPI:
    """Build the FastAPI application, optionally installing a service"""
    if service is not None:
        set_service(service)

    app = FastAPI(
        title="Catpoint Manager",
        description="Home security alarm state engine",
        version="1.0.0",
    )
    app.include_router(router)
    return app
