"""
Device registry endpoints.

The experiment core only reads device status; these endpoints let the
polling side keep it up to date.
"""
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy import select, func
from sqlalchemy.orm import Session
from typing import List
import logging

from pvtest.db.database import get_db
from pvtest.db.crud import CRUDBase
from pvtest.core.exceptions import NotFoundError
from pvtest.api.deps import to_http_exception
from pvtest.models import Device, DeviceStatus
from pvtest.schemas.device import (
    DeviceCreate,
    DeviceUpdate,
    DeviceResponse,
    DeviceStatusSummary
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/devices", tags=["devices"])

device_crud = CRUDBase(Device)


@router.get("", response_model=List[DeviceResponse])
async def get_devices(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """Get all devices with pagination."""
    return device_crud.get_multi(db, skip=skip, limit=limit)


@router.get("/status/summary", response_model=DeviceStatusSummary)
async def get_device_status_summary(db: Session = Depends(get_db)):
    """Device counts per status."""
    rows = db.execute(
        select(Device.status, func.count(Device.id)).group_by(Device.status)
    ).all()
    by_status = {row[0]: row[1] for row in rows}
    return {
        "total": sum(by_status.values()),
        "online": by_status.get(DeviceStatus.ONLINE.value, 0),
        "by_status": by_status
    }


@router.get("/{device_id}", response_model=DeviceResponse)
async def get_device(device_id: int, db: Session = Depends(get_db)):
    """Get a specific device by ID."""
    try:
        return device_crud.get(db, device_id)
    except NotFoundError as e:
        raise to_http_exception(e)


@router.post("", response_model=DeviceResponse, status_code=status.HTTP_201_CREATED)
async def create_device(request: DeviceCreate, db: Session = Depends(get_db)):
    """Register a device."""
    try:
        data = request.model_dump()
        data["type"] = request.type.value
        data["status"] = request.status.value
        return device_crud.create(db, data)
    except Exception as e:
        logger.error(f"Error creating device: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create device: {str(e)}"
        )


@router.put("/{device_id}", response_model=DeviceResponse)
async def update_device(
    device_id: int,
    request: DeviceUpdate,
    db: Session = Depends(get_db)
):
    """Update device status or metadata."""
    try:
        device = device_crud.get(db, device_id)
    except NotFoundError as e:
        raise to_http_exception(e)

    changes = request.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        changes["status"] = request.status.value
        if device.status != changes["status"]:
            logger.info(f"Device {device_id} status {device.status} -> {changes['status']}")

    try:
        return device_crud.update(db, device, changes)
    except Exception as e:
        logger.error(f"Error updating device: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update device: {str(e)}"
        )
