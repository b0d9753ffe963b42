"""
Pydantic schemas for Device model.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional

from pvtest.models.device import DeviceType, DeviceStatus


class DeviceBase(BaseModel):
    name: str = Field(..., min_length=1)
    type: DeviceType
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    modbus_address: Optional[int] = Field(None, ge=0, le=247)
    connection_params: Dict[str, Any] = Field(default_factory=dict)
    calibration_date: Optional[datetime] = None
    next_calibration_date: Optional[datetime] = None


class DeviceCreate(DeviceBase):
    status: DeviceStatus = DeviceStatus.OFFLINE


class DeviceUpdate(BaseModel):
    name: Optional[str] = None
    status: Optional[DeviceStatus] = None
    last_seen: Optional[datetime] = None
    last_error: Optional[str] = None
    connection_params: Optional[Dict[str, Any]] = None
    calibration_date: Optional[datetime] = None
    next_calibration_date: Optional[datetime] = None


class DeviceResponse(DeviceBase):
    id: int
    status: DeviceStatus
    last_seen: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DeviceStatusSummary(BaseModel):
    total: int
    online: int
    by_status: Dict[str, int]
