"""
Pydantic schemas for measurement samples.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional


class DataPointCreate(BaseModel):
    """Single measurement sample; missing readings stay null."""
    timestamp: Optional[datetime] = Field(None, description="Sample time, defaults to now")
    voltage: Optional[float] = Field(None, description="Voltage (V)")
    current: Optional[float] = Field(None, description="Current (A)")
    power: Optional[float] = Field(None, description="Power (W), derived from V × I when omitted")
    temperature: Optional[float] = Field(None, description="Temperature (°C)")
    humidity: Optional[float] = Field(None, description="Relative humidity (%)")
    irradiance: Optional[float] = Field(None, description="Irradiance (W/m²)")
    efficiency: Optional[float] = Field(None, description="Efficiency (%)")
    fill_factor: Optional[float] = None
    open_circuit_voltage: Optional[float] = None
    short_circuit_current: Optional[float] = None
    max_power_voltage: Optional[float] = None
    max_power_current: Optional[float] = None
    raw_data: Optional[Dict[str, Any]] = None


class DataPointResponse(DataPointCreate):
    id: int
    experiment_id: int
    timestamp: datetime

    class Config:
        from_attributes = True
