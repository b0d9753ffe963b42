"""
Test equipment model.
"""
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from pvtest.db.database import Base
from pvtest.models.base import utcnow


class DeviceType(str, Enum):
    POWER_SUPPLY = "power_supply"
    ELECTRONIC_LOAD = "electronic_load"
    MULTIMETER = "multimeter"
    WEATHER_STATION = "weather_station"
    SOLAR_SIMULATOR = "solar_simulator"


class DeviceStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    ERROR = "error"
    MAINTENANCE = "maintenance"


class Device(Base):
    """Instrument attached to the test bench."""
    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(30), nullable=False)
    manufacturer = Column(String(255), nullable=True)
    model = Column(String(255), nullable=True)
    serial_number = Column(String(255), nullable=True)
    modbus_address = Column(Integer, nullable=True)
    connection_params = Column(JSON, nullable=False, default=dict)

    status = Column(String(20), nullable=False, default=DeviceStatus.OFFLINE.value)
    last_seen = Column(DateTime, nullable=True)
    last_error = Column(Text, nullable=True)

    calibration_date = Column(DateTime, nullable=True)
    next_calibration_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Device(id={self.id}, name='{self.name}', status={self.status})>"
