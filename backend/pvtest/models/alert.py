"""
Alert data model.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from pvtest.db.database import Base
from pvtest.models.base import utcnow


class Alert(Base):
    """
    Threshold violation or device problem raised during a test.

    Attributes:
        type: critical, error, warning or info
        category: device, measurement, system or safety
        severity: 1 (lowest) to 5 (highest)
        details: Measured value and the threshold it crossed
    """
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=True, index=True)
    experiment_id = Column(Integer, ForeignKey("experiments.id"), nullable=True, index=True)

    type = Column(String(20), nullable=False)
    category = Column(String(20), nullable=False)
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    severity = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(String(255), nullable=True)
    acknowledged_at = Column(DateTime, nullable=True)
    acknowledged_by = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Alert(id={self.id}, type={self.type}, severity={self.severity})>"
