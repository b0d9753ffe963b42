"""
Pydantic schemas for Alert model.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional


class AlertResponse(BaseModel):
    id: int
    device_id: Optional[int] = None
    experiment_id: Optional[int] = None
    type: str
    category: str
    message: str
    details: Optional[Dict[str, Any]] = None
    severity: int
    created_at: datetime
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None

    class Config:
        from_attributes = True


class AlertAction(BaseModel):
    """Who acknowledges or resolves an alert."""
    actor: Optional[str] = Field(None, description="User performing the action")
