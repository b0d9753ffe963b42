"""
Pydantic schemas for ExperimentTemplate model.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    category: Optional[str] = None
    is_public: bool = True
    created_by: Optional[str] = None


class TemplateResponse(TemplateCreate):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
