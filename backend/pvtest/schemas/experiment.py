"""
Pydantic schemas for Experiment model.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional, Literal

from pvtest.schemas.alert import AlertResponse


FinalStatus = Literal["completed", "cancelled", "failed"]


class ExperimentBase(BaseModel):
    """Base experiment schema."""
    name: str = Field(..., description="Experiment name")
    description: Optional[str] = Field(None, description="Experiment description")
    template_id: Optional[int] = Field(None, description="Template the parameters come from")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Test parameters")
    tags: Optional[List[str]] = Field(None, description="Labels")


class ExperimentCreate(ExperimentBase):
    """Schema for creating an experiment."""
    created_by: Optional[str] = None


class ExperimentParametersUpdate(BaseModel):
    """Schema for replacing an experiment's parameters."""
    parameters: Dict[str, Any]


class ExperimentStop(BaseModel):
    """Schema for stopping a running experiment."""
    status: FinalStatus = Field(default="completed", description="Final status")


class BulkDeleteRequest(BaseModel):
    """Schema for deleting several experiments at once."""
    ids: List[int] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted: int


class MaxPowerPointResponse(BaseModel):
    voltage: float
    current: float
    power: float


class ExperimentResultsResponse(BaseModel):
    """Derived metrics stored when an experiment stops."""
    total_data_points: int
    max_power: float
    avg_power: float
    max_voltage: float
    max_current: float
    max_temperature: float
    avg_efficiency: float
    test_duration: float = Field(..., description="Seconds between first and last sample")
    open_circuit_voltage: float
    short_circuit_current: float
    mpp: MaxPowerPointResponse
    fill_factor: float
    passed: bool


class ExperimentResponse(ExperimentBase):
    """Schema for experiment response."""
    id: int
    status: str
    created_by: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    results: Optional[ExperimentResultsResponse] = None

    class Config:
        from_attributes = True


class ExperimentPage(BaseModel):
    """Paginated experiment listing."""
    data: List[ExperimentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ExperimentDetails(BaseModel):
    """Experiment with sample count and recent alerts."""
    experiment: ExperimentResponse
    data_points_count: int
    recent_alerts: List[AlertResponse]


class ExperimentStatistics(BaseModel):
    total_experiments: int
    total_data_points: int
    completed_experiments: int
    today_experiments: int
    avg_duration_minutes: float
    success_rate: float
