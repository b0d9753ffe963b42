"""
Pydantic schemas package.
"""
from pvtest.schemas.alert import AlertResponse, AlertAction
from pvtest.schemas.experiment import (
    ExperimentBase,
    ExperimentCreate,
    ExperimentParametersUpdate,
    ExperimentStop,
    ExperimentResponse,
    ExperimentResultsResponse,
    ExperimentPage,
    ExperimentDetails,
    ExperimentStatistics,
    BulkDeleteRequest,
    BulkDeleteResponse
)
from pvtest.schemas.test_data import DataPointCreate, DataPointResponse
from pvtest.schemas.device import (
    DeviceCreate,
    DeviceUpdate,
    DeviceResponse,
    DeviceStatusSummary
)
from pvtest.schemas.template import TemplateCreate, TemplateResponse

__all__ = [
    "AlertResponse",
    "AlertAction",
    "ExperimentBase",
    "ExperimentCreate",
    "ExperimentParametersUpdate",
    "ExperimentStop",
    "ExperimentResponse",
    "ExperimentResultsResponse",
    "ExperimentPage",
    "ExperimentDetails",
    "ExperimentStatistics",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "DataPointCreate",
    "DataPointResponse",
    "DeviceCreate",
    "DeviceUpdate",
    "DeviceResponse",
    "DeviceStatusSummary",
    "TemplateCreate",
    "TemplateResponse"
]
