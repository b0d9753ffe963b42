"""
Measurement sample endpoints.

Samples are only accepted while their experiment is running.
"""
from fastapi import APIRouter, status, Depends, Query
from typing import List, Literal
import logging

from pvtest.core.exceptions import ExperimentError
from pvtest.core.lifecycle import ExperimentLifecycleManager
from pvtest.api.deps import get_lifecycle_manager, to_http_exception
from pvtest.schemas.test_data import DataPointCreate, DataPointResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/experiments/{experiment_id}/data", tags=["data"])


@router.get("", response_model=List[DataPointResponse])
async def get_data_points(
    experiment_id: int,
    limit: int = Query(1000, ge=1, le=100000),
    offset: int = Query(0, ge=0),
    order: Literal["asc", "desc"] = "asc",
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Samples of an experiment ordered by timestamp."""
    try:
        return manager.get_data_points(
            experiment_id,
            limit=limit,
            offset=offset,
            descending=(order == "desc")
        )
    except ExperimentError as e:
        raise to_http_exception(e)


@router.get("/latest", response_model=List[DataPointResponse])
async def get_latest_data_points(
    experiment_id: int,
    limit: int = Query(100, ge=1, le=10000),
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """The most recent samples, oldest first."""
    try:
        return manager.get_realtime_data(experiment_id, limit=limit)
    except ExperimentError as e:
        raise to_http_exception(e)


@router.post("", response_model=DataPointResponse, status_code=status.HTTP_201_CREATED)
async def record_data_point(
    experiment_id: int,
    request: DataPointCreate,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Record one sample of a running experiment."""
    try:
        return manager.record_data_point(experiment_id, request.model_dump(exclude_none=True))
    except ExperimentError as e:
        logger.error(f"Rejected data point for experiment {experiment_id}: {e}")
        raise to_http_exception(e)


@router.post("/batch", response_model=List[DataPointResponse], status_code=status.HTTP_201_CREATED)
async def record_data_points(
    experiment_id: int,
    request: List[DataPointCreate],
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Record several samples of a running experiment in one transaction."""
    try:
        return manager.record_data_points(
            experiment_id,
            [p.model_dump(exclude_none=True) for p in request]
        )
    except ExperimentError as e:
        logger.error(f"Rejected data batch for experiment {experiment_id}: {e}")
        raise to_http_exception(e)
