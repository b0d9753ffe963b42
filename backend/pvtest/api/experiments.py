"""
Experiment lifecycle endpoints.

光伏测试管理系统 - 实验管理API

Provides endpoints for:
- Creating, listing and reading experiments
- Starting and stopping experiments
- Updating experiment parameters
- Bulk deletion (cascades to samples)
- Summary statistics and JSON export
"""
from fastapi import APIRouter, HTTPException, status, Depends, Query
from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime, timedelta
import logging
import math

from pvtest.db.database import get_db
from pvtest.models import Experiment, ExperimentTemplate, TestData
from pvtest.models.base import utcnow
from pvtest.core.exceptions import ExperimentError
from pvtest.core.lifecycle import ExperimentLifecycleManager, ExperimentStatus
from pvtest.api.deps import get_lifecycle_manager, to_http_exception
from pvtest.schemas.experiment import (
    ExperimentCreate,
    ExperimentParametersUpdate,
    ExperimentStop,
    ExperimentResponse,
    ExperimentPage,
    ExperimentDetails,
    ExperimentStatistics,
    BulkDeleteRequest,
    BulkDeleteResponse
)
from pvtest.schemas.test_data import DataPointResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/experiments", tags=["experiments"])


@router.get("", response_model=ExperimentPage)
async def list_experiments(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    template_category: Optional[str] = None,
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    db: Session = Depends(get_db)
):
    """List experiments, newest first, with filters and pagination."""
    try:
        stmt = select(Experiment)

        if search:
            conditions = [Experiment.name.ilike(f"%{search}%")]
            if search.isdigit():
                conditions.append(Experiment.id == int(search))
            stmt = stmt.where(or_(*conditions))

        if status_filter and status_filter != "all":
            stmt = stmt.where(Experiment.status == status_filter)

        if template_category and template_category != "all":
            stmt = stmt.join(ExperimentTemplate, Experiment.template_id == ExperimentTemplate.id)
            stmt = stmt.where(ExperimentTemplate.category == template_category)

        if created_from:
            stmt = stmt.where(Experiment.created_at >= created_from)
        if created_to:
            stmt = stmt.where(Experiment.created_at <= created_to)

        total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

        stmt = (
            stmt.order_by(Experiment.created_at.desc(), Experiment.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        experiments = list(db.execute(stmt).scalars().all())

        return {
            "data": experiments,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": math.ceil(total / page_size)
        }
    except Exception as e:
        logger.error(f"Error fetching experiments: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch experiments: {str(e)}"
        )


@router.post("", response_model=ExperimentResponse, status_code=status.HTTP_201_CREATED)
async def create_experiment(
    request: ExperimentCreate,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Create a pending experiment."""
    try:
        return manager.create(
            name=request.name,
            description=request.description,
            template_id=request.template_id,
            parameters=request.parameters,
            tags=request.tags,
            created_by=request.created_by
        )
    except ExperimentError as e:
        raise to_http_exception(e)


@router.get("/running", response_model=List[ExperimentResponse])
async def get_running_experiments(
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Experiments currently running, most recently started first."""
    return manager.list_running()


@router.get("/stats/summary", response_model=ExperimentStatistics)
async def get_experiment_statistics(db: Session = Depends(get_db)):
    """Counts, average duration and success rate across all experiments."""
    try:
        total_experiments = db.execute(select(func.count(Experiment.id))).scalar_one()
        total_data_points = db.execute(select(func.count(TestData.id))).scalar_one()
        completed_experiments = db.execute(
            select(func.count(Experiment.id))
            .where(Experiment.status == ExperimentStatus.COMPLETED.value)
        ).scalar_one()

        now = utcnow()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        today_experiments = db.execute(
            select(func.count(Experiment.id)).where(Experiment.created_at >= today_start)
        ).scalar_one()

        durations = db.execute(
            select(Experiment.started_at, Experiment.ended_at).where(
                Experiment.status == ExperimentStatus.COMPLETED.value,
                Experiment.started_at.is_not(None),
                Experiment.ended_at.is_not(None)
            )
        ).all()
        if durations:
            total_duration = sum(
                ((row.ended_at - row.started_at) for row in durations),
                timedelta()
            )
            avg_duration = total_duration.total_seconds() / len(durations) / 60
        else:
            avg_duration = 0.0

        success_rate = (
            round(completed_experiments / total_experiments * 100, 1)
            if total_experiments else 0.0
        )

        return {
            "total_experiments": total_experiments,
            "total_data_points": total_data_points,
            "completed_experiments": completed_experiments,
            "today_experiments": today_experiments,
            "avg_duration_minutes": round(avg_duration, 2),
            "success_rate": success_rate
        }

    except Exception as e:
        logger.error(f"Error getting experiment statistics: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get statistics: {str(e)}"
        )


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def delete_experiments(
    request: BulkDeleteRequest,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Delete several experiments and all of their samples."""
    try:
        deleted = manager.delete_many(request.ids)
        return {"deleted": deleted}
    except Exception as e:
        logger.error(f"Error deleting experiments {request.ids}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete experiments: {str(e)}"
        )


@router.get("/{experiment_id}", response_model=ExperimentResponse)
async def get_experiment(
    experiment_id: int,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Get a specific experiment by ID."""
    try:
        return manager.get(experiment_id)
    except ExperimentError as e:
        raise to_http_exception(e)


@router.get("/{experiment_id}/details", response_model=ExperimentDetails)
async def get_experiment_details(
    experiment_id: int,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Experiment together with its sample count and ten latest alerts."""
    try:
        return manager.get_full_details(experiment_id)
    except ExperimentError as e:
        raise to_http_exception(e)


@router.put("/{experiment_id}/parameters", response_model=ExperimentResponse)
async def update_experiment_parameters(
    experiment_id: int,
    request: ExperimentParametersUpdate,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Replace the parameter bag of an experiment."""
    try:
        return manager.update_parameters(experiment_id, request.parameters)
    except ExperimentError as e:
        raise to_http_exception(e)


@router.post("/{experiment_id}/start", response_model=ExperimentResponse)
async def start_experiment(
    experiment_id: int,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Start a pending experiment."""
    try:
        return manager.start(experiment_id)
    except ExperimentError as e:
        logger.error(f"Cannot start experiment {experiment_id}: {e}")
        raise to_http_exception(e)


@router.post("/{experiment_id}/stop", response_model=ExperimentResponse)
async def stop_experiment(
    experiment_id: int,
    request: Optional[ExperimentStop] = None,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Stop a running experiment and compute its results."""
    try:
        final_status = request.status if request else ExperimentStatus.COMPLETED.value
        return manager.stop(experiment_id, final_status)
    except ExperimentError as e:
        logger.error(f"Cannot stop experiment {experiment_id}: {e}")
        raise to_http_exception(e)


@router.post("/{experiment_id}/pause")
async def pause_experiment(
    experiment_id: int,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Pausing is not supported; always answers 501 for existing experiments."""
    try:
        return manager.pause(experiment_id)
    except ExperimentError as e:
        raise to_http_exception(e)


@router.get("/{experiment_id}/export")
async def export_experiment(
    experiment_id: int,
    manager: ExperimentLifecycleManager = Depends(get_lifecycle_manager)
):
    """Export an experiment, its results and all samples as JSON."""
    try:
        experiment = manager.get(experiment_id)
        points = manager.get_data_points(experiment_id)
    except ExperimentError as e:
        raise to_http_exception(e)

    return {
        "experiment": ExperimentResponse.model_validate(experiment),
        "results": experiment.results,
        "data_points": [DataPointResponse.model_validate(p) for p in points]
    }
