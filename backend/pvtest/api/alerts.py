"""
Alert listing and handling endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from pvtest.db.database import get_db
from pvtest.db.crud import CRUDBase
from pvtest.core.exceptions import NotFoundError
from pvtest.api.deps import to_http_exception
from pvtest.models import Alert
from pvtest.models.base import utcnow
from pvtest.schemas.alert import AlertResponse, AlertAction


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["alerts"])

alert_crud = CRUDBase(Alert)


def _get_alert_or_404(db: Session, alert_id: int) -> Alert:
    try:
        return alert_crud.get(db, alert_id)
    except NotFoundError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[AlertResponse])
async def get_alerts(
    experiment_id: Optional[int] = None,
    device_id: Optional[int] = None,
    resolved: Optional[bool] = None,
    alert_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """List alerts, newest first."""
    stmt = select(Alert)
    if experiment_id is not None:
        stmt = stmt.where(Alert.experiment_id == experiment_id)
    if device_id is not None:
        stmt = stmt.where(Alert.device_id == device_id)
    if resolved is True:
        stmt = stmt.where(Alert.resolved_at.is_not(None))
    elif resolved is False:
        stmt = stmt.where(Alert.resolved_at.is_(None))
    if alert_type:
        stmt = stmt.where(Alert.type == alert_type)

    stmt = stmt.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


@router.post("/{alert_id}/acknowledge", response_model=AlertResponse)
async def acknowledge_alert(
    alert_id: int,
    request: Optional[AlertAction] = None,
    db: Session = Depends(get_db)
):
    """Mark an alert as seen."""
    alert = _get_alert_or_404(db, alert_id)
    if alert.acknowledged_at is not None:
        return alert
    actor = request.actor if request else None
    logger.info(f"Alert {alert_id} acknowledged by {actor}")
    return alert_crud.update(db, alert, {"acknowledged_at": utcnow(), "acknowledged_by": actor})


@router.post("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    alert_id: int,
    request: Optional[AlertAction] = None,
    db: Session = Depends(get_db)
):
    """Close an alert. Resolving also acknowledges it."""
    alert = _get_alert_or_404(db, alert_id)
    if alert.resolved_at is not None:
        return alert

    actor = request.actor if request else None
    now = utcnow()
    changes = {"resolved_at": now, "resolved_by": actor}
    if alert.acknowledged_at is None:
        changes.update({"acknowledged_at": now, "acknowledged_by": actor})

    logger.info(f"Alert {alert_id} resolved by {actor}")
    return alert_crud.update(db, alert, changes)
