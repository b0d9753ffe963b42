"""
Shared router dependencies.

Builds a lifecycle manager per request and maps core errors to HTTP
responses.
"""
from functools import lru_cache
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from pvtest.config import get_settings
from pvtest.db.database import get_db
from pvtest.core.alerts import AlertSuppressor
from pvtest.core.lifecycle import ExperimentLifecycleManager
from pvtest.core.exceptions import (
    ExperimentError,
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
    UnsupportedTransitionError,
)


@lru_cache
def get_alert_suppressor() -> AlertSuppressor:
    """Process-wide suppressor so the window spans requests."""
    return AlertSuppressor(get_settings().alert_suppression_seconds)


def get_lifecycle_manager(db: Session = Depends(get_db)) -> ExperimentLifecycleManager:
    return ExperimentLifecycleManager(db, suppressor=get_alert_suppressor())


def to_http_exception(error: ExperimentError) -> HTTPException:
    """Translate a core error into the matching HTTP error."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, UnsupportedTransitionError):
        code = status.HTTP_501_NOT_IMPLEMENTED
    elif isinstance(error, InvalidTransitionError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))
