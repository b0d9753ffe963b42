"""
Experiment template endpoints.
"""
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import List
import logging

from pvtest.db.database import get_db
from pvtest.db.crud import CRUDBase
from pvtest.core.exceptions import NotFoundError
from pvtest.api.deps import to_http_exception
from pvtest.models import ExperimentTemplate
from pvtest.schemas.template import TemplateCreate, TemplateResponse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates", tags=["templates"])

template_crud = CRUDBase(ExperimentTemplate)


@router.get("", response_model=List[TemplateResponse])
async def get_templates(db: Session = Depends(get_db)):
    """Public templates ordered by category, then name."""
    stmt = (
        select(ExperimentTemplate)
        .where(ExperimentTemplate.is_public.is_(True))
        .order_by(ExperimentTemplate.category.asc(), ExperimentTemplate.name.asc())
    )
    return list(db.execute(stmt).scalars().all())


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(template_id: int, db: Session = Depends(get_db)):
    """Get a specific template by ID."""
    try:
        return template_crud.get(db, template_id)
    except NotFoundError as e:
        raise to_http_exception(e)


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(request: TemplateCreate, db: Session = Depends(get_db)):
    """Create an experiment template."""
    try:
        return template_crud.create(db, request)
    except Exception as e:
        logger.error(f"Error creating template: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create template: {str(e)}"
        )
