"""
Experiment template model.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Boolean
from pvtest.db.database import Base
from pvtest.models.base import utcnow


class ExperimentTemplate(Base):
    """Reusable parameter set for a category of test (IV curve, aging, ...)."""
    __tablename__ = "experiment_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    parameters = Column(JSON, nullable=False, default=dict)
    category = Column(String(100), nullable=True, index=True)
    is_public = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ExperimentTemplate(id={self.id}, name='{self.name}')>"
