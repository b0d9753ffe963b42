"""
Experiment data model.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from pvtest.db.database import Base
from pvtest.models.base import utcnow


class Experiment(Base):
    """
    One photovoltaic test run.

    Attributes:
        id: Primary key
        name: Experiment name
        description: Free-text description
        template_id: Template the parameters were taken from
        parameters: Parameter bag, shape depends on the template category
        status: pending, running, completed, cancelled or failed
        created_by: Identifier of the creating user
        tags: Optional list of labels
        results: Derived metrics, written once when the run stops
        created_at / started_at / ended_at: Lifecycle timestamps (UTC)
    """
    __tablename__ = "experiments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    template_id = Column(Integer, ForeignKey("experiment_templates.id"), nullable=True)
    parameters = Column(JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default="pending", index=True)
    created_by = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=True)
    results = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)

    data_points = relationship(
        "TestData",
        back_populates="experiment",
        cascade="all, delete-orphan",
    )
    template = relationship("ExperimentTemplate")

    def __repr__(self) -> str:
        return f"<Experiment(id={self.id}, name='{self.name}', status={self.status})>"
