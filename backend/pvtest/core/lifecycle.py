"""
Experiment lifecycle management.

光伏测试管理系统 - 实验生命周期模块

Status machine:

    pending --start--> running --stop--> completed | cancelled | failed

Every status change goes through `check_transition`, and the status and
its timestamp are written in a single commit. Samples can only be
recorded while an experiment is running; each sample gets its derived
power/efficiency filled in and is checked against the alert thresholds.
Results are computed once, when the experiment stops.
"""
from typing import List, Dict, Optional, Any, Callable, Iterable, Mapping
from datetime import datetime
from enum import Enum
import logging

from sqlalchemy import select, func, update
from sqlalchemy.orm import Session

from pvtest.config import Settings, get_settings
from pvtest.core.alerts import (
    AlertDraft,
    AlertSuppressor,
    AlertThresholds,
    evaluate,
    evaluate_device_health,
)
from pvtest.core.exceptions import (
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
    UnsupportedTransitionError,
)
from pvtest.core.metrics import (
    summarize,
    derive_power,
    derive_efficiency,
    is_finite_number,
)
from pvtest.models import (
    Experiment,
    ExperimentTemplate,
    TestData,
    Alert,
    Device,
    DeviceStatus,
    MEASUREMENT_FIELDS,
)
from pvtest.models.base import utcnow, to_naive_utc

logger = logging.getLogger(__name__)


class ExperimentStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({
    ExperimentStatus.COMPLETED,
    ExperimentStatus.CANCELLED,
    ExperimentStatus.FAILED,
})

ALLOWED_TRANSITIONS: Dict[ExperimentStatus, frozenset] = {
    ExperimentStatus.PENDING: frozenset({ExperimentStatus.RUNNING}),
    ExperimentStatus.RUNNING: TERMINAL_STATUSES,
}


def check_transition(current: str, target: str) -> ExperimentStatus:
    """
    Validate a status change.

    Args:
        current: Status the experiment is in
        target: Requested status

    Returns:
        The target as ExperimentStatus

    Raises:
        InvalidTransitionError: If the change is not allowed
    """
    try:
        current_status = ExperimentStatus(current)
        target_status = ExperimentStatus(target)
    except ValueError:
        raise InvalidTransitionError(str(current), str(target))

    if target_status not in ALLOWED_TRANSITIONS.get(current_status, frozenset()):
        raise InvalidTransitionError(current_status.value, target_status.value)
    return target_status


def _parse_timestamp(value: Any, default: datetime) -> datetime:
    if value is None:
        return default
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, str):
        try:
            return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}")
    raise ValidationError(f"Invalid timestamp: {value!r}")


class ExperimentLifecycleManager:
    """
    Orchestrates experiment status changes, sample ingestion and results.

    One manager wraps one database session; create a new one per unit of
    work. The alert suppressor may be shared across managers so that its
    window spans requests.

    Args:
        db: SQLAlchemy session
        settings: Application settings (reference area, thresholds)
        clock: Callable returning the current naive UTC time
        suppressor: Shared AlertSuppressor, or None for a private one
                    built from settings
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        suppressor: Optional[AlertSuppressor] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.clock = clock or utcnow
        self.thresholds = AlertThresholds.from_settings(self.settings)
        self.suppressor = suppressor or AlertSuppressor(self.settings.alert_suppression_seconds)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, experiment_id: int) -> Experiment:
        """Fetch an experiment or raise NotFoundError."""
        experiment = self.db.get(Experiment, experiment_id)
        if experiment is None:
            raise NotFoundError("Experiment", experiment_id)
        return experiment

    def get_data_points(
        self,
        experiment_id: int,
        limit: Optional[int] = None,
        offset: int = 0,
        descending: bool = False
    ) -> List[TestData]:
        """Samples of an experiment ordered by timestamp."""
        self.get(experiment_id)
        order = (TestData.timestamp.desc(), TestData.id.desc()) if descending \
            else (TestData.timestamp.asc(), TestData.id.asc())
        stmt = select(TestData).where(TestData.experiment_id == experiment_id).order_by(*order)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get_realtime_data(self, experiment_id: int, limit: int = 100) -> List[TestData]:
        """The latest `limit` samples, returned in ascending time order."""
        latest = self.get_data_points(experiment_id, limit=limit, descending=True)
        return list(reversed(latest))

    def count_data_points(self, experiment_id: int) -> int:
        stmt = select(func.count(TestData.id)).where(TestData.experiment_id == experiment_id)
        return self.db.execute(stmt).scalar_one()

    def list_running(self) -> List[Experiment]:
        stmt = (
            select(Experiment)
            .where(Experiment.status == ExperimentStatus.RUNNING.value)
            .order_by(Experiment.started_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_full_details(self, experiment_id: int, alert_limit: int = 10) -> Dict[str, Any]:
        """Experiment with its sample count and most recent alerts."""
        experiment = self.get(experiment_id)
        stmt = (
            select(Alert)
            .where(Alert.experiment_id == experiment_id)
            .order_by(Alert.created_at.desc(), Alert.id.desc())
            .limit(alert_limit)
        )
        return {
            "experiment": experiment,
            "data_points_count": self.count_data_points(experiment_id),
            "recent_alerts": list(self.db.execute(stmt).scalars().all()),
        }

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        template_id: Optional[int] = None,
        parameters: Optional[Dict[str, Any]] = None,
        tags: Optional[List[str]] = None,
        created_by: Optional[str] = None
    ) -> Experiment:
        """Create a pending experiment."""
        if name is None or not name.strip():
            raise ValidationError("Experiment name must not be empty")
        if parameters is not None and not isinstance(parameters, dict):
            raise ValidationError("Experiment parameters must be an object")
        if template_id is not None and self.db.get(ExperimentTemplate, template_id) is None:
            raise ValidationError(f"Template {template_id} does not exist")

        experiment = Experiment(
            name=name.strip(),
            description=description,
            template_id=template_id,
            parameters=parameters or {},
            tags=tags,
            created_by=created_by,
            status=ExperimentStatus.PENDING.value,
            created_at=self.clock()
        )
        self._commit(experiment)
        logger.info(f"Created experiment {experiment.id} '{experiment.name}'")
        return experiment

    def start(self, experiment_id: int) -> Experiment:
        """
        Move a pending experiment to running.

        Also checks device health: every device that is not online
        produces a warning alert referencing the experiment.
        """
        experiment = self.get(experiment_id)
        status = check_transition(experiment.status, ExperimentStatus.RUNNING.value)
        now = self.clock()

        experiment.status = status.value
        experiment.started_at = now

        offline = self.db.execute(
            select(Device).where(Device.status != DeviceStatus.ONLINE.value)
        ).scalars().all()
        drafts = evaluate_device_health(offline)
        alerts = self._build_alerts(drafts, experiment.id, now, suppress=False)

        self._commit(experiment, *alerts)
        logger.info(f"Started experiment {experiment.id}")
        return experiment

    def stop(self, experiment_id: int, final_status: str = ExperimentStatus.COMPLETED.value) -> Experiment:
        """
        Move a running experiment to a terminal status and store its results.

        Results stay None if no samples were recorded.
        """
        try:
            requested = ExperimentStatus(final_status)
        except ValueError:
            raise ValidationError(f"Unknown final status: {final_status!r}")
        if requested not in TERMINAL_STATUSES:
            raise ValidationError(
                f"Final status must be one of {sorted(s.value for s in TERMINAL_STATUSES)}"
            )

        experiment = self.get(experiment_id)
        status = check_transition(experiment.status, requested.value)

        experiment.status = status.value
        experiment.ended_at = self.clock()

        results = summarize(self.get_data_points(experiment_id))
        experiment.results = results.to_dict() if results is not None else None

        self._commit(experiment)
        self.suppressor.reset(experiment.id)
        logger.info(f"Stopped experiment {experiment.id} as {status.value}: {results!r}")
        return experiment

    def pause(self, experiment_id: int) -> Experiment:
        """Pausing has no stored status; always rejected."""
        experiment = self.get(experiment_id)
        raise UnsupportedTransitionError(
            experiment.status,
            "paused",
            "Pausing an experiment is not supported; stop it instead"
        )

    def update_parameters(self, experiment_id: int, parameters: Dict[str, Any]) -> Experiment:
        experiment = self.get(experiment_id)
        if not isinstance(parameters, dict):
            raise ValidationError("Experiment parameters must be an object")
        experiment.parameters = parameters
        self._commit(experiment)
        return experiment

    def delete_many(self, experiment_ids: Iterable[int]) -> int:
        """
        Delete experiments together with their samples.

        Alerts are kept and detached from the deleted experiments. Unknown
        ids are ignored.

        Returns:
            Number of experiments deleted
        """
        ids = list(set(experiment_ids))
        if not ids:
            return 0

        experiments = self.db.execute(
            select(Experiment).where(Experiment.id.in_(ids))
        ).scalars().all()
        deleted_ids = [experiment.id for experiment in experiments]
        try:
            self.db.execute(
                update(Alert).where(Alert.experiment_id.in_(ids)).values(experiment_id=None)
            )
            for experiment in experiments:
                self.db.delete(experiment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for experiment_id in deleted_ids:
            self.suppressor.reset(experiment_id)
        logger.info(f"Deleted experiments {deleted_ids}")
        return len(deleted_ids)

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------

    def record_data_point(self, experiment_id: int, point: Mapping[str, Any]) -> TestData:
        """
        Store one sample of a running experiment.

        Power is derived as V × I when not supplied; efficiency as
        P / (G × A) × 100 when the irradiance is positive. Alerts raised by
        the sample are stored in the same commit.
        """
        rows = self.record_data_points(experiment_id, [point])
        return rows[0]

    def record_data_points(
        self,
        experiment_id: int,
        points: Iterable[Mapping[str, Any]]
    ) -> List[TestData]:
        """Store a batch of samples of a running experiment in one commit."""
        experiment = self.get(experiment_id)
        if experiment.status != ExperimentStatus.RUNNING.value:
            raise InvalidTransitionError(
                experiment.status,
                ExperimentStatus.RUNNING.value,
                f"Experiment {experiment.id} is {experiment.status}; "
                f"data can only be recorded while running"
            )

        reference_area = self._reference_area(experiment)
        now = self.clock()
        rows = []
        alerts = []
        # alerts that never reach the database must not hold the window
        checkpoint = self.suppressor.checkpoint()
        try:
            for point in points:
                values = self.prepare_point(point, reference_area, now)
                rows.append(TestData(experiment_id=experiment.id, **values))
                alerts.extend(self._build_alerts(evaluate(values, self.thresholds), experiment.id, now))

            if rows:
                self._commit(*rows, *alerts)
        except Exception:
            self.suppressor.restore(checkpoint)
            raise
        return rows

    def prepare_point(
        self,
        point: Mapping[str, Any],
        reference_area: float,
        now: datetime
    ) -> Dict[str, Any]:
        """
        Validate a raw sample and fill in derived values.

        Raises:
            ValidationError: Unknown field or non-numeric reading
        """
        if not isinstance(point, Mapping):
            raise ValidationError("Data point must be an object")

        values: Dict[str, Any] = {}
        for key, value in point.items():
            if key in ("timestamp", "raw_data"):
                continue
            if key not in MEASUREMENT_FIELDS:
                raise ValidationError(f"Unknown measurement field: {key}")
            if value is None:
                continue
            if not is_finite_number(value):
                raise ValidationError(f"Measurement '{key}' must be a finite number, got {value!r}")
            values[key] = float(value)

        if values.get("power") is None:
            power = derive_power(values.get("voltage"), values.get("current"))
            if power is not None:
                values["power"] = power

        efficiency = derive_efficiency(values.get("power"), values.get("irradiance"), reference_area)
        if efficiency is not None:
            values["efficiency"] = efficiency

        values["timestamp"] = _parse_timestamp(point.get("timestamp"), now)
        if point.get("raw_data") is not None:
            values["raw_data"] = point["raw_data"]
        return values

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reference_area(self, experiment: Experiment) -> float:
        area = (experiment.parameters or {}).get("reference_area")
        if is_finite_number(area) and area > 0:
            return float(area)
        return self.settings.reference_area_m2

    def _build_alerts(
        self,
        drafts: List[AlertDraft],
        experiment_id: int,
        now: datetime,
        suppress: bool = True
    ) -> List[Alert]:
        for draft in drafts:
            draft.experiment_id = experiment_id
        if suppress:
            drafts = self.suppressor.filter(drafts, now)

        alerts = []
        for draft in drafts:
            logger.warning(f"Experiment {experiment_id}: {draft.message} (severity {draft.severity})")
            alerts.append(Alert(created_at=now, **draft.to_record()))
        return alerts

    def _commit(self, *objects):
        try:
            self.db.add_all(objects)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        for obj in objects:
            self.db.refresh(obj)
