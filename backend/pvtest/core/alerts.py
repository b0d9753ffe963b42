"""
Threshold-based alert evaluation for measurement samples.

光伏测试管理系统 - 告警判定模块

Each check is independent, so a single sample can raise several alerts
(e.g. high temperature and low efficiency at once):

    | Field       | Condition          | Type     | Severity | Category    |
    |-------------|--------------------|----------|----------|-------------|
    | temperature | > 85               | critical | 5        | safety      |
    | temperature | > 75 and <= 85     | warning  | 3        | safety      |
    | current     | > 150              | critical | 5        | safety      |
    | voltage     | > 1000             | critical | 5        | safety      |
    | efficiency  | > 0 and < 10       | warning  | 2        | measurement |

`evaluate` is pure; persisting the drafts is up to the caller.
"""
from typing import List, Dict, Optional, Any, Iterable, Mapping, Tuple
from dataclasses import dataclass
import dataclasses
from datetime import datetime
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class AlertType(str, Enum):
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class AlertCategory(str, Enum):
    DEVICE = "device"
    MEASUREMENT = "measurement"
    SYSTEM = "system"
    SAFETY = "safety"


@dataclass(frozen=True)
class AlertThresholds:
    """Limits used by the evaluator (units: °C, A, V, %)."""
    temperature_critical: float = 85.0
    temperature_warning: float = 75.0
    current_critical: float = 150.0
    voltage_critical: float = 1000.0
    efficiency_low: float = 10.0

    @classmethod
    def from_settings(cls, settings) -> "AlertThresholds":
        return cls(
            temperature_critical=settings.temperature_critical,
            temperature_warning=settings.temperature_warning,
            current_critical=settings.current_critical,
            voltage_critical=settings.voltage_critical,
            efficiency_low=settings.efficiency_low
        )


DEFAULT_THRESHOLDS = AlertThresholds()


@dataclass
class AlertDraft:
    """Alert ready to be stored.

    Attributes:
        type: AlertType value
        category: AlertCategory value
        message: Human readable description
        severity: 1 (lowest) to 5 (highest)
        field: Measurement that triggered the alert, None for device alerts
        details: Measured value and threshold
        experiment_id: Owning experiment, filled in by the caller
        device_id: Device the alert refers to
    """
    type: AlertType
    category: AlertCategory
    message: str
    severity: int
    field: Optional[str] = None
    details: Dict[str, Any] = dataclasses.field(default_factory=dict)
    experiment_id: Optional[int] = None
    device_id: Optional[int] = None

    def to_record(self) -> Dict[str, Any]:
        """Column values for an Alert row."""
        return {
            "experiment_id": self.experiment_id,
            "device_id": self.device_id,
            "type": self.type.value,
            "category": self.category.value,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }


def _reading(point: Any, name: str) -> Optional[float]:
    if isinstance(point, Mapping):
        return point.get(name)
    return getattr(point, name, None)


def evaluate(
    point: Any,
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS
) -> List[AlertDraft]:
    """
    Map one measurement sample to zero or more alert drafts.

    Args:
        point: Sample as mapping or object with voltage, current,
               temperature and efficiency readings (any may be missing)
        thresholds: Limits to apply

    Returns:
        List of AlertDraft, in the order temperature, current, voltage,
        efficiency

    Examples:
        >>> [a.severity for a in evaluate({"temperature": 90})]
        [5]
    """
    drafts = []

    temperature = _reading(point, "temperature")
    if temperature is not None:
        if temperature > thresholds.temperature_critical:
            drafts.append(AlertDraft(
                type=AlertType.CRITICAL,
                category=AlertCategory.SAFETY,
                message=f"temperature too high: {temperature}°C",
                severity=5,
                field="temperature",
                details={"temperature": temperature, "threshold": thresholds.temperature_critical}
            ))
        elif temperature > thresholds.temperature_warning:
            drafts.append(AlertDraft(
                type=AlertType.WARNING,
                category=AlertCategory.SAFETY,
                message=f"temperature elevated: {temperature}°C",
                severity=3,
                field="temperature",
                details={"temperature": temperature, "threshold": thresholds.temperature_warning}
            ))

    current = _reading(point, "current")
    if current is not None and current > thresholds.current_critical:
        drafts.append(AlertDraft(
            type=AlertType.CRITICAL,
            category=AlertCategory.SAFETY,
            message=f"current too high: {current}A",
            severity=5,
            field="current",
            details={"current": current, "threshold": thresholds.current_critical}
        ))

    voltage = _reading(point, "voltage")
    if voltage is not None and voltage > thresholds.voltage_critical:
        drafts.append(AlertDraft(
            type=AlertType.CRITICAL,
            category=AlertCategory.SAFETY,
            message=f"voltage too high: {voltage}V",
            severity=5,
            field="voltage",
            details={"voltage": voltage, "threshold": thresholds.voltage_critical}
        ))

    efficiency = _reading(point, "efficiency")
    if efficiency is not None and 0 < efficiency < thresholds.efficiency_low:
        drafts.append(AlertDraft(
            type=AlertType.WARNING,
            category=AlertCategory.MEASUREMENT,
            message=f"efficiency abnormally low: {efficiency:.2f}%",
            severity=2,
            field="efficiency",
            details={"efficiency": efficiency, "threshold": thresholds.efficiency_low}
        ))

    return drafts


def evaluate_device_health(devices: Iterable[Any]) -> List[AlertDraft]:
    """One warning per device whose status is not 'online'."""
    drafts = []
    for device in devices:
        status = _reading(device, "status")
        if status == "online":
            continue
        drafts.append(AlertDraft(
            type=AlertType.WARNING,
            category=AlertCategory.DEVICE,
            message=f"device {_reading(device, 'name')} is not online",
            severity=3,
            details={"device_status": status},
            device_id=_reading(device, "id")
        ))
    return drafts


class AlertSuppressor:
    """
    Drops repeated alerts inside a time window.

    At most one alert per (experiment, category, field) is let through
    every `window_seconds`. A window of 0 lets everything through.
    """

    def __init__(self, window_seconds: float = 0.0):
        if window_seconds < 0:
            raise ValueError("Suppression window cannot be negative")
        self.window_seconds = window_seconds
        self._last_emitted: Dict[Tuple[Optional[int], str, Optional[str]], datetime] = {}

    def filter(self, drafts: Iterable[AlertDraft], now: datetime) -> List[AlertDraft]:
        drafts = list(drafts)
        if self.window_seconds <= 0:
            return drafts

        passed = []
        for draft in drafts:
            key = (draft.experiment_id, draft.category.value, draft.field)
            last = self._last_emitted.get(key)
            if last is not None and (now - last).total_seconds() < self.window_seconds:
                logger.debug(f"Suppressed repeated alert {key}")
                continue
            self._last_emitted[key] = now
            passed.append(draft)
        return passed

    def checkpoint(self) -> Dict[Tuple[Optional[int], str, Optional[str]], datetime]:
        """Copy of the emission times, for `restore` if the alerts are never stored."""
        return dict(self._last_emitted)

    def restore(self, checkpoint: Dict[Tuple[Optional[int], str, Optional[str]], datetime]):
        self._last_emitted = dict(checkpoint)

    def reset(self, experiment_id: Optional[int] = None):
        """Forget emission times, for one experiment or for all."""
        if experiment_id is None:
            self._last_emitted.clear()
            return
        for key in [k for k in self._last_emitted if k[0] == experiment_id]:
            del self._last_emitted[key]
