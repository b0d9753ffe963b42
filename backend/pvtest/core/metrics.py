"""
Derived metrics for photovoltaic test runs.

光伏测试管理系统 - 实验结果计算模块

Computes the aggregate results stored on an experiment when it stops:
power and efficiency statistics, test duration and the IV-curve landmarks
(open-circuit voltage Voc, short-circuit current Isc, maximum power point
MPP) together with the fill factor:

    FF = P_max / (Voc × Isc)

The landmark rules are deliberately simple scans over the recorded
sequence, not a fitted IV curve:

    - Voc is the voltage of the first sample whose current is below 0.1 A
    - Isc is the current of the first sample whose voltage is below 0.1 V
    - MPP is the sample with the greatest power (first one wins on ties)

Missing numeric fields count as 0 in every reduction.
"""
from typing import List, Dict, Optional, Any, Sequence, Mapping
from dataclasses import dataclass, asdict
from datetime import datetime
import math
import numpy as np


# Samples below these limits are treated as open/short circuit
OPEN_CIRCUIT_CURRENT_LIMIT = 0.1  # A
SHORT_CIRCUIT_VOLTAGE_LIMIT = 0.1  # V


@dataclass
class MaxPowerPoint:
    """Operating point with the highest power in a run."""
    voltage: float = 0.0
    current: float = 0.0
    power: float = 0.0


@dataclass
class ExperimentResults:
    """Aggregate results of one experiment.

    Attributes:
        total_data_points: Number of samples
        max_power: Highest power (W)
        avg_power: Mean power (W)
        max_voltage: Highest voltage (V)
        max_current: Highest current (A)
        max_temperature: Highest temperature (°C)
        avg_efficiency: Mean efficiency (%)
        test_duration: Seconds between the first and last sample
        open_circuit_voltage: Voc (V), 0 if no sample qualifies
        short_circuit_current: Isc (A), 0 if no sample qualifies
        mpp: Maximum power point
        fill_factor: P_max / (Voc × Isc), 0 unless both are positive
        passed: Always True for now, no acceptance criteria exist yet
    """
    total_data_points: int
    max_power: float
    avg_power: float
    max_voltage: float
    max_current: float
    max_temperature: float
    avg_efficiency: float
    test_duration: float
    open_circuit_voltage: float
    short_circuit_current: float
    mpp: MaxPowerPoint
    fill_factor: float
    passed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form stored in Experiment.results."""
        return asdict(self)

    def __repr__(self) -> str:
        return (f"ExperimentResults(n={self.total_data_points}, "
                f"Pmax={self.max_power:.2f}W, Voc={self.open_circuit_voltage:.2f}V, "
                f"Isc={self.short_circuit_current:.2f}A, FF={self.fill_factor:.3f})")


def _value(point: Any, name: str) -> Any:
    if isinstance(point, Mapping):
        return point.get(name)
    return getattr(point, name, None)


def _number(point: Any, name: str) -> float:
    value = _value(point, name)
    return float(value) if value is not None else 0.0


def _column(points: Sequence[Any], name: str) -> np.ndarray:
    return np.array([_number(p, name) for p in points], dtype=float)


def _timestamp(point: Any) -> Optional[datetime]:
    value = _value(point, "timestamp")
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


def derive_power(voltage: Optional[float], current: Optional[float]) -> Optional[float]:
    """P = V × I, or None if either reading is missing."""
    if voltage is None or current is None:
        return None
    return voltage * current


def derive_efficiency(
    power: Optional[float],
    irradiance: Optional[float],
    reference_area: float = 1.0
) -> Optional[float]:
    """
    Conversion efficiency in percent.

    η = P / (G × A) × 100, with G the irradiance (W/m²) and A the
    illuminated area (m²). Returns None when power is unknown or the
    irradiance is not positive.
    """
    if power is None or irradiance is None or irradiance <= 0:
        return None
    if reference_area <= 0:
        raise ValueError("Reference area must be positive")
    return power / (irradiance * reference_area) * 100


def find_open_circuit_voltage(points: Sequence[Any]) -> float:
    """Voltage of the first sample with current below the open-circuit limit."""
    for p in points:
        if _number(p, "current") < OPEN_CIRCUIT_CURRENT_LIMIT:
            return _number(p, "voltage")
    return 0.0


def find_short_circuit_current(points: Sequence[Any]) -> float:
    """Current of the first sample with voltage below the short-circuit limit."""
    for p in points:
        if _number(p, "voltage") < SHORT_CIRCUIT_VOLTAGE_LIMIT:
            return _number(p, "current")
    return 0.0


def find_max_power_point(points: Sequence[Any]) -> MaxPowerPoint:
    """Sample with strictly greatest power, starting from a zero point."""
    mpp = MaxPowerPoint()
    for p in points:
        power = _number(p, "power")
        if power > mpp.power:
            mpp = MaxPowerPoint(
                voltage=_number(p, "voltage"),
                current=_number(p, "current"),
                power=power
            )
    return mpp


def calculate_fill_factor(max_power: float, voc: float, isc: float) -> float:
    """FF = P_max / (Voc × Isc); 0 unless Voc and Isc are both positive."""
    if voc > 0 and isc > 0:
        return max_power / (voc * isc)
    return 0.0


def calculate_duration(points: Sequence[Any]) -> float:
    """Seconds between the first and last sample (0 for fewer than two)."""
    if len(points) < 2:
        return 0.0
    first = _timestamp(points[0])
    last = _timestamp(points[-1])
    if first is None or last is None:
        return 0.0
    return (last - first).total_seconds()


def summarize(points: Sequence[Any]) -> Optional[ExperimentResults]:
    """
    Summarize a time-ordered sequence of samples.

    Args:
        points: Samples as ORM rows or mappings with the measurement
                fields and a timestamp

    Returns:
        ExperimentResults, or None for an empty sequence

    Examples:
        >>> results = summarize([
        ...     {"voltage": 0.05, "current": 5.0, "power": 0.25},
        ...     {"voltage": 20.0, "current": 5.0, "power": 100.0},
        ... ])
        >>> results.max_power
        100.0
    """
    points = list(points)
    if not points:
        return None

    power = _column(points, "power")
    voltage = _column(points, "voltage")
    current = _column(points, "current")
    temperature = _column(points, "temperature")
    efficiency = _column(points, "efficiency")

    max_power = float(np.max(power))
    voc = find_open_circuit_voltage(points)
    isc = find_short_circuit_current(points)

    return ExperimentResults(
        total_data_points=len(points),
        max_power=max_power,
        avg_power=float(np.mean(power)),
        max_voltage=float(np.max(voltage)),
        max_current=float(np.max(current)),
        max_temperature=float(np.max(temperature)),
        avg_efficiency=float(np.mean(efficiency)),
        test_duration=calculate_duration(points),
        open_circuit_voltage=voc,
        short_circuit_current=isc,
        mpp=find_max_power_point(points),
        fill_factor=calculate_fill_factor(max_power, voc, isc),
        passed=True
    )


def is_finite_number(value: Any) -> bool:
    """True for real numbers that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


__all__: List[str] = [
    "MaxPowerPoint",
    "ExperimentResults",
    "derive_power",
    "derive_efficiency",
    "find_open_circuit_voltage",
    "find_short_circuit_current",
    "find_max_power_point",
    "calculate_fill_factor",
    "calculate_duration",
    "summarize",
    "is_finite_number",
]
