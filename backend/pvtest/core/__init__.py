"""
Core domain package for photovoltaic test management.

This package provides:
- Derived metrics (power, efficiency, Voc, Isc, MPP, fill factor)
- Threshold-based alert evaluation
- Experiment lifecycle management
- Background device polling
"""

from . import exceptions
from . import metrics
from . import alerts
from . import lifecycle
from . import polling

__all__ = [
    'exceptions',
    'metrics',
    'alerts',
    'lifecycle',
    'polling',
]
