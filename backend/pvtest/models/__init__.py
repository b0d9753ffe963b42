"""
SQLAlchemy models package.
"""
from pvtest.models.template import ExperimentTemplate
from pvtest.models.experiment import Experiment
from pvtest.models.test_data import TestData, MEASUREMENT_FIELDS
from pvtest.models.device import Device, DeviceType, DeviceStatus
from pvtest.models.alert import Alert

__all__ = [
    "ExperimentTemplate",
    "Experiment",
    "TestData",
    "MEASUREMENT_FIELDS",
    "Device",
    "DeviceType",
    "DeviceStatus",
    "Alert"
]
