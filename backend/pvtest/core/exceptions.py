"""
Errors raised by the experiment core.

Routers translate these into HTTP status codes; the core itself never
catches them.
"""


class ExperimentError(Exception):
    """Base class for experiment core errors."""


class ValidationError(ExperimentError):
    """Invalid input, e.g. a blank experiment name or a non-numeric reading."""


class NotFoundError(ExperimentError):
    """Referenced record does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidTransitionError(ExperimentError):
    """Status change not allowed from the current status."""

    def __init__(self, current: str, target: str, message: str = None):
        self.current = current
        self.target = target
        super().__init__(message or f"Cannot move experiment from '{current}' to '{target}'")


class UnsupportedTransitionError(InvalidTransitionError):
    """Transition that has no stored state behind it (pause)."""
