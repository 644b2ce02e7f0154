"""Exceptions raised by the store and the entity constructors."""


class FleetFlowError(Exception):
    """Base class for fleetflow errors."""


class InvalidEntityError(FleetFlowError, ValueError):
    """An entity field failed validation at construction time."""


class StorageWriteError(FleetFlowError):
    """A backend could not persist a collection."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not write '{key}': {reason}")
