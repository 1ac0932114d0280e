# arranger/domain/errors.py
from enum import Enum


class ArrangementError(ValueError):
    """Base class for every error raised by the arranger domain."""


class InvalidConfiguration(ArrangementError):
    pass


class InsufficientPopulation(ArrangementError):
    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(
            f"Population of {available} cannot fill the required minimum of {required} seats"
        )


class RejectReason(str, Enum):
    CAPACITY = "capacity"
    GENDER = "gender"
    APART = "apart"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


class Rejected(ArrangementError):
    """A manual command was refused; the state it was given is unchanged."""

    def __init__(self, reason: RejectReason, message: str = ""):
        self.reason = reason
        super().__init__(message or f"Rejected: {reason.value}")
