# automodel/errors.py
from enum import Enum


class ErrorKind(Enum):
    """Kinds of failure surfaced by the model selection core"""
    UNKNOWN_ALGORITHM = "unknown_algorithm"
    UNSUPPORTED_CONFIGURATION = "unsupported_configuration"
    ORDERING_VIOLATION = "ordering_violation"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_ARGUMENT = "invalid_argument"
    EMPTY_FOLD_SET = "empty_fold_set"


class AutoModelError(Exception):
    """Base class for every error raised by automodel.

    Each subclass carries an ``ErrorKind`` so callers can branch on the kind
    without matching on exception types.
    """
    kind: ErrorKind = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class UnknownAlgorithmError(AutoModelError, KeyError):
    kind = ErrorKind.UNKNOWN_ALGORITHM


class UnsupportedConfigurationError(AutoModelError):
    kind = ErrorKind.UNSUPPORTED_CONFIGURATION


class UnsupportedTrainingKindError(UnsupportedConfigurationError):
    """Raised when a trainer declares an implementation kind the session cannot drive"""


class OrderingViolationError(AutoModelError):
    kind = ErrorKind.ORDERING_VIOLATION


class TypeMismatchError(AutoModelError, TypeError):
    kind = ErrorKind.TYPE_MISMATCH


class InvalidArgumentError(AutoModelError, ValueError):
    kind = ErrorKind.INVALID_ARGUMENT


class EmptyFoldSetError(AutoModelError):
    kind = ErrorKind.EMPTY_FOLD_SET
