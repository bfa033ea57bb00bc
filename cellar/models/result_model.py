# cellar/models/result_model.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class FailureKind(Enum):
    """Why a container operation did not complete."""

    CONFIG_PARSE = auto()
    CONFIG_SAVE = auto()
    DIRECTORY_CREATE = auto()
    ARCHIVE_EXTRACT = auto()
    PROFILE_NOT_FOUND = auto()
    UNSUPPORTED_FORMAT = auto()
    COPY_FAILURE = auto()
    DELETE_FAILURE = auto()
    INVALID_SOURCE = auto()
    ALREADY_EXISTS = auto()
    NOT_FOUND = auto()
    CANCELLED = auto()


@dataclass(frozen=True)
class OperationResult:
    """The outcome of a container operation, handed back to the caller."""

    success: bool
    data: Any = None
    error: str | None = None
    kind: FailureKind | None = None

    @classmethod
    def ok(cls, data: Any = None) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: FailureKind, error: str) -> OperationResult:
        return cls(success=False, error=error, kind=kind)
