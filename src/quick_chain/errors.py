"""Errors raised while building and running pipelines."""

from __future__ import annotations

from dataclasses import dataclass


class QuickChainError(Exception):
    """Base class for pipeline failures."""


@dataclass(frozen=True)
class FieldError:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class InputValidationError(QuickChainError, ValueError):
    def __init__(self, field_errors: list[FieldError]) -> None:
        self.field_errors = field_errors
        details = "; ".join(str(err) for err in field_errors) or "unknown error"
        super().__init__(f"Invalid input format: {details}")


class ResolverError(QuickChainError, ValueError):
    """The provider returned nothing usable for the requested schema."""


class CoercionError(QuickChainError, ValueError):
    """Free-text input could not be resolved into the declared input schema."""


class ClassificationError(QuickChainError, ValueError):
    pass


class ToolSessionError(QuickChainError, RuntimeError):
    pass
