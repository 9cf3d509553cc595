"""apireflect error hierarchy and structured error models."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    DUPLICATE_PARAMETER = "duplicate_parameter"
    FIELD_POPULATION = "field_population"
    REFLECTION = "reflection"
    MULTIPLE = "multiple"


class OpenAPIError(Exception):
    """Base error raised while building an operation description."""

    def __init__(
        self,
        message: str,
        code: str,
        kind: ErrorKind,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.kind = kind
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "kind": self.kind.value,
            "details": self.details,
        }


class DuplicateParameterError(OpenAPIError):
    """E1001: the same (location, name) pair was added twice to one operation."""

    def __init__(self, name: str, location: str) -> None:
        super().__init__(
            f"parameter {name} in {location} is already defined",
            code="E1001",
            kind=ErrorKind.DUPLICATE_PARAMETER,
            details={"name": name, "in": location},
        )
        self.name = name
        self.location = location


class FieldPopulationError(OpenAPIError):
    """E1002: a declarative field option could not be applied to a descriptor."""

    def __init__(self, message: str, field: str, option: str | None = None) -> None:
        super().__init__(
            message,
            code="E1002",
            kind=ErrorKind.FIELD_POPULATION,
            details={"field": field, "option": option},
        )
        self.field = field
        self.option = option


class ReflectionError(OpenAPIError):
    """E2001: no schema could be produced for a type."""

    def __init__(self, message: str, type_name: str) -> None:
        super().__init__(
            message,
            code="E2001",
            kind=ErrorKind.REFLECTION,
            details={"type": type_name},
        )
        self.type_name = type_name


class OperationErrors(OpenAPIError):
    """E1000: independent failures from one operation build, kept intact."""

    def __init__(self, errors: Sequence[OpenAPIError]) -> None:
        super().__init__(
            ", ".join(err.message for err in errors),
            code="E1000",
            kind=ErrorKind.MULTIPLE,
            details={"errors": [err.to_dict() for err in errors]},
        )
        self.errors = list(errors)

    def __iter__(self) -> Iterator[OpenAPIError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def of_kind(self, kind: ErrorKind) -> list[OpenAPIError]:
        return [err for err in self.errors if err.kind is kind]
