"""Field annotations that route model fields to request and response locations."""

from __future__ import annotations

import io
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO, ClassVar, Protocol, runtime_checkable

from pydantic_core import core_schema

TAG_QUERY = "query"
TAG_PATH = "path"
TAG_HEADER = "header"
TAG_COOKIE = "cookie"
TAG_FORM_DATA = "formData"
TAG_JSON = "json"


class ParameterIn(str, Enum):
    QUERY = TAG_QUERY
    PATH = TAG_PATH
    HEADER = TAG_HEADER
    COOKIE = TAG_COOKIE


class ParameterStyle(str, Enum):
    FORM = "form"
    SPACE_DELIMITED = "spaceDelimited"
    PIPE_DELIMITED = "pipeDelimited"
    DEEP_OBJECT = "deepObject"
    SIMPLE = "simple"


class CollectionFormat(str, Enum):
    CSV = "csv"
    SSV = "ssv"
    PIPES = "pipes"
    MULTI = "multi"


# collection format -> (style, explode)
COLLECTION_STYLES: dict[str, tuple[ParameterStyle, bool]] = {
    CollectionFormat.CSV.value: (ParameterStyle.FORM, False),
    CollectionFormat.SSV.value: (ParameterStyle.SPACE_DELIMITED, False),
    CollectionFormat.PIPES.value: (ParameterStyle.PIPE_DELIMITED, False),
    CollectionFormat.MULTI.value: (ParameterStyle.FORM, True),
}


@dataclass(frozen=True)
class Location:
    """Routes an ``Annotated`` model field to one transmission location.

    ``name`` overrides the wire name; the remaining attributes are declarative
    options copied onto the parameter or header descriptor built for the field.
    """

    name: str | None = None
    description: str | None = None
    required: bool | None = None
    deprecated: bool | None = None
    example: Any = None
    collection_format: str | None = None
    style: str | None = None
    explode: bool | None = None
    allow_empty_value: bool | None = None
    allow_reserved: bool | None = None

    tag: ClassVar[str] = ""

    def options(self) -> dict[str, Any]:
        """Return the declarative options that were actually set."""
        values = {
            "description": self.description,
            "required": self.required,
            "deprecated": self.deprecated,
            "example": self.example,
            "style": self.style,
            "explode": self.explode,
            "allow_empty_value": self.allow_empty_value,
            "allow_reserved": self.allow_reserved,
        }
        return {key: value for key, value in values.items() if value is not None}


class Query(Location):
    tag = TAG_QUERY


class Path(Location):
    tag = TAG_PATH


class Header(Location):
    tag = TAG_HEADER


class Cookie(Location):
    tag = TAG_COOKIE


class FormData(Location):
    tag = TAG_FORM_DATA


class Json(Location):
    tag = TAG_JSON


class UploadFile:
    """An uploaded file in a form or multipart request body."""

    def __init__(
        self,
        file: BinaryIO,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> None:
        self.file = file
        self.filename = filename
        self.content_type = content_type

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.is_instance_schema(cls)


def is_file_type(tp: Any) -> bool:
    """Return True for types that carry uploaded file content."""
    if not isinstance(tp, type):
        return False
    return issubclass(tp, (UploadFile, io.IOBase, typing.IO))


@runtime_checkable
class RequestBodyEnforcer(Protocol):
    """Opts an input model into a request body for GET, HEAD, DELETE and TRACE.

    The method body can be empty. Forcing a request body is meant for
    backwards compatibility with existing APIs.
    """

    def force_request_body(self) -> None: ...
