"""OpenAPI document objects populated by the reflector."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class MediaType(_Model):
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    example: Any | None = None
    encoding: dict[str, Any] | None = None


class Parameter(_Model):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str
    in_: str = Field(alias="in")
    description: str | None = None
    required: bool | None = None
    deprecated: bool | None = None
    allow_empty_value: bool | None = Field(default=None, alias="allowEmptyValue")
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool | None = Field(default=None, alias="allowReserved")
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    example: Any | None = None
    content: dict[str, MediaType] | None = None


class Header(_Model):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    description: str | None = None
    required: bool | None = None
    deprecated: bool | None = None
    allow_empty_value: bool | None = Field(default=None, alias="allowEmptyValue")
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool | None = Field(default=None, alias="allowReserved")
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    example: Any | None = None
    content: dict[str, MediaType] | None = None


class RequestBody(_Model):
    description: str | None = None
    content: dict[str, MediaType] = Field(default_factory=dict)
    required: bool | None = None


class Response(_Model):
    description: str = ""
    headers: dict[str, Header] | None = None
    content: dict[str, MediaType] | None = None


class Operation(_Model):
    tags: list[str] | None = None
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = Field(default=None, alias="operationId")
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: RequestBody | None = Field(default=None, alias="requestBody")
    responses: dict[str, Response] = Field(default_factory=dict)
    deprecated: bool | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    def request_body_ens(self) -> RequestBody:
        if self.request_body is None:
            self.request_body = RequestBody()
        return self.request_body

    def with_extension(self, key: str, value: Any) -> Operation:
        self.extensions[key] = value
        return self

    @model_serializer(mode="wrap")
    def _flatten_extensions(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        extensions = data.pop("extensions", None) or {}
        if not data.get("parameters"):
            data.pop("parameters", None)
        data.update(extensions)
        return data


class Info(_Model):
    title: str = "API"
    version: str = "0.0.0"
    description: str | None = None


class Components(_Model):
    schemas: dict[str, dict[str, Any]] = Field(default_factory=dict)


class Spec(_Model):
    openapi: str = "3.0.3"
    info: Info = Field(default_factory=Info)
    paths: dict[str, dict[str, Operation]] = Field(default_factory=dict)
    components: Components | None = None

    def components_ens(self) -> Components:
        if self.components is None:
            self.components = Components()
        return self.components

    def add_operation(self, method: str, path: str, operation: Operation) -> Operation:
        """Place ``operation`` under ``path``; a method may be defined once per path."""
        method = method.lower()
        item = self.paths.setdefault(path, {})
        if method in item:
            raise ValueError(f"operation {method.upper()} {path} is already defined")
        item[method] = operation
        return operation
