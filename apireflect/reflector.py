"""Reflector: assembles OpenAPI operations from input and output models."""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Mapping
from typing import Any

from apireflect.config import ReflectorConfig
from apireflect.context import OperationContext
from apireflect.errors import OpenAPIError, OperationErrors
from apireflect.fields import SelectedField, is_model_type
from apireflect.models import Operation, Spec
from apireflect.parameters import parse_parameters_in
from apireflect.params import TAG_COOKIE, TAG_FORM_DATA, TAG_HEADER, TAG_JSON, TAG_PATH, TAG_QUERY
from apireflect.reflect import JsonSchemaMode, ReflectedSchema, TypeInterceptor, reflect_schema
from apireflect.registry import DefinitionRegistry
from apireflect.request_body import MIME_FORM_URLENCODED, MIME_JSON, parse_request_body
from apireflect.responses import setup_response
from apireflect.schema import REF_PREFIX, definition_name, drop_properties

# Returns True when it handled the field and default handling must be skipped.
PropertyInterceptor = Callable[[SelectedField, dict[str, Any], OperationContext], bool]


class Reflector:
    """Builds operation descriptions into one shared OpenAPI document.

    A reflector writes into a single document and is not synchronized;
    operations of one document must be set up from one thread at a time.
    """

    def __init__(
        self,
        spec: Spec | None = None,
        *,
        config: ReflectorConfig | None = None,
        type_interceptors: Iterable[TypeInterceptor] = (),
        property_interceptors: Iterable[PropertyInterceptor] = (),
    ) -> None:
        self.config = config or ReflectorConfig()
        self.spec = spec
        self.type_interceptors: list[TypeInterceptor] = list(type_interceptors)
        self.property_interceptors: list[PropertyInterceptor] = list(property_interceptors)

    def spec_ens(self) -> Spec:
        if self.spec is None:
            self.spec = Spec(openapi=self.config.openapi_version)
        return self.spec

    @property
    def registry(self) -> DefinitionRegistry:
        return DefinitionRegistry(self.spec_ens().components_ens().schemas)

    def collect_definition(self, name: str, schema: dict[str, Any]) -> bool:
        return self.registry.collect(name, schema)

    def collect_definitions(self, definitions: Mapping[str, dict[str, Any]], name_prefix: str = "") -> None:
        registry = self.registry
        for name, schema in definitions.items():
            registry.collect(name_prefix + name, schema)

    def resolve_schema_ref(self, ref: str) -> dict[str, Any] | None:
        """Return the registered schema behind a components reference."""
        if not ref.startswith(REF_PREFIX):
            return None
        return self.registry.get(ref[len(REF_PREFIX):])

    def intercept_property(self, field: SelectedField, property_schema: dict[str, Any], oc: OperationContext) -> bool:
        return any(intercept(field, property_schema, oc) for intercept in self.property_interceptors)

    def reflect(
        self,
        tp: Any,
        oc: OperationContext | None,
        *,
        processing_response: bool,
        processing_in: str,
        name_prefix: str = "",
        mode: JsonSchemaMode = "validation",
        type_interceptors: Iterable[TypeInterceptor] = (),
    ) -> ReflectedSchema:
        """Reflect ``tp`` with the operation context attached for interceptors."""
        context = oc.with_processing(processing_response, processing_in) if oc is not None else None
        reflected = reflect_schema(
            tp,
            ref_prefix=REF_PREFIX + name_prefix,
            mode=mode,
            context=context,
            type_interceptors=[*type_interceptors, *self.type_interceptors],
            field_titles=self.config.field_titles,
        )
        if self.spec_ens().openapi.startswith("3.0"):
            reflected = reflected.to_openapi30()
        return reflected

    def reflect_ref(
        self,
        tp: Any,
        oc: OperationContext | None,
        *,
        processing_response: bool,
        processing_in: str,
        name_prefix: str = "",
        mode: JsonSchemaMode = "validation",
        type_interceptors: Iterable[TypeInterceptor] = (),
        drop: Collection[str] = (),
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Reflect ``tp`` and hoist its named schemas into the registry.

        Returns the root schema and the schema to use at the point of use: a
        reference for named types, the inline root otherwise. Properties named
        in ``drop`` are removed from a named root before it is registered.
        """
        reflected = self.reflect(
            tp,
            oc,
            processing_response=processing_response,
            processing_in=processing_in,
            name_prefix=name_prefix,
            mode=mode,
            type_interceptors=type_interceptors,
        )
        if not is_model_type(tp):
            self.collect_definitions(reflected.definitions, name_prefix)
            return reflected.schema, reflected.schema

        name = name_prefix + definition_name(tp.__name__)
        root = drop_properties(reflected.root(REF_PREFIX + name_prefix), drop)
        # Root first: a location view shares its name with the model it narrows,
        # and that model can appear among the definitions when it is recursive.
        self.collect_definition(name, root)
        self.collect_definitions(reflected.definitions, name_prefix)
        return root, {"$ref": REF_PREFIX + name}

    def setup_request(self, oc: OperationContext) -> None:
        """Describe parameters and request bodies of ``oc.input``.

        Every location is processed; failures are raised together as
        :class:`OperationErrors`.
        """
        steps: list[Callable[[], None]] = [
            lambda: parse_parameters_in(self, oc, TAG_QUERY, oc.req_query_mapping),
            lambda: parse_parameters_in(self, oc, TAG_PATH, oc.req_path_mapping),
            lambda: parse_parameters_in(self, oc, TAG_COOKIE, oc.req_cookie_mapping),
            lambda: parse_parameters_in(self, oc, TAG_HEADER, oc.req_header_mapping),
            lambda: parse_request_body(self, oc, TAG_JSON, MIME_JSON, oc.http_method),
            lambda: parse_request_body(
                self, oc, TAG_FORM_DATA, MIME_FORM_URLENCODED, oc.http_method, oc.req_form_data_mapping
            ),
        ]

        errors: list[OpenAPIError] = []
        for step in steps:
            try:
                step()
            except OpenAPIError as exc:
                errors.append(exc)

        if errors:
            raise OperationErrors(errors)

    def set_request(self, operation: Operation, input: Any, http_method: str) -> None:
        self.setup_request(OperationContext(operation=operation, input=input, http_method=http_method))

    def setup_response(self, oc: OperationContext) -> None:
        setup_response(self, oc)

    def set_json_response(self, operation: Operation, output: Any, http_status: int) -> None:
        self.setup_response(OperationContext(operation=operation, output=output, http_status=http_status))
