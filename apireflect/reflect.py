"""Type inspection: JSON schemas for Python types, generated by pydantic."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, is_typeddict

from pydantic import ConfigDict, PydanticUserError, TypeAdapter
from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue
from pydantic_core import core_schema

from apireflect.errors import ReflectionError
from apireflect.fields import is_model_type
from apireflect.schema import REF_PREFIX, to_openapi_schema

if TYPE_CHECKING:
    from apireflect.context import OperationContext

JsonSchemaMode = Literal["validation", "serialization"]

# Returns a replacement schema to short-circuit default handling, or None.
TypeInterceptor = Callable[[type, "OperationContext | None"], "dict[str, Any] | None"]

_ARBITRARY_TYPES = ConfigDict(arbitrary_types_allowed=True)


@dataclass
class ReflectedSchema:
    """A root schema and the named sub-schemas found while building it."""

    schema: dict[str, Any]
    definitions: dict[str, dict[str, Any]] = field(default_factory=dict)

    def root(self, ref_prefix: str = REF_PREFIX) -> dict[str, Any]:
        """Return the root schema, resolved when it is a reference to one of the definitions.

        pydantic emits recursive models that way.
        """
        ref = self.schema.get("$ref")
        if isinstance(ref, str) and ref.startswith(ref_prefix):
            resolved = self.definitions.get(ref[len(ref_prefix):])
            if resolved is not None:
                siblings = {key: value for key, value in self.schema.items() if key != "$ref"}
                return {**resolved, **siblings}
        return self.schema

    def to_openapi30(self) -> ReflectedSchema:
        return ReflectedSchema(
            schema=to_openapi_schema(self.schema),
            definitions={name: to_openapi_schema(s) for name, s in self.definitions.items()},
        )


class SchemaGenerator(GenerateJsonSchema):
    """pydantic schema generator with apireflect's interception points.

    pydantic instantiates generators itself, so per-call state lives on a
    subclass built by :func:`bind_generator`.
    """

    type_interceptors: Sequence[TypeInterceptor] = ()
    operation_context: OperationContext | None = None
    field_titles: bool = False

    def is_instance_schema(self, schema: core_schema.IsInstanceSchema) -> JsonSchemaValue:
        cls = schema["cls"]
        for intercept in self.type_interceptors:
            replacement = intercept(cls, self.operation_context)
            if replacement is not None:
                return dict(replacement)
        return super().is_instance_schema(schema)

    def field_title_should_be_set(self, schema: Any) -> bool:
        if not self.field_titles:
            return False
        return super().field_title_should_be_set(schema)


def bind_generator(
    type_interceptors: Sequence[TypeInterceptor] = (),
    context: OperationContext | None = None,
    field_titles: bool = False,
) -> type[SchemaGenerator]:
    return type(
        "BoundSchemaGenerator",
        (SchemaGenerator,),
        {
            "type_interceptors": tuple(type_interceptors),
            "operation_context": context,
            "field_titles": field_titles,
        },
    )


def type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


def _has_own_config(tp: Any) -> bool:
    return isinstance(tp, type) and (dataclasses.is_dataclass(tp) or is_typeddict(tp))


def reflect_schema(
    tp: Any,
    *,
    ref_prefix: str = REF_PREFIX,
    mode: JsonSchemaMode = "validation",
    context: OperationContext | None = None,
    type_interceptors: Sequence[TypeInterceptor] = (),
    field_titles: bool = False,
) -> ReflectedSchema:
    """Build the JSON schema of ``tp``; named sub-schemas are returned apart.

    References point at ``ref_prefix + <name>``.
    """
    generator = bind_generator(type_interceptors, context, field_titles)
    ref_template = ref_prefix + "{model}"
    try:
        if is_model_type(tp):
            raw = tp.model_json_schema(ref_template=ref_template, schema_generator=generator, mode=mode)
        elif _has_own_config(tp):
            raw = TypeAdapter(tp).json_schema(ref_template=ref_template, schema_generator=generator, mode=mode)
        else:
            raw = TypeAdapter(tp, config=_ARBITRARY_TYPES).json_schema(
                ref_template=ref_template, schema_generator=generator, mode=mode
            )
    except (PydanticUserError, TypeError) as exc:
        raise ReflectionError(f"cannot reflect {type_name(tp)}: {exc}", type_name=type_name(tp)) from exc

    definitions = raw.pop("$defs", {})
    return ReflectedSchema(schema=raw, definitions=definitions)
