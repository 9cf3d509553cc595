"""Field descriptors: how apireflect reads a model's fields and their locations."""

from __future__ import annotations

import collections.abc
import types
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, RootModel, create_model
from pydantic.fields import FieldInfo

from apireflect.params import TAG_JSON, Location, RequestBodyEnforcer

_COLLECTION_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    dict,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)

# Model config keys carried over to per-location view models.
_VIEW_CONFIG_KEYS = ("extra", "arbitrary_types_allowed", "title", "json_schema_extra", "ser_json_bytes")


@dataclass(frozen=True)
class FieldDescriptor:
    """One model field as seen by the mapping engine."""

    attr: str
    info: FieldInfo
    locations: tuple[Location, ...]

    @property
    def annotation(self) -> Any:
        return self.info.annotation

    @property
    def default_name(self) -> str:
        return self.info.alias or self.attr

    def location(self, tag: str) -> Location | None:
        for marker in self.locations:
            if marker.tag == tag:
                return marker
        return None

    def in_location(self, tag: str) -> bool:
        if self.location(tag) is not None:
            return True
        # Unmarked fields travel in the JSON body.
        return tag == TAG_JSON and not self.locations


@dataclass(frozen=True)
class SelectedField:
    """A field routed to a location, with its resolved wire name."""

    name: str
    descriptor: FieldDescriptor
    marker: Location | None = None

    @property
    def attr(self) -> str:
        return self.descriptor.attr

    @property
    def info(self) -> FieldInfo:
        return self.descriptor.info


def as_type(value: Any) -> Any:
    """Normalize an input or output value to the type that describes it."""
    if value is None:
        return None
    if isinstance(value, type) or get_origin(value) is not None:
        return value
    return type(value)


def unwrap_annotation(annotation: Any) -> Any:
    """Strip ``Annotated`` and ``Optional`` wrappers from an annotation."""
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation = get_args(annotation)[0]
            continue
        if origin is Union or origin is types.UnionType:
            args = [arg for arg in get_args(annotation) if arg is not type(None)]
            if len(args) == 1:
                annotation = args[0]
                continue
        return annotation


def is_model_type(tp: Any) -> bool:
    """True for pydantic model classes, including root models."""
    return isinstance(tp, type) and get_origin(tp) is None and issubclass(tp, BaseModel)


def is_struct(tp: Any) -> bool:
    """True for pydantic models that decompose into named fields."""
    return is_model_type(tp) and not issubclass(tp, RootModel)


def is_collection(tp: Any) -> bool:
    """True for bare sequence and mapping types such as ``list[Item]``."""
    tp = unwrap_annotation(tp)
    origin = get_origin(tp) or tp
    if not isinstance(origin, type) or issubclass(origin, (str, bytes, bytearray, BaseModel)):
        return False
    return issubclass(origin, _COLLECTION_ORIGINS)


def has_embedded_collection(tp: Any) -> bool:
    """True for root models wrapping a sequence or mapping."""
    if not (is_model_type(tp) and issubclass(tp, RootModel)):
        return False
    root = tp.model_fields.get("root")
    return root is not None and is_collection(root.annotation)


def describe(tp: Any) -> list[FieldDescriptor]:
    """Return the field descriptors of a model type."""
    if not is_struct(tp):
        return []
    return [
        FieldDescriptor(
            attr=attr,
            info=info,
            locations=tuple(meta for meta in info.metadata if isinstance(meta, Location)),
        )
        for attr, info in tp.model_fields.items()
    ]


def has_tagged_fields(tp: Any, tag: str) -> bool:
    return any(descriptor.in_location(tag) for descriptor in describe(tp))


def select_fields(tp: Any, tag: str, mapping: Mapping[str, str] | None = None) -> list[SelectedField]:
    """Return the fields of ``tp`` routed to ``tag``.

    Name precedence: ``mapping`` (keyed by attribute name), marker name,
    pydantic alias, attribute name. Mapped fields are selected even when they
    carry no marker for ``tag``.
    """
    mapping = mapping or {}
    selected: list[SelectedField] = []
    for descriptor in describe(tp):
        marker = descriptor.location(tag)
        if descriptor.attr not in mapping and not descriptor.in_location(tag):
            continue
        name = mapping.get(descriptor.attr) or (marker.name if marker else None) or descriptor.default_name
        selected.append(SelectedField(name=name, descriptor=descriptor, marker=marker))
    return selected


def json_payload_model(annotation: Any) -> type[BaseModel] | None:
    """Return the model behind ``annotation`` when it is itself a JSON payload."""
    tp = unwrap_annotation(annotation)
    if is_struct(tp) and has_tagged_fields(tp, TAG_JSON):
        return tp
    return None


def forces_request_body(tp: Any) -> bool:
    return isinstance(tp, type) and get_origin(tp) is None and issubclass(tp, RequestBodyEnforcer)


def _view_field(field: SelectedField) -> tuple[Any, FieldInfo]:
    info = field.info
    kwargs: dict[str, Any] = {
        "alias": field.name,
        "title": info.title,
        "description": info.description,
        "examples": info.examples,
        "json_schema_extra": info.json_schema_extra,
    }
    if info.deprecated is not None:
        kwargs["deprecated"] = info.deprecated
    if info.default_factory is not None:
        kwargs["default_factory"] = info.default_factory
    elif not info.is_required():
        kwargs["default"] = info.default
    return info.rebuild_annotation(), Field(**kwargs)


def location_model(tp: type[BaseModel], fields: list[SelectedField]) -> type[BaseModel]:
    """Build the view of ``tp`` that holds only ``fields`` under their wire names."""
    if len(fields) == len(tp.model_fields) and all(
        field.name == field.descriptor.default_name for field in fields
    ):
        return tp

    config = ConfigDict(protected_namespaces=())
    for key in _VIEW_CONFIG_KEYS:
        if key in tp.model_config:
            config[key] = tp.model_config[key]  # type: ignore[literal-required]

    return create_model(
        tp.__name__,
        __config__=config,
        __doc__=tp.__doc__,
        __module__=tp.__module__,
        **{field.attr: _view_field(field) for field in fields},
    )


def unselected_keys(tp: Any, tag: str) -> list[str]:
    """Serialized property keys of the fields of ``tp`` not routed to ``tag``."""
    return [
        descriptor.info.serialization_alias or descriptor.default_name
        for descriptor in describe(tp)
        if not descriptor.in_location(tag)
    ]
