"""Operation parameters from the query, path, header and cookie fields of an input model."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from apireflect.errors import DuplicateParameterError, FieldPopulationError
from apireflect.fields import SelectedField, is_struct, json_payload_model, location_model, select_fields
from apireflect.models import MediaType, Parameter
from apireflect.params import COLLECTION_STYLES, TAG_PATH, Location, ParameterStyle
from apireflect.schema import is_object_schema, strip_nullable

if TYPE_CHECKING:
    from apireflect.context import OperationContext
    from apireflect.reflector import Reflector

logger = logging.getLogger(__name__)

MIME_JSON = "application/json"

# Vendor extension prefix marking a location whose unknown parameters are
# forbidden; the location name is appended.
X_FORBID_UNKNOWN = "x-forbid-unknown-"


def apply_field_options(target: BaseModel, marker: Location | None, field_name: str) -> None:
    """Copy declarative marker options onto a parameter or header descriptor."""
    if marker is None:
        return
    for option, value in marker.options().items():
        try:
            setattr(target, option, value)
        except ValidationError as exc:
            raise FieldPopulationError(
                f"invalid {option} for {field_name}: {exc.errors()[0]['msg']}",
                field=field_name,
                option=option,
            ) from exc


def _apply_collection_format(param: Parameter, marker: Location | None, field_name: str) -> None:
    fmt = marker.collection_format if marker is not None else None
    if fmt is None:
        return
    if fmt not in COLLECTION_STYLES:
        raise FieldPopulationError(
            f"invalid collection format {fmt!r} for {field_name}, "
            f"expected one of {', '.join(COLLECTION_STYLES)}",
            field=field_name,
            option="collection_format",
        )
    style, explode = COLLECTION_STYLES[fmt]
    param.style = style.value
    param.explode = explode


def _build_parameter(
    reflector: Reflector,
    oc: OperationContext,
    in_: str,
    field: SelectedField,
    property_schema: dict[str, Any],
    required: bool,
    definitions: dict[str, Any],
) -> Parameter:
    param = Parameter(
        name=field.name,
        in_=in_,
        description=property_schema.get("description"),
        schema_=strip_nullable(property_schema),
    )
    if required:
        param.required = True

    _apply_collection_format(param, field.marker, field.attr)

    payload = json_payload_model(field.info.annotation)
    if payload is not None:
        # The field is a JSON document sent as one parameter value.
        _, schema = reflector.reflect_ref(payload, oc, processing_response=False, processing_in=in_)
        param.schema_ = None
        param.content = {MIME_JSON: MediaType(schema_=schema)}
    elif is_object_schema(property_schema, definitions):
        param.style = ParameterStyle.DEEP_OBJECT.value
        param.explode = True

    apply_field_options(param, field.marker, field.attr)

    if in_ == TAG_PATH:
        param.required = True

    return param


def parse_parameters_in(
    reflector: Reflector,
    oc: OperationContext,
    in_: str,
    mapping: Mapping[str, str] | None = None,
) -> None:
    """Append the parameters of location ``in_`` to ``oc.operation``.

    Raises :class:`DuplicateParameterError` when a (location, name) pair is
    already defined; parameters added before the failure are kept.
    """
    tp = oc.input_type
    if not is_struct(tp):
        return

    operation = oc.operation
    fields = select_fields(tp, in_, mapping)
    view = location_model(tp, fields)
    reflected = reflector.reflect(view, oc, processing_response=False, processing_in=in_)
    reflector.collect_definitions(reflected.definitions)

    properties = reflected.schema.get("properties", {})
    required = set(reflected.schema.get("required", ()))
    hook_oc = oc.with_processing(False, in_)

    for field in fields:
        property_schema = properties.get(field.name, {})
        if reflector.intercept_property(field, property_schema, hook_oc):
            continue

        param = _build_parameter(
            reflector, oc, in_, field, property_schema, field.name in required, reflected.definitions
        )

        if any(existing.in_ == param.in_ and existing.name == param.name for existing in operation.parameters):
            logger.debug("Parameter %s in %s is already defined", param.name, param.in_)
            raise DuplicateParameterError(param.name, param.in_)

        operation.parameters.append(param)

    if reflected.schema.get("additionalProperties") is False:
        operation.with_extension(X_FORBID_UNKNOWN + in_, True)
