"""Responses: body content and headers from an output model."""

from __future__ import annotations

import logging
from dataclasses import replace
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from apireflect.errors import OpenAPIError
from apireflect.fields import is_struct, location_model, select_fields, unselected_keys
from apireflect.models import Header, MediaType, Response
from apireflect.params import TAG_HEADER, TAG_JSON
from apireflect.parameters import apply_field_options
from apireflect.schema import canonical_json, drop_properties, inline_refs, strip_descriptive, strip_nullable

if TYPE_CHECKING:
    from apireflect.context import OperationContext
    from apireflect.reflector import Reflector

logger = logging.getLogger(__name__)

MIME_JSON = "application/json"


def status_text(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


def _body_exclusions(tp: Any) -> list[str]:
    # Keys removed from the full model schema; computed fields stay.
    return unselected_keys(tp, TAG_JSON)


def has_meaningful_schema(reflector: Reflector, output_type: Any) -> bool:
    """True unless the output's schema reduces to one of the trivial forms."""
    reflected = reflector.reflect(
        output_type, None, processing_response=True, processing_in="body", mode="serialization"
    )
    root = drop_properties(reflected.root(), _body_exclusions(output_type))
    stripped = canonical_json(strip_descriptive(root))
    return stripped not in reflector.config.trivial_schemas


def parse_response_body(reflector: Reflector, resp: Response, oc: OperationContext) -> None:
    output_type = oc.output_type

    try:
        meaningful = has_meaningful_schema(reflector, output_type)
    except OpenAPIError:
        # The body reflection below reports the failure.
        meaningful = True
    if not meaningful:
        logger.debug("Skipping response body for %s: schema is trivial", getattr(output_type, "__name__", output_type))
        return

    root, schema = reflector.reflect_ref(
        output_type,
        oc,
        processing_response=True,
        processing_in="body",
        mode="serialization",
        drop=_body_exclusions(output_type),
    )

    content_type = oc.resp_content_type or MIME_JSON
    if resp.content is None:
        resp.content = {}
    resp.content[content_type] = MediaType(schema_=strip_nullable(schema))

    description = root.get("description")
    if description and not resp.description:
        resp.description = description


def parse_response_headers(reflector: Reflector, resp: Response, oc: OperationContext) -> None:
    output_type = oc.output_type
    if not is_struct(output_type):
        return

    fields = select_fields(output_type, TAG_HEADER, oc.resp_header_mapping)
    view = location_model(output_type, fields)
    reflected = reflector.reflect(
        view, oc, processing_response=True, processing_in=TAG_HEADER, mode="serialization"
    )
    properties = reflected.schema.get("properties", {})
    hook_oc = oc.with_processing(True, TAG_HEADER)

    headers: dict[str, Header] = {}
    for field in fields:
        property_schema = inline_refs(properties.get(field.name, {}), reflected.definitions)
        if reflector.intercept_property(field, property_schema, hook_oc):
            continue

        header = Header(
            description=property_schema.get("description"),
            deprecated=property_schema.get("deprecated"),
            schema_=property_schema,
        )
        apply_field_options(header, field.marker, field.attr)
        headers[field.name] = header

    resp.headers = headers or None

    description = reflected.schema.get("description")
    if description and not resp.description:
        resp.description = description


def ensure_response_content_type(resp: Response, content_type: str) -> None:
    if resp.content is None:
        resp.content = {}
    if content_type not in resp.content:
        resp.content[content_type] = MediaType(schema_={})


def setup_response(reflector: Reflector, oc: OperationContext) -> None:
    """Write the response for ``oc.http_status`` into ``oc.operation``."""
    resp = Response()

    if oc.output is not None:
        oc = replace(oc, resp_content_type=oc.resp_content_type.split(";")[0].strip())

        parse_response_body(reflector, resp, oc)
        parse_response_headers(reflector, resp, oc)

        if oc.resp_content_type:
            ensure_response_content_type(resp, oc.resp_content_type)

    if not resp.description:
        resp.description = status_text(oc.http_status)

    oc.operation.responses[str(oc.http_status)] = resp
