"""Request bodies from the JSON and form fields of an input model."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from apireflect.fields import (
    forces_request_body,
    has_embedded_collection,
    has_tagged_fields,
    is_collection,
    is_struct,
    location_model,
    select_fields,
)
from apireflect.models import MediaType
from apireflect.params import TAG_JSON, is_file_type

if TYPE_CHECKING:
    from apireflect.context import OperationContext
    from apireflect.reflector import Reflector

logger = logging.getLogger(__name__)

MIME_JSON = "application/json"
MIME_FORM_URLENCODED = "application/x-www-form-urlencoded"
MIME_MULTIPART = "multipart/form-data"

BODILESS_METHODS = frozenset({"GET", "HEAD", "DELETE", "TRACE"})

BINARY_SCHEMA = {"type": "string", "format": "binary"}


class _FileUploadInterceptor:
    """Renders file types as binary strings and remembers that it saw one."""

    def __init__(self) -> None:
        self.found = False

    def __call__(self, tp: type, oc: OperationContext | None) -> dict[str, Any] | None:
        if not is_file_type(tp):
            return None
        self.found = True
        return dict(BINARY_SCHEMA)


def definition_prefix(tag: str) -> str:
    """Name prefix keeping differently encoded schemas of one type apart."""
    if tag == TAG_JSON:
        return ""
    return tag[:1].upper() + tag[1:]


def parse_request_body(
    reflector: Reflector,
    oc: OperationContext,
    tag: str,
    mime: str,
    http_method: str,
    mapping: Mapping[str, str] | None = None,
) -> None:
    """Add the ``tag``-encoded request body of ``oc.input`` under ``mime``."""
    tp = oc.input_type
    if tp is None:
        return

    method = http_method.upper()
    if method in BODILESS_METHODS:
        if not forces_request_body(tp):
            return
        logger.debug("Forcing request body for %s %s", method, getattr(tp, "__name__", tp))

    has_fields = has_tagged_fields(tp, tag)

    # Form data can not have map or array as body.
    if not has_fields and not mapping and tag != TAG_JSON:
        return

    # JSON can be a map or array without field annotations.
    if not has_fields and not mapping and not is_collection(tp) and not has_embedded_collection(tp):
        return

    body_type = tp
    if is_struct(tp):
        body_type = location_model(tp, select_fields(tp, tag, mapping))

    uploads = _FileUploadInterceptor()
    _, schema = reflector.reflect_ref(
        body_type,
        oc,
        processing_response=False,
        processing_in="body",
        name_prefix=definition_prefix(tag),
        type_interceptors=[uploads],
    )

    if mime == MIME_FORM_URLENCODED and uploads.found:
        mime = MIME_MULTIPART

    oc.operation.request_body_ens().content[mime] = MediaType(schema_=schema)
