"""apireflect: OpenAPI operations from annotated pydantic models."""

from __future__ import annotations

import logging

from apireflect.config import ReflectorConfig
from apireflect.context import OperationContext
from apireflect.errors import (
    DuplicateParameterError,
    ErrorKind,
    FieldPopulationError,
    OpenAPIError,
    OperationErrors,
    ReflectionError,
)
from apireflect.models import Header as ResponseHeader
from apireflect.models import MediaType, Operation, Parameter, RequestBody, Response, Spec
from apireflect.params import (
    Cookie,
    FormData,
    Header,
    Json,
    ParameterIn,
    Path,
    Query,
    RequestBodyEnforcer,
    UploadFile,
)
from apireflect.reflector import Reflector
from apireflect.registry import DefinitionRegistry

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "Cookie",
    "DefinitionRegistry",
    "DuplicateParameterError",
    "ErrorKind",
    "FieldPopulationError",
    "FormData",
    "Header",
    "Json",
    "MediaType",
    "OpenAPIError",
    "Operation",
    "OperationContext",
    "OperationErrors",
    "Parameter",
    "ParameterIn",
    "Path",
    "Query",
    "ReflectionError",
    "Reflector",
    "ReflectorConfig",
    "RequestBody",
    "RequestBodyEnforcer",
    "Response",
    "ResponseHeader",
    "Spec",
    "UploadFile",
]
