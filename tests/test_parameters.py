"""Tests for parameter extraction from annotated input models."""

from __future__ import annotations

from typing import Annotated, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field

from apireflect import (
    Cookie,
    DuplicateParameterError,
    FieldPopulationError,
    Header,
    OperationContext,
    OperationErrors,
    ParameterIn,
    Path,
    Query,
)
from apireflect.errors import ErrorKind
from apireflect.parameters import parse_parameters_in


class ListUsers(BaseModel):
    limit: Annotated[int, Query(description="Page size")] = 10
    tags: Annotated[list[str], Query(collection_format="csv")] = []
    cursor: Annotated[Optional[str], Query()] = None
    org_id: Annotated[str, Path("org")]
    request_id: Annotated[str, Header("X-Request-Id")]
    session: Annotated[str, Cookie()] = ""


class Filter(BaseModel):
    status: str
    labels: list[str] = []


class Search(BaseModel):
    filter: Annotated[Filter, Query()]


class Range(BaseModel):
    lo: Annotated[int, Query()]
    hi: Annotated[int, Query()]


class Report(BaseModel):
    range: Annotated[Range, Query()]
    meta: Annotated[dict[str, str], Query()] = {}


def _params(operation):
    return {(p.in_, p.name): p for p in operation.parameters}


def test_parameters_are_grouped_by_location(reflector, operation) -> None:
    reflector.set_request(operation, ListUsers, "GET")

    assert [(p.in_, p.name) for p in operation.parameters] == [
        ("query", "limit"),
        ("query", "tags"),
        ("query", "cursor"),
        ("path", "org"),
        ("cookie", "session"),
        ("header", "X-Request-Id"),
    ]
    assert operation.request_body is None


def test_query_parameter_schema_and_options(reflector, operation) -> None:
    reflector.set_request(operation, ListUsers, "GET")
    params = _params(operation)

    limit = params[("query", "limit")]
    assert limit.description == "Page size"
    assert limit.schema_["type"] == "integer"
    assert limit.schema_["default"] == 10
    assert limit.required is None

    header = params[("header", "X-Request-Id")]
    assert header.required is True


def test_nullable_marker_is_stripped_from_parameters(reflector, operation) -> None:
    reflector.set_request(operation, ListUsers, "GET")
    cursor = _params(operation)[("query", "cursor")]

    assert cursor.schema_["type"] == "string"
    assert "nullable" not in cursor.schema_
    assert "anyOf" not in cursor.schema_


def test_collection_format_sets_style_and_explode(reflector, operation) -> None:
    reflector.set_request(operation, ListUsers, "GET")
    tags = _params(operation)[("query", "tags")]

    assert tags.style == "form"
    assert tags.explode is False
    assert tags.schema_["type"] == "array"


@pytest.mark.parametrize(
    ("fmt", "style", "explode"),
    [
        ("csv", "form", False),
        ("ssv", "spaceDelimited", False),
        ("pipes", "pipeDelimited", False),
        ("multi", "form", True),
    ],
)
def test_each_collection_format(reflector, operation, fmt, style, explode) -> None:
    class Ids(BaseModel):
        ids: Annotated[list[int], Query(collection_format=fmt)]

    reflector.set_request(operation, Ids, "GET")
    (param,) = operation.parameters
    assert (param.style, param.explode) == (style, explode)


def test_path_parameters_are_always_required(reflector, operation) -> None:
    class GetItem(BaseModel):
        item_id: Annotated[int, Path("id", required=False)] = 0

    reflector.set_request(operation, GetItem, "GET")
    (param,) = operation.parameters
    assert param.in_ == ParameterIn.PATH
    assert param.name == "id"
    assert param.required is True


def test_duplicate_query_name_fails(reflector, operation) -> None:
    class Dup(BaseModel):
        first: Annotated[int, Query("id")]
        second: Annotated[int, Query("id")]

    oc = OperationContext(operation=operation, input=Dup, http_method="GET")
    with pytest.raises(DuplicateParameterError) as exc_info:
        parse_parameters_in(reflector, oc, "query")

    err = exc_info.value
    assert err.name == "id"
    assert err.location == "query"
    assert "id" in str(err)
    assert "query" in str(err)
    # The first parameter stays in place.
    assert [(p.in_, p.name) for p in operation.parameters] == [("query", "id")]


def test_duplicate_errors_from_every_location_are_joined(reflector, operation) -> None:
    class Dup(BaseModel):
        a: Annotated[int, Query("id")]
        b: Annotated[int, Query("id")]
        c: Annotated[str, Header("X-Token")]
        d: Annotated[str, Header("X-Token")]

    with pytest.raises(OperationErrors) as exc_info:
        reflector.set_request(operation, Dup, "GET")

    errors = exc_info.value.errors
    assert len(errors) == 2
    assert {(e.location, e.name) for e in errors} == {("query", "id"), ("header", "X-Token")}
    assert exc_info.value.of_kind(ErrorKind.DUPLICATE_PARAMETER) == errors
    assert "parameter id in query is already defined" in str(exc_info.value)
    assert "parameter X-Token in header is already defined" in str(exc_info.value)


def test_same_name_in_different_locations_is_allowed(reflector, operation) -> None:
    class Both(BaseModel):
        q: Annotated[str, Query("id")]
        h: Annotated[str, Header("id")]

    reflector.set_request(operation, Both, "GET")
    assert {(p.in_, p.name) for p in operation.parameters} == {("query", "id"), ("header", "id")}


def test_json_structured_parameter_uses_content(reflector, operation) -> None:
    reflector.set_request(operation, Search, "GET")
    (param,) = operation.parameters

    assert param.schema_ is None
    assert param.style is None
    assert param.explode is None
    assert param.content["application/json"].schema_ == {"$ref": "#/components/schemas/Filter"}
    assert "Filter" in reflector.registry


def test_object_parameters_use_deep_object_style(reflector, operation) -> None:
    reflector.set_request(operation, Report, "GET")
    params = _params(operation)

    for name in ("range", "meta"):
        param = params[("query", name)]
        assert param.style == "deepObject"
        assert param.explode is True
        assert param.content is None

    assert params[("query", "range")].schema_ == {"$ref": "#/components/schemas/Range"}
    assert reflector.registry.get("Range")["type"] == "object"


def test_forbidden_extra_sets_vendor_extension(reflector, operation) -> None:
    class Strict(BaseModel):
        model_config = ConfigDict(extra="forbid")

        q: Annotated[str, Query()]

    reflector.set_request(operation, Strict, "GET")

    assert operation.extensions["x-forbid-unknown-query"] is True
    assert operation.to_dict()["x-forbid-unknown-query"] is True


def test_open_models_have_no_forbid_extension(reflector, operation) -> None:
    reflector.set_request(operation, ListUsers, "GET")
    assert not any(key.startswith("x-forbid-unknown-") for key in operation.extensions)


def test_invalid_collection_format_is_a_population_error(reflector, operation) -> None:
    class Bad(BaseModel):
        ids: Annotated[list[int], Query(collection_format="tsv")]

    oc = OperationContext(operation=operation, input=Bad, http_method="GET")
    with pytest.raises(FieldPopulationError) as exc_info:
        parse_parameters_in(reflector, oc, "query")

    assert exc_info.value.field == "ids"
    assert exc_info.value.option == "collection_format"


def test_malformed_option_value_is_a_population_error(reflector, operation) -> None:
    class Bad(BaseModel):
        q: Annotated[str, Query(required="sometimes")]  # type: ignore[arg-type]

    with pytest.raises(OperationErrors) as exc_info:
        reflector.set_request(operation, Bad, "GET")

    (err,) = exc_info.value.errors
    assert isinstance(err, FieldPopulationError)
    assert err.option == "required"


def test_name_mapping_selects_and_renames_fields(reflector, operation) -> None:
    class Paged(BaseModel):
        page: int = 1

    oc = OperationContext(
        operation=operation,
        input=Paged,
        http_method="GET",
        req_query_mapping={"page": "p"},
    )
    reflector.setup_request(oc)

    (param,) = operation.parameters
    assert (param.in_, param.name) == ("query", "p")
    assert param.schema_["type"] == "integer"


def test_field_description_and_required_from_pydantic(reflector, operation) -> None:
    class Lookup(BaseModel):
        term: Annotated[str, Query(), Field(description="Search term")]

    reflector.set_request(operation, Lookup, "GET")
    (param,) = operation.parameters
    assert param.description == "Search term"
    assert param.required is True


def test_collections_are_not_decomposed_into_parameters(reflector, operation) -> None:
    reflector.set_request(operation, list[Filter], "GET")
    assert operation.parameters == []


def test_model_instances_are_accepted_as_input(reflector, operation) -> None:
    class GetItem(BaseModel):
        item_id: Annotated[int, Path("id")]

    reflector.set_request(operation, GetItem(item_id=3), "GET")
    assert [(p.in_, p.name) for p in operation.parameters] == [("path", "id")]
