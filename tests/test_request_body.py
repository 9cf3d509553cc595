"""Tests for request body construction."""

from __future__ import annotations

from typing import Annotated

import pytest
from pydantic import BaseModel, RootModel

from apireflect import FormData, Json, OperationContext, Path, Query, UploadFile


class Address(BaseModel):
    street: str
    city: str


class CreateUser(BaseModel):
    org_id: Annotated[str, Path("org")]
    name: str
    address: Address


class SearchUsers(BaseModel):
    query: str


class ForcedSearch(BaseModel):
    query: str

    def force_request_body(self) -> None:
        pass


class Upload(BaseModel):
    title: Annotated[str, FormData()]
    upload: Annotated[UploadFile, FormData("file")]


class Signup(BaseModel):
    email: Annotated[str, FormData()]
    plan: Annotated[str, FormData()] = "free"


class Users(RootModel[list[Address]]):
    pass


class Node(BaseModel):
    page: Annotated[int, Query()] = 1
    name: str
    children: list[Node] = []


class Tree(BaseModel):
    name: str
    children: list[Tree] = []


def test_json_body_excludes_located_fields(reflector, operation) -> None:
    reflector.set_request(operation, CreateUser, "POST")

    content = operation.request_body.content
    assert list(content) == ["application/json"]
    assert content["application/json"].schema_ == {"$ref": "#/components/schemas/CreateUser"}

    schema = reflector.registry.get("CreateUser")
    assert set(schema["properties"]) == {"name", "address"}
    assert schema["properties"]["address"] == {"$ref": "#/components/schemas/Address"}
    assert "Address" in reflector.registry


@pytest.mark.parametrize("method", ["GET", "HEAD", "DELETE", "TRACE", "get"])
def test_bodiless_methods_have_no_request_body(reflector, operation, method) -> None:
    reflector.set_request(operation, SearchUsers, method)
    assert operation.request_body is None


def test_force_request_body_marker_enables_body_for_get(reflector, operation) -> None:
    reflector.set_request(operation, ForcedSearch, "GET")

    content = operation.request_body.content
    assert content["application/json"].schema_ == {"$ref": "#/components/schemas/ForcedSearch"}


def test_file_upload_switches_form_to_multipart(reflector, operation) -> None:
    reflector.set_request(operation, Upload, "POST")

    content = operation.request_body.content
    assert list(content) == ["multipart/form-data"]
    assert content["multipart/form-data"].schema_ == {"$ref": "#/components/schemas/FormDataUpload"}

    schema = reflector.registry.get("FormDataUpload")
    assert schema["properties"]["file"] == {"type": "string", "format": "binary"}
    assert schema["properties"]["title"]["type"] == "string"


def test_form_without_files_stays_urlencoded(reflector, operation) -> None:
    reflector.set_request(operation, Signup, "POST")

    content = operation.request_body.content
    assert list(content) == ["application/x-www-form-urlencoded"]
    assert content["application/x-www-form-urlencoded"].schema_ == {"$ref": "#/components/schemas/FormDataSignup"}
    assert "Signup" not in reflector.registry


def test_json_and_form_bodies_coexist(reflector, operation) -> None:
    class Mixed(BaseModel):
        note: Annotated[str, Json(), FormData()]

    reflector.set_request(operation, Mixed, "PUT")

    assert set(operation.request_body.content) == {"application/json", "application/x-www-form-urlencoded"}
    assert "Mixed" in reflector.registry
    assert "FormDataMixed" in reflector.registry


def test_bare_list_is_a_json_body(reflector, operation) -> None:
    reflector.set_request(operation, list[Address], "POST")

    content = operation.request_body.content
    assert list(content) == ["application/json"]
    assert content["application/json"].schema_ == {
        "type": "array",
        "items": {"$ref": "#/components/schemas/Address"},
    }
    assert "Address" in reflector.registry


def test_root_model_collection_is_a_json_body(reflector, operation) -> None:
    reflector.set_request(operation, Users, "POST")

    content = operation.request_body.content
    assert content["application/json"].schema_ == {"$ref": "#/components/schemas/Users"}
    assert reflector.registry.get("Users")["type"] == "array"


def test_model_without_body_fields_has_no_body(reflector, operation) -> None:
    class OnlyQuery(BaseModel):
        q: Annotated[str, Query()]

    reflector.set_request(operation, OnlyQuery, "POST")
    assert operation.request_body is None


def test_form_mapping_enables_untagged_fields(reflector, operation) -> None:
    class Login(BaseModel):
        username: str

    oc = OperationContext(
        operation=operation,
        input=Login,
        http_method="POST",
        req_form_data_mapping={"username": "user"},
    )
    reflector.setup_request(oc)

    content = operation.request_body.content
    assert set(content) == {"application/json", "application/x-www-form-urlencoded"}
    form_schema = reflector.registry.get("FormDataLogin")
    assert set(form_schema["properties"]) == {"user"}


def test_type_interceptor_sees_body_phase(reflector, operation) -> None:
    class Money:
        pass

    class Invoice(BaseModel):
        model_config = {"arbitrary_types_allowed": True}

        total: Money

    seen = []

    def money_schema(tp, oc):
        if tp is Money:
            seen.append((oc.processing_response, oc.processing_in))
            return {"type": "string", "format": "decimal"}
        return None

    reflector.type_interceptors.append(money_schema)
    reflector.set_request(operation, Invoice, "POST")

    assert seen == [(False, "body")]
    assert reflector.registry.get("Invoice")["properties"]["total"] == {"type": "string", "format": "decimal"}


def test_recursive_body_view_keeps_only_body_fields(reflector, operation) -> None:
    reflector.set_request(operation, Node, "POST")

    assert [(p.in_, p.name) for p in operation.parameters] == [("query", "page")]
    assert operation.request_body.content["application/json"].schema_ == {"$ref": "#/components/schemas/Node"}

    schema = reflector.registry.get("Node")
    assert set(schema["properties"]) == {"name", "children"}
    assert schema["properties"]["children"]["type"] == "array"


def test_recursive_model_is_registered_as_its_definition(reflector, operation) -> None:
    reflector.set_request(operation, Tree, "POST")

    schema = reflector.registry.get("Tree")
    assert "$ref" not in schema
    assert set(schema["properties"]) == {"name", "children"}
    assert schema["properties"]["children"]["items"] == {"$ref": "#/components/schemas/Tree"}
