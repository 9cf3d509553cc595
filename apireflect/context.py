"""Per-call context for building one operation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from apireflect.fields import as_type
from apireflect.models import Operation


@dataclass
class OperationContext:
    """Everything needed to describe one operation's request or response.

    ``processing_response`` and ``processing_in`` are set on the copies handed
    to interceptors and tell them which phase is running.
    """

    operation: Operation
    input: Any = None
    http_method: str = ""

    req_query_mapping: dict[str, str] = field(default_factory=dict)
    req_path_mapping: dict[str, str] = field(default_factory=dict)
    req_cookie_mapping: dict[str, str] = field(default_factory=dict)
    req_header_mapping: dict[str, str] = field(default_factory=dict)
    req_form_data_mapping: dict[str, str] = field(default_factory=dict)

    output: Any = None
    http_status: int = 200
    resp_content_type: str = ""
    resp_header_mapping: dict[str, str] = field(default_factory=dict)

    processing_response: bool = False
    processing_in: str = ""

    @property
    def input_type(self) -> Any:
        return as_type(self.input)

    @property
    def output_type(self) -> Any:
        return as_type(self.output)

    def with_processing(self, response: bool, in_: str) -> OperationContext:
        return replace(self, processing_response=response, processing_in=in_)
