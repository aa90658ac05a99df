"""
RequestBuilder filter.

Builds a new HTTP request from a template and publishes it in the
pipeline's current namespace. The template renders a document like:

    method: POST
    url: https://example.com/api
    headers:
      Content-Type: application/json
    body: '{"id": 1}'
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING

from flowbuilder.builder.builder import Builder
from flowbuilder.builder.builder import RESULT_BUILD_ERR
from flowbuilder.builder.functions import FunctionRegistry
from flowbuilder.builder.spec import parse_filter_spec
from flowbuilder.errors import BuilderError
from flowbuilder.models import HTTPRequest

if TYPE_CHECKING:
    from flowbuilder.pipeline.context import PipelineContext

logger = logging.getLogger(__name__)

KIND = "RequestBuilder"

METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "CONNECT", "OPTIONS", "TRACE"}
)


@dataclass
class RequestInfo:
    """The document a request template renders."""

    method: str = ""
    url: str = ""
    headers: dict[str, str | list[str]] = field(default_factory=dict)
    body: str = ""


def join_header_values(headers: dict[str, str | list[str]]) -> dict[str, str]:
    return {
        name: ", ".join(value) if isinstance(value, list) else value
        for name, value in headers.items()
    }


class RequestBuilder:
    """Filter that builds a request."""

    kind = KIND

    def __init__(self, spec: dict, functions: FunctionRegistry | None = None):
        self.name, builder_spec = parse_filter_spec(spec)
        self.builder = Builder(builder_spec, functions)

    def reload(self, spec: dict) -> None:
        name, builder_spec = parse_filter_spec(spec)
        self.builder.reload(builder_spec)
        self.name = name

    def handle(self, context: PipelineContext) -> str:
        """Build the request. Returns "" on success or the build error result."""
        if self.builder.template is None:
            return self._copy_source(context)

        info = RequestInfo()
        try:
            self.builder.build(context, info)
        except BuilderError as e:
            logger.error(f"{self.name}: failed to build request: {e}")
            return RESULT_BUILD_ERR

        method = (info.method or "GET").upper()
        if method not in METHODS:
            logger.error(f"{self.name}: invalid method: {info.method}")
            return RESULT_BUILD_ERR

        if not info.url:
            logger.error(f"{self.name}: request url is empty")
            return RESULT_BUILD_ERR

        context.set_output_request(
            HTTPRequest(
                method=method,
                url=info.url,
                headers=join_header_values(info.headers),
                body=info.body.encode("utf-8"),
            )
        )
        return ""

    def _copy_source(self, context: PipelineContext) -> str:
        source = self.builder.spec.source_namespace
        request = context.get_request(source)
        if request is None:
            logger.error(f"{self.name}: no request in namespace {source}")
            return RESULT_BUILD_ERR

        context.set_output_request(dataclasses.replace(request, headers=dict(request.headers)))
        return ""

    def status(self) -> None:
        return self.builder.status()

    def close(self) -> None:
        self.builder.close()
