"""
ResponseBuilder filter.

Builds a new HTTP response from a template and publishes it in the
pipeline's current namespace. The template renders a document like:

    statusCode: 200
    headers:
      Content-Type: text/plain
    body: hello
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
from flowbuilder.builder.request_builder import join_header_values
from flowbuilder.builder.spec import parse_filter_spec
from flowbuilder.errors import BuilderError
from flowbuilder.models import HTTPResponse

if TYPE_CHECKING:
    from flowbuilder.pipeline.context import PipelineContext

logger = logging.getLogger(__name__)

KIND = "ResponseBuilder"


@dataclass
class ResponseInfo:
    """The document a response template renders."""

    status_code: int = field(default=200, metadata={"yaml": "statusCode"})
    headers: dict[str, str | list[str]] = field(default_factory=dict)
    body: str = ""


class ResponseBuilder:
    """Filter that builds a response."""

    kind = KIND

    def __init__(self, spec: dict, functions: FunctionRegistry | None = None):
        self.name, builder_spec = parse_filter_spec(spec)
        self.builder = Builder(builder_spec, functions)

    def reload(self, spec: dict) -> None:
        name, builder_spec = parse_filter_spec(spec)
        self.builder.reload(builder_spec)
        self.name = name

    def handle(self, context: PipelineContext) -> str:
        """Build the response. Returns "" on success or the build error result."""
        if self.builder.template is None:
            return self._copy_source(context)

        info = ResponseInfo()
        try:
            self.builder.build(context, info)
        except BuilderError as e:
            logger.error(f"{self.name}: failed to build response: {e}")
            return RESULT_BUILD_ERR

        if not 200 <= info.status_code <= 599:
            logger.error(f"{self.name}: invalid status code: {info.status_code}")
            return RESULT_BUILD_ERR

        context.set_output_response(
            HTTPResponse(
                status_code=info.status_code,
                headers=join_header_values(info.headers),
                body=info.body.encode("utf-8"),
            )
        )
        return ""

    def _copy_source(self, context: PipelineContext) -> str:
        source = self.builder.spec.source_namespace
        response = context.get_response(source)
        if response is None:
            logger.error(f"{self.name}: no response in namespace {source}")
            return RESULT_BUILD_ERR

        context.set_output_response(dataclasses.replace(response, headers=dict(response.headers)))
        return ""

    def status(self) -> None:
        return self.builder.status()

    def close(self) -> None:
        self.builder.close()
