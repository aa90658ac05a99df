"""
The base builder shared by the request and response builder filters.

A Builder compiles its template once per (re)load and, on every build,
renders it against a snapshot of the pipeline context and decodes the
result into the caller's destination.
"""

from __future__ import annotations

import logging
from typing import Any
from typing import TYPE_CHECKING

from flowbuilder.builder.decoder import decode
from flowbuilder.builder.functions import FunctionRegistry
from flowbuilder.builder.functions import default_registry
from flowbuilder.builder.spec import BuilderSpec
from flowbuilder.builder.template import CompiledTemplate
from flowbuilder.builder.template import compile_template
from flowbuilder.builder.template import render

if TYPE_CHECKING:
    from flowbuilder.pipeline.context import PipelineContext

logger = logging.getLogger(__name__)

# Filter result reported when building fails
RESULT_BUILD_ERR = "buildErr"


def prepare_builder_data(context: PipelineContext) -> dict[str, Any]:
    """
    Snapshot a pipeline context for template rendering.

    Requests and responses are projected into template values; the shared
    data mapping is passed by reference.
    """
    requests = {
        name: request.to_builder_request(name)
        for name, request in context.requests.items()
    }
    responses = {
        name: response.to_builder_response(name)
        for name, response in context.responses.items()
    }
    return {
        "requests": requests,
        "responses": responses,
        "data": context.data,
    }


class Builder:
    """
    Renders a template into a YAML document and decodes it.

    In source namespace mode no template is compiled and build() does
    nothing; the owning filter copies from the source namespace instead.
    """

    def __init__(self, spec: BuilderSpec, functions: FunctionRegistry | None = None):
        self.functions = functions if functions is not None else default_registry()
        self.spec: BuilderSpec | None = None
        self._template: CompiledTemplate | None = None
        self.reload(spec)

    @property
    def template(self) -> CompiledTemplate | None:
        return self._template

    def reload(self, spec: BuilderSpec) -> None:
        """
        Validate spec and replace the compiled template.

        On failure the exception propagates and the previous template stays
        in service.
        """
        spec.validate()

        template = None
        if not spec.source_namespace:
            template = compile_template(
                spec.template,
                left_delim=spec.left_delim,
                right_delim=spec.right_delim,
                functions=self.functions,
            )

        self.spec = spec
        self._template = template

    def build(self, context: PipelineContext, destination: Any) -> None:
        """
        Render the template against context and decode into destination.

        Raises:
            RenderError: If the template fails to render
            DecodeError: If the rendered document can't be decoded
        """
        template = self._template
        if template is None:
            return

        data = prepare_builder_data(context)
        document = render(template, data)
        logger.debug(f"Rendered builder document:\n{document}")
        decode(document, destination)

    def status(self) -> None:
        return None

    def close(self) -> None:
        pass
