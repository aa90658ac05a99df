"""
Pipeline executor that runs builder filters in order.

The Pipeline class:
1. Takes a list of filter configs ({"name": ..., "kind": ..., ...})
2. Creates each filter through the FILTERS registry
3. Passes the PipelineContext through each filter
4. Stops at the first filter that reports a result (e.g. "buildErr")
"""

from __future__ import annotations

import logging
from typing import Any

from flowbuilder.builder.functions import FunctionRegistry
from flowbuilder.builder.request_builder import RequestBuilder
from flowbuilder.builder.response_builder import ResponseBuilder
from flowbuilder.errors import ConfigurationError
from flowbuilder.pipeline.context import PipelineContext

logger = logging.getLogger(__name__)


# Filter registry: kind -> filter class
FILTERS: dict[str, type] = {
    RequestBuilder.kind: RequestBuilder,
    ResponseBuilder.kind: ResponseBuilder,
}


class Pipeline:
    """
    Executes a sequence of builder filters on a pipeline context.

    Filters are created (and their templates compiled) when the pipeline is
    constructed, so a bad config fails here rather than on first use.
    """

    def __init__(self, filters: list[dict], functions: FunctionRegistry | None = None):
        """
        Initialize pipeline with filter configs.

        Args:
            filters: List of filter dicts from config, e.g.:
                [
                    {"name": "mock", "kind": "ResponseBuilder",
                     "template": "statusCode: 200\\nbody: ok"},
                ]
            functions: Function registry passed to every builder

        Raises:
            ConfigurationError: On unknown kinds, duplicate names or invalid specs
            CompileError: If a template fails to compile
        """
        self.filters: list[Any] = []
        names: set[str] = set()

        for spec in filters:
            kind = spec.get("kind")
            filter_cls = FILTERS.get(kind)
            if filter_cls is None:
                raise ConfigurationError(f"Unknown filter kind: {kind}")

            flt = filter_cls(spec, functions)
            if flt.name in names:
                raise ConfigurationError(f"Duplicate filter name: {flt.name}")
            names.add(flt.name)
            self.filters.append(flt)

        logger.debug(f"Pipeline created with {len(self.filters)} filters")

    def execute(self, context: PipelineContext) -> PipelineContext:
        """
        Run all filters on the context.

        Args:
            context: PipelineContext with request/response data

        Returns:
            The same context, with context.error set if a filter failed
        """
        for flt in self.filters:
            result = flt.handle(context)
            if result:
                context.set_error(f"{flt.name}: {result}")
                logger.warning(f"Pipeline stopped due to error: {context.error}")
                break

        return context

    def close(self) -> None:
        for flt in self.filters:
            flt.close()

    @classmethod
    def from_config(cls, filters: list[dict] | None, functions: FunctionRegistry | None = None) -> Pipeline | None:
        """
        Create a Pipeline from a config section.

        Returns:
            Pipeline instance or None if no filters are defined
        """
        if not filters:
            return None
        return cls(filters, functions)
