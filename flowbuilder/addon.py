"""
mitmproxy addon that runs builder pipelines on live flows.

Usage:
    mitmdump -s flowbuilder/addon.py --set flowbuilder_config=builders.yaml

The config file holds two optional filter lists:

    request:
      - name: rewrite
        kind: RequestBuilder
        template: |
          method: POST
          url: "{{ requests.DEFAULT.URL }}"
    response:
      - name: wrap
        kind: ResponseBuilder
        template: |
          statusCode: 200
          body: "{{ responses.DEFAULT.Body }}"

The request pipeline may publish a new request or a response (which
short-circuits the flow); the response pipeline may replace the response.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from mitmproxy import ctx
from mitmproxy import exceptions
from mitmproxy import http

from flowbuilder.config import config
from flowbuilder.errors import BuilderError
from flowbuilder.models import HTTPRequest
from flowbuilder.models import HTTPResponse
from flowbuilder.pipeline import Pipeline
from flowbuilder.pipeline import PipelineContext
from flowbuilder.schema_validator import validate_config

logger = logging.getLogger(__name__)

OPTION_NAME = "flowbuilder_config"

# Metadata key set on flows whose pipeline failed
ERROR_METADATA_KEY = "flowbuilder_error"


def load_pipelines(path: Path | str) -> tuple[Pipeline | None, Pipeline | None]:
    """
    Load the request and response pipelines from a config file.

    Raises:
        BuilderError: If the file can't be read or any filter is invalid
    """
    path = Path(path).expanduser()
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise BuilderError(f"Failed to load {path}: {e}") from e

    result = validate_config(raw, context=path.name)
    if not result.valid:
        raise BuilderError("; ".join(result.errors))

    request_pipeline = Pipeline.from_config(raw.get("request"))
    response_pipeline = Pipeline.from_config(raw.get("response"))
    return request_pipeline, response_pipeline


class BuilderAddon:
    """
    Mitmproxy addon that builds requests and responses from templates.

    A config that fails to load is rejected and the previously loaded
    pipelines keep serving.
    """

    def __init__(self):
        self.request_pipeline: Pipeline | None = None
        self.response_pipeline: Pipeline | None = None

    def load(self, loader) -> None:
        loader.add_option(
            name=OPTION_NAME,
            typespec=Optional[str],
            default=config.config_path,
            help="Path to a YAML file with request/response builder filters",
        )

    def configure(self, updated: set[str]) -> None:
        if OPTION_NAME not in updated:
            return

        path = getattr(ctx.options, OPTION_NAME)
        if not path:
            self._replace(None, None)
            return

        try:
            request_pipeline, response_pipeline = load_pipelines(path)
        except BuilderError as e:
            logger.warning(f"Rejected builder config {path}: {e}")
            raise exceptions.OptionsError(f"Invalid builder config {path}: {e}") from e

        self._replace(request_pipeline, response_pipeline)
        logger.info(f"Loaded builder config from {path}")

    def _replace(self, request_pipeline: Pipeline | None, response_pipeline: Pipeline | None) -> None:
        old = (self.request_pipeline, self.response_pipeline)
        self.request_pipeline = request_pipeline
        self.response_pipeline = response_pipeline
        for pipeline in old:
            if pipeline is not None:
                pipeline.close()

    def request(self, flow: http.HTTPFlow) -> None:
        pipeline = self.request_pipeline
        if pipeline is None:
            return

        context = PipelineContext.from_flow(flow)
        original = context.get_request(context.namespace)
        pipeline.execute(context)
        if context.has_error():
            flow.metadata[ERROR_METADATA_KEY] = context.error
            return

        request = context.get_request(context.namespace)
        if request is not None and request is not original:
            _apply_request(flow, request)

        response = context.get_response(context.namespace)
        if response is not None:
            flow.response = _make_response(response)

    def response(self, flow: http.HTTPFlow) -> None:
        pipeline = self.response_pipeline
        if pipeline is None or flow.response is None:
            return

        context = PipelineContext.from_flow(flow)
        original = context.get_response(context.namespace)
        pipeline.execute(context)
        if context.has_error():
            flow.metadata[ERROR_METADATA_KEY] = context.error
            return

        response = context.get_response(context.namespace)
        if response is not None and response is not original:
            flow.response = _make_response(response)

    def done(self) -> None:
        self._replace(None, None)


def _apply_request(flow: http.HTTPFlow, request: HTTPRequest) -> None:
    flow.request.method = request.method
    flow.request.url = request.url
    flow.request.headers.clear()
    for name, value in request.headers.items():
        flow.request.headers[name] = value
    flow.request.content = request.body


def _make_response(response: HTTPResponse) -> http.Response:
    return http.Response.make(response.status_code, response.body, response.headers)


addons = [BuilderAddon()]
