"""
Template builders.

A builder renders a template against the pipeline's requests, responses
and shared data, then decodes the rendered YAML into a destination:
- builder: compile/reload and build orchestration
- template: Jinja2 compilation and rendering
- decoder: YAML decoding into mappings, sequences and dataclasses
- functions: the function registry available to templates
- request_builder / response_builder: pipeline filters
"""

from flowbuilder.builder.builder import Builder
from flowbuilder.builder.builder import RESULT_BUILD_ERR
from flowbuilder.builder.builder import prepare_builder_data
from flowbuilder.builder.decoder import decode
from flowbuilder.builder.functions import FunctionRegistry
from flowbuilder.builder.functions import default_registry
from flowbuilder.builder.request_builder import RequestBuilder
from flowbuilder.builder.response_builder import ResponseBuilder
from flowbuilder.builder.spec import BuilderSpec
from flowbuilder.builder.template import CompiledTemplate
from flowbuilder.builder.template import compile_template
from flowbuilder.builder.template import render

__all__ = [
    "Builder",
    "BuilderSpec",
    "CompiledTemplate",
    "FunctionRegistry",
    "RESULT_BUILD_ERR",
    "RequestBuilder",
    "ResponseBuilder",
    "compile_template",
    "decode",
    "default_registry",
    "prepare_builder_data",
    "render",
]
