"""
flowbuilder: template-driven request/response builders for traffic pipelines.
"""

from flowbuilder.builder import Builder
from flowbuilder.builder import BuilderSpec
from flowbuilder.errors import BuilderError
from flowbuilder.errors import CompileError
from flowbuilder.errors import ConfigurationError
from flowbuilder.errors import DecodeError
from flowbuilder.errors import RenderError
from flowbuilder.pipeline import Pipeline
from flowbuilder.pipeline import PipelineContext

__all__ = [
    "Builder",
    "BuilderError",
    "BuilderSpec",
    "CompileError",
    "ConfigurationError",
    "DecodeError",
    "Pipeline",
    "PipelineContext",
    "RenderError",
]
