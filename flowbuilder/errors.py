"""
Exception types raised by the builder.

Configuration and compile errors surface when a builder is loaded or
reloaded. Render and decode errors are raised per build call and are turned
into a build-error result by the filters.
"""

from __future__ import annotations


class BuilderError(Exception):
    """Base class for all builder failures."""


class ConfigurationError(BuilderError):
    """The builder configuration is invalid."""


class CompileError(BuilderError):
    """The template could not be compiled."""


class RenderError(BuilderError):
    """The template failed while rendering."""


class DecodeError(BuilderError):
    """The rendered document could not be decoded into the destination."""
