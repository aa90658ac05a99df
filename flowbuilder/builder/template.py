"""
Template compilation and rendering.

Templates are Jinja2 templates evaluated in a sandbox. The variable
delimiters are configurable; block and comment delimiters follow them, so
``[[``/``]]`` gives ``[% ... %]`` blocks and ``[# ... #]`` comments and a
literal ``{`` never starts a tag.

Compilation is strict: syntax errors, unknown filters and names that are
neither context keys nor registered functions fail at compile time instead
of at the first render.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import jinja2
from jinja2 import meta
from jinja2 import nodes
from jinja2.sandbox import SandboxedEnvironment

from flowbuilder.builder.functions import FunctionRegistry
from flowbuilder.builder.functions import default_registry
from flowbuilder.config import config
from flowbuilder.errors import CompileError
from flowbuilder.errors import RenderError

logger = logging.getLogger(__name__)

# Top-level names every render receives
CONTEXT_KEYS = frozenset({"requests", "responses", "data"})


@dataclass(frozen=True)
class CompiledTemplate:
    """A parsed template ready to render. Never mutated after compilation."""

    source: str
    left_delim: str
    right_delim: str
    template: jinja2.Template


def _create_environment(left_delim: str, right_delim: str, functions: FunctionRegistry) -> SandboxedEnvironment:
    block_start = left_delim[0] + "%"
    block_end = "%" + right_delim[-1]
    comment_start = left_delim[0] + "#"
    comment_end = "#" + right_delim[-1]

    if len({left_delim, block_start, comment_start}) < 3:
        raise CompileError(f"delimiter {left_delim!r} collides with block or comment markers")

    env = SandboxedEnvironment(
        variable_start_string=left_delim,
        variable_end_string=right_delim,
        block_start_string=block_start,
        block_end_string=block_end,
        comment_start_string=comment_start,
        comment_end_string=comment_end,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.globals.update(functions.as_mapping())
    return env


def compile_template(
    source: str,
    left_delim: str = "",
    right_delim: str = "",
    functions: FunctionRegistry | None = None,
) -> CompiledTemplate:
    """
    Compile a template.

    Args:
        source: Template text
        left_delim: Opening delimiter, the configured default when empty
        right_delim: Closing delimiter, the configured default when empty
        functions: Functions callable from the template (default_registry() when None)

    Returns:
        CompiledTemplate

    Raises:
        CompileError: If the template is malformed or references unknown names
    """
    left_delim = left_delim or config.left_delim
    right_delim = right_delim or config.right_delim
    if functions is None:
        functions = default_registry()

    env = _create_environment(left_delim, right_delim, functions)

    try:
        ast = env.parse(source)
        # Jinja defers unknown filters and tests inside conditionals to render time
        for node in ast.find_all(nodes.Filter):
            if node.name not in env.filters:
                raise CompileError(f"unknown filter: {node.name}")
        for node in ast.find_all(nodes.Test):
            if node.name not in env.tests:
                raise CompileError(f"unknown test: {node.name}")
        unknown = meta.find_undeclared_variables(ast) - CONTEXT_KEYS - set(env.globals)
        if unknown:
            raise CompileError(f"undefined names in template: {', '.join(sorted(unknown))}")
        template = env.from_string(ast)
    except jinja2.TemplateSyntaxError as e:
        raise CompileError(f"line {e.lineno}: {e.message}") from e

    logger.debug(f"Compiled template with delimiters {left_delim} {right_delim}")
    return CompiledTemplate(
        source=source,
        left_delim=left_delim,
        right_delim=right_delim,
        template=template,
    )


def render(compiled: CompiledTemplate, data: dict[str, Any]) -> str:
    """
    Render a compiled template against an execution context snapshot.

    Raises:
        RenderError: On any failure while evaluating the template
    """
    try:
        return compiled.template.render(data)
    except Exception as e:
        raise RenderError(f"failed to render template: {e}") from e
