"""Tests for template compilation and rendering."""

import pytest

from flowbuilder.builder.functions import FunctionRegistry
from flowbuilder.builder.template import compile_template
from flowbuilder.builder.template import render
from flowbuilder.config import Settings
from flowbuilder.errors import CompileError
from flowbuilder.errors import RenderError


def snapshot(**data):
    return {"requests": {}, "responses": {}, "data": data}


class TestCompile:
    def test_default_delimiters(self):
        compiled = compile_template("a: {{ data.a }}")
        assert compiled.left_delim == "{{"
        assert compiled.right_delim == "}}"
        assert render(compiled, snapshot(a=1)) == "a: 1"

    def test_unbalanced_delimiters(self):
        with pytest.raises(CompileError):
            compile_template("a: {{ data.a ")

    def test_unknown_function(self):
        with pytest.raises(CompileError, match="nosuchfunc"):
            compile_template("a: {{ nosuchfunc(1) }}")

    def test_unknown_top_level_name(self):
        with pytest.raises(CompileError, match="request"):
            compile_template("a: {{ request.Method }}")

    def test_unknown_filter(self):
        with pytest.raises(CompileError):
            compile_template("a: {{ data.a | nosuchfilter }}")

    def test_unknown_filter_in_conditional(self):
        with pytest.raises(CompileError, match="nosuchfilter"):
            compile_template("{% if data.a %}a: {{ data.a | nosuchfilter }}{% endif %}")

    def test_unknown_test_in_conditional(self):
        with pytest.raises(CompileError, match="nosuchtest"):
            compile_template("{% if data.a is nosuchtest %}a: 1{% endif %}")

    def test_unknown_filter_in_conditional_expression(self):
        with pytest.raises(CompileError, match="nosuchfilter"):
            compile_template("a: {{ data.a | nosuchfilter if data.a else 0 }}")

    def test_builtin_filters_and_tests(self):
        compiled = compile_template("{% if data.a is defined %}a: {{ data.a | upper }}{% endif %}")
        assert render(compiled, snapshot(a="x")) == "a: X"

    def test_template_locals_are_allowed(self):
        compiled = compile_template(
            "{% set sep = '-' %}{% for k in ['a', 'b'] %}{{ k }}{{ sep }}{% endfor %}"
        )
        assert render(compiled, snapshot()) == "a-b-"

    def test_delimiter_collision(self):
        with pytest.raises(CompileError, match="collides"):
            compile_template("a: 1", left_delim="%%", right_delim="%%")

    def test_trailing_newline_kept(self):
        compiled = compile_template("a: 1\n")
        assert render(compiled, snapshot()) == "a: 1\n"

    def test_recompile_is_independent(self):
        first = compile_template("a: {{ data.a }}")
        second = compile_template("a: [[ data.a ]]", left_delim="[[", right_delim="]]")
        assert render(first, snapshot(a=1)) == "a: 1"
        assert render(second, snapshot(a=2)) == "a: 2"


class TestDelimiters:
    def test_equivalent_templates_render_the_same(self):
        braces = compile_template("name: {{ data.name }}\n{% if data.flag %}flag: on{% endif %}")
        squares = compile_template(
            "name: [[ data.name ]]\n[% if data.flag %]flag: on[% endif %]",
            left_delim="[[",
            right_delim="]]",
        )
        data = snapshot(name="svc", flag=True)
        assert render(braces, data) == render(squares, data) == "name: svc\nflag: on"

    def test_literal_braces_with_custom_delimiters(self):
        compiled = compile_template(
            'body: \'{"tpl": "{{ x }}", "v": "[[ data.v ]]"}\'',
            left_delim="[[",
            right_delim="]]",
        )
        assert render(compiled, snapshot(v=1)) == 'body: \'{"tpl": "{{ x }}", "v": "1"}\''

    def test_custom_comments(self):
        compiled = compile_template("a: 1[# note #]", left_delim="[[", right_delim="]]")
        assert render(compiled, snapshot()) == "a: 1"

    def test_configured_defaults(self, monkeypatch):
        monkeypatch.setattr(
            "flowbuilder.builder.template.config", Settings(left_delim="[[", right_delim="]]")
        )
        compiled = compile_template("a: [[ data.a ]]")
        assert compiled.left_delim == "[["
        assert compiled.right_delim == "]]"
        assert render(compiled, snapshot(a=1)) == "a: 1"

    def test_explicit_delimiters_override_configured(self, monkeypatch):
        monkeypatch.setattr(
            "flowbuilder.builder.template.config", Settings(left_delim="[[", right_delim="]]")
        )
        compiled = compile_template("a: << data.a >>", left_delim="<<", right_delim=">>")
        assert render(compiled, snapshot(a=1)) == "a: 1"


class TestRender:
    def test_missing_field(self):
        compiled = compile_template("a: {{ data.missing }}")
        with pytest.raises(RenderError, match="missing"):
            render(compiled, snapshot())

    def test_function_failure(self):
        compiled = compile_template("a: {{ panic('boom') }}")
        with pytest.raises(RenderError, match="boom"):
            render(compiled, snapshot())

    def test_type_error(self):
        compiled = compile_template("a: {{ data.a + 1 }}")
        with pytest.raises(RenderError):
            render(compiled, snapshot(a="x"))

    def test_reflects_current_data(self):
        compiled = compile_template("foo: {{ data.foo }}")
        data = snapshot(foo="first")
        assert render(compiled, data) == "foo: first"
        data["data"]["foo"] = "second"
        assert render(compiled, data) == "foo: second"

    def test_request_projection(self):
        compiled = compile_template("name: {{ requests.req1.Method }}")
        data = {"requests": {"req1": {"Method": "GET"}}, "responses": {}, "data": {}}
        assert render(compiled, data) == "name: GET"


class TestFunctionRegistry:
    def test_custom_registry(self):
        functions = FunctionRegistry({"shout": lambda s: s.upper() + "!"})
        compiled = compile_template("a: {{ shout('hi') }}", functions=functions)
        assert render(compiled, snapshot()) == "a: HI!"

    def test_only_registered_functions(self):
        functions = FunctionRegistry({"shout": lambda s: s.upper() + "!"})
        with pytest.raises(CompileError, match="upper"):
            compile_template("a: {{ upper('hi') }}", functions=functions)

    def test_default_functions(self):
        compiled = compile_template("a: {{ trimPrefix('-', data.a) }} {{ addf(1, 2.5) }}")
        assert render(compiled, snapshot(a="-x")) == "a: x 3.5"
