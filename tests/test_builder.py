"""Tests for the base builder."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from flowbuilder.builder.builder import Builder
from flowbuilder.builder.builder import prepare_builder_data
from flowbuilder.builder.functions import FunctionRegistry
from flowbuilder.builder.spec import BuilderSpec
from flowbuilder.errors import CompileError
from flowbuilder.errors import ConfigurationError
from flowbuilder.errors import DecodeError
from flowbuilder.errors import RenderError
from flowbuilder.models import HTTPRequest
from flowbuilder.models import HTTPResponse
from flowbuilder.pipeline.context import PipelineContext


@dataclass
class Record:
    name: str = ""


def make_context(**data):
    return PipelineContext(
        requests={"req1": HTTPRequest(method="GET", url="http://example.com/items")},
        responses={"resp1": HTTPResponse(status_code=201, body=b"created")},
        data=data,
    )


class TestPrepareBuilderData:
    def test_snapshot_shape(self):
        context = make_context(foo="bar")
        data = prepare_builder_data(context)
        assert set(data) == {"requests", "responses", "data"}
        assert data["requests"]["req1"]["Method"] == "GET"
        assert data["requests"]["req1"]["Name"] == "req1"
        assert data["responses"]["resp1"]["StatusCode"] == 201

    def test_data_passed_by_reference(self):
        context = make_context()
        assert prepare_builder_data(context)["data"] is context.data

    def test_empty_context(self):
        data = prepare_builder_data(PipelineContext())
        assert data == {"requests": {}, "responses": {}, "data": {}}


class TestBuild:
    def test_end_to_end_mapping(self):
        builder = Builder(BuilderSpec(template="name: {{ requests.req1.Method }}"))
        destination = {}
        builder.build(make_context(), destination)
        assert destination == {"name": "GET"}

    def test_end_to_end_record(self):
        builder = Builder(BuilderSpec(template="name: {{ requests.req1.Method }}"))
        record = Record()
        builder.build(make_context(), record)
        assert record == Record(name="GET")

    def test_responses_visible(self):
        builder = Builder(BuilderSpec(template="body: {{ responses.resp1.Body }}"))
        destination = {}
        builder.build(make_context(), destination)
        assert destination == {"body": "created"}

    def test_no_caching_between_calls(self):
        builder = Builder(BuilderSpec(template="foo: {{ data.foo }}"))
        context = make_context(foo="one")
        first, second = {}, {}
        builder.build(context, first)
        context.data["foo"] = "two"
        builder.build(context, second)
        assert first == {"foo": "one"}
        assert second == {"foo": "two"}

    def test_custom_delimiters(self):
        builder = Builder(
            BuilderSpec(left_delim="[[", right_delim="]]", template="body: '{\"m\": \"[[ requests.req1.Method ]]\"}'")
        )
        destination = {}
        builder.build(make_context(), destination)
        assert destination == {"body": '{"m": "GET"}'}

    def test_render_error(self):
        builder = Builder(BuilderSpec(template="name: {{ requests.nope.Method }}"))
        with pytest.raises(RenderError):
            builder.build(make_context(), {})

    def test_decode_error(self):
        builder = Builder(BuilderSpec(template="name: [{{ data.foo }}"))
        with pytest.raises(DecodeError):
            builder.build(make_context(foo="x"), {})

    def test_custom_functions(self):
        functions = FunctionRegistry({"greet": lambda name: f"hello {name}"})
        builder = Builder(BuilderSpec(template="msg: {{ greet(data.who) }}"), functions)
        destination = {}
        builder.build(make_context(who="you"), destination)
        assert destination == {"msg": "hello you"}


class TestSourceNamespace:
    def test_no_template(self):
        builder = Builder(BuilderSpec(source_namespace="req1"))
        assert builder.template is None

    def test_build_is_a_no_op(self):
        builder = Builder(BuilderSpec(source_namespace="req1"))
        destination = {"untouched": True}
        builder.build(make_context(), destination)
        assert destination == {"untouched": True}


class TestReload:
    def test_invalid_spec_never_compiles(self):
        with pytest.raises(ConfigurationError):
            Builder(BuilderSpec(source_namespace="req1", template="a: 1"))

    def test_reload_replaces_template(self):
        builder = Builder(BuilderSpec(template="a: 1"))
        previous = builder.template
        builder.reload(BuilderSpec(template="a: 2"))
        assert builder.template is not previous
        destination = {}
        builder.build(make_context(), destination)
        assert destination == {"a": 2}

    def test_failed_reload_keeps_previous(self):
        spec = BuilderSpec(template="a: {{ data.a }}")
        builder = Builder(spec)
        previous = builder.template
        with pytest.raises(CompileError):
            builder.reload(BuilderSpec(template="a: {{ data.a "))
        assert builder.template is previous
        assert builder.spec == spec

    def test_invalid_reload_keeps_previous(self):
        builder = Builder(BuilderSpec(template="a: 1"))
        previous = builder.template
        with pytest.raises(ConfigurationError):
            builder.reload(BuilderSpec())
        assert builder.template is previous

    def test_reload_to_source_namespace(self):
        builder = Builder(BuilderSpec(template="a: 1"))
        builder.reload(BuilderSpec(source_namespace="req1"))
        assert builder.template is None


class TestLifecycle:
    def test_status(self):
        assert Builder(BuilderSpec(template="a: 1")).status() is None

    def test_close(self):
        Builder(BuilderSpec(template="a: 1")).close()  # should not raise
