"""Tests for request/response projections."""

from dataclasses import dataclass

from flowbuilder.models import HTTPRequest
from flowbuilder.models import HTTPResponse
from flowbuilder.models import to_template_value


@dataclass
class Point:
    x: int
    y: int


class TestTemplateValue:
    def test_scalars(self):
        assert to_template_value(None) is None
        assert to_template_value(1.5) == 1.5
        assert to_template_value("a") == "a"

    def test_containers(self):
        value = to_template_value({"a": (1, 2), 3: b"bytes"})
        assert value == {"a": [1, 2], "3": "bytes"}

    def test_dataclass(self):
        assert to_template_value(Point(1, 2)) == {"x": 1, "y": 2}

    def test_opaque(self):
        marker = object()
        assert to_template_value(marker) is marker


class TestRequestProjection:
    def test_fields(self):
        request = HTTPRequest(
            method="POST",
            url="https://example.com/api/v1?page=2&tag=a&tag=b",
            headers={"Content-Type": "application/json"},
            body=b'{"id": 7}',
        )
        projected = request.to_builder_request("req1")
        assert projected["Name"] == "req1"
        assert projected["Method"] == "POST"
        assert projected["Scheme"] == "https"
        assert projected["Host"] == "example.com"
        assert projected["Path"] == "/api/v1"
        assert projected["Query"] == {"page": "2", "tag": ["a", "b"]}
        assert projected["Header"] == {"content-type": "application/json"}
        assert projected["Body"] == '{"id": 7}'
        assert projected["JSONBody"] == {"id": 7}

    def test_non_json_body(self):
        request = HTTPRequest(headers={"content-type": "text/plain"}, body=b"{")
        assert request.to_builder_request("r")["JSONBody"] is None

    def test_invalid_json_body(self):
        request = HTTPRequest(headers={"content-type": "application/json"}, body=b"{")
        assert request.to_builder_request("r")["JSONBody"] is None


class TestResponseProjection:
    def test_fields(self):
        response = HTTPResponse(status_code=404, headers={"X-A": "b"}, body=b"missing")
        projected = response.to_builder_response("resp")
        assert projected == {
            "Name": "resp",
            "StatusCode": 404,
            "Header": {"x-a": "b"},
            "Body": "missing",
            "JSONBody": None,
        }
