"""
Core type definitions for flowbuilder.

HTTPRequest and HTTPResponse are the messages held by a PipelineContext.
Each one projects itself into a template-visible value: plain dicts, lists
and scalars, never the message object itself.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Union
from urllib.parse import parse_qs
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

# Values a template may see. Anything else is passed through untouched.
TemplateValue = Union[
    None, bool, int, float, str, list["TemplateValue"], dict[str, "TemplateValue"]
]


def to_template_value(value: Any) -> Any:
    """
    Convert a value into the template-visible shape.

    Mappings become dicts with string keys, tuples/sets/lists become lists,
    bytes are decoded as UTF-8 and dataclass instances become dicts.
    Other objects are passed through as opaque values.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(k): to_template_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_template_value(v) for v in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_template_value(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    return value


def _parse_json_body(body: bytes, content_type: str | None) -> Any:
    """Parse a JSON body for templates, or None when the body isn't JSON."""
    if not body or not content_type or "json" not in content_type:
        return None
    try:
        return to_template_value(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug(f"Body is not valid JSON: {e}")
        return None


# =============================================================================
# HTTP messages
# =============================================================================


@dataclass
class HTTPRequest:
    """An HTTP request held by the pipeline. Header names are lowercase."""

    method: str = "GET"
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def to_builder_request(self, name: str) -> dict[str, TemplateValue]:
        """Project the request into the shape templates see."""
        parts = urlsplit(self.url)
        return {
            "Name": name,
            "Method": self.method,
            "URL": self.url,
            "Scheme": parts.scheme,
            "Host": parts.netloc,
            "Path": parts.path,
            "Query": {k: v[0] if len(v) == 1 else v for k, v in parse_qs(parts.query).items()},
            "Header": dict(self.headers),
            "Body": to_template_value(self.body),
            "JSONBody": _parse_json_body(self.body, self.content_type),
        }


@dataclass
class HTTPResponse:
    """An HTTP response held by the pipeline. Header names are lowercase."""

    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def to_builder_response(self, name: str) -> dict[str, TemplateValue]:
        """Project the response into the shape templates see."""
        return {
            "Name": name,
            "StatusCode": self.status_code,
            "Header": dict(self.headers),
            "Body": to_template_value(self.body),
            "JSONBody": _parse_json_body(self.body, self.content_type),
        }
