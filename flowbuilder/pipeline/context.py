"""
Pipeline context for passing data through builder stages.

PipelineContext holds:
- Named requests and responses produced by earlier stages
- Shared data carried across stages
- The namespace builders publish their output into
- Error state
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any

from flowbuilder.config import config
from flowbuilder.models import HTTPRequest
from flowbuilder.models import HTTPResponse


@dataclass
class PipelineContext:
    """
    Context passed through pipeline filters.

    Requests and responses are keyed by namespace name.
    """

    requests: dict[str, HTTPRequest] = field(default_factory=dict)
    responses: dict[str, HTTPResponse] = field(default_factory=dict)

    # Shared data (read by builders, never copied)
    data: dict[str, Any] = field(default_factory=dict)

    # Namespace that output requests/responses are written to
    namespace: str = config.namespace

    # Error state
    error: str | None = None

    @classmethod
    def from_flow(cls, flow: Any, namespace: str = config.namespace) -> PipelineContext:
        """
        Create a PipelineContext from a mitmproxy flow.

        The flow's request and response land in the given namespace and the
        flow metadata becomes the shared data mapping.

        Args:
            flow: mitmproxy HTTP flow object
            namespace: Namespace for the flow's messages

        Returns:
            PipelineContext with request/response data
        """
        context = cls(data=flow.metadata, namespace=namespace)

        if flow.request:
            context.requests[namespace] = HTTPRequest(
                method=flow.request.method,
                url=flow.request.pretty_url,
                headers=dict(flow.request.headers.items()),
                body=flow.request.content or b"",
            )

        if flow.response:
            context.responses[namespace] = HTTPResponse(
                status_code=flow.response.status_code,
                headers=dict(flow.response.headers.items()),
                body=flow.response.content or b"",
            )

        return context

    def get_request(self, name: str) -> HTTPRequest | None:
        return self.requests.get(name)

    def get_response(self, name: str) -> HTTPResponse | None:
        return self.responses.get(name)

    def set_output_request(self, request: HTTPRequest) -> None:
        """Publish a request into the current namespace."""
        self.requests[self.namespace] = request

    def set_output_response(self, response: HTTPResponse) -> None:
        """Publish a response into the current namespace."""
        self.responses[self.namespace] = response

    def set_error(self, message: str) -> None:
        """Set an error message."""
        self.error = message

    def has_error(self) -> bool:
        """Check if an error occurred."""
        return self.error is not None
