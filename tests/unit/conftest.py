"""Shared fixtures: a recording stand-in for the upstream service."""

import httpx
import pytest

class FakeUpstream:
    """Records forwarded requests and answers them like a small echo service."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/get" and request.method != "GET":
            return httpx.Response(405, text="Method Not Allowed")

        return httpx.Response(
            200,
            headers={"X-Upstream": "fake"},
            json={
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query.decode(),
                "data": request.content.decode(),
            },
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> FakeUpstream:
    """Create a fake upstream with no recorded requests."""
    return FakeUpstream()
