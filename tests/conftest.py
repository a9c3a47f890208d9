from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Union

import httpx
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

BASE_URL = "http://odma.test/opendma"

Route = Union[httpx.Response, dict, Callable[[httpx.Request], httpx.Response]]


class FakeService:
    """Routes requests by (method, path); every request is kept in `requests`."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, answer: Route) -> None:
        self.routes[(method, "/opendma" + path)] = answer

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get((request.method, request.url.raw_path.decode("ascii").split("?")[0]))
        if answer is None:
            return httpx.Response(404, json={"detail": "no such route"})
        if callable(answer):
            return answer(request)
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    def includes(self) -> list[Any]:
        return [r.url.params.get("include") for r in self.requests]


@pytest.fixture
def service() -> FakeService:
    svc = FakeService()
    svc.route(
        "GET",
        "/",
        {
            "opendmaVersion": "0.7.0",
            "serviceVersion": "1.2.3",
            "repositories": ["repo"],
            "supportedQueryLanguages": ["opendma:sql"],
        },
    )
    return svc


@pytest.fixture
def client(service: FakeService):
    with httpx.Client(transport=httpx.MockTransport(service.handle), base_url=BASE_URL) as c:
        yield c
