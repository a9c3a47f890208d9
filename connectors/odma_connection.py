from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from odma.errors import (
    AccessDeniedError,
    AuthenticationError,
    ObjectNotFoundError,
    OdmaError,
    QuerySyntaxError,
    ServiceError,
)
from odma.names import OdmaId, OdmaQName
from odma.wire import ObjectWire, SearchResponseWire, ServiceDescriptorWire, parse_wire

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def _extract_error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except Exception:
        text = response.text.strip()
        return text if text else response.reason_phrase
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail is None:
            return str(body)
        return str(detail)
    return str(body)


def _raise_for_status(
    response: httpx.Response,
    repository_id: Optional[OdmaId] = None,
    object_id: Optional[OdmaId] = None,
    search: bool = False,
) -> None:
    if response.is_success:
        return
    detail = _extract_error_detail(response)
    code = response.status_code
    if code == 401:
        raise AuthenticationError("authentication failed")
    if code == 403:
        raise AccessDeniedError(f"access denied: {detail}")
    if code == 404:
        if repository_id is not None:
            raise ObjectNotFoundError(repository_id, object_id)
        raise OdmaError(f"resource not found: {detail}")
    if code == 400:
        if search:
            raise QuerySyntaxError(f"invalid query syntax: {detail}")
        raise ServiceError(f"bad request: {detail}")
    raise ServiceError(f"HTTP {code}: {detail}")


@dataclass
class OdmaAuth:
    username: Optional[str] = None
    password: Optional[str] = None

    def httpx_auth(self) -> Optional[httpx.BasicAuth]:
        if self.username and self.password:
            return httpx.BasicAuth(self.username, self.password)
        return None


class OdmaConnection:
    """
    HTTP transport for the repository service.

    Trace levels (all logged at DEBUG): 1 = request URLs, 2 = adds round
    trip duration, 3 = adds raw response bodies.
    """

    def __init__(
        self,
        endpoint: str,
        auth: Optional[OdmaAuth] = None,
        client: Optional[httpx.Client] = None,
        timeout_s: float = 30.0,
        trace_level: int = 0,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.auth = auth or OdmaAuth()
        self.trace_level = trace_level
        self._client = client or httpx.Client(base_url=self.endpoint, timeout=timeout_s)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "OdmaConnection":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # --- Service ---
    def get_service_descriptor(self) -> ServiceDescriptorWire:
        r = self._request("GET", "/")
        _raise_for_status(r)
        return self._decode(r, ServiceDescriptorWire, "service descriptor")

    def get_repository(self, repository_id: OdmaId, include: Optional[str] = None) -> ObjectWire:
        r = self._request("GET", f"/obj/{_segment(repository_id)}", include=include)
        _raise_for_status(r, repository_id)
        return self._decode(r, ObjectWire, "repository object")

    def get_object(self, repository_id: OdmaId, object_id: OdmaId, include: Optional[str] = None) -> ObjectWire:
        r = self._request("GET", f"/obj/{_segment(repository_id)}/{_segment(object_id)}", include=include)
        _raise_for_status(r, repository_id, object_id)
        return self._decode(r, ObjectWire, "object")

    def search(self, repository_id: OdmaId, language: OdmaQName, query: str) -> SearchResponseWire:
        r = self._request(
            "POST",
            f"/search/{_segment(repository_id)}",
            json={"language": str(language), "query": query},
        )
        _raise_for_status(r, repository_id, search=True)
        return self._decode(r, SearchResponseWire, "search response")

    def get_content_stream(self, repository_id: OdmaId, content_id: str) -> BinaryIO:
        r = self._request("GET", f"/bin/{_segment(repository_id)}/{_segment(content_id)}", body_trace=False)
        _raise_for_status(r, repository_id)
        return io.BytesIO(r.content)

    # --- Internals ---
    def _request(
        self,
        method: str,
        path: str,
        *,
        include: Optional[str] = None,
        json: Any = None,
        body_trace: bool = True,
    ) -> httpx.Response:
        params = {"include": include} if include else None
        if self.trace_level > 0:
            logger.debug(">>>> %s %s%s params=%s", method, self.endpoint, path, params)
        started = time.perf_counter()
        try:
            r = self._client.request(
                method,
                path,
                params=params,
                json=json,
                auth=self.auth.httpx_auth() or httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as exc:
            raise ServiceError(f"{method} {path} failed: {exc}") from exc
        if self.trace_level > 1:
            logger.debug("<<<< %s %s -> %d in %.1fms", method, path, r.status_code, (time.perf_counter() - started) * 1000)
        if self.trace_level > 2 and body_trace:
            logger.debug("<<<< %s", r.text)
        return r

    @staticmethod
    def _decode(response: httpx.Response, model: Type[_M], what: str) -> _M:
        try:
            body = response.json()
        except ValueError as exc:
            raise ServiceError(f"{what} is not valid JSON", raw=response.text) from exc
        return parse_wire(model, body, what)
