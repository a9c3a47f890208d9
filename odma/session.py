from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

import httpx

from .builder import ObjectFactory, ViewFactory
from .core import NameLike, as_qname
from .errors import ServiceError
from .names import INCLUDE_DEFAULT, OdmaId, OdmaQName, build_include
from .views import OdmaRepository
from .wire import ServiceDescriptorWire

if TYPE_CHECKING:
    from connectors.config import ConnectionConfig
    from connectors.odma_connection import OdmaConnection

logger = logging.getLogger(__name__)

IdLike = Union[OdmaId, str]


def _as_id(value: IdLike) -> OdmaId:
    return value if isinstance(value, OdmaId) else OdmaId(value)


@dataclass
class SearchResult:
    objects: list[Any] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)


class OdmaSession:
    """
    Entry point for browsing a remote repository service.

    Every call is a blocking round trip. Objects returned by separate calls
    are independent, even when they name the same remote object.
    """

    def __init__(
        self,
        connection: "OdmaConnection",
        descriptor: ServiceDescriptorWire,
        view_factory: Optional[ViewFactory] = None,
    ):
        self._connection = connection
        self._factory = ObjectFactory(connection, view_factory)
        self.opendma_version = descriptor.opendma_version
        self.service_version = descriptor.service_version
        self.repository_ids = [OdmaId(r) for r in descriptor.repositories]
        self.supported_query_languages = [OdmaQName.from_string(q) for q in descriptor.supported_query_languages]
        self._closed = False

    def __enter__(self) -> "OdmaSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def get_repository(self, repository_id: IdLike) -> Any:
        repo_id = _as_id(repository_id)
        wire = self._connection.get_repository(repo_id, INCLUDE_DEFAULT)
        obj = self._factory.create_object(wire, repo_id)
        if not isinstance(obj, OdmaRepository):
            raise ServiceError(f"server did not return a repository object for {repo_id}")
        return obj

    def get_object(
        self,
        repository_id: IdLike,
        object_id: IdLike,
        property_names: Optional[Iterable[NameLike]] = None,
    ) -> Any:
        names = [as_qname(n) for n in (property_names or [])]
        include = build_include(names, include_defaults=True) if names else INCLUDE_DEFAULT
        repo_id = _as_id(repository_id)
        wire = self._connection.get_object(repo_id, _as_id(object_id), include)
        return self._factory.create_object(wire, repo_id)

    def search(self, repository_id: IdLike, query_language: NameLike, query: str) -> SearchResult:
        repo_id = _as_id(repository_id)
        wire = self._connection.search(repo_id, as_qname(query_language), query)
        return SearchResult([self._factory.create_object(item, repo_id) for item in wire.items])

    def close(self) -> None:
        if not self._closed:
            self._connection.close()
            self._closed = True


def connect(
    endpoint: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    trace_level: int = 0,
    *,
    timeout_s: float = 30.0,
    client: Optional[httpx.Client] = None,
    view_factory: Optional[ViewFactory] = None,
) -> OdmaSession:
    """Connect to a repository service and read its service descriptor."""
    from connectors.odma_connection import OdmaAuth, OdmaConnection

    auth = OdmaAuth(username=username, password=password)
    connection = OdmaConnection(endpoint, auth=auth, client=client, timeout_s=timeout_s, trace_level=trace_level)
    try:
        descriptor = connection.get_service_descriptor()
    except Exception:
        connection.close()
        raise
    logger.info(
        "connected to %s (service %s, %d repositories)",
        connection.endpoint,
        descriptor.service_version or "?",
        len(descriptor.repositories),
    )
    return OdmaSession(connection, descriptor, view_factory=view_factory)


def connect_from_config(
    cfg: "ConnectionConfig",
    *,
    client: Optional[httpx.Client] = None,
    view_factory: Optional[ViewFactory] = None,
) -> OdmaSession:
    return connect(
        cfg.endpoint,
        cfg.username,
        cfg.password(),
        cfg.trace_level,
        timeout_s=cfg.timeout_s,
        client=client,
        view_factory=view_factory,
    )
