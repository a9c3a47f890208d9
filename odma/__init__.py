"""
Client-side object model for a remote document repository service.

Raw JSON records from the service become a graph of typed, lazily resolved
objects. Multi-valued references are paged on the wire and surface as plain
iterables that fetch further pages on demand.
"""

from .core import CoreObject
from .errors import (
    AccessDeniedError,
    AuthenticationError,
    ObjectNotFoundError,
    OdmaError,
    PropertyNotFoundError,
    QuerySyntaxError,
    ServiceError,
    UnsupportedOperationError,
)
from .names import OdmaGuid, OdmaId, OdmaQName
from .paging import ReferenceSequence
from .properties import OdmaProperty, OdmaType
from .session import OdmaSession, SearchResult, connect, connect_from_config
from .views import OdmaObject, build_typed_view

__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "CoreObject",
    "ObjectNotFoundError",
    "OdmaError",
    "OdmaGuid",
    "OdmaId",
    "OdmaObject",
    "OdmaProperty",
    "OdmaQName",
    "OdmaSession",
    "OdmaType",
    "PropertyNotFoundError",
    "QuerySyntaxError",
    "ReferenceSequence",
    "SearchResult",
    "ServiceError",
    "UnsupportedOperationError",
    "build_typed_view",
    "connect",
    "connect_from_config",
]
