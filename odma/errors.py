"""
Error taxonomy.

Every error raised by a fetch propagates to whoever triggered it (property
access, sequence iteration, provider resolution) unchanged.
"""

from __future__ import annotations

from typing import Optional

from .names import OdmaId, OdmaQName


class OdmaError(Exception):
    pass


class AuthenticationError(OdmaError):
    pass


class AccessDeniedError(OdmaError):
    pass


class QuerySyntaxError(OdmaError):
    pass


class UnsupportedOperationError(OdmaError, NotImplementedError):
    pass


class ObjectNotFoundError(OdmaError):
    def __init__(self, repository_id: OdmaId, object_id: Optional[OdmaId] = None):
        self.repository_id = repository_id
        self.object_id = object_id
        if object_id is None:
            msg = f"repository not found: {repository_id}"
        else:
            msg = f"object not found: {object_id} in repository {repository_id}"
        super().__init__(msg)


class PropertyNotFoundError(OdmaError):
    def __init__(self, name: OdmaQName, object_id: Optional[OdmaId] = None):
        self.name = name
        self.object_id = object_id
        where = f" on object {object_id}" if object_id is not None else ""
        super().__init__(f"property not found: {name}{where}")


class ServiceError(OdmaError):
    """Malformed payload, unknown type tag, or an unclassified transport failure."""

    def __init__(self, message: str, raw: Optional[str] = None):
        self.raw = raw
        if raw is not None:
            message = f"{message}: {raw[:500]}"
        super().__init__(message)
