"""
Core entity: the per-object property cache.

A `CoreObject` holds the properties fetched so far plus a completeness flag.
`complete=True` means the server confirmed there is nothing beyond what is
cached; otherwise unknown names are looked up on the server before
`PropertyNotFoundError` is raised.

Entities are never shared or deduplicated by id: two fetches of the same
remote object give two independent caches. The cache is not locked; use
one entity from one thread at a time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from .errors import PropertyNotFoundError, UnsupportedOperationError
from .names import (
    INCLUDE_ALL,
    PROPERTY_ASPECTS,
    PROPERTY_CLASS,
    PROPERTY_INCLUDEDASPECTS,
    PROPERTY_NAME,
    PROPERTY_NAMESPACE,
    PROPERTY_SUPERCLASS,
    OdmaId,
    OdmaQName,
    build_include,
)
from .properties import OdmaProperty

if TYPE_CHECKING:
    from .builder import ObjectFactory

logger = logging.getLogger(__name__)

NameLike = Union[OdmaQName, str]


def as_qname(name: NameLike) -> OdmaQName:
    return name if isinstance(name, OdmaQName) else OdmaQName.from_string(name)


class CoreObject:
    def __init__(
        self,
        factory: "ObjectFactory",
        repository_id: OdmaId,
        object_id: OdmaId,
        properties: dict[OdmaQName, OdmaProperty],
        complete: bool = False,
    ):
        self._factory = factory
        self.repository_id = repository_id
        self.id = object_id
        self._properties = properties
        self._complete = complete

    def __repr__(self) -> str:
        state = "complete" if self._complete else "partial"
        return f"CoreObject({self.repository_id}/{self.id}, {len(self._properties)} properties, {state})"

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def property_names(self) -> list[OdmaQName]:
        """Names currently cached (not necessarily resolved)."""
        return list(self._properties)

    def is_cached(self, name: NameLike) -> bool:
        return as_qname(name) in self._properties

    def get_property(self, name: NameLike) -> OdmaProperty:
        qname = as_qname(name)
        prop = self._properties.get(qname)
        if prop is not None:
            return prop
        if not self._complete:
            self.prepare_properties([qname], refresh=False)
            prop = self._properties.get(qname)
            if prop is not None:
                return prop
        raise PropertyNotFoundError(qname, self.id)

    def prepare_properties(self, names: Optional[Iterable[NameLike]] = None, refresh: bool = False) -> None:
        """
        Make sure the given properties are cached, fetching what is missing.

        With no names this means "all properties": a no-op on a complete
        entity unless `refresh` is set. With names, only the ones not yet
        cached are requested (all of them when `refresh` is set). Fetched
        properties overwrite cached ones of the same name.
        """
        wanted = [as_qname(n) for n in (names or [])]
        if not wanted:
            if self._complete and not refresh:
                return
            include = INCLUDE_ALL
        else:
            to_fetch = [n for n in wanted if refresh or n not in self._properties]
            if not to_fetch:
                return
            include = build_include(to_fetch, include_defaults=False)

        logger.debug("preparing properties of %s with include=%s", self.id, include)
        wire = self._factory.fetch_object(self.repository_id, self.id, include)
        self._properties.update(self._factory.parse_object_data(wire, self.repository_id))
        if wire.complete:
            self._complete = True

    def set_property(self, name: NameLike, value: Any) -> None:
        self.get_property(name).set_value(value)

    @property
    def is_dirty(self) -> bool:
        return any(p.is_dirty for p in self._properties.values())

    def save(self) -> None:
        raise UnsupportedOperationError("the remote repository client cannot persist changes")

    # --- Class hierarchy ---
    def instance_of(self, class_or_aspect: NameLike) -> bool:
        """
        True if this object's class or one of its aspects is `class_or_aspect`
        or extends/includes it.

        Class metadata comes from the server and may contain cycles; every
        class name is visited at most once.
        """
        target = as_qname(class_or_aspect)
        visited: set[OdmaQName] = set()

        clazz = _optional_reference(self, PROPERTY_CLASS)
        if clazz is not None and _in_hierarchy(clazz, target, visited):
            return True
        for aspect in _optional_references(self, PROPERTY_ASPECTS):
            if _in_hierarchy(aspect, target, visited):
                return True
        return False


def class_qname(clazz: Any) -> OdmaQName:
    namespace = clazz.get_property(PROPERTY_NAMESPACE).value
    name = clazz.get_property(PROPERTY_NAME).value
    return OdmaQName(namespace or "", name or "")


def _optional_reference(obj: Any, name: OdmaQName) -> Any:
    try:
        prop = obj.get_property(name)
    except PropertyNotFoundError:
        return None
    if prop.multi_value:
        return None
    return prop.value


def _optional_references(obj: Any, name: OdmaQName) -> Iterable[Any]:
    try:
        prop = obj.get_property(name)
    except PropertyNotFoundError:
        return ()
    if not prop.multi_value:
        return ()
    return prop.value or ()


def _in_hierarchy(clazz: Any, target: OdmaQName, visited: set[OdmaQName]) -> bool:
    current = clazz
    while current is not None:
        qname = class_qname(current)
        if qname == target:
            return True
        if qname in visited:
            logger.debug("class %s already visited, stopping this branch", qname)
            return False
        visited.add(qname)

        for aspect in _optional_references(current, PROPERTY_INCLUDEDASPECTS):
            if _in_hierarchy(aspect, target, visited):
                return True

        current = _optional_reference(current, PROPERTY_SUPERCLASS)
    return False
