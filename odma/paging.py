"""
Paged multi-valued references.

A multi-valued reference arrives with its first page embedded in the owning
object's record: a list of items plus an optional continuation token. The
next page is requested by re-fetching the owning object with the include
directive `token@property`. Pages are walked strictly forward and only
when the page in hand is exhausted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Type, TypeVar

from .errors import ServiceError
from .names import INCLUDE_DEFAULT, OdmaId, OdmaQName, build_page_include
from .wire import ObjectWire, ReferencePageWire, parse_wire

if TYPE_CHECKING:
    from .builder import ObjectFactory

logger = logging.getLogger(__name__)

_V = TypeVar("_V")


class ReferenceSequence:
    """
    Lazy, forward-only sequence of referenced entities.

    Every `iter()` starts over from the first page kept in memory; later
    pages are fetched again, so two traversals may differ if the collection
    changed on the server in between.
    """

    def __init__(
        self,
        first_page: ReferencePageWire,
        factory: "ObjectFactory",
        repository_id: OdmaId,
        object_id: OdmaId,
        property_name: OdmaQName,
    ):
        self._first_page = first_page
        self._factory = factory
        self.repository_id = repository_id
        self.object_id = object_id
        self.property_name = property_name

    def __repr__(self) -> str:
        more = ", more" if self.has_more else ""
        return f"ReferenceSequence({self.property_name} of {self.object_id}, {self.first_page_size} items{more})"

    @property
    def first_page_size(self) -> int:
        return len(self._first_page.items)

    @property
    def has_more(self) -> bool:
        return bool(self._first_page.next)

    def __iter__(self) -> Iterator[Any]:
        page = self._first_page
        while True:
            for item in page.items:
                yield self._materialize(item)
            if not page.next:
                return
            page = self._fetch_next_page(page.next)

    def of_type(self, view_type: Type[_V]) -> Iterator[_V]:
        """Iterate only the items whose view is an instance of `view_type`."""
        for item in self:
            if isinstance(item, view_type):
                yield item

    def _materialize(self, item: ObjectWire) -> Any:
        if item.has_class_info:
            return self._factory.create_object(item, self.repository_id)
        # id-only item: upgrade it on its own, the page stays as it is
        return self._factory.fetch_entity(self.repository_id, OdmaId(item.id), INCLUDE_DEFAULT)

    def _fetch_next_page(self, token: str) -> ReferencePageWire:
        include = build_page_include(self.property_name, token)
        logger.debug("fetching next page of %s on %s", self.property_name, self.object_id)
        wire = self._factory.fetch_object(self.repository_id, self.object_id, include)
        for prop in wire.properties:
            if OdmaQName.from_string(prop.name) == self.property_name:
                if prop.value is None:
                    raise ServiceError(f"empty page for {self.property_name} in paginated response")
                return parse_wire(ReferencePageWire, prop.value, "reference page")
        raise ServiceError(f"property {self.property_name} not found in paginated response")
