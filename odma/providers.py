"""
Lazy value providers.

Exactly two strategies exist and the union below is closed:

- `ReferenceIdProvider` knows the id of a referenced object and fetches it
  (default property set) when resolved.
- `PropertyFetchProvider` re-fetches the owning object asking only for one
  property and returns that property's value.

Providers never memoise: every `resolve()` is a fresh round trip. The
owning `OdmaProperty` caches the first result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .errors import PropertyNotFoundError, ServiceError
from .names import INCLUDE_DEFAULT, OdmaId, OdmaQName, build_include

if TYPE_CHECKING:
    from .builder import ObjectFactory


@dataclass(frozen=True)
class ReferenceIdProvider:
    factory: "ObjectFactory"
    repository_id: OdmaId
    reference_id: OdmaId

    @property
    def has_reference_id(self) -> bool:
        return True

    def resolve(self) -> Any:
        return self.factory.fetch_entity(self.repository_id, self.reference_id, INCLUDE_DEFAULT)


@dataclass(frozen=True)
class PropertyFetchProvider:
    factory: "ObjectFactory"
    repository_id: OdmaId
    object_id: OdmaId
    property_name: OdmaQName

    @property
    def has_reference_id(self) -> bool:
        return False

    @property
    def reference_id(self) -> OdmaId:
        raise TypeError("this provider fetches a property value, not an object reference")

    def resolve(self) -> Any:
        include = build_include([self.property_name], include_defaults=False)
        wire = self.factory.fetch_object(self.repository_id, self.object_id, include)
        properties = self.factory.parse_object_data(wire, self.repository_id)
        prop = properties.get(self.property_name)
        if prop is None:
            raise PropertyNotFoundError(self.property_name, self.object_id)
        if not prop.is_resolved and not prop.has_reference_id:
            raise ServiceError(f"property {self.property_name} still unresolved after a targeted fetch of {self.object_id}")
        return prop.value


LazyValueProvider = Union[ReferenceIdProvider, PropertyFetchProvider]
