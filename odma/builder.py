"""
Entity builder: turns one object wire record into a navigable entity.

The `ObjectFactory` is the single seam shared by the transcoder, the lazy
providers and the paging sequences: it owns the transport handle (without
owning its lifetime) and the typed-view factory.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence

from .core import CoreObject
from .names import INCLUDE_DEFAULT, OdmaId, OdmaQName
from .properties import OdmaProperty, OdmaType
from .providers import PropertyFetchProvider, ReferenceIdProvider
from .transcoder import decode_property_value, reference_id_of
from .views import build_typed_view
from .wire import ObjectWire

ViewFactory = Callable[[CoreObject, Sequence[OdmaQName]], Any]


class Transport(Protocol):
    def get_object(self, repository_id: OdmaId, object_id: OdmaId, include: Optional[str] = None) -> ObjectWire:
        ...


class ObjectFactory:
    def __init__(self, connection: Transport, view_factory: Optional[ViewFactory] = None):
        self.connection = connection
        self.view_factory = view_factory or build_typed_view

    def fetch_object(self, repository_id: OdmaId, object_id: OdmaId, include: Optional[str] = INCLUDE_DEFAULT) -> ObjectWire:
        return self.connection.get_object(repository_id, object_id, include)

    def fetch_entity(self, repository_id: OdmaId, object_id: OdmaId, include: Optional[str] = INCLUDE_DEFAULT) -> Any:
        return self.create_object(self.fetch_object(repository_id, object_id, include), repository_id)

    def parse_object_data(self, wire: ObjectWire, repository_id: OdmaId) -> dict[OdmaQName, OdmaProperty]:
        object_id = OdmaId(wire.id)
        properties: dict[OdmaQName, OdmaProperty] = {}

        for wp in wire.properties:
            name = OdmaQName.from_string(wp.name)
            ptype = OdmaType.from_tag(wp.type)
            value: Any = None
            provider = None

            single_ref = ptype is OdmaType.REFERENCE and not wp.multi_value
            paged_ref = ptype is OdmaType.REFERENCE and wp.multi_value and wp.value is not None

            if wp.resolved or paged_ref:
                value = decode_property_value(wp, self, repository_id, object_id, name)
                # A "resolved" reference that came back as a bare id carries no
                # class information; it stays lazy.
                if single_ref and isinstance(value, OdmaId):
                    provider = ReferenceIdProvider(self, repository_id, value)
                    value = None
            elif single_ref and wp.value is not None:
                provider = ReferenceIdProvider(self, repository_id, reference_id_of(wp.value))
            else:
                provider = PropertyFetchProvider(self, repository_id, object_id, name)

            properties[name] = OdmaProperty(
                name,
                value,
                provider,
                ptype,
                wp.multi_value,
                wp.read_only,
            )

        return properties

    def create_core(self, wire: ObjectWire, repository_id: OdmaId) -> CoreObject:
        return CoreObject(
            self,
            repository_id,
            OdmaId(wire.id),
            self.parse_object_data(wire, repository_id),
            complete=bool(wire.complete),
        )

    def create_object(self, wire: ObjectWire, repository_id: OdmaId) -> Any:
        core = self.create_core(wire, repository_id)
        class_names: list[OdmaQName] = []
        if wire.root_odma_class_name:
            class_names.append(OdmaQName.from_string(wire.root_odma_class_name))
        class_names.extend(OdmaQName.from_string(a) for a in wire.aspect_root_odma_names)
        return self.view_factory(core, class_names)
