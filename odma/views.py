"""
Typed views over core entities.

`build_typed_view(core, class_names)` composes a view type from the mixins
registered for the object's root class and aspects. Views only delegate to
the core entity's public operations; they never look inside it.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Iterable, Optional, Sequence

from .core import CoreObject, NameLike, class_qname
from .names import (
    CLASS_CLASS,
    CLASS_DATA_CONTENT_ELEMENT,
    CLASS_DOCUMENT,
    CLASS_FOLDER,
    CLASS_REPOSITORY,
    PROPERTY_ASPECTS,
    PROPERTY_CONTENT,
    PROPERTY_CONTENTELEMENTS,
    PROPERTY_CONTENTTYPE,
    PROPERTY_CONTAINEES,
    PROPERTY_DISPLAYNAME,
    PROPERTY_FILENAME,
    PROPERTY_INCLUDEDASPECTS,
    PROPERTY_NAME,
    PROPERTY_NAMESPACE,
    PROPERTY_ROOTCLASS,
    PROPERTY_ROOTFOLDER,
    PROPERTY_SIZE,
    PROPERTY_SUBCLASSES,
    PROPERTY_SUBFOLDERS,
    PROPERTY_SUPERCLASS,
    PROPERTY_TITLE,
    OdmaId,
    OdmaQName,
)
from .properties import OdmaProperty

_MIXINS: dict[OdmaQName, type] = {}


def register_view(class_name: OdmaQName) -> Callable[[type], type]:
    def deco(cls: type) -> type:
        _MIXINS[class_name] = cls
        return cls

    return deco


class OdmaObject:
    """Base view shared by every object."""

    def __init__(self, core: CoreObject, class_names: Sequence[OdmaQName]):
        self._core = core
        self.class_names = tuple(class_names)

    def __repr__(self) -> str:
        root = str(self.class_names[0]) if self.class_names else "?"
        return f"<{root} {self.id}>"

    @property
    def core(self) -> CoreObject:
        return self._core

    @property
    def id(self) -> OdmaId:
        return self._core.id

    @property
    def repository_id(self) -> OdmaId:
        return self._core.repository_id

    def get_property(self, name: NameLike) -> OdmaProperty:
        return self._core.get_property(name)

    def prepare_properties(self, names: Optional[Iterable[NameLike]] = None, refresh: bool = False) -> None:
        self._core.prepare_properties(names, refresh)

    def set_property(self, name: NameLike, value: Any) -> None:
        self._core.set_property(name, value)

    def instance_of(self, class_or_aspect: NameLike) -> bool:
        return self._core.instance_of(class_or_aspect)

    @property
    def is_dirty(self) -> bool:
        return self._core.is_dirty

    def save(self) -> None:
        self._core.save()

    def _value(self, name: OdmaQName) -> Any:
        return self._core.get_property(name).value


@register_view(CLASS_CLASS)
class OdmaClass:
    @property
    def qname(self) -> OdmaQName:
        return class_qname(self)

    @property
    def name(self) -> str:
        return self._value(PROPERTY_NAME)

    @property
    def namespace(self) -> str:
        return self._value(PROPERTY_NAMESPACE)

    @property
    def display_name(self) -> str:
        return self._value(PROPERTY_DISPLAYNAME)

    @property
    def super_class(self) -> Any:
        return self._value(PROPERTY_SUPERCLASS)

    @property
    def aspects(self) -> Iterable[Any]:
        return self._value(PROPERTY_ASPECTS) or ()

    @property
    def included_aspects(self) -> Iterable[Any]:
        return self._value(PROPERTY_INCLUDEDASPECTS) or ()

    @property
    def sub_classes(self) -> Iterable[Any]:
        return self._value(PROPERTY_SUBCLASSES) or ()


@register_view(CLASS_REPOSITORY)
class OdmaRepository:
    @property
    def name(self) -> str:
        return self._value(PROPERTY_NAME)

    @property
    def display_name(self) -> str:
        return self._value(PROPERTY_DISPLAYNAME)

    @property
    def root_class(self) -> Any:
        return self._value(PROPERTY_ROOTCLASS)

    @property
    def root_folder(self) -> Any:
        return self._value(PROPERTY_ROOTFOLDER)


@register_view(CLASS_FOLDER)
class OdmaFolder:
    @property
    def title(self) -> Optional[str]:
        return self._value(PROPERTY_TITLE)

    @property
    def sub_folders(self) -> Iterable[Any]:
        return self._value(PROPERTY_SUBFOLDERS) or ()

    @property
    def containees(self) -> Iterable[Any]:
        return self._value(PROPERTY_CONTAINEES) or ()


@register_view(CLASS_DOCUMENT)
class OdmaDocument:
    @property
    def title(self) -> Optional[str]:
        return self._value(PROPERTY_TITLE)

    @property
    def content_elements(self) -> Iterable[Any]:
        return self._value(PROPERTY_CONTENTELEMENTS) or ()


@register_view(CLASS_DATA_CONTENT_ELEMENT)
class OdmaDataContentElement:
    @property
    def content(self) -> Any:
        return self._value(PROPERTY_CONTENT)

    @property
    def size(self) -> Optional[int]:
        return self._value(PROPERTY_SIZE)

    @property
    def content_type(self) -> Optional[str]:
        return self._value(PROPERTY_CONTENTTYPE)

    @property
    def file_name(self) -> Optional[str]:
        return self._value(PROPERTY_FILENAME)


@lru_cache(maxsize=None)
def _view_type(mixins: tuple[type, ...]) -> type:
    if not mixins:
        return OdmaObject
    name = "".join(m.__name__ for m in mixins) + "View"
    return type(name, mixins + (OdmaObject,), {})


def build_typed_view(core: CoreObject, class_names: Sequence[OdmaQName]) -> OdmaObject:
    mixins: list[type] = []
    for cn in class_names:
        mixin = _MIXINS.get(cn)
        if mixin is not None and mixin not in mixins:
            mixins.append(mixin)
    return _view_type(tuple(mixins))(core, class_names)
