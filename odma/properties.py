from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .errors import AccessDeniedError, ServiceError
from .names import OdmaId, OdmaQName

if TYPE_CHECKING:
    from .providers import LazyValueProvider


class OdmaType(str, Enum):
    STRING = "STRING"
    INTEGER = "INTEGER"
    SHORT = "SHORT"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    BOOLEAN = "BOOLEAN"
    DATETIME = "DATETIME"
    BINARY = "BINARY"
    ID = "ID"
    GUID = "GUID"
    CONTENT = "CONTENT"
    REFERENCE = "REFERENCE"

    @classmethod
    def from_tag(cls, tag: str) -> "OdmaType":
        try:
            return cls(str(tag).strip().upper())
        except ValueError:
            raise ServiceError(f"unknown property type tag {tag!r}") from None


class _Unset:
    def __repr__(self) -> str:
        return "<unset>"


_UNSET = _Unset()


class OdmaProperty:
    """
    One named, typed property of an entity.

    A property either holds its value or a lazy provider that produces it on
    first access; after that the value is cached here.
    """

    def __init__(
        self,
        name: OdmaQName,
        value: Any,
        provider: Optional["LazyValueProvider"],
        type: OdmaType,
        multi_value: bool,
        read_only: bool,
    ):
        self.name = name
        self.type = type
        self.multi_value = multi_value
        self.read_only = read_only
        self._provider = provider
        self._value: Any = _UNSET if provider is not None else value
        self._dirty = False

    def __repr__(self) -> str:
        state = "unresolved" if not self.is_resolved else repr(self._value)
        return f"OdmaProperty({self.name}, {self.type.value}{'[]' if self.multi_value else ''}, {state})"

    @property
    def is_resolved(self) -> bool:
        return self._value is not _UNSET

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def has_reference_id(self) -> bool:
        return self._provider is not None and not self.is_resolved and self._provider.has_reference_id

    @property
    def reference_id(self) -> Optional[OdmaId]:
        """Id of the referenced object, when known without a fetch."""
        if self.has_reference_id:
            return self._provider.reference_id
        if self.type is OdmaType.REFERENCE and not self.multi_value and self.is_resolved and self._value is not None:
            return self._value.id
        return None

    @property
    def value(self) -> Any:
        if self._value is _UNSET:
            self._value = self._provider.resolve()
            self._provider = None
        return self._value

    def set_value(self, new_value: Any) -> None:
        if self.read_only:
            raise AccessDeniedError(f"property {self.name} is read-only")
        if new_value is not None and self.multi_value != isinstance(new_value, (list, tuple)):
            kind = "multi-valued" if self.multi_value else "single-valued"
            raise TypeError(f"property {self.name} is {kind}")
        self._value = list(new_value) if isinstance(new_value, tuple) else new_value
        self._provider = None
        self._dirty = True

    # --- Typed accessors ---
    def _typed(self, expected: tuple[OdmaType, ...], multi: bool) -> Any:
        if self.type not in expected or self.multi_value != multi:
            want = "/".join(t.value for t in expected) + ("[]" if multi else "")
            have = self.type.value + ("[]" if self.multi_value else "")
            raise TypeError(f"property {self.name} is {have}, not {want}")
        return self.value

    def get_string(self) -> Optional[str]:
        return self._typed((OdmaType.STRING,), False)

    def get_strings(self) -> list[str]:
        return self._typed((OdmaType.STRING,), True) or []

    def get_integer(self) -> Optional[int]:
        return self._typed((OdmaType.INTEGER, OdmaType.SHORT, OdmaType.LONG), False)

    def get_float(self) -> Optional[float]:
        return self._typed((OdmaType.FLOAT, OdmaType.DOUBLE), False)

    def get_boolean(self) -> Optional[bool]:
        return self._typed((OdmaType.BOOLEAN,), False)

    def get_datetime(self) -> Optional[datetime]:
        return self._typed((OdmaType.DATETIME,), False)

    def get_binary(self) -> Optional[bytes]:
        return self._typed((OdmaType.BINARY,), False)

    def get_id(self) -> Optional[OdmaId]:
        return self._typed((OdmaType.ID,), False)

    def get_guid(self) -> Any:
        return self._typed((OdmaType.GUID,), False)

    def get_content(self) -> Any:
        return self._typed((OdmaType.CONTENT,), False)

    def get_reference(self) -> Any:
        return self._typed((OdmaType.REFERENCE,), False)

    def get_references(self) -> Any:
        refs = self._typed((OdmaType.REFERENCE,), True)
        return refs if refs is not None else []
