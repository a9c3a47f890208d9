"""
Decode property wire records into Python values.

Scalars may be sent either in their native JSON form or as a string holding
the canonical text form (`42` and `"42"`, `true` and `"true"`); both are
accepted and decode to the same value. Parsing never depends on the locale.

Reference values come in four shapes:

- single, unresolved: nothing to decode, the caller attaches a provider
- single, resolved with an inline object: a full entity
- single, resolved with only an id: the bare `OdmaId`; the caller attaches
  a by-id provider instead of building a class-less entity
- multi-valued: always a `ReferenceSequence` seeded with the embedded page
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

from .content import RemoteContent
from .errors import ServiceError
from .names import OdmaGuid, OdmaId, OdmaQName
from .paging import ReferenceSequence
from .properties import OdmaType
from .wire import ContentValueWire, GuidValueWire, ObjectWire, PropertyWire, ReferencePageWire, parse_wire

if TYPE_CHECKING:
    from .builder import ObjectFactory

_INT_RANGES = {
    OdmaType.SHORT: (-(2**15), 2**15 - 1),
    OdmaType.INTEGER: (-(2**31), 2**31 - 1),
    OdmaType.LONG: (-(2**63), 2**63 - 1),
}


def _fail(ptype: OdmaType, raw: Any) -> ServiceError:
    return ServiceError(f"cannot decode {ptype.value} value", raw=raw if isinstance(raw, str) else json.dumps(raw, default=repr))


def _as_int(raw: Any, ptype: OdmaType) -> int:
    if isinstance(raw, bool):
        raise _fail(ptype, raw)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            raise _fail(ptype, raw)
        value = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        # int() accepts "1_000" and non-ASCII digits; the wire form is plain ASCII.
        digits = text[1:] if text[:1] in "+-" else text
        if not digits or not (digits.isascii() and digits.isdigit()):
            raise _fail(ptype, raw)
        try:
            value = int(text)
        except ValueError:
            raise _fail(ptype, raw) from None
    else:
        raise _fail(ptype, raw)
    lo, hi = _INT_RANGES[ptype]
    if not lo <= value <= hi:
        raise _fail(ptype, raw)
    return value


def _as_float(raw: Any, ptype: OdmaType) -> float:
    if isinstance(raw, bool):
        raise _fail(ptype, raw)
    if isinstance(raw, (int, float)):
        try:
            return float(raw)
        except OverflowError:
            raise _fail(ptype, raw) from None
    if isinstance(raw, str):
        text = raw.strip()
        if "_" in text or not text.isascii():
            raise _fail(ptype, raw)
        try:
            return float(text)
        except ValueError:
            raise _fail(ptype, raw) from None
    raise _fail(ptype, raw)


def _as_bool(raw: Any, ptype: OdmaType) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    raise _fail(ptype, raw)


def _as_datetime(raw: Any, ptype: OdmaType) -> datetime:
    # JSON has no timestamp type; a bare number is epoch milliseconds (UTC).
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            if not math.isfinite(raw):
                raise _fail(ptype, raw)
            return datetime.fromtimestamp(raw / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise _fail(ptype, raw) from None
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise _fail(ptype, raw) from None
        # no offset on the wire means UTC, same as the epoch form
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value
    raise _fail(ptype, raw)


def _as_binary(raw: Any, ptype: OdmaType) -> bytes:
    if not isinstance(raw, str):
        raise _fail(ptype, raw)
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        raise _fail(ptype, raw) from None


def _as_string(raw: Any, ptype: OdmaType) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (dict, list)):
        raise _fail(ptype, raw)
    return json.dumps(raw)


def _as_id(raw: Any, ptype: OdmaType) -> OdmaId:
    if not isinstance(raw, str):
        raise _fail(ptype, raw)
    return OdmaId(raw)


def _as_guid(raw: Any, ptype: OdmaType) -> OdmaGuid:
    wire = parse_wire(GuidValueWire, raw, "GUID value")
    return OdmaGuid(OdmaId(wire.repository_id), OdmaId(wire.object_id))


_SCALARS: dict[OdmaType, Callable[[Any, OdmaType], Any]] = {
    OdmaType.STRING: _as_string,
    OdmaType.INTEGER: _as_int,
    OdmaType.SHORT: _as_int,
    OdmaType.LONG: _as_int,
    OdmaType.FLOAT: _as_float,
    OdmaType.DOUBLE: _as_float,
    OdmaType.BOOLEAN: _as_bool,
    OdmaType.DATETIME: _as_datetime,
    OdmaType.BINARY: _as_binary,
    OdmaType.ID: _as_id,
    OdmaType.GUID: _as_guid,
}


def decode_scalar(ptype: OdmaType, raw: Any) -> Any:
    return _SCALARS[ptype](raw, ptype)


def decode_content(raw: Any, factory: "ObjectFactory", repository_id: OdmaId) -> RemoteContent:
    wire = parse_wire(ContentValueWire, raw, "content value")
    return RemoteContent(factory.connection, repository_id, wire.id, wire.size)


def reference_id_of(raw: Any) -> OdmaId:
    """Target id of an unresolved reference value (`"id"` or `{"id": ...}`)."""
    if isinstance(raw, str) and not raw.lstrip().startswith("{"):
        return OdmaId(raw)
    return OdmaId(parse_wire(ObjectWire, raw, "reference value").id)


def decode_page(raw: Any) -> ReferencePageWire:
    return parse_wire(ReferencePageWire, raw, "reference page")


def _decode_reference(raw: Any, resolved: bool, factory: "ObjectFactory", repository_id: OdmaId) -> Any:
    if not resolved:
        return None
    wire = parse_wire(ObjectWire, raw, "reference object")
    if not wire.root_odma_class_name and not wire.properties:
        return OdmaId(wire.id)
    return factory.create_object(wire, repository_id)


def decode_property_value(
    wire: PropertyWire,
    factory: "ObjectFactory",
    repository_id: OdmaId,
    object_id: OdmaId,
    name: OdmaQName,
) -> Any:
    ptype = OdmaType.from_tag(wire.type)
    raw = wire.value
    if raw is None:
        return None

    if wire.multi_value:
        if ptype is OdmaType.REFERENCE:
            return ReferenceSequence(decode_page(raw), factory, repository_id, object_id, name)
        if not isinstance(raw, list):
            raise ServiceError(f"multi-valued property {name} must be an array", raw=json.dumps(raw, default=repr))
        if ptype is OdmaType.CONTENT:
            return [decode_content(item, factory, repository_id) for item in raw]
        return [decode_scalar(ptype, item) for item in raw]

    if ptype is OdmaType.REFERENCE:
        return _decode_reference(raw, wire.resolved, factory, repository_id)
    if ptype is OdmaType.CONTENT:
        return decode_content(raw, factory, repository_id)
    return decode_scalar(ptype, raw)
