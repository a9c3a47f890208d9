"""
Identifiers, qualified names and the `include` request directive.

Qualified names travel on the wire in their canonical `namespace:name` form.
Inside an include directive every token is escaped so that `;` (token
separator) and `@` (page-token separator) can appear in names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

INCLUDE_DEFAULT = "default"
INCLUDE_ALL = "*:*"

_ESCAPED = {"\\", ";", "@"}


@dataclass(frozen=True)
class OdmaId:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OdmaGuid:
    """Cross-repository pointer: a repository id plus an object id."""

    repository_id: OdmaId
    object_id: OdmaId

    def __str__(self) -> str:
        return f"{self.repository_id}/{self.object_id}"


@dataclass(frozen=True)
class OdmaQName:
    namespace: str
    name: str

    @classmethod
    def from_string(cls, raw: str) -> "OdmaQName":
        if raw is None:
            raise ValueError("qualified name must not be None")
        ns, sep, local = raw.rpartition(":")
        if not sep:
            return cls("", raw)
        return cls(ns, local)

    def __str__(self) -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace}:{self.name}"


def escape(text: str) -> str:
    out = []
    for ch in text:
        if ch in _ESCAPED:
            out.append("\\")
        out.append(ch)
    return "".join(out)


def unescape(text: str) -> str:
    out = []
    pending = False
    for ch in text:
        if pending:
            out.append(ch)
            pending = False
        elif ch == "\\":
            pending = True
        else:
            out.append(ch)
    if pending:
        raise ValueError(f"dangling escape character in {text!r}")
    return "".join(out)


def build_include(names: Optional[Iterable[OdmaQName]], include_defaults: bool = True) -> str:
    """
    Build an include directive for an explicit list of property names.

    No names at all means "every property" (`*:*`).
    """
    parts = [escape(str(n)) for n in (names or [])]
    if not parts:
        return INCLUDE_ALL
    if include_defaults:
        parts.append(INCLUDE_DEFAULT)
    return ";".join(parts)


def build_page_include(name: OdmaQName, next_token: str) -> str:
    return f"{escape(next_token)}@{escape(str(name))}"


def split_include(directive: str) -> list[str]:
    """Split a directive at unescaped `;`. Tokens are returned still escaped."""
    tokens: list[str] = []
    current: list[str] = []
    pending = False
    for ch in directive:
        if pending:
            current.append(ch)
            pending = False
        elif ch == "\\":
            current.append(ch)
            pending = True
        elif ch == ";":
            tokens.append("".join(current))
            current = []
        else:
            current.append(ch)
    tokens.append("".join(current))
    return [t for t in tokens if t]


# --- Well-known names ---
NS = "opendma"

PROPERTY_CLASS = OdmaQName(NS, "Class")
PROPERTY_ASPECTS = OdmaQName(NS, "Aspects")
PROPERTY_NAME = OdmaQName(NS, "Name")
PROPERTY_NAMESPACE = OdmaQName(NS, "Namespace")
PROPERTY_DISPLAYNAME = OdmaQName(NS, "DisplayName")
PROPERTY_SUPERCLASS = OdmaQName(NS, "SuperClass")
PROPERTY_INCLUDEDASPECTS = OdmaQName(NS, "IncludedAspects")
PROPERTY_SUBCLASSES = OdmaQName(NS, "SubClasses")
PROPERTY_ROOTCLASS = OdmaQName(NS, "RootClass")
PROPERTY_ROOTFOLDER = OdmaQName(NS, "RootFolder")
PROPERTY_TITLE = OdmaQName(NS, "Title")
PROPERTY_SUBFOLDERS = OdmaQName(NS, "SubFolders")
PROPERTY_CONTAINEES = OdmaQName(NS, "Containees")
PROPERTY_CONTENTELEMENTS = OdmaQName(NS, "ContentElements")
PROPERTY_CONTENT = OdmaQName(NS, "Content")
PROPERTY_SIZE = OdmaQName(NS, "Size")
PROPERTY_CONTENTTYPE = OdmaQName(NS, "ContentType")
PROPERTY_FILENAME = OdmaQName(NS, "FileName")

CLASS_CLASS = OdmaQName(NS, "Class")
CLASS_REPOSITORY = OdmaQName(NS, "Repository")
CLASS_FOLDER = OdmaQName(NS, "Folder")
CLASS_DOCUMENT = OdmaQName(NS, "Document")
CLASS_DATA_CONTENT_ELEMENT = OdmaQName(NS, "DataContentElement")

QUERY_LANGUAGE_SQL = OdmaQName(NS, "sql")
