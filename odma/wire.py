"""
Wire records returned by the repository service.

Field names follow the service's camelCase JSON; Python attributes are
snake_case.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ServiceError

_M = TypeVar("_M", bound=BaseModel)


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ServiceDescriptorWire(_Wire):
    opendma_version: str = Field("", alias="opendmaVersion")
    service_version: str = Field("", alias="serviceVersion")
    repositories: list[str] = Field(default_factory=list)
    supported_query_languages: list[str] = Field(default_factory=list, alias="supportedQueryLanguages")


class PropertyWire(_Wire):
    name: str
    type: str
    multi_value: bool = Field(False, alias="multiValue")
    read_only: bool = Field(False, alias="readOnly")
    resolved: bool = False
    value: Any = None


class ObjectWire(_Wire):
    id: str
    root_odma_class_name: Optional[str] = Field(None, alias="rootOdmaClassName")
    aspect_root_odma_names: list[str] = Field(default_factory=list, alias="aspectRootOdmaNames")
    properties: list[PropertyWire] = Field(default_factory=list)
    complete: Optional[bool] = None

    @property
    def has_class_info(self) -> bool:
        return bool(self.root_odma_class_name)


class ReferencePageWire(_Wire):
    items: list[ObjectWire] = Field(default_factory=list)
    next: Optional[str] = None


class ContentValueWire(_Wire):
    id: str
    size: int = 0


class GuidValueWire(_Wire):
    object_id: str = Field(alias="objectId")
    repository_id: str = Field(alias="repositoryId")


class SearchResponseWire(_Wire):
    items: list[ObjectWire] = Field(default_factory=list)


def _raw(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


def parse_wire(model: Type[_M], value: Any, what: str) -> _M:
    """
    Validate `value` as `model`.

    Structured sub-values may arrive either as JSON objects or as JSON text.
    """
    payload = value
    if isinstance(value, (str, bytes)):
        try:
            payload = json.loads(value)
        except ValueError as exc:
            raise ServiceError(f"malformed {what}", raw=_raw(value)) from exc
    if not isinstance(payload, dict):
        raise ServiceError(f"malformed {what}: expected a JSON object", raw=_raw(value))
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ServiceError(f"malformed {what}", raw=_raw(value)) from exc
