"""
Entity types held by the prompt store.

Internally entities use `display_order`; the gateway boundary calls the same
field `order` and uses camelCase keys. `to_wire`/`from_wire` are the only
places that rename, in both directions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .datetime_utils import parse_iso
from .errors import ValidationError
from .schema import CATEGORY_SCHEMA, SECTION_SCHEMA, require_valid

# internal field name -> boundary key
_CATEGORY_WIRE_KEYS = {
    "name": "name",
    "description": "description",
    "display_order": "order",
}

_SECTION_WIRE_KEYS = {
    "category_id": "categoryId",
    "title": "title",
    "content": "content",
    "description": "description",
    "display_order": "order",
    "is_default": "isDefault",
}

CATEGORY_FIELDS = frozenset(_CATEGORY_WIRE_KEYS)
SECTION_FIELDS = frozenset(_SECTION_WIRE_KEYS)


def _check_timestamp(value: str, field: str) -> str:
    try:
        parse_iso(value)
    except ValueError as exc:
        raise ValidationError(f"{field} is not an ISO 8601 timestamp: {value!r}") from exc
    return value


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    display_order: int
    created_at: str
    updated_at: str
    description: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "order": self.display_order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "Category":
        require_valid(data, CATEGORY_SCHEMA, what="category")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description"),
            display_order=data["order"],
            created_at=_check_timestamp(data["createdAt"], "createdAt"),
            updated_at=_check_timestamp(data["updatedAt"], "updatedAt"),
        )

    def sort_key(self):
        return (self.display_order, self.name, self.id)


@dataclass(frozen=True)
class Section:
    id: str
    category_id: str
    content: str
    display_order: int
    created_at: str
    updated_at: str
    title: str = ""
    description: Optional[str] = None
    is_default: bool = False

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "title": self.title,
            "content": self.content,
            "description": self.description,
            "order": self.display_order,
            "isDefault": self.is_default,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "Section":
        require_valid(data, SECTION_SCHEMA, what="section")
        return cls(
            id=str(data["id"]),
            category_id=str(data["categoryId"]),
            title=data.get("title") or "",
            content=data["content"],
            description=data.get("description"),
            display_order=data["order"],
            is_default=bool(data.get("isDefault") or False),
            created_at=_check_timestamp(data["createdAt"], "createdAt"),
            updated_at=_check_timestamp(data["updatedAt"], "updatedAt"),
        )

    def sort_key(self):
        return (self.display_order, self.title, self.id)


@dataclass(frozen=True)
class CustomPrompt:
    text: str = ""
    enabled: bool = False


def check_fields(changes: Mapping[str, Any], allowed: frozenset, *, kind: str) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"unknown {kind} field(s): {', '.join(unknown)}")


def category_changes_to_wire(changes: Mapping[str, Any]) -> Dict[str, Any]:
    check_fields(changes, CATEGORY_FIELDS, kind="category")
    return {_CATEGORY_WIRE_KEYS[k]: v for k, v in changes.items()}


def section_changes_to_wire(changes: Mapping[str, Any]) -> Dict[str, Any]:
    check_fields(changes, SECTION_FIELDS, kind="section")
    return {_SECTION_WIRE_KEYS[k]: v for k, v in changes.items()}
