"""
Gateway contract and an in-process implementation.

The store never talks to persistence directly. Everything that reads or
writes categories and sections goes through an object satisfying
`Gateway`; `HttpGateway` (see `http_gateway`) talks to the REST API and
`InMemoryGateway` keeps the same records in process, which is what the
tests and offline tooling use.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from .compiler import compile_text, select_sections
from .datetime_utils import isoformat_utc
from .errors import ConflictError, GatewayError, NotFoundError, ValidationError
from .models import CATEGORY_FIELDS, SECTION_FIELDS, Category, Section, check_fields


@runtime_checkable
class Gateway(Protocol):
    """Persistence boundary for categories and sections.

    Inputs use internal field names (`display_order`, `category_id`, ...).
    Every method either returns the resulting entity or raises a
    `GatewayError` subclass.
    """

    async def list_categories(self) -> List[Category]: ...

    async def get_category(self, category_id: str) -> Category: ...

    async def create_category(self, data: Mapping[str, Any]) -> Category: ...

    async def update_category(self, category_id: str, changes: Mapping[str, Any]) -> Category: ...

    async def delete_category(self, category_id: str) -> None: ...

    async def list_sections(self, category_id: Optional[str] = None) -> List[Section]: ...

    async def get_section(self, section_id: str) -> Section: ...

    async def create_section(self, data: Mapping[str, Any]) -> Section: ...

    async def update_section(self, section_id: str, changes: Mapping[str, Any]) -> Section: ...

    async def delete_section(self, section_id: str) -> None: ...

    async def compile_remote(self, selected_ids: Iterable[str], custom_prompt: Optional[str] = None) -> str: ...

    async def aclose(self) -> None: ...


class InMemoryGateway:
    """
    Dict-backed gateway with the same rules as the REST API.

    - ids are sequential integers rendered as strings
    - creating a category needs a non-blank name, a section non-blank content
      and an existing category
    - deleting a category deletes its sections, or raises ConflictError when
      constructed with `cascade_deletes=False`

    `fail_next` queues an error for the next call of an operation and
    `block` returns an event the next call of an operation waits on, which
    lets tests hold a call in flight.
    """

    def __init__(self, *, cascade_deletes: bool = True):
        self.cascade_deletes = cascade_deletes
        self._categories: Dict[str, Category] = {}
        self._sections: Dict[str, Section] = {}
        self._ids = itertools.count(1)
        self._failures: Dict[str, List[GatewayError]] = {}
        self._gates: Dict[str, asyncio.Event] = {}
        self.calls: List[str] = []

    # Test hooks

    def fail_next(self, operation: str, error: GatewayError) -> None:
        self._failures.setdefault(operation, []).append(error)

    def block(self, operation: str) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[operation] = event
        return event

    def seed_category(self, name: str, *, display_order: int = 0, description: Optional[str] = None) -> Category:
        return self._insert_category({"name": name, "display_order": display_order, "description": description})

    def seed_section(self, category_id: str, content: str, *, display_order: int = 0, **fields: Any) -> Section:
        return self._insert_section(
            {"category_id": category_id, "content": content, "display_order": display_order, **fields}
        )

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        gate = self._gates.pop(operation, None)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        queued = self._failures.get(operation)
        if queued:
            raise queued.pop(0)

    # Categories

    async def list_categories(self) -> List[Category]:
        await self._enter("list_categories")
        return sorted(self._categories.values(), key=lambda c: c.display_order)

    async def get_category(self, category_id: str) -> Category:
        await self._enter("get_category")
        return self._require_category(category_id)

    async def create_category(self, data: Mapping[str, Any]) -> Category:
        await self._enter("create_category")
        return self._insert_category(data)

    async def update_category(self, category_id: str, changes: Mapping[str, Any]) -> Category:
        await self._enter("update_category")
        check_fields(changes, CATEGORY_FIELDS, kind="category")
        current = self._require_category(category_id)
        if "name" in changes and not str(changes["name"] or "").strip():
            raise ValidationError("Category name is required", status=400)
        updated = replace(current, **changes, updated_at=isoformat_utc())
        self._categories[category_id] = updated
        return updated

    async def delete_category(self, category_id: str) -> None:
        await self._enter("delete_category")
        self._require_category(category_id)
        owned = [s.id for s in self._sections.values() if s.category_id == category_id]
        if owned and not self.cascade_deletes:
            raise ConflictError("Category still has sections", status=409)
        for section_id in owned:
            del self._sections[section_id]
        del self._categories[category_id]

    # Sections

    async def list_sections(self, category_id: Optional[str] = None) -> List[Section]:
        await self._enter("list_sections")
        found = [s for s in self._sections.values() if category_id is None or s.category_id == category_id]
        return sorted(found, key=lambda s: s.display_order)

    async def get_section(self, section_id: str) -> Section:
        await self._enter("get_section")
        return self._require_section(section_id)

    async def create_section(self, data: Mapping[str, Any]) -> Section:
        await self._enter("create_section")
        return self._insert_section(data)

    async def update_section(self, section_id: str, changes: Mapping[str, Any]) -> Section:
        await self._enter("update_section")
        check_fields(changes, SECTION_FIELDS, kind="section")
        current = self._require_section(section_id)
        if "content" in changes and not str(changes["content"] or "").strip():
            raise ValidationError("Section content is required", status=400)
        if "category_id" in changes:
            self._require_category(str(changes["category_id"]))
        updated = replace(current, **changes, updated_at=isoformat_utc())
        self._sections[section_id] = updated
        return updated

    async def delete_section(self, section_id: str) -> None:
        await self._enter("delete_section")
        self._require_section(section_id)
        del self._sections[section_id]

    async def compile_remote(self, selected_ids: Iterable[str], custom_prompt: Optional[str] = None) -> str:
        await self._enter("compile_remote")
        chosen = select_sections(self._sections.values(), frozenset(selected_ids), frozenset(self._categories))
        return compile_text(chosen, custom_prompt or "", custom_enabled=custom_prompt is not None)

    async def aclose(self) -> None:
        return None

    # Helpers

    def _require_category(self, category_id: str) -> Category:
        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("Category not found", status=404)
        return category

    def _require_section(self, section_id: str) -> Section:
        section = self._sections.get(section_id)
        if section is None:
            raise NotFoundError("Section not found", status=404)
        return section

    def _insert_category(self, data: Mapping[str, Any]) -> Category:
        check_fields(data, CATEGORY_FIELDS, kind="category")
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValidationError("Category name is required", status=400)
        now = isoformat_utc()
        category = Category(
            id=str(next(self._ids)),
            name=name,
            description=data.get("description"),
            display_order=int(data.get("display_order") or 0),
            created_at=now,
            updated_at=now,
        )
        self._categories[category.id] = category
        return category

    def _insert_section(self, data: Mapping[str, Any]) -> Section:
        check_fields(data, SECTION_FIELDS, kind="section")
        content = str(data.get("content") or "")
        category_id = str(data.get("category_id") or "")
        if not content.strip() or not category_id:
            raise ValidationError("Content and categoryId are required", status=400)
        if category_id not in self._categories:
            raise ValidationError(f"Category {category_id} does not exist", status=400)
        now = isoformat_utc()
        section = Section(
            id=str(next(self._ids)),
            category_id=category_id,
            title=data.get("title") or "",
            content=content,
            description=data.get("description"),
            display_order=int(data.get("display_order") or 0),
            is_default=bool(data.get("is_default") or False),
            created_at=now,
            updated_at=now,
        )
        self._sections[section.id] = section
        return section
