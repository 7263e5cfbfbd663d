"""
Optimistic create/update/delete of categories and sections.

Every mutation runs the same three phases:

1. snapshot the store,
2. apply the expected result to the store synchronously,
3. await the gateway, then either swap in the authoritative entity or
   restore the collections the mutation touched from the snapshot,
   record the error and re-raise it.

Cascading changes (a category delete dropping its sections and their
selection, a confirmed section create remapping a selected placeholder)
reach the store as one change.

The named loading flag for the operation is cleared on both outcomes.
Mutations are not serialized: two in-flight changes to the same entity may
roll back to a snapshot that is already stale.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Mapping, NoReturn, Optional, Tuple, TypeVar

from .datetime_utils import isoformat_utc
from .errors import GatewayError, NotFoundError
from .gateway import Gateway
from .logging import log_json
from .models import CATEGORY_FIELDS, SECTION_FIELDS, Category, Section, check_fields
from .store import PromptStore

T = TypeVar("T")

_temp_counter = itertools.count(1)


def new_temp_id() -> str:
    return f"temp-{time.monotonic_ns()}-{next(_temp_counter)}"


def error_message(exc: BaseException, operation: str) -> str:
    if isinstance(exc, GatewayError) and exc.message:
        return exc.message
    return str(exc) or f"Failed to {operation.replace('_', ' ')}"


class MutationCoordinator:
    def __init__(self, store: PromptStore, gateway: Gateway):
        self.store = store
        self.gateway = gateway

    async def _mutate(
        self,
        operation: str,
        entity_id: str,
        *,
        apply: Callable[[], None],
        call: Callable[[], Awaitable[T]],
        confirm: Callable[[T], None],
        restores: Tuple[str, ...],
        discard: Tuple[str, ...] = (),
    ) -> T:
        store = self.store
        store.set_operation_loading(operation, True)
        store.reset_error()
        snapshot = store.snapshot()
        try:
            apply()
            log_json(logging.INFO, "mutation.start", operation=operation, entity_id=entity_id)
            try:
                result = await call()
            except Exception as exc:
                store.restore(
                    snapshot,
                    categories="categories" in restores,
                    sections="sections" in restores,
                    selection="selection" in restores,
                    discard=discard,
                )
                store.set_error(error_message(exc, operation))
                log_json(
                    logging.WARNING,
                    "mutation.rolled_back",
                    operation=operation,
                    entity_id=entity_id,
                    error=type(exc).__name__,
                    message=store.error,
                )
                raise
            confirm(result)
            log_json(logging.INFO, "mutation.confirmed", operation=operation, entity_id=entity_id)
            return result
        finally:
            store.set_operation_loading(operation, False)

    def _reject(self, operation: str, exc: GatewayError) -> NoReturn:
        self.store.set_error(exc.message)
        log_json(logging.WARNING, "mutation.rejected", operation=operation, message=exc.message)
        raise exc

    # Loading

    async def _fetch(self, operation: str, call: Callable[[], Awaitable[T]], store_result: Callable[[T], None]) -> T:
        self.store.set_operation_loading(operation, True)
        self.store.reset_error()
        try:
            result = await call()
        except Exception as exc:
            self.store.set_error(error_message(exc, operation))
            log_json(logging.WARNING, "fetch.failed", operation=operation, message=self.store.error)
            raise
        finally:
            self.store.set_operation_loading(operation, False)
        store_result(result)
        return result

    async def fetch_categories(self) -> list:
        return await self._fetch("fetch_categories", self.gateway.list_categories, self.store.set_categories)

    async def fetch_sections(self, category_id: Optional[str] = None) -> list:
        """Replace all sections, or only those of `category_id` when given."""

        def store_result(sections) -> None:
            if category_id is None:
                self.store.set_sections(sections)
            else:
                others = [s for s in self.store.sections if s.category_id != category_id]
                self.store.set_sections(others + list(sections))

        return await self._fetch("fetch_sections", lambda: self.gateway.list_sections(category_id), store_result)

    async def load_all(self) -> None:
        """Fetch categories and sections concurrently under the global loading flag."""
        self.store.set_loading(True)
        try:
            results = await asyncio.gather(self.fetch_categories(), self.fetch_sections(), return_exceptions=True)
        finally:
            self.store.set_loading(False)
        for result in results:
            if isinstance(result, BaseException):
                self.store.set_error(error_message(result, "load"))
                raise result

    # Categories

    async def create_category(
        self, name: str, *, description: Optional[str] = None, display_order: int = 0
    ) -> Category:
        store = self.store
        temp_id = new_temp_id()
        now = isoformat_utc()
        placeholder = Category(
            id=temp_id,
            name=name,
            description=description,
            display_order=display_order,
            created_at=now,
            updated_at=now,
        )
        data = {"name": name, "description": description, "display_order": display_order}

        def confirm(created: Category) -> None:
            store.set_categories(created if c.id == temp_id else c for c in store.categories)

        return await self._mutate(
            "create_category",
            temp_id,
            apply=lambda: store.set_categories(store.categories + (placeholder,)),
            call=lambda: self.gateway.create_category(data),
            confirm=confirm,
            restores=("categories",),
        )

    async def update_category(self, category_id: str, changes: Mapping[str, Any]) -> Category:
        store = self.store
        try:
            check_fields(changes, CATEGORY_FIELDS, kind="category")
        except GatewayError as exc:
            self._reject("update_category", exc)
        current = store.get_category(category_id)
        if current is None:
            self._reject("update_category", NotFoundError("Category not found"))
        optimistic = replace(current, **changes, updated_at=isoformat_utc())

        def swap(entity: Category) -> None:
            store.set_categories(entity if c.id == category_id else c for c in store.categories)

        return await self._mutate(
            "update_category",
            category_id,
            apply=lambda: swap(optimistic),
            call=lambda: self.gateway.update_category(category_id, dict(changes)),
            confirm=swap,
            restores=("categories",),
        )

    async def delete_category(self, category_id: str) -> None:
        store = self.store
        if store.get_category(category_id) is None:
            self._reject("delete_category", NotFoundError("Category not found"))

        def apply() -> None:
            owned = {s.id for s in store.sections if s.category_id == category_id}
            store.replace_collections(
                "delete_category",
                categories=(c for c in store.categories if c.id != category_id),
                sections=(s for s in store.sections if s.id not in owned),
                selection=store.selection - owned,
            )

        await self._mutate(
            "delete_category",
            category_id,
            apply=apply,
            call=lambda: self.gateway.delete_category(category_id),
            confirm=lambda _: None,
            restores=("categories", "sections", "selection"),
        )

    # Sections

    async def create_section(
        self,
        category_id: str,
        content: str,
        *,
        title: str = "",
        description: Optional[str] = None,
        display_order: int = 0,
        is_default: bool = False,
    ) -> Section:
        store = self.store
        temp_id = new_temp_id()
        now = isoformat_utc()
        placeholder = Section(
            id=temp_id,
            category_id=category_id,
            title=title,
            content=content,
            description=description,
            display_order=display_order,
            is_default=is_default,
            created_at=now,
            updated_at=now,
        )
        data = {
            "category_id": category_id,
            "title": title,
            "content": content,
            "description": description,
            "display_order": display_order,
            "is_default": is_default,
        }

        def confirm(created: Section) -> None:
            selection = None
            # the placeholder may have been selected while the call was in flight
            if temp_id in store.selection:
                selection = (store.selection - {temp_id}) | {created.id}
            store.replace_collections(
                "create_section",
                sections=(created if s.id == temp_id else s for s in store.sections),
                selection=selection,
            )

        return await self._mutate(
            "create_section",
            temp_id,
            apply=lambda: store.set_sections(store.sections + (placeholder,)),
            call=lambda: self.gateway.create_section(data),
            confirm=confirm,
            restores=("sections",),
            discard=(temp_id,),
        )

    async def update_section(self, section_id: str, changes: Mapping[str, Any]) -> Section:
        store = self.store
        try:
            check_fields(changes, SECTION_FIELDS, kind="section")
        except GatewayError as exc:
            self._reject("update_section", exc)
        current = store.get_section(section_id)
        if current is None:
            self._reject("update_section", NotFoundError("Section not found"))
        optimistic = replace(current, **changes, updated_at=isoformat_utc())

        def swap(entity: Section) -> None:
            store.set_sections(entity if s.id == section_id else s for s in store.sections)

        return await self._mutate(
            "update_section",
            section_id,
            apply=lambda: swap(optimistic),
            call=lambda: self.gateway.update_section(section_id, dict(changes)),
            confirm=swap,
            restores=("sections",),
        )

    async def delete_section(self, section_id: str) -> None:
        store = self.store
        if store.get_section(section_id) is None:
            self._reject("delete_section", NotFoundError("Section not found"))

        def apply() -> None:
            store.replace_collections(
                "delete_section",
                sections=(s for s in store.sections if s.id != section_id),
                selection=store.selection - {section_id},
            )

        await self._mutate(
            "delete_section",
            section_id,
            apply=apply,
            call=lambda: self.gateway.delete_section(section_id),
            confirm=lambda _: None,
            restores=("sections", "selection"),
        )
