from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .models import Category, CustomPrompt, Section

logger = logging.getLogger(__name__)

OPERATIONS = (
    "fetch_categories",
    "fetch_sections",
    "create_category",
    "update_category",
    "delete_category",
    "create_section",
    "update_section",
    "delete_section",
)

Listener = Callable[[str, "PromptStore"], None]


@dataclass(frozen=True)
class StoreSnapshot:
    categories: Tuple[Category, ...]
    sections: Tuple[Section, ...]
    selection: FrozenSet[str]


class PromptStore:
    """
    Working set of categories, sections, selection and custom prompt.

    Collections are never mutated in place: every change assigns a new tuple
    or frozenset, so a reference taken before a change stays a valid view of
    the old state and identity comparison detects changes.
    """

    def __init__(self):
        self._categories: Tuple[Category, ...] = ()
        self._sections: Tuple[Section, ...] = ()
        self._selection: FrozenSet[str] = frozenset()
        self._custom_prompt = CustomPrompt()
        self._loading = False
        self._error: Optional[str] = None
        self._loading_states: Dict[str, bool] = {name: False for name in OPERATIONS}
        self._listeners: List[Listener] = []

    # Reads

    @property
    def categories(self) -> Tuple[Category, ...]:
        return self._categories

    @property
    def sections(self) -> Tuple[Section, ...]:
        return self._sections

    @property
    def selection(self) -> FrozenSet[str]:
        return self._selection

    @property
    def custom_prompt(self) -> CustomPrompt:
        return self._custom_prompt

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def loading_states(self) -> Dict[str, bool]:
        return dict(self._loading_states)

    def is_loading(self, operation: str) -> bool:
        return self._loading_states[operation]

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self._categories if c.id == category_id), None)

    def get_section(self, section_id: str) -> Optional[Section]:
        return next((s for s in self._sections if s.id == section_id), None)

    def sorted_categories(self) -> List[Category]:
        return sorted(self._categories, key=Category.sort_key)

    def sections_for_category(self, category_id: str) -> List[Section]:
        return sorted((s for s in self._sections if s.category_id == category_id), key=Section.sort_key)

    def selected_sections(self) -> List[Section]:
        return sorted((s for s in self._sections if s.id in self._selection), key=Section.sort_key)

    # Entity collections

    def set_categories(self, categories: Iterable[Category]) -> None:
        self._commit("set_categories", _categories=tuple(categories))

    def set_sections(self, sections: Iterable[Section]) -> None:
        self._commit("set_sections", _sections=tuple(sections))

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(categories=self._categories, sections=self._sections, selection=self._selection)

    def replace_collections(
        self,
        action: str,
        *,
        categories: Optional[Iterable[Category]] = None,
        sections: Optional[Iterable[Section]] = None,
        selection: Optional[Iterable[str]] = None,
    ) -> None:
        """Swap any of the collections in a single change."""
        changes: Dict[str, object] = {}
        if categories is not None:
            changes["_categories"] = tuple(categories)
        if sections is not None:
            changes["_sections"] = tuple(sections)
        if selection is not None:
            changes["_selection"] = frozenset(selection)
        self._commit(action, **changes)

    def restore(
        self,
        snapshot: StoreSnapshot,
        *,
        categories: bool = True,
        sections: bool = True,
        selection: bool = True,
        discard: Iterable[str] = (),
    ) -> None:
        """
        Put the chosen collections back as they were in `snapshot`.

        When the selection is not restored, ids in `discard` are still removed
        from it, in the same change.
        """
        changes: Dict[str, object] = {}
        if categories:
            changes["_categories"] = snapshot.categories
        if sections:
            changes["_sections"] = snapshot.sections
        if selection:
            changes["_selection"] = snapshot.selection
        elif self._selection.intersection(discard):
            changes["_selection"] = self._selection - frozenset(discard)
        self._commit("restore", **changes)

    # Selection

    def toggle_selection(self, section_id: str) -> None:
        if section_id in self._selection:
            self._commit("toggle_selection", _selection=self._selection - {section_id})
        else:
            self._commit("toggle_selection", _selection=self._selection | {section_id})

    def select(self, section_id: str) -> None:
        self._commit("select", _selection=self._selection | {section_id})

    def deselect(self, section_id: str) -> None:
        self._commit("deselect", _selection=self._selection - {section_id})

    def select_many(self, section_ids: Iterable[str]) -> None:
        self._commit("select_many", _selection=self._selection | frozenset(section_ids))

    def deselect_many(self, section_ids: Iterable[str]) -> None:
        self._commit("deselect_many", _selection=self._selection - frozenset(section_ids))

    def clear_selection(self) -> None:
        self._commit("clear_selection", _selection=frozenset())

    # Custom prompt

    def set_custom_prompt_text(self, text: str) -> None:
        self._commit("set_custom_prompt_text", _custom_prompt=CustomPrompt(text, self._custom_prompt.enabled))

    def set_custom_prompt_enabled(self, enabled: bool) -> None:
        self._commit(
            "set_custom_prompt_enabled", _custom_prompt=CustomPrompt(self._custom_prompt.text, bool(enabled))
        )

    def update_custom_prompt(self, text: str, enabled: Optional[bool] = None) -> None:
        if enabled is None:
            enabled = self._custom_prompt.enabled
        self._commit("update_custom_prompt", _custom_prompt=CustomPrompt(text, bool(enabled)))

    # Status flags

    def set_error(self, message: Optional[str]) -> None:
        self._commit("set_error", _error=message)

    def reset_error(self) -> None:
        self.set_error(None)

    def set_loading(self, loading: bool) -> None:
        self._commit("set_loading", _loading=bool(loading))

    def set_operation_loading(self, operation: str, loading: bool) -> None:
        if operation not in self._loading_states:
            raise ValueError(f"unknown operation: {operation!r}")
        states = dict(self._loading_states)
        states[operation] = bool(loading)
        self._commit(f"{operation}:{'start' if loading else 'end'}", _loading_states=states)

    # Observers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(action, store)` after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, action: str, **changes) -> None:
        for attr, value in changes.items():
            setattr(self, attr, value)
        logger.debug("store action %s", action)
        for listener in list(self._listeners):
            try:
                listener(action, self)
            except Exception:
                logger.exception("store listener failed during %s", action)
