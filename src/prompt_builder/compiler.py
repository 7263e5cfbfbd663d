from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterable, List, Optional, Tuple

from .models import Section
from .store import PromptStore

SEPARATOR = "\n\n"


@dataclass(frozen=True)
class CompiledPrompt:
    sections: Tuple[Section, ...]
    custom_prompt: Optional[str]
    compiled_text: str
    section_count: int
    custom_enabled: bool


def select_sections(
    sections: Iterable[Section],
    selected_ids: AbstractSet[str],
    category_ids: Optional[AbstractSet[str]] = None,
) -> List[Section]:
    """
    Selected sections that still exist, in display order.

    Ids in `selected_ids` with no matching section are skipped. When
    `category_ids` is given, sections whose category is not in it are skipped
    too. `sorted` is stable, so equal display orders keep list order.
    """
    chosen = [
        s
        for s in sections
        if s.id in selected_ids and (category_ids is None or s.category_id in category_ids)
    ]
    return sorted(chosen, key=lambda s: s.display_order)


def compile_text(sections: Iterable[Section], custom_text: str = "", custom_enabled: bool = False) -> str:
    body = SEPARATOR.join(s.content for s in sections)
    custom = custom_text.strip() if custom_enabled else ""
    if custom:
        body = custom + SEPARATOR + body
    return body.strip()


def compile_prompt(store: PromptStore) -> CompiledPrompt:
    custom = store.custom_prompt
    category_ids = frozenset(c.id for c in store.categories)
    chosen = select_sections(store.sections, store.selection, category_ids)
    echo = custom.text.strip() if custom.enabled else ""
    return CompiledPrompt(
        sections=tuple(chosen),
        custom_prompt=echo or None,
        compiled_text=compile_text(chosen, custom.text, custom.enabled),
        section_count=len(chosen),
        custom_enabled=custom.enabled,
    )
