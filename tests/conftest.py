import pytest

from prompt_builder.builder import PromptBuilder
from prompt_builder.gateway import InMemoryGateway
from prompt_builder.models import Category, Section
from prompt_builder.store import PromptStore

TS = "2025-01-01T00:00:00.000Z"


def make_category(id: str, order: int = 0, name: str = None) -> Category:
    return Category(id=id, name=name or f"Category {id}", display_order=order, created_at=TS, updated_at=TS)


def make_section(id: str, category_id: str = "cat-1", content: str = None, order: int = 0, title: str = "") -> Section:
    return Section(
        id=id,
        category_id=category_id,
        content=content if content is not None else f"Content of {id}",
        display_order=order,
        title=title,
        created_at=TS,
        updated_at=TS,
    )


@pytest.fixture
def store():
    s = PromptStore()
    s.set_categories([make_category("cat-1", 1, "System Prompts"), make_category("cat-2", 2, "Code Guidelines")])
    s.set_sections(
        [
            make_section("section-1", "cat-1", "You are a helpful AI assistant.", 1),
            make_section("section-2", "cat-1", "Always be concise and clear.", 2),
            make_section("section-3", "cat-2", "Follow Python best practices.", 1),
        ]
    )
    return s


@pytest.fixture
def gateway():
    gw = InMemoryGateway()
    system = gw.seed_category("System Prompts", display_order=1)
    code = gw.seed_category("Code Guidelines", display_order=2)
    gw.seed_section(system.id, "You are a helpful AI assistant.", display_order=1)
    gw.seed_section(system.id, "Always be concise and clear.", display_order=2)
    gw.seed_section(code.id, "Follow Python best practices.", display_order=1)
    return gw


@pytest.fixture
def builder(gateway):
    return PromptBuilder(gateway=gateway)
