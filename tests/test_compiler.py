import pytest

from prompt_builder.compiler import compile_prompt, compile_text
from prompt_builder.store import PromptStore

from conftest import make_category, make_section


@pytest.fixture
def hello_world():
    store = PromptStore()
    store.set_categories([make_category("cat-1")])
    store.set_sections([make_section("s1", content="Hello", order=1), make_section("s2", content="World", order=2)])
    return store


def test_empty_selection_compiles_to_empty_text(hello_world):
    compiled = compile_prompt(hello_world)
    assert compiled.compiled_text == ""
    assert compiled.section_count == 0
    assert compiled.sections == ()
    assert compiled.custom_prompt is None


@pytest.mark.parametrize("order", [["s2", "s1"], ["s1", "s2"]])
def test_selection_order_does_not_affect_output(hello_world, order):
    for section_id in order:
        hello_world.toggle_selection(section_id)
    compiled = compile_prompt(hello_world)
    assert compiled.compiled_text == "Hello\n\nWorld"
    assert [s.id for s in compiled.sections] == ["s1", "s2"]


def test_equal_display_order_keeps_list_order():
    store = PromptStore()
    store.set_categories([make_category("cat-1")])
    store.set_sections([make_section("b", content="B", order=1), make_section("a", content="A", order=1)])
    store.select_many(["a", "b"])
    assert compile_prompt(store).compiled_text == "B\n\nA"


def test_enabled_custom_prompt_is_trimmed_and_prepended(hello_world):
    hello_world.select("s1")
    hello_world.update_custom_prompt("  Intro  ", enabled=True)
    compiled = compile_prompt(hello_world)
    assert compiled.compiled_text == "Intro\n\nHello"
    assert compiled.custom_prompt == "Intro"
    assert compiled.custom_enabled is True


def test_disabled_custom_prompt_is_excluded(hello_world):
    hello_world.select("s1")
    hello_world.update_custom_prompt("  Intro  ", enabled=False)
    compiled = compile_prompt(hello_world)
    assert compiled.compiled_text == "Hello"
    assert compiled.custom_prompt is None
    assert compiled.custom_enabled is False


def test_blank_custom_prompt_adds_no_separator(hello_world):
    hello_world.select("s1")
    hello_world.update_custom_prompt("   ", enabled=True)
    compiled = compile_prompt(hello_world)
    assert compiled.compiled_text == "Hello"
    assert compiled.custom_prompt is None


def test_custom_prompt_alone(hello_world):
    hello_world.update_custom_prompt("Only me", enabled=True)
    assert compile_prompt(hello_world).compiled_text == "Only me"


def test_dangling_selection_is_skipped_not_erased(hello_world):
    hello_world.toggle_selection("ghost")
    hello_world.toggle_selection("s2")
    compiled = compile_prompt(hello_world)
    assert compiled.section_count == 1
    assert compiled.compiled_text == "World"
    assert "ghost" in hello_world.selection


def test_sections_of_missing_category_are_skipped(hello_world):
    hello_world.set_sections(list(hello_world.sections) + [make_section("orphan", "gone", "Orphan", 0)])
    hello_world.select_many(["orphan", "s1"])
    compiled = compile_prompt(hello_world)
    assert compiled.compiled_text == "Hello"
    assert compiled.section_count == 1


def test_outer_whitespace_is_trimmed():
    assert compile_text([make_section("x", content="  padded \n")]) == "padded"


def test_compile_is_repeatable(hello_world):
    hello_world.select_many(["s1", "s2"])
    assert compile_prompt(hello_world) == compile_prompt(hello_world)
