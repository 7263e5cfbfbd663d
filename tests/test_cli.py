from prompt_builder.cli import main
from prompt_builder.errors import NetworkError


def test_list_prints_categories_and_sections(gateway, capsys):
    assert main(["list"], gateway=gateway) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "[1] System Prompts"
    assert out[1] == "    [3] You are a helpful AI assistant."
    assert out[3] == "[2] Code Guidelines"


def test_compile_locally(gateway, capsys):
    assert main(["compile", "--select", "4", "3", "--custom", " Hi "], gateway=gateway) == 0
    assert capsys.readouterr().out == "Hi\n\nYou are a helpful AI assistant.\n\nAlways be concise and clear.\n"


def test_compile_remote(gateway, capsys):
    assert main(["compile", "--select", "5", "--remote"], gateway=gateway) == 0
    assert capsys.readouterr().out == "Follow Python best practices.\n"
    assert "compile_remote" in gateway.calls


def test_gateway_failure_exits_non_zero(gateway, capsys):
    gateway.fail_next("list_categories", NetworkError("unreachable"))
    assert main(["list"], gateway=gateway) == 1
    assert "unreachable" in capsys.readouterr().err
