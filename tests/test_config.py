import pytest

from prompt_builder.config import DEFAULT_API_URL, PromptBuilderConfig


def test_defaults(monkeypatch):
    for name in ("PROMPT_BUILDER_API_URL", "PROMPT_BUILDER_TIMEOUT", "PROMPT_BUILDER_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)
    config = PromptBuilderConfig()
    assert config.api_url == DEFAULT_API_URL
    assert config.timeout == 5.0
    assert config.max_retries == 2


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PROMPT_BUILDER_API_URL", "https://prompts.example/api/")
    monkeypatch.setenv("PROMPT_BUILDER_TIMEOUT", "1.5")
    monkeypatch.setenv("PROMPT_BUILDER_MAX_RETRIES", "0")
    config = PromptBuilderConfig()
    assert config.api_url == "https://prompts.example/api"
    assert config.timeout == 1.5
    assert config.max_retries == 0


def test_explicit_arguments_win(monkeypatch):
    monkeypatch.setenv("PROMPT_BUILDER_MAX_RETRIES", "4")
    assert PromptBuilderConfig(max_retries=1).max_retries == 1


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        PromptBuilderConfig(max_retries=-1)
    with pytest.raises(ValueError):
        PromptBuilderConfig(timeout=0)
