"""Tests for the LLM provider layer and prompt construction."""

from types import SimpleNamespace

import pytest

from mcp_servers.chat_claude.llm_client import (
    AnthropicProvider,
    LLMClient,
    LLMMessage,
    OpenAIProvider,
)
from mcp_servers.chat_claude.prompts import (
    ROLE_PROMPTS,
    build_system_prompt,
    build_user_prompt,
)
from tests.conftest import FakeProvider


class RecordingCreate:
    def __init__(self, response):
        self.response = response
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        return self.response


# =============================================================================
# Providers
# =============================================================================


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown LLM provider: mistral"):
        LLMClient(provider="mistral")


def test_anthropic_requires_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY is required"):
        AnthropicProvider()


def test_openai_requires_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ValueError, match="OPENAI_API_KEY is required"):
        OpenAIProvider()


def test_anthropic_provider_splits_system_and_joins_text_blocks(monkeypatch):
    monkeypatch.delenv("LLM_MODEL", raising=False)
    provider = AnthropicProvider(api_key="sk-ant-test")
    messages = RecordingCreate(SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="Part one"),
            SimpleNamespace(type="tool_use", id="x"),
            SimpleNamespace(type="text", text="Part two"),
        ],
        model="claude-sonnet-4-20250514",
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
        stop_reason="end_turn",
    ))
    provider.client = SimpleNamespace(messages=messages)

    response = provider.complete(
        [LLMMessage("system", "Be brief"), LLMMessage("user", "Hi")],
        max_tokens=50,
    )

    assert response.content == "Part one\n\nPart two"
    assert response.total_tokens == 15
    assert response.finish_reason == "end_turn"
    assert messages.kwargs["system"] == "Be brief"
    assert messages.kwargs["messages"] == [{"role": "user", "content": "Hi"}]
    assert messages.kwargs["model"] == AnthropicProvider.DEFAULT_MODEL


def test_openai_provider_maps_usage():
    provider = OpenAIProvider(api_key="sk-test", model="gpt-4o-mini")
    completions = RecordingCreate(SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Hello"), finish_reason="stop")],
        model="gpt-4o-mini",
        usage=SimpleNamespace(prompt_tokens=7, completion_tokens=3),
    ))
    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    response = provider.complete([LLMMessage("system", "Sys"), LLMMessage("user", "Hi")])

    assert response.content == "Hello"
    assert (response.tokens_input, response.tokens_output) == (7, 3)
    assert completions.kwargs["messages"][0] == {"role": "system", "content": "Sys"}


def test_client_accumulates_metrics():
    client = LLMClient.with_provider(FakeProvider(), name="fake")
    client.complete("one")
    client.complete("two", system="sys")

    metrics = client.get_metrics()
    assert metrics["call_count"] == 2
    assert metrics["total_tokens"] == 400
    assert metrics["provider"] == "fake"
    assert client.get_model() == "claude-sonnet-4-20250514"


def test_client_reraises_provider_errors():
    client = LLMClient.with_provider(FakeProvider(error=RuntimeError("down")))
    with pytest.raises(RuntimeError, match="down"):
        client.complete("hi")
    assert client.get_metrics()["call_count"] == 0


# =============================================================================
# Prompts
# =============================================================================


@pytest.mark.parametrize("task_type", sorted(ROLE_PROMPTS))
def test_system_prompt_per_task_type(task_type):
    prompt = build_system_prompt(task_type)

    assert f"you handle {task_type} tasks" in prompt
    assert ROLE_PROMPTS[task_type] in prompt
    assert prompt.endswith("Output your response in well-formatted Markdown.")


def test_system_prompt_json_format():
    assert build_system_prompt("analysis", "json").endswith("Output your response as valid JSON.")


def test_user_prompt_without_context():
    assert build_user_prompt("Do the thing") == "# Task\n\nDo the thing"


def test_user_prompt_with_context_and_json():
    prompt = build_user_prompt("Do the thing", context="Stack: Django", output_format="json")

    assert prompt == (
        "# Project Context\n\nStack: Django\n\n---\n\n"
        "# Task\n\nDo the thing"
        "\n\n# Output Format\n\nProvide your response as valid JSON."
    )
