"""
Shared fixtures: a scripted LLM provider, a task store in a temporary
project and a delegation service wired to both.
"""

from typing import List, Optional

import pytest

from monitoring import AuditLogger, MetricsCollector
from mcp_servers.chat_claude.executor import TaskExecutor
from mcp_servers.chat_claude.llm_client import (
    BaseLLMProvider,
    LLMClient,
    LLMMessage,
    LLMResponse,
)
from mcp_servers.chat_claude.service import DelegationService
from mcp_servers.chat_claude.task_manager import TaskManager


SAMPLE_TASKS = """\
# Tasks: OAuth login

Spec: specs/2025-01-15-oauth/spec.md

## OAuth provider research [delegate:chat-claude] [type:research] [output:docs/oauth-research.md]
- [ ] Compare Auth0, Clerk and Supabase Auth
- [ ] Summarize pricing

Focus on B2B pricing tiers.

## Database schema [role:database-engineer]
- [x] Create users table
- [x] Add sessions table

## OAuth callback [role:api-engineer] [depends-on:OAuth provider research, Database schema]
- [ ] Add /auth/callback route
  - [ ] Validate state parameter

## Login docs [delegate:chat-claude] [type:documentation] [depends-on:OAuth callback]
- [ ] Write the login guide

## Final review
- [ ] Review all changes
"""


class FakeProvider(BaseLLMProvider):
    """Returns canned completions and records every request."""

    def __init__(
        self,
        content: str = "# Findings\n\nUse Clerk.",
        error: Optional[Exception] = None,
        model: str = "claude-sonnet-4-20250514",
    ):
        self.content = content
        self.error = error
        self.model = model
        self.calls: List[dict] = []

    def complete(
        self,
        messages: List[LLMMessage],
        max_tokens: int = 4096,
        temperature: float = 0.7,
        **kwargs
    ) -> LLMResponse:
        self.calls.append({
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=self.content,
            model=self.model,
            tokens_input=120,
            tokens_output=80,
            finish_reason="end_turn",
        )

    def get_model_name(self) -> str:
        return self.model


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def task_manager(tmp_path):
    manager = TaskManager(tmp_path)
    manager.initialize()
    return manager


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def audit(tmp_path):
    return AuditLogger(str(tmp_path / ".agent-os" / "logs" / "audit.jsonl"))


@pytest.fixture
def make_service(task_manager, metrics, audit):
    """Factory: delegation service around a given provider."""

    def _make(provider: BaseLLMProvider) -> DelegationService:
        client = LLMClient.with_provider(provider, name="fake")
        return DelegationService(task_manager, TaskExecutor(client), metrics=metrics, audit=audit)

    return _make


@pytest.fixture
def service(make_service, fake_provider):
    return make_service(fake_provider)


@pytest.fixture
def tasks_file(tmp_path):
    path = tmp_path / "tasks.md"
    path.write_text(SAMPLE_TASKS, encoding="utf-8")
    return path
