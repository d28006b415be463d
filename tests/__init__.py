# =============================================================================
# AGENT-OS TOOLKIT - TEST PACKAGE
# =============================================================================
"""
Test Package

Tests for the Agent-OS toolkit. LLM providers, git and the deploy CLIs are
replaced by fakes, so the suite needs no network, credentials or git
repository.

Test Structure:
    tests/
    ├── conftest.py                  # Shared fixtures and fakes
    ├── test_task_parser.py          # tasks.md grammar
    ├── test_task_router.py          # Routing plan, dependencies
    ├── test_dispatch.py             # Delegating ready groups
    ├── test_task_manager.py         # Delegated task store
    ├── test_delegation_service.py   # Chat Claude tools
    ├── test_llm_client.py           # Provider abstraction, prompts
    ├── test_semver.py / test_commits.py / test_changelog.py
    ├── test_manifests.py / test_git.py / test_version_service.py
    ├── test_deploy.py               # CLI runner, Vercel and Fly tools
    ├── test_mcp_check.py            # .mcp.json verification
    ├── test_skills.py / test_config.py / test_monitoring.py
    ├── test_servers.py              # MCP tool registration
    └── test_cli.py                  # agent-os command line

Running Tests:
    # Run all tests
    pytest tests/ -v

    # Run specific test file
    pytest tests/test_task_parser.py -v

    # Run with coverage
    pytest tests/ --cov=orchestrator --cov=mcp_servers --cov=monitoring
"""
