# =============================================================================
# AGENT-OS TOOLKIT - CONFIGURATION
# =============================================================================
"""
Configuration loading.

Configuration comes from three layers, highest priority first:
1. Environment variables
2. YAML file (``agent-os.yaml`` or ``--config`` / ``AGENT_OS_CONFIG``)
3. Built-in defaults
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from orchestrator.errors import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "agent-os.yaml"

ENV_MAPPINGS = {
    # LLM
    "LLM_PROVIDER": ("llm", "provider"),
    "LLM_MODEL": ("llm", "model"),
    "LLM_MAX_TOKENS": ("llm", "max_tokens"),
    "ANTHROPIC_API_KEY": ("llm", "api_key"),
    "OPENAI_API_KEY": ("llm", "openai_api_key"),
    # Project
    "PROJECT_ROOT": ("project", "root"),
    "AGENT_OS_DIR": ("project", "state_dir"),
    "SKILLS_DIR": ("project", "skills_dir"),
    "MCP_CONFIG": ("project", "mcp_config"),
    # Logging
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_DIR": ("logging", "dir"),
    # Deploy CLIs
    "VERCEL_TOKEN": ("deploy", "vercel_token"),
    "FLY_API_TOKEN": ("deploy", "fly_api_token"),
    "CLI_TIMEOUT": ("deploy", "timeout"),
}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "llm": {
        "provider": "anthropic",
        "model": "claude-sonnet-4-20250514",
        "max_tokens": 8096,
        "temperature": 0.7,
        "api_key": "",
    },
    "project": {
        "root": ".",
        "state_dir": ".agent-os",
        "skills_dir": "skills",
        "mcp_config": ".mcp.json",
    },
    "logging": {
        "level": "INFO",
        "format": "text",
        "dir": None,
    },
    "deploy": {
        "vercel_token": "",
        "fly_api_token": "",
        "timeout": 600,
    },
    "release": {
        "remote": "origin",
        "branch": "main",
        "tag_prefix": "v",
    },
}


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Load configuration from YAML file and environment variables.

    Environment variables override YAML values; defaults fill the rest.

    Args:
        config_path: Path to the YAML file (default: ``AGENT_OS_CONFIG``
            or ``agent-os.yaml``)
        environ: Environment mapping (default: ``os.environ``)

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get("AGENT_OS_CONFIG") or DEFAULT_CONFIG_PATH)

    config: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        config = loaded
        logger.info(f"Loaded config from {path}")
    elif config_path:
        logger.warning(f"Config file not found: {path}, using defaults")

    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = env.get(env_var)
        if value is None or value == "":
            continue
        section_dict = config.setdefault(section, {})
        if not isinstance(section_dict, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        section_dict[key] = int(value) if value.isdigit() else value

    for section, section_defaults in DEFAULTS.items():
        section_dict = config.setdefault(section, {})
        if not isinstance(section_dict, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        for key, default_value in section_defaults.items():
            section_dict.setdefault(key, copy.deepcopy(default_value))

    return config


def project_root(config: Dict[str, Any]) -> Path:
    """Resolved project root from a loaded config."""
    return Path(config["project"]["root"]).expanduser().resolve()
