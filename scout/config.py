"""
Configuration loading for Faculty Scout.

Settings live in ``config.yaml`` next to this module. Every component reads
its own section, merged over the built-in defaults below, so a partial or
missing file still yields a complete configuration.
"""

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

# fmt: off
# ruff: noqa: E501
DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]
# fmt: on

DEFAULT_CONFIG: dict[str, Any] = {
    "fetch": {
        "timeout": 30,
        "user_agent_list": DEFAULT_USER_AGENTS,
    },
    "sources": {
        "department": {
            "max_retries": 2,
            "retry_base_delay": 2.0,
            "retry_factor": 2.0,
            "retry_max_delay": 30.0,
            "retry_jitter": 0.1,
        },
        "professor": {
            "max_retries": 2,
            "retry_base_delay": 2.0,
            "retry_factor": 2.0,
            "retry_max_delay": 30.0,
            "retry_jitter": 0.1,
        },
        "scholar": {
            "base_url": "https://scholar.google.com",
            "results_per_page": 20,
            "profile_page_size": 100,
            "request_delay_min": 1.0,
            "request_delay_max": 3.0,
            "max_retries": 2,
            "retry_base_delay": 2.0,
            "retry_factor": 2.0,
            "retry_max_delay": 30.0,
            "retry_jitter": 0.25,
        },
        "semantic_scholar": {
            "api_base": "https://api.semanticscholar.org/graph/v1",
            "search_limit": 40,
            "max_papers": 20,
            "cache_ttl": 1800,
            "max_retries": 3,
            "retry_base_delay": 5.0,
            "retry_factor": 3.0,
            "retry_max_delay": 60.0,
            "retry_jitter": 0.4,
        },
    },
    "orchestrator": {
        "concurrency_limit": 2,
        "output_dir": "output",
    },
}


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of base with overlay merged in, recursing into dicts."""
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load the full configuration, falling back to defaults on error."""
    if not config_path:
        config_path = DEFAULT_CONFIG_PATH

    try:
        with open(config_path) as f:
            overlay = yaml.safe_load(f) or {}
    except Exception as e:
        logger.warning(f"Error loading config from {config_path}: {e}. Using defaults.")
        return copy.deepcopy(DEFAULT_CONFIG)

    return _deep_merge(DEFAULT_CONFIG, overlay)


def load_section(*keys: str, config_path: Path | None = None) -> dict[str, Any]:
    """Load one nested section, e.g. ``load_section("sources", "scholar")``."""
    section: Any = load_config(config_path)
    for key in keys:
        section = section.get(key, {}) if isinstance(section, dict) else {}
    return section
