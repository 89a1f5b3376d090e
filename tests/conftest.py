"""Shared pytest fixtures for pr_orchestrator tests.

This module provides common fixtures for:
- Temporary config files
- The repository's own turbo-orchestrator.yml
- Sample GitHub pull request payloads
- PR context factories
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import yaml

from pr_orchestrator.config import Config, load_config
from pr_orchestrator.rules import PRContext, RuleSet

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


REPO_ROOT = Path(__file__).resolve().parent.parent
TURBO_CONFIG_PATH = REPO_ROOT / ".github" / "turbo-orchestrator.yml"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory (cleaned up after test)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid configuration dictionary."""
    return {
        "labeler": {
            "labels": [],
        },
    }


@pytest.fixture
def sample_config() -> dict[str, Any]:
    """Return a sample configuration with a few rules and one event binding."""
    return {
        "labeler": {
            "settings": {
                "codeOwnersPath": ".github/CODEOWNERS",
            },
            "labels": [
                {
                    "label": "pkg: turbo-ignore",
                    "when": {
                        "isAnyFilePathMatch": r"^packages\/turbo-ignore\/.*$",
                    },
                },
                {
                    "label": "created-by: turbopack",
                    "when": {
                        "isPRAuthorMatch": "^(sokra|kdy1)$",
                    },
                },
                {
                    "label": "needs: docs",
                    "condition": "AND",
                    "when": {
                        "isPRTitleMatch": "^feat",
                        "isNotAnyFilePathMatch": r"^docs\/",
                    },
                },
                {
                    "label": "external",
                    "condition": "OR",
                    "when": {
                        "isNotPRAuthorCompanyMatch": "(?i)vercel",
                        "isPRBodyMatch": "first contribution",
                    },
                },
            ],
        },
        "events": {
            "onPublish": {
                "turbo": [
                    {"runWorkflow": "bench-turborepo.yml", "when": "any"},
                ],
            },
        },
    }


@pytest.fixture
def write_config(temp_dir: Path) -> Callable[..., Path]:
    """Factory fixture to write config files.

    Args:
        config: Configuration dictionary
        filename: Name of the config file (default: turbo-orchestrator.yml)

    Returns:
        Path to the written config file
    """

    def _write(config: dict[str, Any], filename: str = "turbo-orchestrator.yml") -> Path:
        path = temp_dir / filename
        with path.open("w") as f:
            yaml.safe_dump(config, f, sort_keys=False)
        return path

    return _write


@pytest.fixture
def write_json(temp_dir: Path) -> Callable[..., Path]:
    """Factory fixture to write JSON input files."""

    def _write(data: Any, filename: str = "input.json") -> Path:
        path = temp_dir / filename
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def turbo_config() -> Config:
    """Return the repository's own turbo-orchestrator.yml, loaded."""
    return load_config(TURBO_CONFIG_PATH)


@pytest.fixture
def turbo_rule_set(turbo_config: Config) -> RuleSet:
    """Return the compiled rule set of turbo-orchestrator.yml."""
    return RuleSet.from_config(turbo_config)


# ============================================================================
# PR Context Fixtures
# ============================================================================


@pytest.fixture
def make_context() -> Callable[..., PRContext]:
    """Factory fixture building PR contexts from keyword arguments."""

    def _make(**fields: Any) -> PRContext:
        return PRContext(**fields)

    return _make


@pytest.fixture
def github_pr_payload() -> dict[str, Any]:
    """Return a sample GitHub pull_request webhook payload."""
    return {
        "action": "opened",
        "number": 123,
        "pull_request": {
            "id": 100,
            "number": 123,
            "title": "feat(turbo-ignore): support --fallback",
            "state": "open",
            "draft": False,
            "user": {
                "login": "tknickman",
                "id": 3,
                "company": "@vercel",
            },
            "labels": [],
            "body": None,
            "html_url": "https://github.com/vercel/turbo/pull/123",
        },
        "repository": {
            "full_name": "vercel/turbo",
        },
    }
