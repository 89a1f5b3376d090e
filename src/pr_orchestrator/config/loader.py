"""Locating, reading and validating the orchestrator document.

The document is looked up in this order:

1. the path passed to ``--config``
2. ``$PR_ORCHESTRATOR_CONFIG``
3. ``./.github/turbo-orchestrator.yml``
4. ``./turbo-orchestrator.yml``

Every problem (missing file, bad YAML, schema violation, bad regex) is raised
as a ``ConfigError`` before any PR is evaluated.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pr_orchestrator.config.schema import Config

CONFIG_ENV_VAR = "PR_ORCHESTRATOR_CONFIG"
DEFAULT_CONFIG_PATHS = (
    Path(".github") / "turbo-orchestrator.yml",
    Path("turbo-orchestrator.yml"),
)


class ConfigError(Exception):
    """Base error for an unusable orchestrator document."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize ConfigError.

        Args:
            message: Error description
            path: Document the error refers to, when known
        """
        self.path = path
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """No document exists at the requested or default locations."""


class ConfigValidationError(ConfigError):
    """The document parsed but does not satisfy the schema."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        validation_errors: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize ConfigValidationError.

        Args:
            message: Summary listing every problem
            path: Document the errors refer to
            validation_errors: Raw pydantic error entries
        """
        self.validation_errors = list(validation_errors or [])
        super().__init__(message, path)


def _resolve(path: str | Path) -> Path:
    return Path(path).expanduser().resolve()


def discover_config_path(explicit_path: str | Path | None = None) -> Path:
    """Find the document to load.

    An explicit path must exist; the other locations are tried in turn.

    Args:
        explicit_path: Value of ``--config``, if given

    Returns:
        Path of the first existing document

    Raises:
        ConfigNotFoundError: If the explicit path is missing, or no
            default location holds a document
    """
    if explicit_path:
        path = _resolve(explicit_path)
        if not path.exists():
            raise ConfigNotFoundError(f"Config file not found: {path}", path)
        return path

    tried: list[Path] = []
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        tried.append(_resolve(env_value))
    tried.extend(Path.cwd() / relative for relative in DEFAULT_CONFIG_PATHS)

    for path in tried:
        if path.exists():
            return path

    listing = "".join(f"\n  - {p}" for p in tried)
    raise ConfigNotFoundError(f"No config file found. Searched locations:{listing}")


def load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML document that must be a mapping.

    An empty file is an empty mapping.

    Raises:
        ConfigError: If the file is unreadable, not YAML, or not a mapping
    """
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        kind = type(data).__name__
        raise ConfigError(f"Top level of {path} must be a YAML mapping, got {kind}", path)
    return data


def _describe_location(raw: dict[str, Any], loc: tuple[Any, ...]) -> str:
    """Render a pydantic error location, naming the label rule when possible.

    Args:
        raw: The document that failed validation
        loc: Error location tuple from pydantic

    Returns:
        Dotted location, suffixed with the rule's label for errors
        under ``labeler.labels[i]``
    """
    dotted = ".".join(str(part) for part in loc)
    if len(loc) >= 3 and loc[0] == "labeler" and loc[1] == "labels" and isinstance(loc[2], int):
        labeler = raw.get("labeler")
        labels = labeler.get("labels") if isinstance(labeler, dict) else None
        if isinstance(labels, list) and loc[2] < len(labels):
            rule = labels[loc[2]]
            if isinstance(rule, dict) and rule.get("label"):
                return f"{dotted} (label '{rule['label']}')"
    return dotted


def parse_config(raw_config: dict[str, Any], path: Path | None = None) -> Config:
    """Validate an already-parsed document.

    Args:
        raw_config: Mapping parsed from YAML (or built in code)
        path: Optional source path, used in error messages

    Returns:
        Validated Config object

    Raises:
        ConfigValidationError: Listing every schema violation at once
    """
    try:
        return Config.model_validate(raw_config)
    except ValidationError as e:
        errors = e.errors()
        lines = [
            f"  - {_describe_location(raw_config, tuple(err['loc']))}: {err['msg']}"
            for err in errors
        ]
        source = f" in {path}" if path else ""
        message = f"Invalid configuration{source} ({len(errors)} error(s)):\n" + "\n".join(lines)
        raise ConfigValidationError(
            message,
            path=path,
            validation_errors=[dict(err) for err in errors],
        ) from e


def load_config(path: str | Path | None = None) -> Config:
    """Find, read and validate the orchestrator document.

    Args:
        path: Explicit document path; None runs discovery.

    Returns:
        Validated Config object

    Raises:
        ConfigNotFoundError: If no document is found
        ConfigError: If the document cannot be read or parsed
        ConfigValidationError: If the document fails schema validation

    Example:
        >>> config = load_config(".github/turbo-orchestrator.yml")
        >>> config.code_owners_path
        '.github/CODEOWNERS'
    """
    config_path = discover_config_path(path)
    return parse_config(load_yaml(config_path), config_path)
