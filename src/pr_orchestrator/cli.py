"""CLI entry point for the PR orchestrator.

This module provides the Typer-based CLI with commands:
- pr-orchestrator validate: Validate configuration
- pr-orchestrator label: Compute the labels for a PR context
- pr-orchestrator dispatch: Trigger the workflows bound to an event

Exit codes:
- 0: Success
- 1: Configuration error
- 2: Evaluation error
- 3: Dispatch error
- 4: Input error (unreadable or malformed context/payload)
"""

from __future__ import annotations

import json
import sys
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from pr_orchestrator import __version__
from pr_orchestrator.config import load_config
from pr_orchestrator.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
)
from pr_orchestrator.events import (
    DispatchError,
    EventDispatcher,
    GitHubWorkflowTrigger,
    RecordingTrigger,
    TriggerError,
    event_packages,
)
from pr_orchestrator.logging import (
    configure_logging,
    get_logger,
    log_dispatch,
    log_labels_evaluated,
    log_workflow_triggered,
)
from pr_orchestrator.owners import CodeOwners, CodeOwnersError
from pr_orchestrator.rules import EvaluationError, PRContext, RuleEvaluator, RuleSet

if TYPE_CHECKING:
    from pr_orchestrator.config.schema import Config
    from pr_orchestrator.events.triggers import WorkflowTrigger


class ExitCode(IntEnum):
    """CLI exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1
    EVALUATION_ERROR = 2
    DISPATCH_ERROR = 3
    INPUT_ERROR = 4


app = typer.Typer(
    name="pr-orchestrator",
    help="PR orchestrator - label pull requests and trigger workflows from a rule file.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pr-orchestrator {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """PR orchestrator - label pull requests and trigger workflows."""


def _error(message: str) -> None:
    typer.echo(typer.style(f"✗ {message}", fg=typer.colors.RED), err=True)


def _load_config_or_exit(config: Path | None) -> Config:
    """Load configuration, exiting with CONFIG_ERROR on failure."""
    try:
        return load_config(config)
    except ConfigError as e:
        _error(f"Configuration error: {e}")
        raise typer.Exit(ExitCode.CONFIG_ERROR) from e


def _read_json(path: Path) -> dict[str, Any]:
    """Read a JSON object from a file, or stdin when path is ``-``."""
    try:
        content = sys.stdin.read() if str(path) == "-" else path.read_text(encoding="utf-8")
    except OSError as e:
        _error(f"Cannot read {path}: {e}")
        raise typer.Exit(ExitCode.INPUT_ERROR) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        _error(f"Invalid JSON in {path}: {e}")
        raise typer.Exit(ExitCode.INPUT_ERROR) from e

    if not isinstance(data, dict):
        _error(f"{path} must contain a JSON object")
        raise typer.Exit(ExitCode.INPUT_ERROR)
    return data


def build_context(data: dict[str, Any]) -> PRContext:
    """Build a PRContext from CLI input.

    Two shapes are accepted: a GitHub ``pull_request`` payload (detected by a
    ``pull_request`` or ``user`` key) with optional ``files`` and
    ``file_owners`` keys, or a flat object with the PRContext fields.

    Raises:
        ValueError: If the input does not describe a PR (pydantic's
            ValidationError included).
    """
    if "pull_request" in data or "user" in data:
        return PRContext.from_github_payload(
            data,
            files=data.get("files"),
            owners=data.get("file_owners"),
        )
    return PRContext.model_validate(data)


@app.command()
def validate(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file.",
            exists=False,  # We handle existence check ourselves
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
) -> None:
    """Validate configuration without evaluating anything.

    Loads the configuration file, checks predicate names and compiles every
    regex. Exits with code 0 if valid, or code 1 if there are errors.
    """
    configure_logging(verbose=verbose, json_output=False)

    try:
        cfg = load_config(config)
    except (ConfigNotFoundError, ConfigValidationError) as e:
        _error(str(e))
        raise typer.Exit(ExitCode.CONFIG_ERROR) from e
    except ConfigError as e:
        _error(str(e))
        get_logger("pr_orchestrator.cli").exception("Configuration error")
        raise typer.Exit(ExitCode.CONFIG_ERROR) from e

    typer.echo(typer.style("✓ Configuration is valid", fg=typer.colors.GREEN))

    if verbose:
        typer.echo("\nConfiguration summary:")
        typer.echo(f"  CODEOWNERS path: {cfg.code_owners_path}")
        typer.echo(
            f"  Label rules: {len(cfg.labeler.labels)} "
            f"({len(cfg.get_label_names())} distinct labels)"
        )
        for event_name, scopes in cfg.events.items():
            for scope, actions in scopes.items():
                workflows = ", ".join(a.run_workflow for a in actions)
                typer.echo(f"  Event {event_name} [{scope}]: {workflows}")

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def label(
    context: Annotated[
        Path,
        typer.Option(
            "--context",
            help="JSON file with the PR context or GitHub payload ('-' for stdin).",
        ),
    ],
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file.",
        ),
    ] = None,
    codeowners: Annotated[
        Path | None,
        typer.Option(
            "--codeowners",
            help="CODEOWNERS file used to resolve file owners "
            "(default: codeOwnersPath setting, when present).",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print labels and rule outcomes as JSON.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """Compute the labels to apply to a PR.

    Prints one label per line (sorted), or a JSON document with --json.
    A PR matching no rule prints nothing and exits 0.
    """
    configure_logging(verbose=verbose)
    log = get_logger("pr_orchestrator.cli")

    cfg = _load_config_or_exit(config)
    rule_set = RuleSet.from_config(cfg)

    data = _read_json(context)
    try:
        pr_context = build_context(data)
    except ValueError as e:
        _error(f"Invalid PR context: {e}")
        raise typer.Exit(ExitCode.INPUT_ERROR) from e

    if not pr_context.file_owners and pr_context.changed_file_paths:
        owners_path = codeowners or Path(rule_set.code_owners_path)
        if codeowners is not None or owners_path.exists():
            try:
                resolver = CodeOwners.from_file(owners_path)
            except CodeOwnersError as e:
                _error(str(e))
                raise typer.Exit(ExitCode.INPUT_ERROR) from e
            pr_context = pr_context.model_copy(
                update={"file_owners": resolver.resolve(pr_context.changed_file_paths)}
            )
            log.debug("Resolved file owners", codeowners=str(owners_path))

    try:
        result = RuleEvaluator(rule_set).evaluate(pr_context)
    except EvaluationError as e:
        log.exception("Evaluation failed", label=e.label)
        _error(str(e))
        raise typer.Exit(ExitCode.EVALUATION_ERROR) from e

    log_labels_evaluated(pr_context.display_name, result)

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "labels": sorted(result.labels),
                    "rules": [r.model_dump() for r in result.results],
                },
                indent=2,
            )
        )
    else:
        for name in sorted(result.labels):
            typer.echo(name)

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def dispatch(
    event: Annotated[
        str,
        typer.Argument(help="Event name, e.g. onPublish."),
    ],
    payload: Annotated[
        Path | None,
        typer.Option(
            "--payload",
            help="JSON file with the event payload ('-' for stdin).",
        ),
    ] = None,
    package: Annotated[
        list[str] | None,
        typer.Option(
            "--package",
            "-p",
            help="Package the event concerns (repeatable). Added to the payload.",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file.",
        ),
    ] = None,
    repo: Annotated[
        str | None,
        typer.Option(
            "--repo",
            help="Repository (owner/repo) whose workflows are dispatched. "
            "Without it, workflows are only reported (dry run).",
        ),
    ] = None,
    ref: Annotated[
        str,
        typer.Option(
            "--ref",
            help="Git ref the workflows run on.",
        ),
    ] = "main",
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Only report the workflows that would run, even with --repo.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """Trigger the workflows bound to an event.

    Prints the triggered workflow names in order. Failure to trigger a
    workflow stops the dispatch and exits with code 3; nothing is retried.
    """
    configure_logging(verbose=verbose)
    log = get_logger("pr_orchestrator.cli")

    cfg = _load_config_or_exit(config)

    event_payload: dict[str, Any] = _read_json(payload) if payload is not None else {}
    if package:
        existing = event_packages(event_payload)
        event_payload["packages"] = list(dict.fromkeys([*existing, *package]))

    dry_run = dry_run or repo is None
    trigger: WorkflowTrigger
    if dry_run:
        trigger = RecordingTrigger()
    else:
        try:
            trigger = GitHubWorkflowTrigger(repo, ref=ref, input_keys=("package", "version"))
        except (TriggerError, ValueError) as e:
            _error(str(e))
            raise typer.Exit(ExitCode.CONFIG_ERROR) from e

    dispatcher = EventDispatcher.from_config(cfg, trigger)

    try:
        workflows = dispatcher.dispatch(event, event_payload)
    except DispatchError as e:
        log_workflow_triggered(event, e.workflow, "failed", error=str(e))
        log.error("Dispatch failed", event_name=event, workflow=e.workflow)
        _error(str(e))
        raise typer.Exit(ExitCode.DISPATCH_ERROR) from e

    for workflow in workflows:
        log_workflow_triggered(event, workflow, "dry_run" if dry_run else "success")
    log_dispatch(event, event_packages(event_payload), workflows, dry_run=dry_run)

    for workflow in workflows:
        typer.echo(workflow)

    raise typer.Exit(ExitCode.SUCCESS)
