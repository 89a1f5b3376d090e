"""Structured logging for label decisions and workflow dispatch.

Every CLI command configures structlog once through ``configure_logging``.
Events are rendered as one JSON object per line on stderr (or a console
line for interactive commands), so stdout stays reserved for command output
such as label names. Token-shaped values are masked before rendering.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, Processor, WrappedLogger

    from pr_orchestrator.rules.schema import LabelResult

# (pattern, replacement) pairs applied to every string in a log event
SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Classic tokens: ghp_ (PAT), gho_ (OAuth), ghu_/ghs_ (app), ghr_ (refresh)
    (re.compile(r"gh[pousr]_[A-Za-z0-9_]{36,}"), "[REDACTED_GITHUB_TOKEN]"),
    (re.compile(r"github_pat_[A-Za-z0-9_]{20,}"), "[REDACTED_GITHUB_TOKEN]"),
    (re.compile(r"(token[=:]\s*['\"]?)[A-Za-z0-9_-]{20,}"), r"\1[REDACTED]"),
    (re.compile(r"(bearer\s+)[A-Za-z0-9._-]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(authorization[=:]\s*['\"]?)[^\s'\"]+", re.IGNORECASE), r"\1[REDACTED]"),
]


def redact_secrets(value: Any) -> Any:
    """Mask tokens and credentials in a log value.

    Strings are scrubbed with ``SECRET_PATTERNS``; mappings, lists and
    tuples are walked recursively. Anything else is returned untouched.

    Args:
        value: Log event or one of its values.

    Returns:
        Copy of the value with secrets replaced.
    """
    if isinstance(value, str):
        for pattern, replacement in SECRET_PATTERNS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, Mapping):
        return {key: redact_secrets(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return type(value)(redact_secrets(item) for item in value)
    return value


def _redact_processor(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    return redact_secrets(event_dict)


def configure_logging(
    verbose: bool = False,
    json_output: bool = True,
) -> None:
    """Set up stdlib logging and structlog for a CLI run.

    Args:
        verbose: Log at DEBUG instead of INFO (includes per-rule outcomes).
        json_output: Render JSON lines; False selects the plain console
            renderer used by ``validate``.
    """
    level = logging.DEBUG if verbose else logging.INFO

    # Library modules log through the standard library
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=level,
    )

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _redact_processor,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger; ``name`` is the dotted audit channel."""
    return structlog.get_logger(name)


def log_labels_evaluated(
    pr: str,
    result: LabelResult,
) -> None:
    """Log the decision trail for a PR: every rule outcome and the labels.

    Args:
        pr: PR description (e.g. ``owner/repo#123`` or title)
        result: Evaluation result
    """
    log = get_logger("pr_orchestrator.audit")
    log.info(
        "labels_evaluated",
        pr=pr,
        rules_evaluated=result.rules_evaluated,
        rules_matched=len(result.matches),
        labels=sorted(result.labels),
    )
    for rule in result.results:
        log_rule_evaluated(pr, rule.label, rule.matched, rule.reason)


def log_rule_evaluated(
    pr: str,
    label: str,
    matched: bool,
    reason: str,
) -> None:
    """Log when a rule is evaluated against a PR.

    Args:
        pr: PR being evaluated
        label: Label of the rule
        matched: Whether the rule matched
        reason: Explanation of match/no-match
    """
    log = get_logger("pr_orchestrator.rules")
    log.debug(
        "rule_evaluated",
        pr=pr,
        label=label,
        matched=matched,
        reason=reason,
    )


def log_workflow_triggered(
    event_name: str,
    workflow: str,
    result: str,
    error: str | None = None,
) -> None:
    """Log a workflow trigger attempt.

    Args:
        event_name: Event being dispatched
        workflow: Workflow identifier
        result: 'success', 'dry_run' or 'failed'
        error: Error message if failed
    """
    log = get_logger("pr_orchestrator.events")

    log_func = log.warning if result == "failed" else log.info

    log_func(
        "workflow_triggered",
        event_name=event_name,
        workflow=workflow,
        result=result,
        error=error,
    )


def log_dispatch(
    event_name: str,
    packages: list[str],
    workflows: list[str],
    dry_run: bool = False,
) -> None:
    """Log dispatch completion for an event.

    Args:
        event_name: Event that fired
        packages: Packages the event concerned
        workflows: Workflows triggered, in order
        dry_run: Whether triggers were only recorded
    """
    log = get_logger("pr_orchestrator.events")
    log.info(
        "event_dispatched",
        event_name=event_name,
        packages=packages,
        workflows=workflows,
        workflows_triggered=len(workflows),
        dry_run=dry_run,
    )
