"""Logging module for the PR orchestrator.

This module provides structured JSON logging with:
- structlog configuration for consistent log formatting
- Secret redaction for GitHub tokens and authorization headers
- Audit logging for label decisions and workflow dispatch

Usage:
    from pr_orchestrator.logging import configure_logging, log_labels_evaluated

    configure_logging(verbose=True)
    log_labels_evaluated("vercel/turbo#123", result)
"""

from pr_orchestrator.logging.audit import (
    configure_logging,
    get_logger,
    log_dispatch,
    log_labels_evaluated,
    log_rule_evaluated,
    log_workflow_triggered,
    redact_secrets,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "log_dispatch",
    "log_labels_evaluated",
    "log_rule_evaluated",
    "log_workflow_triggered",
    "redact_secrets",
]
