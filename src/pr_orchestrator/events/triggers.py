"""Workflow triggers invoked by the event dispatcher.

This module provides:
- WorkflowTrigger: Protocol the dispatcher calls for each fired action
- RecordingTrigger: Dry-run trigger that logs and records calls
- GitHubWorkflowTrigger: Starts a GitHub Actions workflow via the
  ``workflow_dispatch`` REST endpoint
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "pr-orchestrator/0.1.0"


class TriggerError(Exception):
    """Raised when a workflow could not be triggered."""

    def __init__(
        self,
        message: str,
        *,
        workflow: str,
        status_code: int | None = None,
    ) -> None:
        """Initialize trigger error.

        Args:
            message: Error description.
            workflow: Workflow that failed to start.
            status_code: HTTP status code if from API response.
        """
        super().__init__(message)
        self.workflow = workflow
        self.status_code = status_code


class WorkflowTrigger(Protocol):
    """Protocol for starting a workflow by name."""

    def trigger(self, workflow: str, payload: Mapping[str, Any]) -> None:
        """Start a workflow.

        Args:
            workflow: Workflow identifier (file name or ID).
            payload: Payload of the event that fired the binding.

        Raises:
            Exception: Any failure; the dispatcher wraps it in DispatchError.
        """
        ...


@dataclass
class RecordingTrigger:
    """Trigger that only logs and records the workflows it was asked to run.

    Used for dry runs and in tests.
    """

    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def trigger(self, workflow: str, payload: Mapping[str, Any]) -> None:
        logger.info("[DRY RUN] Would trigger workflow '%s'", workflow)
        self.calls.append((workflow, dict(payload)))

    @property
    def workflows(self) -> list[str]:
        """Workflow names in the order they were triggered."""
        return [workflow for workflow, _ in self.calls]


def get_github_token() -> str:
    """Get GitHub token from environment.

    Returns:
        GitHub token.

    Raises:
        TriggerError: If GITHUB_TOKEN is not set.
    """
    token = os.environ.get("GITHUB_TOKEN", "").strip()
    if not token:
        raise TriggerError(
            "GITHUB_TOKEN environment variable is not set. "
            "Set it to a token allowed to dispatch workflows.",
            workflow="*",
        )
    return token


class GitHubWorkflowTrigger:
    """Trigger that starts GitHub Actions workflows.

    Posts to ``/repos/{repo}/actions/workflows/{workflow}/dispatches``.
    String and number payload fields listed in ``input_keys`` are forwarded
    as workflow inputs. There is no retry; failures surface as TriggerError.
    """

    def __init__(
        self,
        repo: str,
        token: str | None = None,
        *,
        ref: str = "main",
        base_url: str = DEFAULT_API_URL,
        input_keys: tuple[str, ...] = (),
        timeout: float = 15.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize GitHub workflow trigger.

        Args:
            repo: Repository full name (``owner/repo``).
            token: GitHub token. If None, reads from GITHUB_TOKEN.
            ref: Git ref the workflow runs on.
            base_url: GitHub API base URL.
            input_keys: Payload keys forwarded as workflow inputs.
            timeout: HTTP request timeout in seconds.
            client: Optional httpx client for testing.
        """
        if "/" not in repo:
            msg = f"repo must be in 'owner/repo' form, got {repo!r}"
            raise ValueError(msg)

        self._repo = repo
        self._token = token if token is not None else get_github_token()
        self._ref = ref
        self._base_url = base_url.rstrip("/")
        self._input_keys = input_keys
        self._timeout = timeout
        self._client = client

    @property
    def headers(self) -> dict[str, str]:
        """Get request headers."""
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }

    def _inputs(self, payload: Mapping[str, Any]) -> dict[str, str]:
        return {
            key: str(payload[key])
            for key in self._input_keys
            if isinstance(payload.get(key), str | int | float)
        }

    def trigger(self, workflow: str, payload: Mapping[str, Any]) -> None:
        """Start a workflow run.

        Args:
            workflow: Workflow file name or ID.
            payload: Event payload; ``input_keys`` fields become inputs.

        Raises:
            TriggerError: On transport errors or a non-2xx response.
        """
        url = f"{self._base_url}/repos/{self._repo}/actions/workflows/{workflow}/dispatches"
        body: dict[str, Any] = {"ref": self._ref}
        inputs = self._inputs(payload)
        if inputs:
            body["inputs"] = inputs

        try:
            if self._client is not None:
                response = self._client.post(url, json=body, headers=self.headers)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.post(url, json=body, headers=self.headers)
        except httpx.HTTPError as e:
            msg = f"Network error triggering workflow '{workflow}': {e}"
            raise TriggerError(msg, workflow=workflow) from e

        if response.is_success:
            logger.info("Triggered workflow '%s' on %s@%s", workflow, self._repo, self._ref)
            return

        msg = f"GitHub API error triggering workflow '{workflow}': {response.status_code}"
        try:
            detail = response.json().get("message")
        except ValueError:
            detail = None
        if detail:
            msg = f"{msg} - {detail}"
        raise TriggerError(msg, workflow=workflow, status_code=response.status_code)
