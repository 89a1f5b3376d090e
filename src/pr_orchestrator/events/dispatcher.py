"""Event binding dispatcher.

Maps a named event (e.g. ``onPublish``) to the workflows bound to it in the
``events`` section of the config. Bindings are scoped by package: the scope
key is compared with the payload's ``package`` / ``packages`` field, and the
``*`` scope matches any package.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pr_orchestrator.config.schema import Config, WorkflowAction
    from pr_orchestrator.events.triggers import WorkflowTrigger

logger = logging.getLogger(__name__)

ANY_SCOPE = "*"


class DispatchError(Exception):
    """Raised when a bound workflow could not be triggered."""

    def __init__(self, message: str, *, event_name: str, workflow: str) -> None:
        """Initialize dispatch error.

        Args:
            message: Error description.
            event_name: Event being dispatched.
            workflow: Workflow whose trigger failed.
        """
        super().__init__(message)
        self.event_name = event_name
        self.workflow = workflow


@dataclass(frozen=True)
class EventBinding:
    """Workflows bound to an event within one package scope."""

    event_name: str
    scope: str
    actions: tuple[WorkflowAction, ...]

    def should_fire(self, action: WorkflowAction, packages: list[str]) -> bool:
        """Check whether an action fires for the packages of an event.

        Args:
            action: Action from this binding.
            packages: Packages the event concerns (empty if unscoped).

        Returns:
            True if the action should be triggered.
        """
        if self.scope == ANY_SCOPE:
            return True
        if action.when == "all":
            return bool(packages) and all(p == self.scope for p in packages)
        return self.scope in packages


def event_packages(payload: Mapping[str, Any]) -> list[str]:
    """Extract the packages an event concerns.

    Reads ``package`` (string) and ``packages`` (list of strings).

    Args:
        payload: Event payload.

    Returns:
        Package names, in payload order without duplicates.
    """
    packages: list[str] = []
    single = payload.get("package")
    if isinstance(single, str) and single:
        packages.append(single)
    many = payload.get("packages")
    if isinstance(many, list | tuple):
        packages.extend(p for p in many if isinstance(p, str) and p)
    return list(dict.fromkeys(packages))


class EventDispatcher:
    """Dispatcher triggering bound workflows when events fire.

    Holds the bindings loaded at start-up; does not retry failed triggers.
    """

    def __init__(
        self,
        bindings: list[EventBinding],
        trigger: WorkflowTrigger,
    ) -> None:
        """Initialize dispatcher.

        Args:
            bindings: Event bindings in document order.
            trigger: Collaborator that starts workflows.
        """
        self._bindings = tuple(bindings)
        self._trigger = trigger

    @classmethod
    def from_config(cls, config: Config, trigger: WorkflowTrigger) -> EventDispatcher:
        """Build the bindings from the ``events`` section of a config."""
        bindings = [
            EventBinding(event_name=event_name, scope=scope, actions=tuple(actions))
            for event_name, scopes in config.events.items()
            for scope, actions in scopes.items()
        ]
        return cls(bindings, trigger)

    @property
    def event_names(self) -> list[str]:
        """Distinct event names with bindings."""
        return list(dict.fromkeys(b.event_name for b in self._bindings))

    def bindings_for(self, event_name: str) -> list[EventBinding]:
        """Return the bindings of an event, in document order."""
        return [b for b in self._bindings if b.event_name == event_name]

    def dispatch(
        self,
        event_name: str,
        payload: Mapping[str, Any] | None = None,
    ) -> list[str]:
        """Trigger every workflow bound to an event.

        Args:
            event_name: Name of the event that fired.
            payload: Event payload used for scoping.

        Returns:
            Triggered workflow names, in binding order. Empty for events
            with no bindings.

        Raises:
            DispatchError: If a trigger fails. Workflows already started
                are not rolled back.
        """
        payload = payload or {}
        packages = event_packages(payload)
        triggered: list[str] = []

        bindings = self.bindings_for(event_name)
        if not bindings:
            logger.debug("No bindings for event '%s'", event_name)
            return triggered

        for binding in bindings:
            for action in binding.actions:
                if not binding.should_fire(action, packages):
                    logger.debug(
                        "Skipping workflow '%s' for event '%s': scope '%s' not satisfied by %s",
                        action.run_workflow,
                        event_name,
                        binding.scope,
                        packages,
                    )
                    continue

                try:
                    self._trigger.trigger(action.run_workflow, payload)
                except Exception as e:
                    msg = (
                        f"Failed to trigger workflow '{action.run_workflow}' "
                        f"for event '{event_name}': {e}"
                    )
                    raise DispatchError(
                        msg, event_name=event_name, workflow=action.run_workflow
                    ) from e

                triggered.append(action.run_workflow)
                logger.info(
                    "Triggered workflow '%s' for event '%s' (scope '%s')",
                    action.run_workflow,
                    event_name,
                    binding.scope,
                )

        return triggered
