"""Event bindings and workflow triggering."""

from pr_orchestrator.events.dispatcher import (
    ANY_SCOPE,
    DispatchError,
    EventBinding,
    EventDispatcher,
    event_packages,
)
from pr_orchestrator.events.triggers import (
    GitHubWorkflowTrigger,
    RecordingTrigger,
    TriggerError,
    WorkflowTrigger,
)

__all__ = [
    "ANY_SCOPE",
    "DispatchError",
    "EventBinding",
    "EventDispatcher",
    "GitHubWorkflowTrigger",
    "RecordingTrigger",
    "TriggerError",
    "WorkflowTrigger",
    "event_packages",
]
