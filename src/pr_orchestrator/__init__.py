"""PR orchestrator: label rules and event-triggered workflows for pull requests.

Usage:
    from pr_orchestrator import PRContext, RuleSet, evaluate, load_config

    config = load_config(".github/turbo-orchestrator.yml")
    rule_set = RuleSet.from_config(config)
    labels = evaluate(rule_set, PRContext(changed_file_paths=["docs/index.mdx"]))
"""

__version__ = "0.1.0"

from pr_orchestrator.config import ConfigError, load_config, parse_config
from pr_orchestrator.events import DispatchError, EventDispatcher
from pr_orchestrator.rules import (
    EvaluationError,
    PRContext,
    RuleEvaluator,
    RuleSet,
    evaluate,
)

__all__ = [
    "ConfigError",
    "DispatchError",
    "EvaluationError",
    "EventDispatcher",
    "PRContext",
    "RuleEvaluator",
    "RuleSet",
    "__version__",
    "evaluate",
    "load_config",
    "parse_config",
]
