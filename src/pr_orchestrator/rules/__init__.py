"""Label rule evaluation against PR contexts."""

from pr_orchestrator.rules.context import PRContext
from pr_orchestrator.rules.engine import (
    CompiledRule,
    EvaluationError,
    RuleEvaluator,
    RuleSet,
    evaluate,
)
from pr_orchestrator.rules.predicates import (
    CollectionPredicate,
    Negate,
    Predicate,
    TextPredicate,
    build_predicate,
)
from pr_orchestrator.rules.schema import LabelResult, RuleMatch

__all__ = [
    "CollectionPredicate",
    "CompiledRule",
    "EvaluationError",
    "LabelResult",
    "Negate",
    "PRContext",
    "Predicate",
    "RuleEvaluator",
    "RuleMatch",
    "RuleSet",
    "TextPredicate",
    "build_predicate",
    "evaluate",
]
