"""Label rule evaluation engine.

This module provides:
- RuleSet: Immutable handle holding the compiled label rules
- RuleEvaluator: Evaluates a PR context against a RuleSet
- evaluate: Convenience returning just the set of labels

Rules are independent of each other: every rule is evaluated, the labels of
all matching rules are unioned, and rule order never changes the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pr_orchestrator.config.schema import DEFAULT_CODEOWNERS_PATH, Condition
from pr_orchestrator.rules.predicates import Predicate, build_predicate
from pr_orchestrator.rules.schema import LabelResult, RuleMatch

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pr_orchestrator.config.schema import Config, LabelRule
    from pr_orchestrator.rules.context import PRContext

logger = logging.getLogger(__name__)


class EvaluationError(Exception):
    """Raised when a predicate fails while evaluating a rule."""

    def __init__(self, message: str, *, label: str | None = None) -> None:
        """Initialize evaluation error.

        Args:
            message: Error description.
            label: Label of the rule being evaluated.
        """
        super().__init__(message)
        self.label = label


@dataclass(frozen=True)
class CompiledRule:
    """A label rule with its predicates built."""

    label: str
    condition: Condition
    predicates: tuple[Predicate, ...]

    @classmethod
    def from_rule(cls, rule: LabelRule) -> CompiledRule:
        """Build the predicates of a validated rule."""
        return cls(
            label=rule.label,
            condition=rule.condition,
            predicates=tuple(
                build_predicate(name, pattern) for name, pattern in rule.when.items()
            ),
        )


@dataclass(frozen=True)
class RuleSet:
    """Compiled label rules, loaded once and shared read-only.

    Attributes:
        rules: Compiled rules in document order.
        code_owners_path: CODEOWNERS location for the ownership resolver.
            Carried for callers, never read by the evaluator.
    """

    rules: tuple[CompiledRule, ...]
    code_owners_path: str = DEFAULT_CODEOWNERS_PATH

    @classmethod
    def from_config(cls, config: Config) -> RuleSet:
        """Compile the label rules of a validated config."""
        return cls.from_rules(config.labeler.labels, code_owners_path=config.code_owners_path)

    @classmethod
    def from_rules(
        cls,
        rules: Iterable[LabelRule],
        *,
        code_owners_path: str = DEFAULT_CODEOWNERS_PATH,
    ) -> RuleSet:
        """Compile a sequence of validated rules."""
        return cls(
            rules=tuple(CompiledRule.from_rule(rule) for rule in rules),
            code_owners_path=code_owners_path,
        )

    def __len__(self) -> int:
        return len(self.rules)

    @property
    def labels(self) -> list[str]:
        """Distinct labels this rule set can produce, in rule order."""
        return list(dict.fromkeys(rule.label for rule in self.rules))


class RuleEvaluator:
    """Evaluator for PR contexts against a RuleSet.

    Holds no mutable state; one instance may be shared across PR events.
    """

    def __init__(self, rule_set: RuleSet) -> None:
        """Initialize evaluator.

        Args:
            rule_set: Compiled rules to evaluate.
        """
        self._rule_set = rule_set

    @property
    def rule_set(self) -> RuleSet:
        """The rule set being evaluated."""
        return self._rule_set

    def evaluate(self, context: PRContext) -> LabelResult:
        """Evaluate a PR context against all rules.

        Args:
            context: PR snapshot.

        Returns:
            LabelResult with the outcome of every rule.

        Raises:
            EvaluationError: If a predicate raises.
        """
        results: list[RuleMatch] = []

        for rule in self._rule_set.rules:
            matched, reason = self._evaluate_rule(context, rule)
            results.append(RuleMatch(label=rule.label, matched=matched, reason=reason))
            logger.debug(
                "Rule '%s' %s for %s: %s",
                rule.label,
                "matched" if matched else "did not match",
                context.display_name,
                reason,
            )

        return LabelResult(results=results)

    def labels_for(self, context: PRContext) -> set[str]:
        """Return only the labels to apply to a PR."""
        return self.evaluate(context).labels

    def _evaluate_rule(
        self,
        context: PRContext,
        rule: CompiledRule,
    ) -> tuple[bool, str]:
        """Evaluate a single rule against a context.

        AND stops at the first false predicate, OR at the first true one.

        Args:
            context: PR snapshot.
            rule: Rule to evaluate.

        Returns:
            Tuple of (matched, reason).
        """
        reasons: list[str] = []

        for predicate in rule.predicates:
            try:
                matched, reason = predicate.matches(context)
            except Exception as e:
                msg = f"Predicate {predicate.name.value} failed for rule '{rule.label}': {e}"
                raise EvaluationError(msg, label=rule.label) from e

            if rule.condition is Condition.AND and not matched:
                return False, f"{predicate.name.value} failed: {reason}"
            if rule.condition is Condition.OR and matched:
                return True, f"{predicate.name.value}: {reason}"

            reasons.append(f"{predicate.name.value}: {reason}")

        combined_reason = "; ".join(reasons)
        if rule.condition is Condition.AND:
            return True, combined_reason
        return False, f"no predicate matched ({combined_reason})"


def evaluate(rule_set: RuleSet, context: PRContext) -> set[str]:
    """Evaluate a PR context and return the labels to apply.

    This is a convenience function that creates a RuleEvaluator and evaluates.

    Args:
        rule_set: Compiled rules.
        context: PR snapshot.

    Returns:
        Set of labels of every matching rule (empty when none match).
    """
    return RuleEvaluator(rule_set).labels_for(context)
