"""Rule evaluation result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RuleMatch(BaseModel):
    """Outcome of evaluating one label rule against a PR."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Label the rule applies")
    matched: bool = Field(..., description="Whether the rule's condition held")
    reason: str = Field(..., description="Human-readable explanation of the outcome")


class LabelResult(BaseModel):
    """Collection of rule outcomes for a PR."""

    model_config = ConfigDict(frozen=True)

    results: list[RuleMatch] = Field(default_factory=list, description="Outcome per rule")

    @property
    def rules_evaluated(self) -> int:
        """Total number of rules evaluated."""
        return len(self.results)

    @property
    def matches(self) -> list[RuleMatch]:
        """Rules that matched, in rule order."""
        return [r for r in self.results if r.matched]

    @property
    def has_matches(self) -> bool:
        """Check if any rules matched."""
        return any(r.matched for r in self.results)

    @property
    def labels(self) -> set[str]:
        """Union of the labels of every matching rule."""
        return {r.label for r in self.results if r.matched}
