"""Tests for the label rule engine."""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any

import pytest

from pr_orchestrator.config import parse_config
from pr_orchestrator.config.schema import Condition, PredicateName
from pr_orchestrator.rules import (
    CompiledRule,
    EvaluationError,
    Predicate,
    PRContext,
    RuleEvaluator,
    RuleSet,
    evaluate,
)
from pr_orchestrator.rules.predicates import build_predicate

if TYPE_CHECKING:
    from collections.abc import Callable


def rule_set_from(*labels: dict[str, Any]) -> RuleSet:
    """Compile a rule set from label rule dictionaries."""
    return RuleSet.from_config(parse_config({"labeler": {"labels": list(labels)}}))


class ExplodingPredicate(Predicate):
    """Predicate that fails, standing in for a regex engine error."""

    name = PredicateName.IS_PR_TITLE_MATCH

    def matches(self, context: PRContext) -> tuple[bool, str]:
        raise RuntimeError("regex engine failure")


class TestScenarios:
    """Scenarios against the repository's turbo-orchestrator.yml."""

    def test_package_path(self, turbo_rule_set: RuleSet) -> None:
        context = PRContext(changed_file_paths=["packages/turbo-ignore/index.js"])

        assert evaluate(turbo_rule_set, context) == {"pkg: turbo-ignore"}

    def test_turbopack_author(self, turbo_rule_set: RuleSet) -> None:
        assert "created-by: turbopack" in evaluate(turbo_rule_set, PRContext(author_login="sokra"))

    def test_other_author(self, turbo_rule_set: RuleSet) -> None:
        labels = evaluate(turbo_rule_set, PRContext(author_login="someoneelse"))

        assert "created-by: turbopack" not in labels
        assert "created-by: turborepo" not in labels

    def test_author_is_anchored(self, turbo_rule_set: RuleSet) -> None:
        assert evaluate(turbo_rule_set, PRContext(author_login="sokra2")) == set()

    def test_docs_and_site(self, turbo_rule_set: RuleSet) -> None:
        docs = evaluate(turbo_rule_set, PRContext(changed_file_paths=["docs/pages/index.mdx"]))
        site = evaluate(turbo_rule_set, PRContext(changed_file_paths=["docs/public/logo.png"]))

        assert docs == {"area: docs"}
        assert site == {"area: site"}

    def test_ci_and_examples(self, turbo_rule_set: RuleSet) -> None:
        context = PRContext(
            changed_file_paths=[".github/workflows/test.yml", "examples/basic/turbo.json"]
        )

        assert evaluate(turbo_rule_set, context) == {"area: ci", "area: examples"}

    def test_eslint_packages(self, turbo_rule_set: RuleSet) -> None:
        context = PRContext(changed_file_paths=["packages/eslint-config-turbo/index.js"])

        assert evaluate(turbo_rule_set, context) == {"pkg: turbo-eslint"}

    def test_owned_by(self, turbo_rule_set: RuleSet) -> None:
        context = PRContext(
            changed_file_paths=["crates/turbopack/src/lib.rs"],
            file_owners={"crates/turbopack/src/lib.rs": frozenset({"@vercel/turbopack"})},
        )

        assert evaluate(turbo_rule_set, context) == {"owned-by: turbopack"}

    def test_no_match_is_empty(self, turbo_rule_set: RuleSet) -> None:
        assert evaluate(turbo_rule_set, PRContext(title="chore: bump deps")) == set()

    def test_vacuous_negation_on_empty_paths(self) -> None:
        rule_set = rule_set_from({"label": "no-files", "when": {"isNotAnyFilePathMatch": ".*"}})

        assert evaluate(rule_set, PRContext()) == {"no-files"}


class TestConditions:
    """AND / OR combination."""

    @pytest.fixture
    def context(self) -> PRContext:
        return PRContext(
            title="feat: new thing",
            author_login="kdy1",
            changed_file_paths=["crates/swc/src/lib.rs"],
        )

    def test_and_all_true(self, context: PRContext) -> None:
        rule_set = rule_set_from(
            {"label": "x", "when": {"isPRTitleMatch": "^feat", "isPRAuthorMatch": "kdy1"}}
        )

        assert evaluate(rule_set, context) == {"x"}

    @pytest.mark.parametrize("failing", ["isPRTitleMatch", "isPRAuthorMatch", "isAnyFilePathMatch"])
    def test_and_any_false_fails(self, context: PRContext, failing: str) -> None:
        when = {
            "isPRTitleMatch": "^feat",
            "isPRAuthorMatch": "kdy1",
            "isAnyFilePathMatch": r"^crates\/",
        }
        when[failing] = "^will-not-match$"

        result = RuleEvaluator(rule_set_from({"label": "x", "when": when})).evaluate(context)

        assert result.labels == set()
        assert f"{failing} failed" in result.results[0].reason

    @pytest.mark.parametrize("passing", ["isPRTitleMatch", "isPRAuthorMatch", "isAnyFilePathMatch"])
    def test_or_any_true_matches(self, context: PRContext, passing: str) -> None:
        when = {
            "isPRTitleMatch": "^will-not-match$",
            "isPRAuthorMatch": "^will-not-match$",
            "isAnyFilePathMatch": "^will-not-match$",
        }
        when[passing] = ".+"

        rule_set = rule_set_from({"label": "x", "condition": "OR", "when": when})

        assert evaluate(rule_set, context) == {"x"}

    def test_or_all_false(self, context: PRContext) -> None:
        rule_set = rule_set_from(
            {
                "label": "x",
                "condition": "OR",
                "when": {"isPRTitleMatch": "^fix", "isPRAuthorMatch": "^sokra$"},
            }
        )

        result = RuleEvaluator(rule_set).evaluate(context)

        assert result.labels == set()
        assert result.results[0].reason.startswith("no predicate matched")

    @pytest.mark.parametrize("condition", ["AND", "OR"])
    def test_single_predicate_condition_is_irrelevant(
        self, context: PRContext, condition: str
    ) -> None:
        matching = rule_set_from({"label": "x", "condition": condition, "when": {"isPRAuthorMatch": "kdy1"}})
        missing = rule_set_from({"label": "x", "condition": condition, "when": {"isPRAuthorMatch": "sokra"}})

        assert evaluate(matching, context) == {"x"}
        assert evaluate(missing, context) == set()

    def test_mixed_negation(self, context: PRContext) -> None:
        rule_set = rule_set_from(
            {
                "label": "needs: docs",
                "when": {"isPRTitleMatch": "^feat", "isNotAnyFilePathMatch": r"^docs\/"},
            }
        )

        assert evaluate(rule_set, context) == {"needs: docs"}


class TestRuleSet:
    """Rule set handle and engine properties."""

    def test_from_config(self, sample_config: dict[str, Any]) -> None:
        rule_set = RuleSet.from_config(parse_config(sample_config))

        assert len(rule_set) == 4
        assert rule_set.code_owners_path == ".github/CODEOWNERS"
        assert rule_set.labels[0] == "pkg: turbo-ignore"
        assert rule_set.rules[2].condition is Condition.AND

    def test_labels_union_across_rules(self) -> None:
        rule_set = rule_set_from(
            {"label": "dup", "when": {"isPRTitleMatch": "a"}},
            {"label": "dup", "when": {"isPRBodyMatch": "b"}},
            {"label": "other", "when": {"isPRBodyMatch": "b"}},
        )

        result = RuleEvaluator(rule_set).evaluate(PRContext(title="a", body="b"))

        assert result.labels == {"dup", "other"}
        assert result.rules_evaluated == 3
        assert len(result.matches) == 3
        assert rule_set.labels == ["dup", "other"]

    def test_independent_rule_sets(self) -> None:
        first = rule_set_from({"label": "one", "when": {"isPRTitleMatch": ".*"}})
        second = rule_set_from({"label": "two", "when": {"isPRTitleMatch": ".*"}})
        context = PRContext(title="t")

        assert evaluate(first, context) == {"one"}
        assert evaluate(second, context) == {"two"}

    def test_idempotent(self, turbo_rule_set: RuleSet, make_context: Callable[..., PRContext]) -> None:
        context = make_context(
            author_login="jridgewell",
            changed_file_paths=["docs/index.mdx", "packages/create-turbo/src/cli.ts"],
        )

        first = evaluate(turbo_rule_set, context)
        second = evaluate(turbo_rule_set, context)

        assert first == second == {"created-by: turbopack", "area: docs", "pkg: create-turbo"}

    def test_order_independent(self, turbo_config: Any) -> None:
        context = PRContext(
            author_login="tknickman",
            changed_file_paths=[
                ".github/actions/setup/action.yml",
                "packages/turbo-gen/src/index.ts",
                "docs/repo/index.mdx",
            ],
        )
        rules = turbo_config.labeler.labels
        expected = evaluate(RuleSet.from_rules(rules), context)

        for permutation in itertools.islice(itertools.permutations(rules), 50):
            assert evaluate(RuleSet.from_rules(permutation), context) == expected
        assert evaluate(RuleSet.from_rules(reversed(rules)), context) == expected

    def test_result_records_every_rule(self, turbo_rule_set: RuleSet) -> None:
        result = RuleEvaluator(turbo_rule_set).evaluate(PRContext())

        assert result.rules_evaluated == len(turbo_rule_set)
        assert not result.has_matches


class TestEvaluationErrors:
    """Predicate failures propagate."""

    def test_predicate_failure_raises(self) -> None:
        rule_set = RuleSet(
            rules=(
                CompiledRule(
                    label="boom",
                    condition=Condition.AND,
                    predicates=(ExplodingPredicate(),),
                ),
            )
        )

        with pytest.raises(EvaluationError) as exc_info:
            evaluate(rule_set, PRContext(title="x"))

        assert exc_info.value.label == "boom"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_failure_is_not_skipped_by_other_rules(self) -> None:
        rule_set = RuleSet(
            rules=(
                CompiledRule(
                    label="ok",
                    condition=Condition.AND,
                    predicates=(build_predicate("isPRTitleMatch", ".*"),),
                ),
                CompiledRule(
                    label="boom",
                    condition=Condition.OR,
                    predicates=(ExplodingPredicate(),),
                ),
            )
        )

        with pytest.raises(EvaluationError):
            RuleEvaluator(rule_set).evaluate(PRContext())
