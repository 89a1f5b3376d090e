"""Predicates for label rule ``when`` entries.

This module provides one predicate per context field:
- TextPredicate: Regex search on a string field (title, body, author, company)
- CollectionPredicate: Regex search on each element of a collection
  (changed file paths, file owners)
- Negate: Wrapper inverting another predicate, used for every ``isNot*`` name

Patterns use Python's ``re`` dialect with search semantics: a pattern matches
when it is found anywhere in the field, so anchors must be explicit.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from pr_orchestrator.config.schema import PredicateName

if TYPE_CHECKING:
    from pr_orchestrator.rules.context import PRContext


class Predicate(ABC):
    """Base class for rule predicates."""

    name: PredicateName

    @abstractmethod
    def matches(self, context: PRContext) -> tuple[bool, str]:
        """Check the predicate against a PR context.

        Args:
            context: PR snapshot to test.

        Returns:
            Tuple of (matched, reason).
        """
        ...


class TextPredicate(Predicate):
    """Predicate searching a pattern in a single string field."""

    def __init__(
        self,
        name: PredicateName,
        field: str,
        getter: Callable[[PRContext], str],
        pattern: re.Pattern[str],
    ) -> None:
        self.name = name
        self.field = field
        self._getter = getter
        self._pattern = pattern

    def matches(self, context: PRContext) -> tuple[bool, str]:
        value = self._getter(context)
        if self._pattern.search(value):
            return True, f"{self.field} {value!r} matches '{self._pattern.pattern}'"
        return False, f"{self.field} {value!r} doesn't match '{self._pattern.pattern}'"


class CollectionPredicate(Predicate):
    """Predicate true when at least one element of a collection matches.

    An empty collection never matches.
    """

    def __init__(
        self,
        name: PredicateName,
        field: str,
        getter: Callable[[PRContext], Iterable[str]],
        pattern: re.Pattern[str],
    ) -> None:
        self.name = name
        self.field = field
        self._getter = getter
        self._pattern = pattern

    def matches(self, context: PRContext) -> tuple[bool, str]:
        # Unordered collections are scanned in sorted order
        values = self._getter(context)
        if not isinstance(values, tuple | list):
            values = sorted(values)

        for value in values:
            if self._pattern.search(value):
                return True, f"{self.field} entry {value!r} matches '{self._pattern.pattern}'"

        if not values:
            return False, f"no {self.field} to match '{self._pattern.pattern}'"
        return False, f"no {self.field} entry matches '{self._pattern.pattern}'"


class Negate(Predicate):
    """Exact boolean negation of another predicate on the same context."""

    def __init__(self, name: PredicateName, predicate: Predicate) -> None:
        self.name = name
        self.predicate = predicate

    def matches(self, context: PRContext) -> tuple[bool, str]:
        matched, reason = self.predicate.matches(context)
        return not matched, f"not ({reason})"


# Positive predicate -> (field label, predicate class, field getter)
_PREDICATE_FIELDS: dict[PredicateName, tuple[str, type[Predicate], Callable[[PRContext], Any]]] = {
    PredicateName.IS_ANY_FILE_PATH_MATCH: (
        "changed file path",
        CollectionPredicate,
        lambda ctx: ctx.changed_file_paths,
    ),
    PredicateName.IS_PR_BODY_MATCH: ("body", TextPredicate, lambda ctx: ctx.body),
    PredicateName.IS_PR_TITLE_MATCH: ("title", TextPredicate, lambda ctx: ctx.title),
    PredicateName.IS_PR_AUTHOR_MATCH: ("author", TextPredicate, lambda ctx: ctx.author_login),
    PredicateName.IS_PR_AUTHOR_COMPANY_MATCH: (
        "author company",
        TextPredicate,
        lambda ctx: ctx.author_company,
    ),
    PredicateName.IS_ANY_FILE_OWNED_BY_MATCH: (
        "file owner",
        CollectionPredicate,
        lambda ctx: ctx.all_owners,
    ),
}


def build_predicate(name: PredicateName | str, pattern: str | re.Pattern[str]) -> Predicate:
    """Build the predicate for a ``when`` entry.

    Args:
        name: Predicate name (enum member or its string value).
        pattern: Regex source or compiled pattern.

    Returns:
        Predicate instance; ``isNot*`` names are wrapped in Negate.

    Raises:
        ValueError: If the name is unknown.
        re.error: If the pattern does not compile.
    """
    name = PredicateName(name)
    compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)

    positive = name.positive
    field, factory, getter = _PREDICATE_FIELDS[positive]
    predicate = factory(positive, field, getter, compiled)

    if name.is_negated:
        return Negate(name, predicate)
    return predicate
