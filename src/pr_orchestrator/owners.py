"""CODEOWNERS parsing and ownership resolution.

Builds the ``file_owners`` mapping consumed by ``isAnyFileOwnedByMatch``.
The rule evaluator never reads CODEOWNERS itself; callers resolve ownership
here (using the ``codeOwnersPath`` setting) and pass the result in the
PR context.

Pattern semantics follow GitHub's CODEOWNERS rules:
- Later lines take precedence over earlier ones
- A leading ``/`` (or any ``/`` before the last character) anchors the
  pattern to the repository root; otherwise it matches at any depth
- A trailing ``/`` matches everything under a directory
- A wildcard in the last segment matches files in that directory only
- ``*`` matches within one path segment, ``**`` across segments
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class CodeOwnersError(Exception):
    """Raised when a CODEOWNERS file cannot be read."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize CodeOwnersError.

        Args:
            message: Error description
            path: Path to the CODEOWNERS file
        """
        self.path = path
        super().__init__(message)


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a CODEOWNERS path pattern into a regex.

    Args:
        pattern: Pattern as written in CODEOWNERS.

    Returns:
        Compiled regex matched against repository-relative paths.
    """
    anchored = pattern.startswith("/") or "/" in pattern.rstrip("/")
    body = pattern.strip("/")
    directory_only = pattern.endswith("/")

    parts: list[str] = []
    i = 0
    while i < len(body):
        if body.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif body.startswith("**", i):
            parts.append(".*")
            i += 2
        elif body[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif body[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(body[i]))
            i += 1

    if not body:
        # A bare "/" covers the whole repository
        return re.compile(".*")

    prefix = "^" if anchored else "^(?:.*/)?"
    last_segment = body.rsplit("/", 1)[-1]
    if directory_only:
        suffix = "/.*$"
    elif ("*" in last_segment or "?" in last_segment) and not last_segment.endswith("**"):
        # A wildcard in the last segment matches files, not directories below them
        suffix = "$"
    else:
        suffix = "(?:/.*)?$"
    return re.compile(prefix + "".join(parts) + suffix)


@dataclass(frozen=True)
class OwnershipRule:
    """One CODEOWNERS line."""

    pattern: str
    owners: tuple[str, ...]
    regex: re.Pattern[str]
    line: int

    def matches(self, path: str) -> bool:
        """Check if a repository-relative path is covered by this rule."""
        return bool(self.regex.match(path.lstrip("/")))


class CodeOwners:
    """Parsed CODEOWNERS file."""

    def __init__(self, rules: list[OwnershipRule]) -> None:
        self._rules = rules

    @property
    def rules(self) -> list[OwnershipRule]:
        return list(self._rules)

    @classmethod
    def parse(cls, text: str) -> CodeOwners:
        """Parse CODEOWNERS content.

        Blank lines and ``#`` comments are ignored, as is anything after an
        unescaped ``#`` on a rule line. A pattern with no owners is kept:
        it clears ownership for matching paths.

        Args:
            text: File content.

        Returns:
            CodeOwners instance.
        """
        rules: list[OwnershipRule] = []
        for lineno, raw_line in enumerate(text.splitlines(), start=1):
            line = re.split(r"(?<!\\)#", raw_line, maxsplit=1)[0].strip()
            if not line:
                continue

            pattern, *owners = line.split()
            pattern = pattern.replace("\\#", "#")
            rules.append(
                OwnershipRule(
                    pattern=pattern,
                    owners=tuple(owners),
                    regex=pattern_to_regex(pattern),
                    line=lineno,
                )
            )

        logger.debug("Parsed %d CODEOWNERS rules", len(rules))
        return cls(rules)

    @classmethod
    def from_file(cls, path: str | Path) -> CodeOwners:
        """Read and parse a CODEOWNERS file.

        Raises:
            CodeOwnersError: If the file cannot be read.
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Cannot read CODEOWNERS file: {e}"
            raise CodeOwnersError(msg, path) from e
        return cls.parse(content)

    def owners_for(self, path: str) -> frozenset[str]:
        """Owners of a path; the last matching rule wins.

        Args:
            path: Repository-relative file path.

        Returns:
            Owner handles (empty if unowned).
        """
        for rule in reversed(self._rules):
            if rule.matches(path):
                return frozenset(rule.owners)
        return frozenset()

    def resolve(self, paths: Iterable[str]) -> dict[str, frozenset[str]]:
        """Build the ``file_owners`` mapping for a set of changed paths."""
        return {path: self.owners_for(path) for path in paths}
