"""Pull request context snapshot evaluated by the label rules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PRContext(BaseModel):
    """Immutable snapshot of the PR fields the predicates read.

    Built fresh for every incoming PR event and discarded after evaluation.
    Missing fields are not an error: strings default to ``""`` and
    collections to empty, so predicates simply fail to match unless the
    pattern matches empty content.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str = Field(default="", description="PR title")
    body: str = Field(default="", description="PR description")
    author_login: str = Field(default="", description="Login of the PR author")
    author_company: str = Field(default="", description="Company listed on the author's profile")
    changed_file_paths: tuple[str, ...] = Field(
        default=(),
        description="Paths touched by the PR diff, in diff order",
    )
    file_owners: dict[str, frozenset[str]] = Field(
        default_factory=dict,
        description="Changed path -> owner handles resolved from CODEOWNERS",
    )

    @field_validator("title", "body", "author_login", "author_company", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """GitHub sends ``null`` for an empty body or company."""
        return "" if v is None else v

    @field_validator("changed_file_paths", mode="before")
    @classmethod
    def none_as_no_paths(cls, v: Any) -> Any:
        """Treat ``null`` as no changed files."""
        return () if v is None else v

    @field_validator("file_owners", mode="before")
    @classmethod
    def normalize_owners(cls, v: Any) -> Any:
        """Treat ``null`` as no ownership data and a single handle as a one-item set."""
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {
                path: [handles] if isinstance(handles, str) else handles
                for path, handles in v.items()
            }
        return v

    @property
    def all_owners(self) -> frozenset[str]:
        """Union of every owner handle across the changed files."""
        owners: set[str] = set()
        for handles in self.file_owners.values():
            owners.update(handles)
        return frozenset(owners)

    @property
    def display_name(self) -> str:
        """Short human-readable description used in logs."""
        if self.author_login:
            return f"'{self.title}' by {self.author_login}"
        return f"'{self.title}'"

    @classmethod
    def from_github_payload(
        cls,
        payload: Mapping[str, Any],
        files: Iterable[str] | None = None,
        owners: Mapping[str, Iterable[str] | str] | None = None,
    ) -> PRContext:
        """Normalize a GitHub ``pull_request`` webhook payload.

        Accepts either the full webhook body (with a ``pull_request`` key) or
        the pull request object itself.

        Args:
            payload: Webhook payload or pull request object.
            files: Changed file paths, as fetched from the PR files endpoint.
            owners: Optional path -> owner handles mapping.

        Returns:
            Normalized PRContext.

        Raises:
            ValueError: If the pull request or its user is not an object, or
                the files or owners do not validate.
        """
        pull_request = payload.get("pull_request", payload)
        if not isinstance(pull_request, Mapping):
            msg = f"pull_request must be an object, got {type(pull_request).__name__}"
            raise ValueError(msg)
        user = pull_request.get("user") or {}
        if not isinstance(user, Mapping):
            msg = f"pull_request.user must be an object, got {type(user).__name__}"
            raise ValueError(msg)

        return cls(
            title=pull_request.get("title"),
            body=pull_request.get("body"),
            author_login=user.get("login"),
            author_company=user.get("company"),
            changed_file_paths=files,
            file_owners=owners,
        )
