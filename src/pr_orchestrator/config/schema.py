"""Pydantic schema models for the orchestrator document.

This module defines the models the YAML document is validated against:
- Config: Top-level container (labeler + events)
- LabelerConfig: Labeler settings and label rules
- LabelerSettings: Settings handed to external collaborators
- LabelRule: A label with its predicate mapping
- WorkflowAction: A workflow to run when an event fires

Keys in the document are camelCase (``codeOwnersPath``, ``runWorkflow``);
models expose snake_case attributes and accept both spellings.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

DEFAULT_CODEOWNERS_PATH = ".github/CODEOWNERS"


class PredicateName(str, Enum):
    """Predicates available in a rule's ``when`` mapping.

    Every positive predicate has an ``isNot*`` counterpart evaluated as its
    exact negation on the same field.
    """

    IS_ANY_FILE_PATH_MATCH = "isAnyFilePathMatch"
    IS_PR_BODY_MATCH = "isPRBodyMatch"
    IS_PR_TITLE_MATCH = "isPRTitleMatch"
    IS_PR_AUTHOR_MATCH = "isPRAuthorMatch"
    IS_PR_AUTHOR_COMPANY_MATCH = "isPRAuthorCompanyMatch"
    IS_ANY_FILE_OWNED_BY_MATCH = "isAnyFileOwnedByMatch"
    IS_NOT_ANY_FILE_PATH_MATCH = "isNotAnyFilePathMatch"
    IS_NOT_PR_BODY_MATCH = "isNotPRBodyMatch"
    IS_NOT_PR_TITLE_MATCH = "isNotPRTitleMatch"
    IS_NOT_PR_AUTHOR_MATCH = "isNotPRAuthorMatch"
    IS_NOT_PR_AUTHOR_COMPANY_MATCH = "isNotPRAuthorCompanyMatch"
    IS_NOT_ANY_FILE_OWNED_BY_MATCH = "isNotAnyFileOwnedByMatch"

    @property
    def is_negated(self) -> bool:
        """True for the ``isNot*`` variants."""
        return self.value.startswith("isNot")

    @property
    def positive(self) -> PredicateName:
        """The positive predicate this one negates (itself if positive)."""
        if not self.is_negated:
            return self
        return PredicateName("is" + self.value[len("isNot"):])


# Spelling used by the upstream documentation table for the negated owner predicate
PREDICATE_ALIASES: dict[str, str] = {
    "isNotAnyFileOwnerByMatch": PredicateName.IS_NOT_ANY_FILE_OWNED_BY_MATCH.value,
}


class Condition(str, Enum):
    """How the predicates of a rule are combined."""

    AND = "AND"
    OR = "OR"


class LabelerSettings(BaseModel):
    """Labeler settings.

    Attributes:
        code_owners_path: Location of the CODEOWNERS file used by the
            ownership resolver. The evaluator carries it but never reads it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    code_owners_path: Annotated[str, Field(min_length=1, alias="codeOwnersPath")] = (
        DEFAULT_CODEOWNERS_PATH
    )


class LabelRule(BaseModel):
    """A label and the predicates deciding whether it applies.

    Attributes:
        label: Label name applied to the PR when the rule matches
        condition: AND (default) or OR
        when: Predicate name -> regular expression
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    label: Annotated[str, Field(min_length=1)]
    condition: Condition = Condition.AND
    when: Annotated[dict[PredicateName, str], Field(min_length=1)]

    @field_validator("condition", mode="before")
    @classmethod
    def normalize_condition(cls, v: Any) -> Any:
        """Accept lowercase ``and``/``or``."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("when", mode="before")
    @classmethod
    def normalize_predicate_names(cls, v: Any) -> Any:
        """Map documented predicate aliases onto their canonical names."""
        if not isinstance(v, dict):
            return v
        normalized: dict[str, Any] = {}
        for k, pattern in v.items():
            canonical = PREDICATE_ALIASES.get(k, k)
            if canonical in normalized:
                msg = f"duplicate predicate {canonical} (alias {k})"
                raise ValueError(msg)
            normalized[canonical] = pattern
        return normalized

    @model_validator(mode="after")
    def validate_patterns(self) -> LabelRule:
        """Compile every pattern so bad regexes fail at load time."""
        for name, pattern in self.when.items():
            try:
                re.compile(pattern)
            except re.error as e:
                msg = f"rule '{self.label}': invalid regex for {name.value} ({pattern!r}): {e}"
                raise ValueError(msg) from e
        return self


class WorkflowAction(BaseModel):
    """Workflow run bound to an event.

    Attributes:
        run_workflow: Workflow identifier (e.g. ``bench-turborepo.yml``)
        when: ``any`` fires whenever the scoped package is part of the event,
            ``all`` only when the event concerns the scoped package alone
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    run_workflow: Annotated[str, Field(min_length=1, alias="runWorkflow")]
    when: Literal["any", "all"] = "any"


class LabelerConfig(BaseModel):
    """The ``labeler`` section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    settings: LabelerSettings = Field(default_factory=LabelerSettings)
    labels: list[LabelRule] = Field(default_factory=list)


class Config(BaseModel):
    """Top-level document loaded from YAML.

    Attributes:
        labeler: Labeler settings and rules
        events: Event name -> scope key -> ordered workflow actions
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    labeler: LabelerConfig = Field(default_factory=LabelerConfig)
    events: dict[str, dict[str, list[WorkflowAction]]] = Field(default_factory=dict)

    @field_validator("events", mode="before")
    @classmethod
    def allow_empty_events(cls, v: Any) -> Any:
        """Treat an empty ``events:`` key as no bindings."""
        return {} if v is None else v

    @property
    def code_owners_path(self) -> str:
        """Shortcut for ``labeler.settings.code_owners_path``."""
        return self.labeler.settings.code_owners_path

    def get_label_names(self) -> list[str]:
        """Return the distinct label names in document order."""
        return list(dict.fromkeys(rule.label for rule in self.labeler.labels))
