"""Data models for structured tagging."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .config import CORE_FIELDS

FIELD_KEY_RE = re.compile(r"^[a-z_]+$")

FieldValue = Union[str, list[str]]


class NormalizedRecord(BaseModel):
    """Extraction result after validation and shaping.

    Core fields are named attributes; anything else lives in ``extended``.
    Fields the model did not return stay ``None`` (or absent from
    ``extended``) instead of being defaulted.
    """

    institution: Optional[str] = None
    method_name: Optional[list[str]] = None
    research_content: Optional[list[str]] = None
    research_type: Optional[str] = None
    robot_name: Optional[list[str]] = None
    robot_type: Optional[list[str]] = None
    task: Optional[list[str]] = None
    extended: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("extended")
    @classmethod
    def _extended_keys_are_field_keys(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for key in value:
            if key in CORE_FIELDS:
                raise ValueError(f"core field '{key}' cannot be an extended field")
            if not FIELD_KEY_RE.match(key):
                raise ValueError(f"extended field key must match [a-z_]+: {key!r}")
        return value

    def items(self) -> Iterator[tuple[str, FieldValue]]:
        """Yield populated fields: core fields in fixed order, then extended."""
        for name in CORE_FIELDS:
            value = getattr(self, name)
            if value:
                yield name, value
        for name, values in self.extended.items():
            if values:
                yield name, values

    def to_dict(self) -> dict[str, FieldValue]:
        """Flat mapping of populated fields, in write order."""
        return dict(self.items())

    def is_empty(self) -> bool:
        """True when nothing usable survived normalization."""
        return next(self.items(), None) is None


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DocumentOutcome:
    """Result of processing one document.

    Attributes:
        document_id: Document key
        status: succeeded / skipped / failed
        reason: Why the document was skipped or failed
        tags_added: Tags newly attached to the document
        record: The normalized record that was written
    """

    document_id: str
    status: OutcomeStatus
    reason: Optional[str] = None
    tags_added: list[str] = field(default_factory=list)
    record: Optional[NormalizedRecord] = None

    @classmethod
    def ok(
        cls,
        document_id: str,
        record: NormalizedRecord,
        tags_added: Optional[list[str]] = None,
    ) -> "DocumentOutcome":
        return cls(
            document_id=document_id,
            status=OutcomeStatus.SUCCEEDED,
            record=record,
            tags_added=tags_added or [],
        )

    @classmethod
    def skip(cls, document_id: str, reason: str) -> "DocumentOutcome":
        return cls(document_id=document_id, status=OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def fail(cls, document_id: str, reason: str) -> "DocumentOutcome":
        return cls(document_id=document_id, status=OutcomeStatus.FAILED, reason=reason)


@dataclass
class BatchSummary:
    """Aggregate result of a batch run."""

    outcomes: list[DocumentOutcome] = field(default_factory=list)

    def add(self, outcome: DocumentOutcome) -> None:
        self.outcomes.append(outcome)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(OutcomeStatus.SUCCEEDED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    def as_dict(self) -> dict[str, int]:
        return {
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
        }
