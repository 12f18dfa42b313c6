"""Request and report records exchanged with callers.

All records are frozen and use tuples for their collections. Serialized
field names are camelCase (`sourceFile`, `downstreamFiles`, ...), which is
the shape presentation and editor layers consume.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from impactscope.confidence.models import ConfidenceResult
from impactscope.exceptions import InvalidRequestError

_RECORD_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ChangeRequest(BaseModel):
    """One file's before/after text inside a project."""

    model_config = _RECORD_CONFIG

    file: str
    before: str
    after: str
    project_root: str

    @field_validator("file", "project_root")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @classmethod
    def from_data(cls, data: dict) -> ChangeRequest:
        """Validate raw input, raising `InvalidRequestError` on bad fields."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid change request: {e}") from e


class IssueType(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    DOWNSTREAM = "downstream"
    TEST = "test"


class ImpactIssue(BaseModel):
    model_config = _RECORD_CONFIG

    type: IssueType
    target: str


class ImpactReport(BaseModel):
    """What changed in one file and what else it touches."""

    model_config = _RECORD_CONFIG

    source_file: str
    functions: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    downstream_files: tuple[str, ...] = ()
    tests: tuple[str, ...] = ()
    issues: tuple[ImpactIssue, ...] = ()

    @classmethod
    def empty(cls, source_file: str) -> ImpactReport:
        return cls(source_file=source_file)

    @property
    def is_empty(self) -> bool:
        return not (
            self.functions or self.classes or self.downstream_files or self.tests or self.issues
        )

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


class ImpactAnalysisResult(BaseModel):
    """Report plus confidence score, ready for presentation layers."""

    model_config = _RECORD_CONFIG

    file_path: str
    report: ImpactReport
    confidence: ConfidenceResult
    risk_level: str
    has_actual_changes: bool

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
