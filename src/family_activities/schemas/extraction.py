"""
Models for partial extraction records and normalization reports.

ExtractedEvent is what the field extractor produces from one text block.
FieldMapping, ConversionIssue and ConversionDiagnostics together form the
provenance report handed to reviewer tooling alongside a CanonicalActivity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from family_activities.schemas.activity import AgeCategory, CanonicalActivity

# =============================================================================
# PARTIAL RECORDS
# =============================================================================


class ExtractedEvent(BaseModel):
    """
    Partial record pulled out of one text block.

    Every field except ``title`` may be empty; absence is judged later by the
    validator, not here.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    date_text: str = ""
    time_text: str = ""
    location_text: str = ""
    price_text: str = ""
    age_group_tags: FrozenSet[AgeCategory] = Field(default_factory=frozenset)
    raw_block_text: str = ""

    def ordered_age_tags(self) -> List[AgeCategory]:
        """Age tags in canonical youngest-first order."""
        return [category for category in AgeCategory if category in self.age_group_tags]

    def to_payload(self) -> Dict[str, Any]:
        """
        Convert to a JSON-like item keyed the way the normalizer expects.

        Empty fields are left out so they resolve as missing rather than as
        blank values.
        """
        payload: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "date": self.date_text,
            "time": self.time_text,
            "location": self.location_text,
            "price": self.price_text,
        }
        payload = {k: v for k, v in payload.items() if v}
        tags = self.ordered_age_tags()
        if tags:
            payload["age_groups"] = [tag.value for tag in tags]
        return payload


# =============================================================================
# VALIDATION RESULTS
# =============================================================================


@dataclass
class ValidationResult:
    """Whole-record score. Confidence is on a 0-100 scale."""

    is_valid: bool = True
    confidence: float = 100.0
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class FieldValidationResult:
    """Single-field check. Confidence is on a 0-1 scale."""

    is_valid: bool = False
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def suggestion_text(self) -> str:
        return "; ".join(self.suggestions)


# =============================================================================
# PROVENANCE
# =============================================================================


class MappingKind(str, Enum):
    """How a target field's value was obtained."""

    DIRECT = "direct"
    FALLBACK = "fallback"
    DERIVED = "derived"
    DEFAULT = "default"


class ValidationStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    INVALID = "invalid"
    NOT_VALIDATED = "not_validated"


NOT_FOUND = "not_found"
DERIVED_SOURCE = "derived"
DEFAULT_SOURCE = "default"


class FieldMapping(BaseModel):
    """
    Provenance entry for one target field.

    ``source_field`` is the alias that supplied the value, or one of
    ``not_found`` / ``derived`` / ``default``.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    target_field: str
    source_field: str
    attempted_source_fields: List[str] = Field(default_factory=list)
    mapping_kind: MappingKind
    confidence: float = Field(ge=0.0, le=1.0)
    validation_status: ValidationStatus = ValidationStatus.NOT_VALIDATED


class IssueType(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_FORMAT = "invalid_format"
    LOW_CONFIDENCE = "low_confidence"
    DATA_QUALITY = "data_quality"
    VALIDATION_ERROR = "validation_error"


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ConversionIssue(BaseModel):
    """A data-quality problem paired with a suggestion for fixing the source."""

    model_config = ConfigDict(use_enum_values=True)

    type: IssueType
    field: str
    message: str
    suggestion: str = ""
    raw_value: Optional[str] = None
    severity: IssueSeverity = IssueSeverity.WARNING


class ConversionDiagnostics(BaseModel):
    """
    Debugging detail for one normalization run.
    """

    schema_type: str
    source_url: str
    raw_data_structure: Dict[str, str] = Field(default_factory=dict)
    resolved_array_key: Optional[str] = None
    alternative_arrays: List[str] = Field(default_factory=list)
    items_found: int = 0
    items_skipped: int = 0
    items_not_converted: int = 0
    conversion_issues: List[ConversionIssue] = Field(default_factory=list)
    processing_time_ms: float = 0.0
    # Whole-record scores attached by the pipeline
    event_validation: Optional[ValidationResult] = None
    record_validation: Optional[ValidationResult] = None


class NormalizationResult(BaseModel):
    """
    Outcome of converting one payload item.

    ``record`` is None when the payload held no items, which is a valid
    "nothing found" outcome rather than an error.
    """

    record: Optional[CanonicalActivity] = None
    confidence: float = Field(default=0.0, ge=0.0, le=100.0)
    issues: List[str] = Field(default_factory=list)
    field_mappings: Dict[str, FieldMapping] = Field(default_factory=dict)
    diagnostics: ConversionDiagnostics

    @property
    def can_approve(self) -> bool:
        """Reviewer shortcut: clean conversions above the halfway mark."""
        checked = self.diagnostics.record_validation
        if checked is not None and not checked.is_valid:
            return False
        return self.record is not None and not self.issues and self.confidence > 50

    def to_dict(self) -> Dict[str, Any]:
        """Nested key/value report for reviewer tooling."""
        return {
            "record": self.record.model_dump(mode="json") if self.record else None,
            "confidence": self.confidence,
            "issues": list(self.issues),
            "field_mappings": {
                name: mapping.model_dump(mode="json")
                for name, mapping in self.field_mappings.items()
            },
            "diagnostics": self.diagnostics.model_dump(mode="json"),
        }

    def to_preview(self) -> Dict[str, Any]:
        """Approval preview: record, issues and provenance with a verdict."""
        report = self.to_dict()
        return {
            "activity": report["record"],
            "issues": report["issues"],
            "field_mappings": report["field_mappings"],
            "confidence_score": self.confidence,
            "can_approve": self.can_approve,
        }
