"""
Confidence scoring for extraction and normalization outputs.

Field-level scores are on a 0-1 scale and feed the provenance report.
The record-level score is on a 0-100 scale and drives reviewer approval.
"""

from typing import TYPE_CHECKING, Sequence

from family_activities.schemas.extraction import (
    FieldValidationResult,
    MappingKind,
    ValidationStatus,
)

if TYPE_CHECKING:
    from family_activities.schemas.activity import CanonicalActivity

DEFAULT_TITLE = "Untitled Event"

# Base confidence per mapping kind
MAPPING_KIND_CONFIDENCE: dict[MappingKind, float] = {
    MappingKind.DIRECT: 0.9,
    MappingKind.FALLBACK: 0.7,
    MappingKind.DERIVED: 0.6,
    MappingKind.DEFAULT: 0.3,
}

# Multiplier applied instead of the validator's confidence when it rejects the field
INVALID_FIELD_FACTOR = 0.5

# Record-level penalties
MISSING_TITLE_PENALTY = 30
MISSING_DESCRIPTION_PENALTY = 10
MISSING_LOCATION_PENALTY = 20
MISSING_START_DATE_PENALTY = 15
ISSUE_PENALTY = 5

# Weights for extraction_quality_score
_QUALITY_WEIGHTS = {
    "title": 0.3,
    "location": 0.25,
    "schedule": 0.2,
    "pricing": 0.15,
    "description": 0.1,
}


def field_confidence(kind: MappingKind, validation: FieldValidationResult) -> float:
    """
    Confidence for one resolved field.

    Args:
        kind: How the value was obtained
        validation: Result of the field's validator

    Returns:
        Base confidence for ``kind`` times the validator's confidence, or
        times 0.5 when the validator rejected the value. In [0.0, 1.0].
    """
    base = MAPPING_KIND_CONFIDENCE[MappingKind(kind)]
    factor = validation.confidence if validation.is_valid else INVALID_FIELD_FACTOR
    return round(max(0.0, min(1.0, base * factor)), 4)


def validation_status(validation: FieldValidationResult) -> ValidationStatus:
    """Map a validator result onto the provenance status."""
    if validation.confidence <= 0:
        return ValidationStatus.NOT_VALIDATED
    if validation.is_valid:
        return ValidationStatus.VALID
    if validation.confidence > 0.5:
        return ValidationStatus.WARNING
    return ValidationStatus.INVALID


def conversion_confidence(activity: "CanonicalActivity", issues: Sequence[str]) -> float:
    """
    Overall 0-100 score for one converted record.

    Fixed penalties for a missing or defaulted title, missing description,
    location name and start date, then 5 points per recorded issue.
    """
    score = 100.0
    if not activity.title or activity.title == DEFAULT_TITLE:
        score -= MISSING_TITLE_PENALTY
    if not activity.description:
        score -= MISSING_DESCRIPTION_PENALTY
    if not activity.location.name:
        score -= MISSING_LOCATION_PENALTY
    if not activity.schedule.start_date:
        score -= MISSING_START_DATE_PENALTY
    score -= ISSUE_PENALTY * len(issues)
    return max(0.0, score)


def extraction_quality_score(activities: Sequence["CanonicalActivity"]) -> float:
    """
    Weighted completeness averaged over a batch of records.

    Title 0.3, location name 0.25, start date or time 0.2, pricing type or
    description 0.15, description longer than 10 characters 0.1.

    Returns:
        Score in [0.0, 1.0]; 0.0 for an empty batch
    """
    if not activities:
        return 0.0

    total = 0.0
    for activity in activities:
        score = 0.0
        if activity.title:
            score += _QUALITY_WEIGHTS["title"]
        if activity.location.name:
            score += _QUALITY_WEIGHTS["location"]
        if activity.schedule.start_date or activity.schedule.start_time:
            score += _QUALITY_WEIGHTS["schedule"]
        if activity.pricing.type or activity.pricing.description:
            score += _QUALITY_WEIGHTS["pricing"]
        if len(activity.description) > 10:
            score += _QUALITY_WEIGHTS["description"]
        total += score

    return round(total / len(activities), 4)
