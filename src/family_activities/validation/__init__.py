"""
Record validation and confidence scoring.
"""

from .confidence import (
    conversion_confidence,
    extraction_quality_score,
    field_confidence,
    validation_status,
)
from .validator import RecordValidator, ValidationMode

__all__ = [
    "RecordValidator",
    "ValidationMode",
    "conversion_confidence",
    "extraction_quality_score",
    "field_confidence",
    "validation_status",
]
