"""
Family activity extraction and normalization.

Turns unstructured page text into structured activity records and
reconciles loosely-shaped extracted JSON into one canonical schema, with
provenance for every field decision.
"""

from family_activities.exceptions import (
    ActivityExtractionError,
    InvalidPayloadError,
    PayloadShapeError,
    UnknownSchemaTypeError,
)
from family_activities.ingestion.pipeline import (
    ExtractionPipeline,
    extract,
    extract_and_normalize,
    normalize,
)

__version__ = "0.1.0"

__all__ = [
    "ActivityExtractionError",
    "ExtractionPipeline",
    "InvalidPayloadError",
    "PayloadShapeError",
    "UnknownSchemaTypeError",
    "extract",
    "extract_and_normalize",
    "normalize",
]
