"""
Record validator and per-field checks.

Two scoring modes share one entry point:

- PRE_CONVERSION scores an ExtractedEvent (or a mapping with the same keys)
  before it is normalized.
- POST_CONVERSION scores a CanonicalActivity.

Both start at 100 and deduct fixed weights. Only a missing title (and, after
conversion, a missing location name) makes a record invalid; everything else
lowers the score and adds a warning, so sparse records still flow through.

The ``validate_*`` methods check single fields for the normalizer and return
a FieldValidationResult on a 0-1 scale.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Union

from family_activities.ingestion.normalization.dates import (
    is_clock_time,
    is_parseable_date,
    is_parseable_time,
    parse_date,
)
from family_activities.schemas.activity import CanonicalActivity, LocationInfo, PricingInfo, Schedule
from family_activities.schemas.extraction import (
    ExtractedEvent,
    FieldValidationResult,
    ValidationResult,
)
from family_activities.validation.confidence import DEFAULT_TITLE

logger = logging.getLogger(__name__)


class ValidationMode(str, Enum):
    PRE_CONVERSION = "pre_conversion"
    POST_CONVERSION = "post_conversion"


# Pre-conversion deductions
_PRE_WEIGHTS = {
    "missing_title": 50,
    "short_title": 10,
    "long_title": 5,
    "missing_description": 15,
    "short_description": 10,
    "missing_date": 20,
    "invalid_date": 10,
    "missing_time": 15,
    "invalid_time": 5,
    "missing_location": 25,
    "brief_location": 10,
    "missing_price": 10,
    "missing_age_groups": 10,
}

# Post-conversion deductions
_POST_WEIGHTS = {
    "missing_title": 50,
    "missing_location_name": 30,
    "missing_type": 10,
    "missing_category": 10,
    "missing_start_date": 20,
    "missing_start_time": 15,
    "missing_age_groups": 10,
    "missing_pricing_type": 5,
    "missing_source_url": 5,
    "missing_source_domain": 5,
}

EventLike = Union[ExtractedEvent, Mapping[str, Any]]
ActivityLike = Union[CanonicalActivity, Mapping[str, Any]]


class RecordValidator:
    """
    Scores records for completeness and checks individual fields.
    """

    def __init__(self, reference_date: Optional[date] = None):
        """
        Args:
            reference_date: "Today" for past-date checks. Defaults to the
                current UTC date at call time.
        """
        self.reference_date = reference_date

    # =========================================================================
    # Record scoring
    # =========================================================================

    def validate(
        self,
        record: Union[EventLike, ActivityLike],
        mode: ValidationMode = ValidationMode.PRE_CONVERSION,
    ) -> ValidationResult:
        """
        Score a record.

        Args:
            record: ExtractedEvent / mapping for PRE_CONVERSION,
                CanonicalActivity / mapping for POST_CONVERSION
            mode: Which rule set to apply

        Returns:
            ValidationResult with a 0-100 confidence
        """
        if ValidationMode(mode) == ValidationMode.POST_CONVERSION:
            result = self._validate_activity(record)
        else:
            result = self._validate_event(record)

        result.confidence = max(0.0, result.confidence)
        logger.debug(
            f"Validation ({ValidationMode(mode).value}) completed: valid={result.is_valid}, "
            f"confidence={result.confidence:.1f}, issues={len(result.issues)}, "
            f"warnings={len(result.warnings)}"
        )
        return result

    def _validate_event(self, record: EventLike) -> ValidationResult:
        fields = self._event_fields(record)
        result = ValidationResult()
        w = _PRE_WEIGHTS

        title = fields["title"]
        if not title:
            result.issues.append("Title is required")
            result.is_valid = False
            result.confidence -= w["missing_title"]
        elif len(title) < 3:
            result.warnings.append("Title is very short")
            result.confidence -= w["short_title"]
        elif len(title) > 100:
            result.warnings.append("Title is very long")
            result.confidence -= w["long_title"]

        description = fields["description"]
        if not description:
            result.warnings.append("No description provided")
            result.confidence -= w["missing_description"]
        elif len(description) < 10:
            result.warnings.append("Description is very short")
            result.confidence -= w["short_description"]

        date_text = fields["date"]
        if not date_text:
            result.warnings.append("No date information")
            result.confidence -= w["missing_date"]
        elif not is_parseable_date(date_text):
            result.warnings.append("Date format may be invalid")
            result.confidence -= w["invalid_date"]

        time_text = fields["time"]
        if not time_text:
            result.warnings.append("No time information")
            result.confidence -= w["missing_time"]
        elif not is_parseable_time(time_text):
            result.warnings.append("Time format may be invalid")
            result.confidence -= w["invalid_time"]

        location = fields["location"]
        if not location:
            result.warnings.append("No location information")
            result.confidence -= w["missing_location"]
        elif len(location) < 3:
            result.warnings.append("Location information is very brief")
            result.confidence -= w["brief_location"]

        if not fields["price"]:
            result.warnings.append("No pricing information")
            result.confidence -= w["missing_price"]

        if not fields["age_groups"]:
            result.warnings.append("No age group information")
            result.confidence -= w["missing_age_groups"]

        return result

    def _validate_activity(self, record: ActivityLike) -> ValidationResult:
        if isinstance(record, CanonicalActivity):
            data = record.model_dump(mode="json")
        else:
            data = dict(record)
        result = ValidationResult()
        w = _POST_WEIGHTS

        location = data.get("location") or {}
        schedule = data.get("schedule") or {}
        pricing = data.get("pricing") or {}
        source = data.get("source") or {}

        if not data.get("title"):
            result.issues.append("Activity title is required")
            result.is_valid = False
            result.confidence -= w["missing_title"]

        if not location.get("name"):
            result.issues.append("Activity location name is required")
            result.is_valid = False
            result.confidence -= w["missing_location_name"]

        checks = [
            (data.get("type"), "Activity type not set", "missing_type"),
            (data.get("category"), "Activity category not set", "missing_category"),
            (schedule.get("start_date"), "No start date specified", "missing_start_date"),
            (schedule.get("start_time"), "No start time specified", "missing_start_time"),
            (data.get("age_groups"), "No age groups specified", "missing_age_groups"),
            (pricing.get("type"), "Pricing type not specified", "missing_pricing_type"),
            (source.get("url"), "No source URL", "missing_source_url"),
            (source.get("domain"), "No source domain", "missing_source_domain"),
        ]
        for value, message, weight in checks:
            if not value:
                result.warnings.append(message)
                result.confidence -= w[weight]

        return result

    @staticmethod
    def _event_fields(record: EventLike) -> dict[str, Any]:
        if isinstance(record, ExtractedEvent):
            return {
                "title": record.title.strip(),
                "description": record.description.strip(),
                "date": record.date_text.strip(),
                "time": record.time_text.strip(),
                "location": record.location_text.strip(),
                "price": record.price_text.strip(),
                "age_groups": record.age_group_tags,
            }

        def text(*keys: str) -> str:
            for key in keys:
                value = record.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
            return ""

        return {
            "title": text("title"),
            "description": text("description"),
            "date": text("date_text", "date"),
            "time": text("time_text", "time"),
            "location": text("location_text", "location"),
            "price": text("price_text", "price"),
            "age_groups": record.get("age_group_tags") or record.get("age_groups"),
        }

    # =========================================================================
    # Field checks
    # =========================================================================

    def today(self) -> date:
        return self.reference_date or datetime.now(timezone.utc).date()

    @staticmethod
    def validate_title(title: str) -> FieldValidationResult:
        result = FieldValidationResult()
        if not title or title == DEFAULT_TITLE:
            result.issues.append("Title is missing or using default value")
            result.suggestions.append("Provide a descriptive title for the activity")
            result.confidence = 0.1
            return result

        if len(title) < 5:
            result.issues.append("Title is very short")
            result.suggestions.append("Consider a more descriptive title")
            result.confidence = 0.6
        elif len(title) > 100:
            result.issues.append("Title is very long")
            result.suggestions.append("Consider shortening the title")
            result.confidence = 0.8
        else:
            result.confidence = 1.0

        result.is_valid = result.confidence > 0.5
        return result

    @staticmethod
    def validate_description(description: str) -> FieldValidationResult:
        """Descriptions are optional: always valid, with lower confidence when thin."""
        result = FieldValidationResult(is_valid=True, confidence=0.7)
        if not description:
            result.issues.append("Description is empty")
            result.suggestions.append("Add a description to help families understand the activity")
            result.confidence = 0.5
            return result

        if len(description) < 20:
            result.issues.append("Description is very short")
            result.suggestions.append("Consider adding more details about the activity")
            result.confidence = 0.7
        else:
            result.confidence = 1.0
        return result

    def validate_date(self, date_text: str, field_name: str = "start_date") -> FieldValidationResult:
        """
        Check that ``date_text`` parses and is not already over.

        A date more than one day before the reference date is kept but
        flagged with confidence 0.7.
        """
        result = FieldValidationResult()
        if not date_text:
            result.issues.append(f"{field_name} is empty")
            result.suggestions.append("Provide a date in YYYY-MM-DD format")
            return result

        parsed = parse_date(date_text)
        if parsed is None:
            result.issues.append(f"Invalid date format: {date_text}")
            result.suggestions.append(
                "Use formats like: YYYY-MM-DD, MM/DD/YYYY, or 'January 1, 2024'"
            )
            result.confidence = 0.2
            return result

        if parsed < self.today() - timedelta(days=1):
            result.issues.append("Date appears to be in the past")
            result.suggestions.append("Verify this is not an expired event")
            result.confidence = 0.7
        else:
            result.confidence = 1.0

        result.is_valid = not result.issues or result.confidence > 0.5
        return result

    @staticmethod
    def validate_time(time_text: str, field_name: str = "start_time") -> FieldValidationResult:
        result = FieldValidationResult()
        if not time_text:
            result.issues.append(f"{field_name} is empty")
            result.suggestions.append("Provide time in HH:MM format or '2:00 PM' format")
            return result

        if not is_clock_time(time_text):
            result.issues.append(f"Invalid time format: {time_text}")
            result.suggestions.append("Use formats like: 14:30, 2:30 PM, or 2:30PM")
            result.confidence = 0.2
            return result

        result.is_valid = True
        result.confidence = 1.0
        return result

    @staticmethod
    def validate_schedule(schedule: Schedule) -> FieldValidationResult:
        """Share of {start date, start time, schedule type} that is filled."""
        result = FieldValidationResult()
        score = 0.0

        if schedule.start_date:
            score += 1.0
        else:
            result.issues.append("Start date is missing")
            result.suggestions.append("Provide a start date for the activity")

        if schedule.start_time:
            score += 1.0
        else:
            result.issues.append("Start time is missing")
            result.suggestions.append("Provide a start time if applicable")

        if schedule.type:
            score += 1.0

        result.confidence = score / 3.0
        # Start time is often legitimately absent
        result.is_valid = result.confidence > 0.3
        return result

    @staticmethod
    def validate_location(location: LocationInfo) -> FieldValidationResult:
        """Share of {name, address, city, region} that is filled."""
        result = FieldValidationResult()
        parts = [
            (location.name, "Location name is missing", "Provide a venue name or location description"),
            (location.address, "Address is missing", "Provide a street address for better discoverability"),
            (location.city, "City is missing", "Specify the city (e.g., Seattle, Bellevue)"),
            (location.region, "Region is missing", "Specify the region (e.g., Seattle Metro, Eastside)"),
        ]

        filled = 0
        for value, issue, suggestion in parts:
            if value:
                filled += 1
            else:
                result.issues.append(issue)
                result.suggestions.append(suggestion)

        result.confidence = filled / len(parts)
        result.is_valid = result.confidence > 0.5
        return result

    @staticmethod
    def validate_pricing(pricing: PricingInfo) -> FieldValidationResult:
        result = FieldValidationResult()
        cost = pricing.cost or 0
        pricing_type = pricing.type.value if isinstance(pricing.type, Enum) else pricing.type

        if pricing_type == "free":
            if cost != 0:
                result.issues.append("Free pricing type but cost is not zero")
                result.suggestions.append("Set cost to 0 for free activities")
            result.confidence = 1.0
        elif pricing_type == "paid":
            if cost <= 0:
                result.issues.append("Paid pricing type but cost is zero or negative")
                result.suggestions.append("Provide a positive cost amount")
            result.confidence = 0.8
        elif pricing_type == "donation":
            result.confidence = 0.9
        elif pricing_type == "variable":
            if not pricing.description:
                result.issues.append("Variable pricing needs description")
                result.suggestions.append("Provide pricing details in description")
            result.confidence = 0.7
        else:
            result.issues.append(f"Unknown pricing type: {pricing_type}")
            result.suggestions.append("Use: free, paid, donation, or variable")
            result.confidence = 0.2

        if not pricing.currency:
            result.issues.append("Currency is missing")
            result.suggestions.append("Specify currency (e.g., USD)")

        result.is_valid = not result.issues and result.confidence > 0.5
        return result
