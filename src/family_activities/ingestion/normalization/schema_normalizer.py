"""
Schema Normalizer.

Converts loosely-shaped extracted payloads (``{"events": [...]}``,
``{"activities": [...]}``, whatever key an upstream extractor happened to
use) into CanonicalActivity records, with a provenance entry for every
field and a flat, human-readable issue list.

Input-shape problems raise (see ``family_activities.exceptions``).
Data-quality problems never raise: a default is substituted, the
confidence drops and an issue is recorded.
"""

from __future__ import annotations

import json
import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from family_activities.configs.settings import Settings, get_settings
from family_activities.exceptions import (
    InvalidPayloadError,
    PayloadShapeError,
    UnknownSchemaTypeError,
)
from family_activities.ingestion.normalization.age_groups import age_groups_from_value
from family_activities.ingestion.normalization.currency import CurrencyParser
from family_activities.ingestion.normalization.dates import (
    format_date,
    normalize_time,
    split_datetime,
)
from family_activities.ingestion.normalization.field_mapper import (
    FieldMapper,
    FieldResolution,
    JsonValue,
    as_list,
    as_mapping,
    describe_value,
    holds_mapping,
)
from family_activities.ingestion.normalization.location_parser import LocationParser
from family_activities.schemas.activity import (
    ActivityCategory,
    ActivityType,
    AgeCategory,
    AgeGroup,
    CanonicalActivity,
    LocationInfo,
    PricingInfo,
    ProviderInfo,
    RegistrationInfo,
    Schedule,
    ScheduleType,
    SourceInfo,
)
from family_activities.schemas.extraction import (
    DEFAULT_SOURCE,
    DERIVED_SOURCE,
    NOT_FOUND,
    ConversionDiagnostics,
    ConversionIssue,
    FieldMapping,
    FieldValidationResult,
    IssueSeverity,
    IssueType,
    MappingKind,
    NormalizationResult,
)
from family_activities.validation.confidence import (
    DEFAULT_TITLE,
    conversion_confidence,
    field_confidence,
    validation_status,
)
from family_activities.validation.validator import RecordValidator

logger = logging.getLogger(__name__)

SCHEMA_TYPES: Tuple[str, ...] = ("events", "activities", "venues", "custom")
CUSTOM_SCHEMA = "custom"

NO_EVENTS_FOUND = "No events found in extracted data"

# Key-name terms that suggest an array holds event-like items
_EVENT_ARRAY_TERMS = ("event", "activity", "item", "result", "data", "content")

# ============================================================================
# CLASSIFICATION KEYWORDS
# ============================================================================

_CLASS_ACTIVITY_KEYWORDS = ["class", "classes", "lesson", "course", "weekly", "monthly"]
_CAMP_ACTIVITY_KEYWORDS = ["camp", "summer", "day camp", "week"]

_CONTENT_TYPE_RULES: List[Tuple[ActivityType, List[str]]] = [
    (ActivityType.PERFORMANCE, ["performance", "show", "concert", "play", "theater"]),
    (ActivityType.CLASS, ["class", "lesson", "course", "workshop"]),
    (ActivityType.CAMP, ["camp"]),
]

_CATEGORY_RULES: List[Tuple[ActivityCategory, List[str]]] = [
    (
        ActivityCategory.ARTS_CREATIVITY,
        ["art", "paint", "craft", "music", "dance", "theater", "creative", "drawing"],
    ),
    (
        ActivityCategory.ACTIVE_SPORTS,
        ["sport", "soccer", "basketball", "swim", "run", "bike", "active", "fitness", "martial arts"],
    ),
    (
        ActivityCategory.EDUCATIONAL_STEM,
        ["science", "stem", "math", "engineering", "coding", "robot", "experiment", "tech"],
    ),
    (
        ActivityCategory.ENTERTAINMENT_EVENTS,
        ["performance", "show", "concert", "festival", "movie", "entertainment"],
    ),
    (
        ActivityCategory.CAMPS_PROGRAMS,
        ["camp", "program", "course", "academy", "school"],
    ),
]

_RECURRING_KEYWORDS = ["weekly", "every week", "monday", "tuesday", "wednesday", "thursday", "friday"]


def contains_keywords(content: str, keywords: List[str]) -> bool:
    """Case-insensitive keyword test anchored at word starts ("art" matches "artists", not "party")."""
    lower = content.lower()
    return any(re.search(rf"\b{re.escape(keyword)}", lower) for keyword in keywords)


def classify_type(schema_type: str, content: str) -> ActivityType:
    """
    Pick the activity type from the schema type, then from content keywords.

    Example:
        >>> classify_type("activities", "Weekly pottery class")
        <ActivityType.CLASS: 'class'>
    """
    if schema_type == "events":
        return ActivityType.EVENT
    if schema_type == "activities":
        if contains_keywords(content, _CLASS_ACTIVITY_KEYWORDS):
            return ActivityType.CLASS
        if contains_keywords(content, _CAMP_ACTIVITY_KEYWORDS):
            return ActivityType.CAMP
        return ActivityType.FREE_ACTIVITY
    if schema_type == "venues":
        return ActivityType.FREE_ACTIVITY

    for activity_type, keywords in _CONTENT_TYPE_RULES:
        if contains_keywords(content, keywords):
            return activity_type
    return ActivityType.EVENT


def classify_category(content: str) -> ActivityCategory:
    """First matching keyword group wins; community events are the fallback."""
    for category, keywords in _CATEGORY_RULES:
        if contains_keywords(content, keywords):
            return category
    return ActivityCategory.FREE_COMMUNITY


# ============================================================================
# CONVERSION BOOKKEEPING
# ============================================================================


@dataclass
class _ConversionLog:
    """Issues and provenance collected while converting one item."""

    diagnostics: ConversionDiagnostics
    issues: List[str] = field(default_factory=list)
    mappings: Dict[str, FieldMapping] = field(default_factory=dict)

    def flag(
        self,
        message: str,
        field_name: str,
        issue_type: IssueType = IssueType.MISSING_FIELD,
        suggestion: str = "",
        severity: IssueSeverity = IssueSeverity.WARNING,
        raw_value: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> None:
        """Record an issue on the flat list and in diagnostics."""
        self.issues.append(message)
        self.note(detail or message, field_name, issue_type, suggestion, severity, raw_value)

    def note(
        self,
        message: str,
        field_name: str,
        issue_type: IssueType = IssueType.LOW_CONFIDENCE,
        suggestion: str = "",
        severity: IssueSeverity = IssueSeverity.INFO,
        raw_value: Optional[str] = None,
    ) -> None:
        """Record a diagnostic that does not count against confidence."""
        self.diagnostics.conversion_issues.append(
            ConversionIssue(
                type=issue_type,
                field=field_name,
                message=message,
                suggestion=suggestion,
                raw_value=raw_value,
                severity=severity,
            )
        )

    def check(
        self,
        field_name: str,
        validation: FieldValidationResult,
        raw_value: Optional[str] = None,
    ) -> None:
        """
        Apply a field validator's verdict.

        Rejected values add their issues to the flat list. Accepted values
        with caveats (a past date, a short title) are only noted.
        """
        for issue in validation.issues:
            if validation.is_valid:
                self.note(issue, field_name, suggestion=validation.suggestion_text, raw_value=raw_value)
            else:
                self.flag(
                    issue,
                    field_name,
                    issue_type=IssueType.VALIDATION_ERROR,
                    suggestion=validation.suggestion_text,
                    raw_value=raw_value,
                )

    def map(
        self,
        target_field: str,
        source_field: str,
        attempted: List[str],
        kind: MappingKind,
        validation: FieldValidationResult,
    ) -> None:
        self.mappings[target_field] = FieldMapping(
            target_field=target_field,
            source_field=source_field,
            attempted_source_fields=list(attempted),
            mapping_kind=kind,
            confidence=field_confidence(kind, validation),
            validation_status=validation_status(validation),
        )

    def map_resolution(
        self,
        target_field: str,
        resolution: FieldResolution,
        validation: FieldValidationResult,
    ) -> None:
        self.map(
            target_field,
            resolution.source_field,
            resolution.attempted,
            resolution.kind,
            validation,
        )


@dataclass
class _ResolvedArray:
    key: Optional[str]
    items: List[Dict[str, JsonValue]]
    issues: List[str]


# ============================================================================
# NORMALIZER
# ============================================================================


class SchemaNormalizer:
    """
    Reconciles differently-shaped payloads into CanonicalActivity records.

    Pure apart from the clock: pass ``reference_date`` and ``scraped_at``
    for fully reproducible output.
    """

    def __init__(
        self,
        field_mapper: Optional[FieldMapper] = None,
        location_parser: Optional[LocationParser] = None,
        validator: Optional[RecordValidator] = None,
        settings: Optional[Settings] = None,
        reference_date: Optional[date] = None,
    ):
        """
        Initialize the normalizer.

        Args:
            field_mapper: Alias resolver. Built from extraction.yaml when omitted.
            location_parser: Location resolver. Built from extraction.yaml when omitted.
            validator: Field checks. A validator using ``reference_date`` is
                built when omitted.
            settings: Defaults for timezone, city and currency.
            reference_date: "Today" for past-date checks.
        """
        self.settings = settings or get_settings()
        self.field_mapper = field_mapper or FieldMapper()
        self.location_parser = location_parser or LocationParser(settings=self.settings)
        self.validator = validator or RecordValidator(reference_date=reference_date)

    # =========================================================================
    # Public API
    # =========================================================================

    def normalize(
        self,
        payload: Any,
        schema_type: str,
        source_url: str,
        scraped_at: Optional[datetime] = None,
    ) -> NormalizationResult:
        """
        Convert the first usable item of ``payload``.

        Args:
            payload: Extracted JSON-like mapping
            schema_type: One of events, activities, venues, custom
            source_url: Page the payload was extracted from
            scraped_at: Extraction time; defaults to now (UTC)

        Returns:
            NormalizationResult; ``record`` is None when the payload held an
            empty array

        Raises:
            InvalidPayloadError: payload is None, not a mapping, or empty
            UnknownSchemaTypeError: schema_type is not supported
            PayloadShapeError: no usable array could be found
        """
        started = time.perf_counter()
        diagnostics, resolved = self._prepare(payload, schema_type, source_url)

        if not resolved.items:
            return self._empty_result(diagnostics, resolved, started)

        if len(resolved.items) > 1:
            diagnostics.items_not_converted = len(resolved.items) - 1
            logger.info(
                f"Found {len(resolved.items)} items in '{resolved.key}', converting the first "
                f"({diagnostics.items_not_converted} not converted; use normalize_all for every item)"
            )

        result = self._convert_item(
            resolved.items[0], schema_type, source_url, scraped_at, diagnostics, resolved.issues
        )
        result.diagnostics.processing_time_ms = self._elapsed_ms(started)
        self._log_result(result)
        return result

    def normalize_all(
        self,
        payload: Any,
        schema_type: str,
        source_url: str,
        scraped_at: Optional[datetime] = None,
    ) -> List[NormalizationResult]:
        """
        Convert every usable item of ``payload``.

        Array-level issues (a missing expected key, skipped items) are
        repeated on every result. An empty array yields an empty list.
        """
        started = time.perf_counter()
        diagnostics, resolved = self._prepare(payload, schema_type, source_url)

        results = []
        for item in resolved.items:
            item_diagnostics = diagnostics.model_copy(deep=True)
            result = self._convert_item(
                item, schema_type, source_url, scraped_at, item_diagnostics, resolved.issues
            )
            result.diagnostics.processing_time_ms = self._elapsed_ms(started)
            results.append(result)

        logger.info(
            f"Converted {len(results)} items from '{resolved.key}' ({source_url})"
        )
        return results

    def preview(
        self,
        payload: Any,
        schema_type: str,
        source_url: str,
        scraped_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Reviewer preview: record, issues, provenance and an approval verdict."""
        return self.normalize(payload, schema_type, source_url, scraped_at).to_preview()

    # =========================================================================
    # Payload shape
    # =========================================================================

    def _prepare(
        self, payload: Any, schema_type: str, source_url: str
    ) -> Tuple[ConversionDiagnostics, _ResolvedArray]:
        self._check_inputs(payload, schema_type)
        logger.info(f"Normalizing '{schema_type}' payload from {source_url}")

        diagnostics = ConversionDiagnostics(
            schema_type=schema_type,
            source_url=source_url,
            raw_data_structure=self.analyze_structure(payload),
        )
        resolved = self._resolve_array(payload, schema_type, diagnostics)
        diagnostics.resolved_array_key = resolved.key
        diagnostics.items_found = len(resolved.items)
        return diagnostics, resolved

    @staticmethod
    def _check_inputs(payload: Any, schema_type: str) -> None:
        if payload is None:
            raise InvalidPayloadError("Payload is null")
        if not isinstance(payload, dict):
            raise InvalidPayloadError(
                f"Payload must be a mapping, got {type(payload).__name__}"
            )
        if not payload:
            raise InvalidPayloadError("Payload is empty")
        if schema_type not in SCHEMA_TYPES:
            raise UnknownSchemaTypeError(schema_type, SCHEMA_TYPES)

    @staticmethod
    def analyze_structure(payload: Dict[str, JsonValue]) -> Dict[str, str]:
        """Top-level key -> structural description, for diagnostics."""
        structure = {key: describe_value(value) for key, value in payload.items()}
        logger.debug(f"Payload structure: {structure}")
        return structure

    def _resolve_array(
        self,
        payload: Dict[str, JsonValue],
        schema_type: str,
        diagnostics: ConversionDiagnostics,
    ) -> _ResolvedArray:
        issues: List[str] = []

        if schema_type == CUSTOM_SCHEMA:
            key = self._largest_array_key(payload)
            if key is None:
                raise PayloadShapeError("No arrays found in payload for custom schema")
            logger.debug(f"Using largest array '{key}' for custom schema")
            return self._collect_items(key, payload[key], diagnostics, issues)

        expected = schema_type
        if expected in payload:
            array = as_list(payload[expected])
            if array is None:
                actual = describe_value(payload[expected])
                diagnostics.conversion_issues.append(
                    ConversionIssue(
                        type=IssueType.INVALID_FORMAT,
                        field=expected,
                        message=f"Expected array but got {actual}",
                        suggestion="Check the extraction schema configuration",
                        raw_value=str(payload[expected])[:100],
                        severity=IssueSeverity.ERROR,
                    )
                )
                raise PayloadShapeError(
                    f"Key '{expected}' is not an array (type: {actual})", key=expected
                )
            return self._collect_items(expected, array, diagnostics, issues)

        available = list(payload.keys())
        message = f"Expected key '{expected}' not found in raw data"
        issues.append(message)
        diagnostics.conversion_issues.append(
            ConversionIssue(
                type=IssueType.MISSING_FIELD,
                field=expected,
                message=message,
                suggestion=f"Check if the extractor uses different key names. Available: {available}",
                severity=IssueSeverity.ERROR,
            )
        )

        alternatives = self.find_alternative_arrays(payload, expected)
        diagnostics.alternative_arrays = alternatives
        if not alternatives:
            raise PayloadShapeError(f"No '{expected}' array found in payload", key=expected)

        chosen = alternatives[0]
        logger.info(f"Key '{expected}' missing, using alternative array '{chosen}'")
        return self._collect_items(chosen, payload[chosen], diagnostics, issues)

    @staticmethod
    def score_candidate(key: str, array: List[JsonValue]) -> int:
        """+2 for an event-ish key name, +1 when the first element is a mapping."""
        score = 0
        lower = key.lower()
        if any(term in lower for term in _EVENT_ARRAY_TERMS):
            score += 2
        if array and isinstance(array[0], dict):
            score += 1
        return score

    @classmethod
    def find_alternative_arrays(cls, payload: Dict[str, JsonValue], expected_key: str) -> List[str]:
        """
        Top-level arrays other than ``expected_key`` that hold at least one
        non-empty mapping, best first.

        Candidates scoring 0 are dropped; ties keep payload order.
        """
        scored = []
        for position, (key, value) in enumerate(payload.items()):
            array = as_list(value)
            if key == expected_key or not holds_mapping(array):
                continue
            score = cls.score_candidate(key, array)
            if score > 0:
                scored.append((-score, position, key))
        return [key for _, _, key in sorted(scored)]

    @staticmethod
    def _largest_array_key(payload: Dict[str, JsonValue]) -> Optional[str]:
        """Longest array holding a mapping; the longest array of any kind otherwise."""
        arrays = [(key, as_list(value)) for key, value in payload.items()]
        arrays = [(key, array) for key, array in arrays if array is not None]
        if not arrays:
            return None
        candidates = [(key, array) for key, array in arrays if holds_mapping(array)] or arrays
        best_key, _ = max(candidates, key=lambda candidate: len(candidate[1]))
        return best_key

    def _collect_items(
        self,
        key: str,
        array: List[JsonValue],
        diagnostics: ConversionDiagnostics,
        issues: List[str],
    ) -> _ResolvedArray:
        if not array:
            diagnostics.conversion_issues.append(
                ConversionIssue(
                    type=IssueType.MISSING_FIELD,
                    field=key,
                    message=f"Array '{key}' contains no items",
                    suggestion="Check if the source page contains the expected data",
                    severity=IssueSeverity.WARNING,
                )
            )
            return _ResolvedArray(key=key, items=[], issues=issues)

        items: List[Dict[str, JsonValue]] = []
        for index, element in enumerate(array):
            mapping = as_mapping(element)
            if mapping is None:
                message = (
                    f"Item {index + 1} in '{key}' array is not an object "
                    f"(type: {describe_value(element)})"
                )
                issue_type = IssueType.INVALID_FORMAT
            elif not mapping:
                message = f"Item {index + 1} in '{key}' array is empty"
                issue_type = IssueType.MISSING_FIELD
            else:
                items.append(mapping)
                continue

            diagnostics.items_skipped += 1
            issues.append(message)
            diagnostics.conversion_issues.append(
                ConversionIssue(
                    type=issue_type,
                    field=f"{key}[{index}]",
                    message=message,
                    suggestion="Items should be non-empty objects",
                    raw_value=str(element)[:100],
                    severity=IssueSeverity.WARNING,
                )
            )
            logger.debug(message)

        if not items:
            diagnostics.conversion_issues.append(
                ConversionIssue(
                    type=IssueType.DATA_QUALITY,
                    field=key,
                    message="No valid items in array",
                    suggestion="Check source data quality and extraction schema",
                    severity=IssueSeverity.ERROR,
                )
            )
            raise PayloadShapeError(f"No valid items found in '{key}' array", key=key)

        logger.debug(
            f"Array '{key}': {len(items)} valid, {diagnostics.items_skipped} skipped items"
        )
        return _ResolvedArray(key=key, items=items, issues=issues)

    # =========================================================================
    # Item conversion
    # =========================================================================

    def _convert_item(
        self,
        item: Dict[str, JsonValue],
        schema_type: str,
        source_url: str,
        scraped_at: Optional[datetime],
        diagnostics: ConversionDiagnostics,
        array_issues: List[str],
    ) -> NormalizationResult:
        log = _ConversionLog(diagnostics=diagnostics, issues=list(array_issues))
        logger.debug(f"Converting item with fields: {list(item.keys())}")

        title = self._title(item, log)
        description = self._description(item, log)

        type_hint = self.field_mapper.first_text(item, self.field_mapper.aliases_for("type_hint"))
        content = " ".join(part for part in (title, description, type_hint) if part)

        activity_type = classify_type(schema_type, content)
        log.map(
            "type",
            DERIVED_SOURCE,
            ["schema_type"],
            MappingKind.DERIVED,
            FieldValidationResult(is_valid=True, confidence=1.0),
        )
        category = classify_category(content)
        log.map(
            "category",
            DERIVED_SOURCE,
            ["title", "description"],
            MappingKind.DERIVED,
            FieldValidationResult(is_valid=True, confidence=0.8),
        )

        schedule = self._schedule(item, log)
        location = self._location(item, source_url, log)
        pricing = self._pricing(item, log)
        age_groups = self._age_groups(item, log)
        registration = self._registration(item, log)

        domain = LocationParser.extract_domain(source_url)
        record = CanonicalActivity(
            id=self.record_id(item, schema_type, source_url),
            title=title,
            type=activity_type,
            category=category,
            description=description,
            schedule=schedule,
            location=location,
            pricing=pricing,
            age_groups=age_groups,
            registration=registration,
            provider=ProviderInfo(name=domain, website=source_url),
            source=SourceInfo(
                url=source_url,
                domain=domain,
                scraped_at=scraped_at or datetime.now(timezone.utc),
            ),
        )

        return NormalizationResult(
            record=record,
            confidence=conversion_confidence(record, log.issues),
            issues=log.issues,
            field_mappings=log.mappings,
            diagnostics=diagnostics,
        )

    @staticmethod
    def record_id(item: Dict[str, JsonValue], schema_type: str, source_url: str) -> str:
        """Deterministic id: uuid5 over source URL, schema type and item content."""
        content = json.dumps(item, sort_keys=True, default=str)
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{source_url}|{schema_type}|{content}"))

    def _title(self, item: Dict[str, JsonValue], log: _ConversionLog) -> str:
        resolution = self.field_mapper.resolve(item, "title")
        title = resolution.text

        if not title:
            title = self._derive_title(item)
            if title:
                resolution.source_field = DERIVED_SOURCE
                resolution.kind = MappingKind.DERIVED
                log.note("Title derived from type and location fields", "title")

        if not title:
            title = DEFAULT_TITLE
            resolution.source_field = DEFAULT_SOURCE
            log.flag(
                "No title found in source data, using default",
                "title",
                suggestion="Ensure source data includes a title, name, or heading field",
                detail="No title found in source data",
            )

        validation = self.validator.validate_title(title)
        log.check("title", validation, raw_value=title)
        log.map_resolution("title", resolution, validation)
        return title

    def _derive_title(self, item: Dict[str, JsonValue]) -> str:
        """"{type} at {location}", "{type}" or "Event at {location}"."""
        type_hint = self.field_mapper.first_text(item, self.field_mapper.aliases_for("type_hint"))
        location = self.field_mapper.first_text(item, ["location", "venue"])
        if type_hint and location:
            return f"{type_hint} at {location}"
        if type_hint:
            return type_hint
        if location:
            return f"Event at {location}"
        return ""

    def _description(self, item: Dict[str, JsonValue], log: _ConversionLog) -> str:
        resolution = self.field_mapper.resolve(item, "description")
        description = resolution.text

        if not description:
            parts = []
            for alias in self.field_mapper.aliases_for("extra_text"):
                text = self.field_mapper.first_text(item, [alias])
                if len(text) > 10:
                    parts.append(text)
            description = " ".join(parts)
            if description:
                resolution.source_field = DERIVED_SOURCE
                resolution.kind = MappingKind.DERIVED
                log.note("Description assembled from note fields", "description")

        if not description:
            log.flag(
                "No description found in source data",
                "description",
                suggestion="Include description, details, or summary field in source data",
                severity=IssueSeverity.INFO,
            )

        validation = self.validator.validate_description(description)
        log.check("description", validation, raw_value=description or None)
        log.map_resolution("description", resolution, validation)
        return description

    def _schedule(self, item: Dict[str, JsonValue], log: _ConversionLog) -> Schedule:
        date_resolution = self.field_mapper.resolve(item, "date")
        time_resolution = self.field_mapper.resolve(item, "time")

        date_text, embedded_time = split_datetime(date_resolution.text)
        time_text = time_resolution.text
        if not time_text and embedded_time:
            time_text = embedded_time
            time_resolution.source_field = DERIVED_SOURCE
            time_resolution.kind = MappingKind.DERIVED

        start_date = ""
        if date_text:
            date_validation = self.validator.validate_date(date_text)
            log.check("schedule.start_date", date_validation, raw_value=date_text)
            start_date = format_date(date_text) if date_validation.is_valid else None
            start_date = start_date or date_text
        else:
            log.flag(
                "Missing date information",
                "schedule.start_date",
                suggestion="Include date, start_date, or event_date field",
                severity=IssueSeverity.ERROR,
                detail="No date information found",
            )

        start_time = ""
        if time_text:
            time_validation = self.validator.validate_time(time_text)
            log.check("schedule.start_time", time_validation, raw_value=time_text)
            start_time = normalize_time(time_text) if time_validation.is_valid else time_text
            log.map_resolution("start_time", time_resolution, time_validation)
        else:
            log.map_resolution("start_time", time_resolution, FieldValidationResult())

        end_time = self.field_mapper.first_text(item, self.field_mapper.aliases_for("end_time"))
        duration = self.field_mapper.first_text(item, self.field_mapper.aliases_for("duration"))
        schedule_text = self.field_mapper.first_text(
            item, self.field_mapper.aliases_for("schedule_text")
        )

        schedule = Schedule(
            type=ScheduleType.ONE_TIME,
            start_date=start_date,
            start_time=start_time,
            end_time=normalize_time(end_time) if end_time else None,
            duration=duration or None,
            timezone=self.settings.DEFAULT_TIMEZONE,
        )
        if schedule_text and contains_keywords(schedule_text, _RECURRING_KEYWORDS):
            schedule.type = ScheduleType.RECURRING
            schedule.frequency = "weekly"

        validation = self.validator.validate_schedule(schedule)
        if not validation.is_valid:
            log.check("schedule", validation)
        log.map_resolution("schedule", date_resolution, validation)
        return schedule

    def _location(
        self, item: Dict[str, JsonValue], source_url: str, log: _ConversionLog
    ) -> LocationInfo:
        resolution = self.field_mapper.resolve(item, "location")
        name = resolution.text

        if not name:
            name = LocationParser.venue_from_url(source_url)
            resolution.source_field = DERIVED_SOURCE
            resolution.kind = MappingKind.DERIVED
            log.flag(
                "No location name found, generated from source URL",
                "location.name",
                suggestion="Include location, venue, or place field",
                raw_value=source_url,
            )

        address = self.field_mapper.resolve(item, "address").text
        if not address:
            log.flag(
                "Missing address information",
                "location.address",
                suggestion="Include address, location_address, or venue_address field",
                detail="No address information found",
            )

        location = self.location_parser.build_location(name, address or None)
        validation = self.validator.validate_location(location)
        log.check("location", validation)
        log.map_resolution("location", resolution, validation)
        return location

    def _pricing(self, item: Dict[str, JsonValue], log: _ConversionLog) -> PricingInfo:
        resolution = self.field_mapper.resolve(item, "price")
        price_text = resolution.text

        if not price_text:
            resolution.source_field = DEFAULT_SOURCE
            log.flag(
                "Missing pricing information",
                "pricing",
                suggestion="Include price, cost, or fee field in source data",
                severity=IssueSeverity.INFO,
                detail="No pricing information found",
            )

        pricing = CurrencyParser.classify_price(price_text)
        validation = self.validator.validate_pricing(pricing)
        log.check("pricing", validation, raw_value=price_text or None)
        log.map_resolution("pricing", resolution, validation)
        return pricing

    def _age_groups(self, item: Dict[str, JsonValue], log: _ConversionLog) -> List[AgeGroup]:
        resolution = self.field_mapper.resolve(item, "age", accept_containers=True)
        groups: List[AgeGroup] = []

        if resolution.found:
            groups = age_groups_from_value(resolution.value)
            if not groups:
                log.note(
                    f"Unrecognized age information '{resolution.value}', using all ages",
                    "age_groups",
                    raw_value=str(resolution.value)[:100],
                )
                groups = [AgeCategory.ALL_AGES.to_age_group()]
        else:
            resolution.source_field = DEFAULT_SOURCE
            groups = [AgeCategory.ALL_AGES.to_age_group()]
            log.flag(
                "No age group information found, defaulting to 'all ages'",
                "age_groups",
                suggestion="Include age_groups, ages, or age_range field",
                severity=IssueSeverity.INFO,
            )

        log.map_resolution(
            "age_groups", resolution, FieldValidationResult(is_valid=True, confidence=0.7)
        )
        return groups

    def _registration(self, item: Dict[str, JsonValue], log: _ConversionLog) -> RegistrationInfo:
        resolution = self.field_mapper.resolve(item, "registration")
        registration = RegistrationInfo()

        if resolution.text:
            registration.url = resolution.text
            registration.required = True
            registration.method = "online"
        else:
            resolution.source_field = DEFAULT_SOURCE

        required = item.get("registration_required")
        if isinstance(required, bool):
            registration.required = required

        log.map_resolution(
            "registration", resolution, FieldValidationResult(is_valid=True, confidence=0.8)
        )
        return registration

    # =========================================================================
    # Helpers
    # =========================================================================

    def _empty_result(
        self,
        diagnostics: ConversionDiagnostics,
        resolved: _ResolvedArray,
        started: float,
    ) -> NormalizationResult:
        diagnostics.conversion_issues.append(
            ConversionIssue(
                type=IssueType.MISSING_FIELD,
                field=resolved.key or "events",
                message=NO_EVENTS_FOUND,
                suggestion="Check if the raw data contains an events array or similar structure",
                severity=IssueSeverity.ERROR,
            )
        )
        diagnostics.processing_time_ms = self._elapsed_ms(started)
        logger.info(f"No items to convert in '{resolved.key}' ({diagnostics.source_url})")
        return NormalizationResult(
            record=None,
            confidence=0.0,
            issues=resolved.issues + [NO_EVENTS_FOUND],
            diagnostics=diagnostics,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 3)

    @staticmethod
    def _log_result(result: NormalizationResult) -> None:
        diagnostics = result.diagnostics
        logger.info(
            f"Conversion completed: success={result.record is not None}, "
            f"confidence={result.confidence:.1f}, issues={len(result.issues)}, "
            f"time={diagnostics.processing_time_ms:.1f}ms"
        )
        for issue in diagnostics.conversion_issues:
            logger.debug(f"[{issue.severity}] {issue.field}: {issue.message}")
