"""
Normalization helpers for extracted activity data.

This package provides:
- patterns / age_groups: Ordered rule tables for free-text field extraction
- FieldExtractor: Block -> ExtractedEvent
- dates: Date and time parsing and canonical formatting
- CurrencyParser: Price string classification
- LocationParser: Address and venue resolution
- FieldMapper: Alias-based field resolution on payload items

SchemaNormalizer lives in ``schema_normalizer`` and is imported from there.
"""

from .age_groups import age_groups_from_value, tags_for_text
from .currency import CurrencyParser
from .dates import format_date, normalize_time, parse_date, split_datetime
from .field_extractor import ExtractionStats, FieldExtractor
from .field_mapper import FieldMapper, FieldResolution, create_field_mapper_from_config
from .location_parser import LocationParser, ParsedAddress
from .patterns import PatternRule, first_match

__all__ = [
    # Rule tables
    "PatternRule",
    "first_match",
    "tags_for_text",
    "age_groups_from_value",
    # Field extraction
    "FieldExtractor",
    "ExtractionStats",
    # Dates
    "parse_date",
    "format_date",
    "normalize_time",
    "split_datetime",
    # Currency
    "CurrencyParser",
    # Location
    "LocationParser",
    "ParsedAddress",
    # Field Mapper
    "FieldMapper",
    "FieldResolution",
    "create_field_mapper_from_config",
]
