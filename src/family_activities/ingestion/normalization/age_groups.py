"""
Age group tagging.

Shared by the field extractor (free text inside a block) and the schema
normalizer (``age_groups`` lists and ``ages`` strings in payloads), so both
map the same wording to the same AgeCategory tags.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from family_activities.ingestion.normalization.patterns import AGE_RANGE_PATTERN, AGE_RULES
from family_activities.schemas.activity import AgeCategory, AgeGroup

logger = logging.getLogger(__name__)

# Year span used for overlap checks; infants are 0-12 months, i.e. under 1.
_YEAR_SPANS: dict[AgeCategory, tuple[int, int]] = {
    AgeCategory.INFANT: (0, 0),
    AgeCategory.TODDLER: (1, 2),
    AgeCategory.PRESCHOOL: (3, 5),
    AgeCategory.ELEMENTARY: (6, 10),
    AgeCategory.TWEEN: (11, 12),
    AgeCategory.TEEN: (13, 17),
    AgeCategory.ADULT: (18, 99),
}


def order_tags(tags: Iterable[AgeCategory]) -> list[AgeCategory]:
    """Deduplicate and sort tags youngest first."""
    wanted = set(tags)
    return [category for category in AgeCategory if category in wanted]


def categories_for_range(min_age: int, max_age: int) -> list[AgeCategory]:
    """
    Map a numeric year range onto every overlapping category.

    Example:
        >>> categories_for_range(4, 8)
        [<AgeCategory.PRESCHOOL: 'preschool'>, <AgeCategory.ELEMENTARY: 'elementary'>]
    """
    if max_age < min_age:
        min_age, max_age = max_age, min_age
    return [
        category
        for category, (low, high) in _YEAR_SPANS.items()
        if low <= max_age and min_age <= high
    ]


def tags_for_text(text: str) -> list[AgeCategory]:
    """
    Every age category mentioned in ``text``.

    Unlike the other field rules this is multi-valued: each rule that
    matches contributes its category.
    """
    if not text:
        return []

    tags: list[AgeCategory] = []
    for rule in AGE_RULES:
        value = rule.apply(text)
        if value:
            tags.append(AgeCategory(value))

    for match in AGE_RANGE_PATTERN.finditer(text):
        low, high = int(match.group(1)), int(match.group(2))
        tags.extend(categories_for_range(low, high))

    return order_tags(tags)


def age_groups_from_value(value: Any) -> list[AgeGroup]:
    """
    Build AgeGroup entries from a payload value.

    Accepts a list of strings (one entry per recognized string), a list of
    mappings with a ``category`` key, or a single free-text string.
    Unrecognized content yields an empty list.
    """
    tags: list[AgeCategory] = []
    if isinstance(value, str):
        tags = tags_for_text(value)
    elif isinstance(value, list):
        for entry in value:
            if isinstance(entry, dict):
                entry = entry.get("category") or entry.get("description") or ""
            if isinstance(entry, str):
                tags.extend(tags_for_text(entry))
            else:
                logger.debug(f"Ignoring non-text age group entry: {entry!r}")
        tags = order_tags(tags)
    return [tag.to_age_group() for tag in tags]
