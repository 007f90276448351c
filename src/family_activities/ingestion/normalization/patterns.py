"""
Ordered pattern tables for field extraction.

Each table is tried top to bottom against a block's text and the first
matching rule wins. Keeping the order here, as data, lets precedence be
tested without going through the extractor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from family_activities.schemas.activity import AgeCategory


@dataclass(frozen=True)
class PatternRule:
    """
    One extraction rule.

    Args:
        name: Stable identifier, used in logs and tests.
        pattern: Compiled regular expression.
        field: Target field (date, time, location, price, age).
        group: Capture group holding the value.
        value: Fixed output that replaces the matched text when set.
        transform: Post-processing applied to the matched text.
    """

    name: str
    pattern: re.Pattern
    field: str
    group: int = 0
    value: Optional[str] = None
    transform: Optional[Callable[[str], str]] = None

    def apply(self, text: str) -> Optional[str]:
        """Return the rule's output for ``text``, or None when it does not match."""
        match = self.pattern.search(text)
        if not match:
            return None
        if self.value is not None:
            return self.value
        result = (match.group(self.group) or "").strip()
        if self.transform:
            result = self.transform(result)
        return result or None


def title_case(text: str) -> str:
    """Capitalize each word and lowercase the rest ("central LIBRARY" -> "Central Library")."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def upper_meridiem(text: str) -> str:
    """Normalize am/pm markers to upper case."""
    return re.sub(r"(?i)(?<=[\d\s])([ap])\.?m\b\.?", lambda m: m.group(1).upper() + "M", text)


# ============================================================================
# SHARED VOCABULARY
# ============================================================================

MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)
MONTH_ABBREVIATIONS = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"
WEEKDAYS = "Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday|Mon|Tue|Tues|Wed|Thu|Thurs|Fri|Sat|Sun"
DASH = "[-–]"

# Labels that introduce a new field inside space-joined text
_NEXT_LABEL = r"(?=\s+[A-Za-z]+:|[.\n|]|$)"


# ============================================================================
# DATE
# ============================================================================

DATE_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        name="slash_date",
        pattern=re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b"),
        field="date",
    ),
    PatternRule(
        name="dash_date",
        pattern=re.compile(r"\b\d{1,2}-\d{1,2}-\d{2,4}\b"),
        field="date",
    ),
    PatternRule(
        name="month_day_year",
        pattern=re.compile(
            rf"\b(?:{MONTHS})\s+\d{{1,2}}(?:\s*{DASH}\s*\d{{1,2}})?,?\s+\d{{4}}\b"
        ),
        field="date",
    ),
    PatternRule(
        name="month_day",
        pattern=re.compile(rf"\b(?:{MONTH_ABBREVIATIONS}|{MONTHS})\.?\s+\d{{1,2}}\b"),
        field="date",
    ),
    PatternRule(
        name="weekday_month_day",
        pattern=re.compile(
            rf"\b(?:{WEEKDAYS}),?\s+(?:{MONTHS}|{MONTH_ABBREVIATIONS})\s+\d{{1,2}}\b"
        ),
        field="date",
    ),
    PatternRule(
        name="iso_date",
        pattern=re.compile(r"\b\d{4}-\d{1,2}-\d{1,2}\b"),
        field="date",
    ),
)


# ============================================================================
# TIME
# ============================================================================

TIME_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        name="clock_12h",
        pattern=re.compile(r"(?i)\b\d{1,2}:\d{2}\s*[ap]\.?m\b\.?"),
        field="time",
        transform=upper_meridiem,
    ),
    PatternRule(
        name="hour_meridiem",
        pattern=re.compile(r"(?i)\b\d{1,2}\s*[ap]\.?m\b\.?"),
        field="time",
        transform=upper_meridiem,
    ),
    PatternRule(
        name="clock_24h",
        pattern=re.compile(r"\b(?:[01]?\d|2[0-3]):[0-5]\d\b"),
        field="time",
    ),
    PatternRule(
        name="time_range",
        pattern=re.compile(
            rf"(?i)\b\d{{1,2}}(?::\d{{2}})?\s*(?:[ap]m)?\s*{DASH}\s*\d{{1,2}}(?::\d{{2}})?\s*[ap]m\b"
        ),
        field="time",
        transform=upper_meridiem,
    ),
    PatternRule(
        name="casual_time",
        pattern=re.compile(r"(?i)\b(morning|afternoon|evening|noon|midnight)\b"),
        field="time",
        group=1,
    ),
)


# ============================================================================
# LOCATION
# ============================================================================

VENUE_KEYWORDS = "Library|Park|Center|Centre|Museum|Zoo|Aquarium|School|Theater|Theatre|Hall|Studio"

LOCATION_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        name="labeled_location",
        pattern=re.compile(
            r"(?i)\b(?:location|venue|where|address|held at|takes place at|meet at|at):\s*"
            rf"([^.\n|]{{3,100}}?){_NEXT_LABEL}"
        ),
        field="location",
        group=1,
        transform=title_case,
    ),
    PatternRule(
        name="community_center",
        pattern=re.compile(r"\b([A-Z][a-z]+\s+(?:Community|Recreation)\s+Center)\b"),
        field="location",
        group=1,
    ),
    PatternRule(
        name="venue_keyword",
        pattern=re.compile(rf"\b([A-Z][a-z]+\s+(?:{VENUE_KEYWORDS}))\b"),
        field="location",
        group=1,
    ),
    PatternRule(
        name="ymca",
        pattern=re.compile(r"\b(YMCA(?:\s+[A-Z][a-z]+)?)\b"),
        field="location",
        group=1,
    ),
)


# ============================================================================
# PRICE
# ============================================================================

_AMOUNT = r"\d+(?:\.\d{2})?"

PRICE_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        name="dollar_range",
        pattern=re.compile(rf"\${_AMOUNT}\s*{DASH}\s*\$?{_AMOUNT}\b"),
        field="price",
    ),
    PatternRule(
        name="dollar_amount",
        pattern=re.compile(rf"\$(?!0+(?:\.0+)?\b){_AMOUNT}\b"),
        field="price",
    ),
    PatternRule(
        name="free_keyword",
        pattern=re.compile(r"(?i)\b(?:free|no cost|no charge|complimentary)\b"),
        field="price",
        value="Free",
    ),
    PatternRule(
        name="donation",
        pattern=re.compile(r"(?i)\b(suggested donation|donation|pay what you can)\b"),
        field="price",
        group=1,
    ),
    PatternRule(
        name="labeled_numeric",
        pattern=re.compile(rf"(?i)\b(?:price|cost|fee|admission|tuition):\s*\$?{_AMOUNT}\b"),
        field="price",
    ),
)


# ============================================================================
# AGE GROUPS (multi-valued: every matching category is kept)
# ============================================================================


def _age_rule(name: str, pattern: str, category: AgeCategory) -> PatternRule:
    return PatternRule(
        name=name,
        pattern=re.compile(pattern, re.IGNORECASE),
        field="age",
        value=category.value,
    )


AGE_RULES: tuple[PatternRule, ...] = (
    _age_rule("infant_words", r"\b(?:infants?|baby|babies|newborns?)\b", AgeCategory.INFANT),
    _age_rule("infant_months", rf"\b0\s*{DASH}\s*12\s*months?\b", AgeCategory.INFANT),
    _age_rule("toddler_words", r"\btoddlers?\b", AgeCategory.TODDLER),
    _age_rule("toddler_years", rf"\b1\s*{DASH}\s*2\s*years?\b", AgeCategory.TODDLER),
    _age_rule("toddler_months", r"\b18\s*months?\b", AgeCategory.TODDLER),
    _age_rule(
        "preschool_words",
        r"\b(?:preschool|preschoolers?|pre-k|prekindergarten)\b",
        AgeCategory.PRESCHOOL,
    ),
    _age_rule("preschool_ages", rf"\bages?\s*3\s*{DASH}\s*5\b", AgeCategory.PRESCHOOL),
    _age_rule(
        "elementary_words",
        r"\b(?:elementary|school[\s-]*age|grade\s*school)\b",
        AgeCategory.ELEMENTARY,
    ),
    _age_rule("elementary_ages", rf"\bages?\s*6\s*{DASH}\s*10\b", AgeCategory.ELEMENTARY),
    _age_rule("kids_children", r"\b(?:kids|children)\b", AgeCategory.ELEMENTARY),
    _age_rule("tween_words", r"\btweens?\b", AgeCategory.TWEEN),
    _age_rule("tween_ages", rf"\bages?\s*11\s*{DASH}\s*12\b", AgeCategory.TWEEN),
    _age_rule(
        "teen_words",
        r"\b(?:teens?|teenagers?|adolescents?)\b",
        AgeCategory.TEEN,
    ),
    _age_rule("teen_ages", rf"\bages?\s*13\s*{DASH}\s*17\b", AgeCategory.TEEN),
    _age_rule("adult_words", r"\b(?:adults?|grown-?ups?)\b", AgeCategory.ADULT),
    _age_rule("adult_plus", r"\b18\+", AgeCategory.ADULT),
    _age_rule(
        "all_ages_words",
        r"\b(?:all[\s-]*ages?|family|families|everyone|any\s*age|suitable\s*for\s*all)\b",
        AgeCategory.ALL_AGES,
    ),
)

# Numeric range such as "ages 4-8" or "for 7-12 years"; mapped onto every
# category whose canonical range overlaps it.
AGE_RANGE_PATTERN = re.compile(
    rf"(?i)\b(?:ages?|for)\s*(\d{{1,2}})\s*{DASH}\s*(\d{{1,2}})(?:\s*years?)?\b"
)


RULE_TABLES: dict[str, tuple[PatternRule, ...]] = {
    "date": DATE_RULES,
    "time": TIME_RULES,
    "location": LOCATION_RULES,
    "price": PRICE_RULES,
    "age": AGE_RULES,
}


def first_match(rules: tuple[PatternRule, ...], text: str) -> tuple[Optional[str], Optional[str]]:
    """
    Apply ``rules`` in order and stop at the first hit.

    Returns:
        Tuple of (value, rule_name), both None when nothing matched.
    """
    for rule in rules:
        value = rule.apply(text)
        if value:
            return value, rule.name
    return None, None
