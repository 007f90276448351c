# src/family_activities/schemas/activity.py
"""
Canonical Activity Schema for family activity listings.

Every payload handed to the normalizer, whatever its key names or nesting,
ends up in this one record shape. The record is handed to persistence as-is,
so ``model_dump(mode="json")`` must always yield plain nested JSON data.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

# ============================================================================
# ENUMS
# ============================================================================


class ActivityType(str, Enum):
    """
    High-level activity type.
    """

    CLASS = "class"
    CAMP = "camp"
    EVENT = "event"
    PERFORMANCE = "performance"
    FREE_ACTIVITY = "free-activity"


class ActivityCategory(str, Enum):
    """
    Browse category shown to families.
    """

    ARTS_CREATIVITY = "arts-creativity"
    ACTIVE_SPORTS = "active-sports"
    EDUCATIONAL_STEM = "educational-stem"
    ENTERTAINMENT_EVENTS = "entertainment-events"
    CAMPS_PROGRAMS = "camps-programs"
    FREE_COMMUNITY = "free-community"


class ActivityStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ScheduleType(str, Enum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"


class PricingType(str, Enum):
    FREE = "free"
    PAID = "paid"
    DONATION = "donation"
    VARIABLE = "variable"


class VenueType(str, Enum):
    INDOOR = "indoor"
    OUTDOOR = "outdoor"
    MIXED = "mixed"


class RegistrationStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    WAITLIST = "waitlist"


class AgeCategory(str, Enum):
    """
    Age bracket tag.

    Each tag has a canonical numeric range. Infants are measured in months,
    everything else in years.

    Example:
        >>> AgeCategory.PRESCHOOL.to_age_group().min_age
        3
    """

    INFANT = "infant"
    TODDLER = "toddler"
    PRESCHOOL = "preschool"
    ELEMENTARY = "elementary"
    TWEEN = "tween"
    TEEN = "teen"
    ADULT = "adult"
    ALL_AGES = "all-ages"

    @property
    def age_range(self) -> tuple[int, int, str]:
        """(min_age, max_age, unit) for this tag."""
        return _AGE_RANGES[self]

    def to_age_group(self) -> "AgeGroup":
        """Build the canonical AgeGroup entry for this tag."""
        min_age, max_age, unit = _AGE_RANGES[self]
        return AgeGroup(
            category=self,
            min_age=min_age,
            max_age=max_age,
            unit=unit,
            description=_AGE_DESCRIPTIONS[self],
        )


_AGE_RANGES: dict[AgeCategory, tuple[int, int, str]] = {
    AgeCategory.INFANT: (0, 12, "months"),
    AgeCategory.TODDLER: (1, 2, "years"),
    AgeCategory.PRESCHOOL: (3, 5, "years"),
    AgeCategory.ELEMENTARY: (6, 10, "years"),
    AgeCategory.TWEEN: (11, 12, "years"),
    AgeCategory.TEEN: (13, 17, "years"),
    AgeCategory.ADULT: (18, 99, "years"),
    AgeCategory.ALL_AGES: (0, 99, "years"),
}

_AGE_DESCRIPTIONS: dict[AgeCategory, str] = {
    AgeCategory.INFANT: "Infants (0-12 months)",
    AgeCategory.TODDLER: "Toddlers (1-2 years)",
    AgeCategory.PRESCHOOL: "Preschoolers (3-5 years)",
    AgeCategory.ELEMENTARY: "Elementary (6-10 years)",
    AgeCategory.TWEEN: "Tweens (11-12 years)",
    AgeCategory.TEEN: "Teens (13-17 years)",
    AgeCategory.ADULT: "Adults (18+ years)",
    AgeCategory.ALL_AGES: "All Ages",
}


# ============================================================================
# RECORD COMPONENTS
# ============================================================================


class AgeGroup(BaseModel):
    """
    One age bracket the activity is suitable for.
    """

    category: AgeCategory
    min_age: int = Field(ge=0)
    max_age: int = Field(ge=0)
    unit: Literal["months", "years"] = "years"
    description: str = ""

    @model_validator(mode="after")
    def validate_age_range(self):
        if self.max_age < self.min_age:
            raise ValueError("max_age cannot be less than min_age")
        return self


class Schedule(BaseModel):
    """
    When the activity happens. Dates are ``YYYY-MM-DD`` when they could be
    parsed and the verbatim source text otherwise.
    """

    type: ScheduleType = ScheduleType.ONE_TIME
    start_date: str = ""
    start_time: str = ""
    end_time: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    timezone: str = "America/Los_Angeles"


class LocationInfo(BaseModel):
    """
    Normalized location information.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Ballard Library",
                "address": "5614 22nd Ave NW, Ballard",
                "neighborhood": "Ballard",
                "city": "Seattle",
                "state": "WA",
                "region": "Seattle Metro",
                "venue_type": "indoor",
            }
        }
    )

    name: str = ""
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: str
    state: str
    region: str
    venue_type: VenueType = VenueType.INDOOR


# ============================================================================
# PRICING INFORMATION
# ============================================================================


class PricingInfo(BaseModel):
    """
    Pricing details for the activity.
    """

    type: PricingType
    cost: Optional[Decimal] = Field(default=None, ge=0)
    currency: str = Field(default="USD", description="ISO 4217 currency code")
    unit: str = "per-person"
    description: str = ""

    @field_validator("cost", mode="before")
    @classmethod
    def coerce_to_decimal(cls, v):
        """Coerce float/int to Decimal for the cost field."""
        if v is None:
            return None
        if isinstance(v, Decimal):
            return v
        return Decimal(str(v))

    @field_serializer("cost")
    def serialize_decimal(self, v: Optional[Decimal]) -> Optional[float]:
        """Serialize Decimal to float for JSON compatibility."""
        if v is None:
            return None
        return float(v)


# ============================================================================
# REGISTRATION, PROVIDER & SOURCE INFORMATION
# ============================================================================


class RegistrationInfo(BaseModel):
    required: bool = False
    method: str = "walk-in"
    url: Optional[str] = None
    status: RegistrationStatus = RegistrationStatus.OPEN


class ProviderInfo(BaseModel):
    """
    Who runs the activity. Derived from the source domain when the payload
    does not say.
    """

    name: str
    type: str = "external"
    website: str = ""
    verified: bool = False


class SourceInfo(BaseModel):
    """
    Metadata about where the activity came from.
    """

    url: str = Field(description="Page the activity was extracted from")
    domain: str = Field(description="Host of the source URL without 'www.'")
    scraped_at: datetime = Field(description="When the source page was extracted")


# ============================================================================
# CANONICAL ACTIVITY
# ============================================================================


class CanonicalActivity(BaseModel):
    """
    Canonical family activity record.

    The unified, normalized representation of an activity regardless of the
    shape of the payload it was converted from.
    """

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "id": "2f1c6a7e-8d9b-5c3a-9e41-0f2b7d6c5a18",
                "title": "Toddler Story Time",
                "type": "event",
                "category": "free-community",
                "status": "active",
                "schedule": {"type": "one-time", "start_date": "2024-11-02", "start_time": "10:30 AM"},
                "location": {"name": "Ballard Library", "city": "Seattle", "state": "WA", "region": "Seattle Metro"},
                "pricing": {"type": "free", "currency": "USD", "description": "Free"},
                "source": {
                    "url": "https://www.spl.org/events",
                    "domain": "spl.org",
                    "scraped_at": "2024-10-20T12:00:00Z",
                },
            }
        },
    )

    # ---- CORE ----
    id: str = Field(description="Deterministic identifier derived from source and item content")
    title: str
    type: ActivityType
    category: ActivityCategory
    status: ActivityStatus = ActivityStatus.ACTIVE
    description: str = ""

    # ---- DETAILS ----
    schedule: Schedule = Field(default_factory=Schedule)
    location: LocationInfo
    pricing: PricingInfo
    age_groups: List[AgeGroup] = Field(default_factory=list)
    registration: RegistrationInfo = Field(default_factory=RegistrationInfo)

    # ---- PROVENANCE ----
    provider: ProviderInfo
    source: SourceInfo

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title cannot be blank")
        return v.strip()
