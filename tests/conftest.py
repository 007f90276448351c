"""
Shared pytest fixtures for the family activity extraction test suite.

Provides fixed clocks, sample page text and payload factories so
normalization output is reproducible across runs.
"""

from datetime import date, datetime, timezone

import pytest

from family_activities.configs.settings import Settings
from family_activities.ingestion.normalization.schema_normalizer import SchemaNormalizer
from family_activities.ingestion.pipeline import ExtractionPipeline
from family_activities.monitoring.metrics import ExtractionMetrics
from family_activities.schemas.activity import (
    ActivityCategory,
    ActivityType,
    AgeCategory,
    CanonicalActivity,
    LocationInfo,
    PricingInfo,
    PricingType,
    ProviderInfo,
    Schedule,
    SourceInfo,
)
from family_activities.validation.validator import RecordValidator

REFERENCE_DATE = date(2024, 9, 1)
SCRAPED_AT = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)
SOURCE_URL = "https://www.seattle-childrens-museum.org/events"


@pytest.fixture
def reference_date():
    """Fixed "today" for past-date checks."""
    return REFERENCE_DATE


@pytest.fixture
def scraped_at():
    """Fixed extraction timestamp."""
    return SCRAPED_AT


@pytest.fixture
def source_url():
    return SOURCE_URL


@pytest.fixture
def settings():
    """Settings with the packaged defaults, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def validator(reference_date):
    return RecordValidator(reference_date=reference_date)


@pytest.fixture
def normalizer(settings, reference_date):
    """SchemaNormalizer pinned to the reference date."""
    return SchemaNormalizer(settings=settings, reference_date=reference_date)


@pytest.fixture
def metrics():
    """A fresh metrics sink per test."""
    return ExtractionMetrics()


@pytest.fixture
def pipeline(metrics, settings, reference_date):
    """Pipeline bound to an isolated metrics sink."""
    return ExtractionPipeline(metrics=metrics, settings=settings, reference_date=reference_date)


@pytest.fixture
def create_item():
    """
    Return a function that builds a payload item with canonical key names.

    All defaults can be overridden via keyword arguments; pass ``None`` to
    drop a key.

    Example:
        item = create_item(title="Toddler Story Time", price=None)
    """

    def _create_item(**overrides) -> dict:
        item = {
            "title": "Toddler Story Time",
            "description": "Songs, rhymes and picture books for little ones and their grown-ups.",
            "date": "2024-10-05",
            "time": "10:30 am",
            "location": "Ballard Library",
            "address": "5614 22nd Ave NW, Ballard",
            "price": "Free",
            "age_groups": ["toddler", "preschool"],
        }
        item.update(overrides)
        return {key: value for key, value in item.items() if value is not None}

    return _create_item


@pytest.fixture
def sample_item(create_item):
    """A complete, well-formed payload item."""
    return create_item()


@pytest.fixture
def make_activity():
    """
    Return a function that builds a complete CanonicalActivity.

    Keyword arguments replace top-level fields.
    """

    def _make_activity(**overrides) -> CanonicalActivity:
        fields = {
            "id": "2f1c6a7e-8d9b-5c3a-9e41-0f2b7d6c5a18",
            "title": "Lego Club",
            "type": ActivityType.EVENT,
            "category": ActivityCategory.FREE_COMMUNITY,
            "description": "Build anything you can imagine with our giant brick collection.",
            "schedule": Schedule(start_date="2024-10-05", start_time="10:30 AM"),
            "location": LocationInfo(
                name="Ballard Library", city="Seattle", state="WA", region="Seattle Metro"
            ),
            "pricing": PricingInfo(type=PricingType.FREE),
            "age_groups": [AgeCategory.ELEMENTARY.to_age_group()],
            "provider": ProviderInfo(name="spl.org"),
            "source": SourceInfo(url="https://www.spl.org/events", domain="spl.org", scraped_at=SCRAPED_AT),
        }
        fields.update(overrides)
        return CanonicalActivity(**fields)

    return _make_activity


@pytest.fixture
def fall_events_text():
    """
    Return markdown page text with a section header and two events.

    The first event carries a day-range date and a mixed adult/child price line.
    """
    return "\n".join(
        [
            "# Fall Events",
            "",
            "## Pumpkin Patch & Fall Festival",
            "Dates: October 1-31, 2024",
            "Admission: $15 adults, $12 children (2-12), Free under 2",
            "Hayrides, a corn maze and pumpkin picking for the whole family at the farm.",
            "",
            "## Family Movie Night",
            "Location: Magnuson Park",
            "Free (donations appreciated)",
            "Bring blankets and chairs for an outdoor screening under the stars.",
            "",
            "Back to top",
        ]
    )
