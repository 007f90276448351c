"""
Field Extractor.

Turns one RawBlock into an ExtractedEvent by running the ordered rule
tables in ``patterns`` over the block's space-joined text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from family_activities.configs.config import Config
from family_activities.ingestion.normalization.age_groups import tags_for_text
from family_activities.ingestion.normalization.patterns import (
    DATE_RULES,
    LOCATION_RULES,
    PRICE_RULES,
    TIME_RULES,
    first_match,
)
from family_activities.ingestion.segmentation import RawBlock
from family_activities.schemas.extraction import ExtractedEvent

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LINE = 20
MAX_DESCRIPTION_LINE = 500
MAX_DESCRIPTION_LINES = 3


@dataclass
class ExtractionStats:
    """Per-run match counters."""

    date_matches: int = 0
    time_matches: int = 0
    location_matches: int = 0
    price_matches: int = 0
    age_group_matches: int = 0
    events_created: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "date_matches": self.date_matches,
            "time_matches": self.time_matches,
            "location_matches": self.location_matches,
            "price_matches": self.price_matches,
            "age_group_matches": self.age_group_matches,
            "events_created": self.events_created,
        }


class FieldExtractor:
    """
    First-match-wins field extraction for a single block.

    No field is required; anything not found stays empty and is judged by
    the validator later.
    """

    def __init__(self, metadata_labels: Optional[list[str]] = None):
        if metadata_labels is None:
            metadata_labels = Config.get_section("segmentation").get("metadata_labels", [])
        self.metadata_labels = [label.lower() for label in metadata_labels]

    def extract(self, block: RawBlock, stats: Optional[ExtractionStats] = None) -> ExtractedEvent:
        """
        Extract typed fields from ``block``.

        Args:
            block: Segmented block
            stats: Counters to update, if the caller is tracking a run

        Returns:
            ExtractedEvent with empty strings for fields that were not found
        """
        text = block.text

        date_text, date_rule = first_match(DATE_RULES, text)
        time_text, time_rule = first_match(TIME_RULES, text)
        location_text, location_rule = first_match(LOCATION_RULES, text)
        price_text, price_rule = first_match(PRICE_RULES, text)
        age_tags = tags_for_text(text)

        logger.debug(
            f"Block '{block.title}': date={date_rule} time={time_rule} "
            f"location={location_rule} price={price_rule} ages={len(age_tags)}"
        )

        if stats is not None:
            stats.date_matches += bool(date_text)
            stats.time_matches += bool(time_text)
            stats.location_matches += bool(location_text)
            stats.price_matches += bool(price_text)
            stats.age_group_matches += bool(age_tags)
            stats.events_created += 1

        return ExtractedEvent(
            title=block.title,
            description=self.build_description(block),
            date_text=date_text or "",
            time_text=time_text or "",
            location_text=location_text or "",
            price_text=price_text or "",
            age_group_tags=frozenset(age_tags),
            raw_block_text="\n".join(block.lines),
        )

    def build_description(self, block: RawBlock) -> str:
        """
        Join up to three prose lines of the block body.

        Lines carrying a metadata label are skipped, as are fragments
        (20 chars or fewer) and boilerplate (500 chars or more).
        """
        picked: list[str] = []
        for line in block.body_lines:
            if len(picked) >= MAX_DESCRIPTION_LINES:
                break
            if self.is_metadata_line(line):
                continue
            if MIN_DESCRIPTION_LINE < len(line) < MAX_DESCRIPTION_LINE:
                picked.append(line)
        return " ".join(picked)

    def is_metadata_line(self, line: str) -> bool:
        lower = line.lower()
        return any(label in lower for label in self.metadata_labels)
