"""
Location Parser.

Resolves free-text venue names and addresses into a LocationInfo: the
known-neighborhood dictionary and nearby-city table in extraction.yaml pin
down city and region, settings supply the defaults for everything else.
Also derives domains and fallback venue names from source URLs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from family_activities.configs.config import Config
from family_activities.configs.settings import Settings, get_settings
from family_activities.schemas.activity import LocationInfo, VenueType

logger = logging.getLogger(__name__)

US_POSTAL_CODE = re.compile(r"\b(\d{5}(?:-\d{4})?)\b")
US_STATE = re.compile(r",\s*([A-Z]{2})\b(?:\s+\d{5}(?:-\d{4})?)?\s*$")

_OUTDOOR_HINTS = re.compile(r"(?i)\b(?:park|playground|garden|beach|trail|field|farm|outdoors?)\b")


@dataclass
class ParsedAddress:
    """Structured components pulled out of a free-text address."""

    street_address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None


class LocationParser:
    """
    Parse addresses and venue names without any external calls.

    Neighborhood names resolve to the default city; nearby cities carry
    their own region.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        locations: Optional[dict] = None,
    ) -> None:
        self.settings = settings or get_settings()
        locations = locations if locations is not None else Config.get_section("locations")
        self.neighborhoods: dict[str, str] = {
            key.lower(): value for key, value in (locations.get("neighborhoods") or {}).items()
        }
        self.nearby_cities: dict[str, dict[str, str]] = {
            key.lower(): value for key, value in (locations.get("nearby_cities") or {}).items()
        }

    # ------------------------------------------------------------------
    # Address parsing
    # ------------------------------------------------------------------

    def parse_address(self, raw: str) -> ParsedAddress:
        """
        Parse a free-text address or venue string.

        Example:
            >>> LocationParser().parse_address("5614 22nd Ave NW, Ballard").neighborhood
            'Ballard'
        """
        if not raw or not raw.strip():
            return ParsedAddress()

        raw = " ".join(raw.split())
        result = ParsedAddress()

        postal = US_POSTAL_CODE.search(raw)
        if postal:
            result.postal_code = postal.group(1)

        state = US_STATE.search(raw)
        if state:
            result.state = state.group(1)

        neighborhood = self._find_neighborhood(raw)
        if neighborhood:
            result.neighborhood = neighborhood
            result.city = self.settings.DEFAULT_CITY
            result.region = self.settings.DEFAULT_REGION
        else:
            nearby = self._find_nearby_city(raw)
            if nearby:
                result.city = nearby.get("city")
                result.region = nearby.get("region")

        parts = [part.strip() for part in raw.split(",") if part.strip()]
        if parts:
            result.street_address = parts[0]

        return result

    def build_location(
        self,
        name: str,
        address: Optional[str] = None,
    ) -> LocationInfo:
        """
        Assemble a LocationInfo from a venue name and optional address.

        The address is searched first, then the name, for a known
        neighborhood or city.
        """
        parsed = self.parse_address(address or "")
        if not parsed.city:
            from_name = self.parse_address(name)
            if from_name.city:
                parsed.city = from_name.city
                parsed.region = from_name.region
                parsed.neighborhood = from_name.neighborhood

        return LocationInfo(
            name=name,
            address=address or None,
            neighborhood=parsed.neighborhood,
            city=parsed.city or self.settings.DEFAULT_CITY,
            state=parsed.state or self.settings.DEFAULT_STATE,
            region=parsed.region or self.settings.DEFAULT_REGION,
            venue_type=self.venue_type(name),
        )

    @staticmethod
    def venue_type(name: str) -> VenueType:
        return VenueType.OUTDOOR if name and _OUTDOOR_HINTS.search(name) else VenueType.INDOOR

    # ------------------------------------------------------------------
    # Source URL helpers
    # ------------------------------------------------------------------

    @staticmethod
    def extract_domain(url: str) -> str:
        """
        Lower-cased host of ``url`` without scheme, port, path or ``www.``.

        Example:
            >>> LocationParser.extract_domain("https://www.spl.org/events?page=2")
            'spl.org'
        """
        text = (url or "").strip()
        if "://" not in text:
            text = f"//{text}"
        host = urlparse(text).hostname or ""
        return host[4:] if host.startswith("www.") else host

    @classmethod
    def venue_from_url(cls, url: str) -> str:
        """
        Fallback venue name built from the source domain.

        Example:
            >>> LocationParser.venue_from_url("https://www.seattle-childrens-museum.org/visit")
            'Venue from Seattle Childrens Museum'
        """
        name = cls.extract_domain(url)
        for fragment in ("www.", ".com", ".org"):
            name = name.replace(fragment, "")
        name = name.replace("-", " ")
        name = " ".join(word.capitalize() for word in name.split())
        return f"Venue from {name}" if name else "Venue from Source"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find_neighborhood(self, text: str) -> Optional[str]:
        lower = text.lower()
        for key, display in self.neighborhoods.items():
            if re.search(rf"\b{re.escape(key)}\b", lower):
                return display
        return None

    def _find_nearby_city(self, text: str) -> Optional[dict[str, str]]:
        lower = text.lower()
        for key, info in self.nearby_cities.items():
            if re.search(rf"\b{re.escape(key)}\b", lower):
                logger.debug(f"Resolved nearby city '{info.get('city')}' from '{text}'")
                return info
        return None
