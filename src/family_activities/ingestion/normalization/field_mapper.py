"""
Field Mapper for alias-based field resolution on extracted payload items.

Each target field has a ranked list of source aliases (extraction.yaml,
``field_aliases``). Resolution walks the list in order and records every
alias it tried, so the caller can report where a value came from.

Supports:
- Plain keys: "venue_name"
- Dot notation for nested fields: "venue.name"
- Array indexing: "locations[0].name"
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from family_activities.configs.config import Config
from family_activities.schemas.extraction import NOT_FOUND, MappingKind

logger = logging.getLogger(__name__)

# Anything json.loads can produce
JsonValue = Union[str, int, float, bool, None, List["JsonValue"], Dict[str, "JsonValue"]]


# ============================================================================
# NARROWING HELPERS
# ============================================================================


def as_text(value: JsonValue) -> Optional[str]:
    """
    Narrow a payload value to non-empty text.

    Numbers are rendered as text so ``{"cost": 25}`` resolves like
    ``{"cost": "25"}``. Booleans, containers and blanks give None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def as_mapping(value: JsonValue) -> Optional[Dict[str, JsonValue]]:
    return value if isinstance(value, dict) else None


def as_list(value: JsonValue) -> Optional[List[JsonValue]]:
    return value if isinstance(value, list) else None


def holds_mapping(array: Optional[List[JsonValue]]) -> bool:
    """True when ``array`` has at least one non-empty mapping element."""
    return bool(array) and any(isinstance(element, dict) and element for element in array)


def describe_value(value: JsonValue) -> str:
    """Short structural description used in diagnostics ("array[3]", "object", ...)."""
    if isinstance(value, list):
        return f"array[{len(value)}]"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return "null"


# ============================================================================
# RESOLUTION
# ============================================================================


@dataclass
class FieldResolution:
    """Outcome of resolving one target field against an item."""

    target_field: str
    value: JsonValue = None
    source_field: str = NOT_FOUND
    attempted: List[str] = field(default_factory=list)
    kind: MappingKind = MappingKind.DEFAULT

    @property
    def found(self) -> bool:
        return self.source_field != NOT_FOUND

    @property
    def text(self) -> str:
        return as_text(self.value) or ""


class FieldMapper:
    """
    Resolves target fields on one payload item through ranked aliases.

    The first alias in a list is the canonical key name: a hit there is a
    ``direct`` mapping, a hit on any later alias is a ``fallback``.
    """

    def __init__(self, aliases: Optional[Dict[str, List[str]]] = None):
        """
        Initialize the field mapper.

        Args:
            aliases: Dict mapping target field names to ranked source paths.
                Example: {"title": ["title", "name"], "location": ["venue", "venue.name"]}
                Loaded from extraction.yaml when omitted.
        """
        self.aliases = aliases if aliases is not None else Config.get_section("field_aliases")

    def aliases_for(self, target_field: str) -> List[str]:
        if target_field not in self.aliases:
            raise KeyError(f"No aliases configured for field '{target_field}'")
        return list(self.aliases[target_field])

    def resolve(
        self,
        item: Dict[str, JsonValue],
        target_field: str,
        accept_containers: bool = False,
    ) -> FieldResolution:
        """
        Try each alias of ``target_field`` in order.

        Args:
            item: One payload item
            target_field: Key into the alias table
            accept_containers: Also accept non-empty lists/objects (age
                groups arrive as lists). Otherwise only text and numbers match.

        Returns:
            FieldResolution with the winning alias, or ``not_found``
        """
        aliases = self.aliases_for(target_field)
        resolution = FieldResolution(target_field=target_field)

        for position, alias in enumerate(aliases):
            resolution.attempted.append(alias)
            value = self._extract_field(item, alias)
            if self._usable(value, accept_containers):
                resolution.value = value.strip() if isinstance(value, str) else value
                resolution.source_field = alias
                resolution.kind = MappingKind.DIRECT if position == 0 else MappingKind.FALLBACK
                logger.debug(
                    f"Resolved '{target_field}' from '{alias}' ({resolution.kind.value})"
                )
                break

        return resolution

    def first_text(self, item: Dict[str, JsonValue], paths: List[str]) -> str:
        """First non-empty text among ``paths``, or ""."""
        for path in paths:
            text = as_text(self._extract_field(item, path))
            if text:
                return text
        return ""

    @staticmethod
    def _usable(value: JsonValue, accept_containers: bool) -> bool:
        if as_text(value) is not None:
            return True
        if accept_containers and isinstance(value, (list, dict)) and value:
            return True
        return False

    def _extract_field(self, data: JsonValue, path: str) -> JsonValue:
        """
        Extract a field using dot notation or array indexing.

        Supports:
        - "field" - simple field access
        - "parent.child" - nested field access
        - "items[0]" - array index access
        - "items[0].name" - array index then nested access

        Args:
            data: Source data (dict or list)
            path: Field path with optional array notation

        Returns:
            Extracted value, or None when any step is missing
        """
        if not path:
            return data

        # Keys that literally contain a dot win over nested access
        if isinstance(data, dict) and path in data:
            return data[path]

        # Handle array index: items[0].name or items[0]
        index_match = re.match(r"^([^[.]+)\[(\d+)\](.*)$", path)
        if index_match:
            field_name = index_match.group(1)
            index = int(index_match.group(2))
            remaining_path = index_match.group(3)
            if remaining_path.startswith("."):
                remaining_path = remaining_path[1:]

            items = as_list(self._get_value(data, field_name))
            if items is None or index >= len(items):
                return None

            item = items[index]
            if remaining_path:
                return self._extract_field(item, remaining_path)
            return item

        # Simple dot notation: parent.child
        parts = path.split(".", 1)
        if len(parts) == 1:
            return self._get_value(data, parts[0])

        # Nested access
        parent_value = self._get_value(data, parts[0])
        if parent_value is None:
            return None
        return self._extract_field(parent_value, parts[1])

    def _get_value(self, data: JsonValue, key: str) -> JsonValue:
        """
        Get value from dict or return None.

        Args:
            data: Source data
            key: Key to access

        Returns:
            Value or None
        """
        mapping = as_mapping(data)
        if mapping is not None:
            return mapping.get(key)
        return None


def create_field_mapper_from_config(config: Dict[str, Any]) -> FieldMapper:
    """
    Create a FieldMapper from a YAML config dict.

    Args:
        config: Dict with a "field_aliases" section

    Example config:
        field_aliases:
          title: [title, name, event_name]
          location: [location, venue, venue.name]
    """
    return FieldMapper(aliases=config.get("field_aliases", {}))
