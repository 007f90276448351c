"""
Currency Parser.

Classifies free-text price strings into a PricingInfo and identifies the
currency (no conversion). Amounts stay in their original currency.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from family_activities.configs.settings import get_settings
from family_activities.schemas.activity import PricingInfo, PricingType

logger = logging.getLogger(__name__)

MISSING_PRICE_DESCRIPTION = "Contact for pricing"


class CurrencyParser:
    """
    Parse price strings and identify currency.

    Does NOT convert currencies - keeps original values.
    """

    # Multi-character symbols first so "R$" is not read as "$"
    SYMBOL_TO_CODE = {
        "R$": "BRL",
        "A$": "AUD",
        "C$": "CAD",
        "CHF": "CHF",
        "€": "EUR",
        "£": "GBP",
        "$": "USD",
        "¥": "JPY",
        "₹": "INR",
    }

    # Currency name/code patterns
    CURRENCY_PATTERNS = {
        "EUR": [r"\beur\b", r"\beuro\b", r"\beuros\b"],
        "GBP": [r"\bgbp\b", r"\bpound\b", r"\bpounds\b", r"\bsterling\b"],
        "USD": [r"\busd\b", r"\bdollar\b", r"\bdollars\b"],
        "CAD": [r"\bcad\b"],
    }

    FREE_KEYWORDS = ["free", "no cost", "no charge", "complimentary"]
    DONATION_KEYWORDS = ["donation", "suggested", "pay what you can"]

    # 1,200.50 | 15 | 15.50 | 15,50
    _NUMBER = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:[.,]\d+)?")

    @classmethod
    def classify_price(cls, price_str: Optional[str]) -> PricingInfo:
        """
        Classify a price string.

        Precedence is free -> donation -> paid -> variable:
        - "Free (donations appreciated)" -> free
        - "Suggested donation $5" -> donation
        - "$15 adults" -> paid, cost 15
        - "Varies by session" -> variable
        - "" / None -> variable, "Contact for pricing"

        Args:
            price_str: Raw price text

        Returns:
            PricingInfo with type, cost, currency and description
        """
        default_currency = get_settings().DEFAULT_CURRENCY

        if not price_str or not price_str.strip():
            return PricingInfo(
                type=PricingType.VARIABLE,
                currency=default_currency,
                description=MISSING_PRICE_DESCRIPTION,
            )

        price_str = " ".join(price_str.split())
        currency = cls.detect_currency(price_str) or default_currency

        if cls._is_free(price_str):
            return PricingInfo(
                type=PricingType.FREE, cost=Decimal("0"), currency=currency, description="Free"
            )

        if cls._is_donation(price_str):
            return PricingInfo(type=PricingType.DONATION, currency=currency, description=price_str)

        numbers = cls._extract_numbers(price_str)
        if numbers:
            cost = numbers[0]
            if cost == 0:
                return PricingInfo(
                    type=PricingType.FREE, cost=cost, currency=currency, description="Free"
                )
            return PricingInfo(
                type=PricingType.PAID, cost=cost, currency=currency, description=price_str
            )

        logger.debug(f"No amount found in price '{price_str}', classifying as variable")
        return PricingInfo(type=PricingType.VARIABLE, currency=currency, description=price_str)

    @classmethod
    def detect_currency(cls, price_str: str) -> str:
        """
        Detect currency from price string.

        Args:
            price_str: Price string to analyze

        Returns:
            ISO currency code (e.g., "EUR") or empty string if not detected
        """
        if not price_str:
            return ""

        # Check for currency symbols
        for symbol, code in cls.SYMBOL_TO_CODE.items():
            if symbol in price_str:
                return code

        # Check for currency names/codes in text
        price_lower = price_str.lower()
        for code, patterns in cls.CURRENCY_PATTERNS.items():
            for pattern in patterns:
                if re.search(pattern, price_lower):
                    return code

        return ""

    @classmethod
    def _is_free(cls, price_str: str) -> bool:
        """Check if price indicates a free activity."""
        price_lower = price_str.lower()
        return any(keyword in price_lower for keyword in cls.FREE_KEYWORDS)

    @classmethod
    def _is_donation(cls, price_str: str) -> bool:
        price_lower = price_str.lower()
        return any(keyword in price_lower for keyword in cls.DONATION_KEYWORDS)

    @classmethod
    def _extract_numbers(cls, price_str: str) -> list[Decimal]:
        """
        Extract numeric values from price string, in order of appearance.

        Handles:
        - "15" -> [15]
        - "15.50" -> [15.50]
        - "15,50" -> [15.50] (European format)
        - "$1,200" -> [1200]
        - "$10-$20" -> [10, 20]
        """
        numbers = []
        for match in cls._NUMBER.findall(price_str):
            if re.fullmatch(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?", match):
                normalized = match.replace(",", "")
            else:
                # Convert European format (comma decimal) to standard
                normalized = match.replace(",", ".")
            try:
                numbers.append(Decimal(normalized))
            except InvalidOperation:
                continue

        return numbers
