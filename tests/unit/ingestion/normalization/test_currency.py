"""
Unit tests for the currency module.

Tests for CurrencyParser price classification and currency detection.
"""

from decimal import Decimal

import pytest

from family_activities.ingestion.normalization.currency import MISSING_PRICE_DESCRIPTION, CurrencyParser
from family_activities.schemas.activity import PricingType


class TestClassifyPrice:
    """Tests for classify_price."""

    def test_missing(self):
        """Missing price is variable with a contact note."""
        pricing = CurrencyParser.classify_price(None)
        assert pricing.type == PricingType.VARIABLE
        assert pricing.description == MISSING_PRICE_DESCRIPTION
        assert pricing.currency == "USD"

    def test_blank(self):
        assert CurrencyParser.classify_price("   ").type == PricingType.VARIABLE

    def test_free(self):
        pricing = CurrencyParser.classify_price("Free")
        assert pricing.type == PricingType.FREE
        assert pricing.cost == Decimal("0")
        assert pricing.description == "Free"

    def test_free_beats_donation(self):
        """Free wording wins over a donation mention."""
        assert CurrencyParser.classify_price("Free (donations appreciated)").type == PricingType.FREE

    def test_free_beats_amount(self):
        pricing = CurrencyParser.classify_price("$15 adults, Free under 2")
        assert pricing.type == PricingType.FREE

    def test_donation(self):
        pricing = CurrencyParser.classify_price("Suggested donation $5")
        assert pricing.type == PricingType.DONATION
        assert pricing.description == "Suggested donation $5"
        assert pricing.cost is None

    def test_paid(self):
        pricing = CurrencyParser.classify_price("$15 adults, $12 children")
        assert pricing.type == PricingType.PAID
        assert pricing.cost == Decimal("15")
        assert pricing.description == "$15 adults, $12 children"

    def test_paid_decimal(self):
        assert CurrencyParser.classify_price("$12.50").cost == Decimal("12.50")

    def test_zero_is_free(self):
        pricing = CurrencyParser.classify_price("$0")
        assert pricing.type == PricingType.FREE

    def test_variable(self):
        pricing = CurrencyParser.classify_price("Varies by session")
        assert pricing.type == PricingType.VARIABLE
        assert pricing.description == "Varies by session"

    def test_non_usd(self):
        pricing = CurrencyParser.classify_price("€20")
        assert pricing.currency == "EUR"
        assert pricing.cost == Decimal("20")

    def test_thousands_separator(self):
        assert CurrencyParser.classify_price("$1,200 per term").cost == Decimal("1200")


class TestDetectCurrency:
    """Tests for detect_currency."""

    @pytest.mark.parametrize(
        "text, code",
        [
            ("$20", "USD"),
            ("€25", "EUR"),
            ("£15", "GBP"),
            ("R$30", "BRL"),
            ("C$12", "CAD"),
            ("20 euros", "EUR"),
            ("10 dollars", "USD"),
        ],
    )
    def test_detected(self, text, code):
        assert CurrencyParser.detect_currency(text) == code

    def test_none(self):
        assert CurrencyParser.detect_currency("15") == ""

    def test_empty(self):
        assert CurrencyParser.detect_currency("") == ""


class TestExtractNumbers:
    """Tests for _extract_numbers."""

    def test_range(self):
        assert CurrencyParser._extract_numbers("$10-$20") == [Decimal("10"), Decimal("20")]

    def test_european_decimal(self):
        assert CurrencyParser._extract_numbers("15,50") == [Decimal("15.50")]

    def test_none(self):
        assert CurrencyParser._extract_numbers("no numbers") == []
