"""Tests for text and price normalization helpers."""

from decimal import Decimal

import pytest

from pricecompare.scrapers.utils.normalizer import (
    format_price,
    normalize_text,
    normalize_url,
    parse_currency_amount,
    sanitize_query,
    to_ascii_digits,
    token_score,
    tokenize,
)


class TestDigitFolding:
    def test_arabic_indic_digits(self):
        assert to_ascii_digits("١٢٣") == "123"

    def test_eastern_arabic_indic_digits(self):
        assert to_ascii_digits("۴۵۶") == "456"

    def test_separators(self):
        assert to_ascii_digits("١٬٢٣٤٫٥") == "1,234.5"

    def test_none(self):
        assert to_ascii_digits(None) == ""


class TestParseCurrencyAmount:
    @pytest.mark.parametrize(
        "raw",
        [
            "1,234.500 KWD",
            "١٬٢٣٤٫٥٠٠ KWD",
            "KD 1234.5",
            "1234.500 د.ك",
        ],
    )
    def test_kuwaiti_formats(self, raw):
        assert parse_currency_amount(raw) == Decimal("1234.5")

    def test_integer_price(self):
        assert parse_currency_amount("12 KD") == Decimal("12")

    def test_numeric_input(self):
        assert parse_currency_amount(3.75) == Decimal("3.75")
        assert parse_currency_amount(5) == Decimal("5")

    def test_no_number_is_unknown(self):
        assert parse_currency_amount("Price on request") is None
        assert parse_currency_amount("KWD") is None

    def test_non_values(self):
        assert parse_currency_amount(None) is None
        assert parse_currency_amount(True) is None
        assert parse_currency_amount({"amount": 1}) is None

    def test_non_finite_float(self):
        assert parse_currency_amount(float("inf")) is None


class TestTokenScore:
    def test_relevant_candidate_passes_threshold(self):
        assert token_score("shawarma", "Chicken Shawarma Wrap") >= 0.25

    def test_unrelated_candidate_is_below_threshold(self):
        assert token_score("shawarma", "Diet Coke") < 0.25

    def test_identical_strings(self):
        # Jaccard 1.0 plus the containment bonus
        assert token_score("iPhone 15", "iphone 15") == pytest.approx(1.15)

    def test_empty_query(self):
        assert token_score("", "anything") == 0.0

    def test_arabic_tokens(self):
        assert token_score("شاورما", "شاورما دجاج") > 0.5


class TestTextHelpers:
    def test_normalize_text_strips_punctuation(self):
        assert normalize_text("  Chicken/Shawarma (Large)! ") == "chicken shawarma large"

    def test_tokenize(self):
        assert tokenize("Big Big burger") == {"big", "burger"}
        assert tokenize("") == set()


class TestFormatPrice:
    def test_trailing_zeros_dropped(self):
        assert format_price(Decimal("1.250")) == "1.25 KWD"

    def test_custom_unit(self):
        assert format_price(Decimal("199.000"), "KD") == "199 KD"

    def test_none(self):
        assert format_price(None) is None


class TestSanitizeQuery:
    def test_collapses_whitespace_and_control_chars(self):
        assert sanitize_query("  chicken\t\n shawarma\x00 ") == "chicken shawarma"

    def test_truncates(self):
        assert sanitize_query("a" * 200, max_length=120) == "a" * 120

    def test_none(self):
        assert sanitize_query(None) == ""


class TestNormalizeUrl:
    def test_strips_tracking_and_fragment(self):
        url = "HTTPS://Www.Talabat.com/kuwait/menu?id=3&utm_source=x&utm_foo=y&gclid=1#top"
        assert normalize_url(url) == "https://www.talabat.com/kuwait/menu?id=3"

    def test_empty(self):
        assert normalize_url("") == ""
