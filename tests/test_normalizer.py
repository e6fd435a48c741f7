"""Tests for number normalization and input validation."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import logging

from call_blacklist import Normalizer, StaticCountryResolver, classify_input, normalize_number
from call_blacklist.normalizer import format_e164, is_iso_digits, resolve_region


US = StaticCountryResolver(network_country=None, region="US")
NOWHERE = StaticCountryResolver(network_country=None, region="")


def _plain(number):
    return Normalizer(resolver=NOWHERE).normalize(number)


# ── Canonical form ───────────────────────────────────────────────────

def test_plain_digits_unchanged_without_region():
    for s in ["0", "5551234", "0044207946", "123456789012345"]:
        assert _plain(s) == (s, False)


def test_punctuation_dropped():
    assert _plain("(555) 123-4567").number == "5551234567"


def test_leading_plus_kept_inner_plus_dropped():
    assert _plain("+44+20").number == "+4420"
    assert _plain("12+34").number == "1234"


def test_plus_after_dropped_prefix_is_leading():
    assert _plain(" +49 30").number == "+4930"


def test_only_plus():
    assert _plain("+") == ("+", False)


def test_empty_input():
    assert _plain("") == ("", False)
    assert normalize_number("", US) == ("", False)
    assert _plain(None) == ("", False)


def test_wildcards_map_in_order():
    assert _plain("5*5.5*") == ("5%5_5%", False)


def test_wildcards_never_e164():
    number, is_e164 = normalize_number("650*", US)
    assert number == "650%"
    assert is_e164 is False
    assert normalize_number("+1650253000.", US) == ("+1650253000_", False)


def test_unicode_digits():
    assert _plain("\u0665\u0665\u0665\u0661\u0662\u0663").number == "555123"  # Arabic-Indic
    assert _plain("\uff10\uff11\uff12").number == "012"  # fullwidth


def test_keypad_letters():
    assert _plain("1-800-FLOWERS").number == "18003569377"
    assert _plain("call me").number == "225563"


def test_letter_rewrite_runs_once():
    calls = []

    def mapper(text):
        calls.append(text)
        return text.replace("a", "2")

    n = Normalizer(resolver=NOWHERE, letters_to_digits=mapper)
    # "x" survives the mapper and is then dropped like any other character
    assert n.normalize("a1x").number == "21"
    assert calls == ["a1x"]


def test_idempotent():
    for s in ["+1 (650) 253-0000", "555-12.*", "1-800-FLOWERS", "+", ""]:
        once = normalize_number(s, US).number
        assert normalize_number(once, US).number == once


# ── E.164 ─────────────────────────────────────────────────────────────

def test_e164_with_region():
    assert normalize_number("(650) 253-0000", US) == ("+16502530000", True)


def test_e164_keypad_example():
    assert normalize_number("1-800-FLOWERS", US) == ("+18003569377", True)


def test_e164_fails_without_region():
    assert normalize_number("6502530000", NOWHERE) == ("6502530000", False)


def test_e164_invalid_number_falls_back():
    assert normalize_number("123", US) == ("123", False)


def test_format_e164_direct():
    assert format_e164("6502530000", "US") == "+16502530000"
    assert format_e164("", "US") is None
    assert format_e164("650%", "US") is None


def test_network_country_preferred():
    resolver = StaticCountryResolver(network_country="gb", region="US")
    assert resolve_region(resolver) == "GB"
    assert resolve_region(US) == "US"

    seen = []

    def formatter(digits, region):
        seen.append(region)
        return None

    Normalizer(resolver=resolver, formatter=formatter).normalize("123")
    assert seen == ["GB"]


def test_empty_input_not_formatted():
    seen = []
    Normalizer(resolver=US, formatter=lambda d, r: seen.append(d)).normalize("-- --")
    assert seen == []


# ── Input validity ───────────────────────────────────────────────────

def test_pattern_always_valid():
    assert classify_input("555*", normalize_number) == ("555%", True)
    assert classify_input("abc.", lambda s: normalize_number(s, NOWHERE)) == ("222_", True)


def test_e164_literal_valid():
    assert classify_input("+1 650-253-0000", lambda s: normalize_number(s, US)) == ("+16502530000", True)


def test_plain_digits_valid_without_e164():
    assert classify_input("5551234", lambda s: normalize_number(s, NOWHERE)) == ("5551234", True)


def test_garbled_literal_invalid():
    assert classify_input("555-1234", lambda s: normalize_number(s, NOWHERE)) == ("5551234", False)
    assert classify_input("hello", lambda s: normalize_number(s, NOWHERE)) == ("43556", False)


def test_iso_digits():
    assert is_iso_digits("0123456789")
    assert is_iso_digits("")
    assert not is_iso_digits("+1")
    assert not is_iso_digits("٥")


# ── Collaborator failures ────────────────────────────────────────────

class BrokenResolver:
    def network_country_code(self):
        raise RuntimeError("telephony service unavailable")

    def locale_region(self):
        return "US"


def test_broken_resolver_keeps_canonical_form(caplog):
    with caplog.at_level(logging.WARNING):
        result = Normalizer(resolver=BrokenResolver()).normalize("(650) 253-0000")
    assert result == ("6502530000", False)
    assert "E.164 formatting failed" in caplog.text


def test_broken_formatter_keeps_canonical_form():
    def formatter(digits, region):
        raise ValueError("no metadata")

    assert Normalizer(resolver=US, formatter=formatter).normalize("555-1234") == ("5551234", False)
