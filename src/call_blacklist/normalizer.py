"""Number normalization — the canonical form every rule and lookup uses.

Raw input (user-typed rules or caller-ID strings) is folded to ASCII digits,
an optional leading ``+`` and SQL-style wildcards:

    "1-800-FLOWERS"  →  "18003569377"  →  "+18003569377" (E.164, region US)
    "555*"           →  "555%"         (pattern, never E.164)
    "+49 (0) 30.."   →  "+49030__"
"""

from __future__ import annotations
import locale
import logging
import string
import unicodedata
from dataclasses import dataclass, field
from typing import Callable, Protocol

import phonenumbers

from .types import NormalizedNumber

logger = logging.getLogger(__name__)


_LETTERS = frozenset(string.ascii_letters)
_ISO_DIGITS = frozenset(string.digits)

# Wildcards: "*" matches any run, "." exactly one character
_WILDCARDS = {"*": "%", ".": "_"}


class CountryResolver(Protocol):
    def network_country_code(self) -> str | None: ...
    def locale_region(self) -> str: ...


def _process_region() -> str:
    lang = locale.getlocale()[0] or ""
    _, _, region = lang.partition("_")
    return region.upper()


@dataclass
class StaticCountryResolver:
    """Country resolver with fixed answers (config or tests)."""
    network_country: str | None = None
    region: str = field(default_factory=_process_region)

    def network_country_code(self) -> str | None:
        return self.network_country

    def locale_region(self) -> str:
        return self.region


def resolve_region(resolver: CountryResolver) -> str:
    """Network/SIM country first, locale region as fallback."""
    code = resolver.network_country_code()
    if code:
        return code.upper()
    return (resolver.locale_region() or "").upper()


def format_e164(digits: str, region: str) -> str | None:
    """Strict E.164 formatting, or None if the number isn't valid for region."""
    if not digits or is_input_regex(digits):
        return None
    try:
        parsed = phonenumbers.parse(digits, region or None)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def is_input_regex(text: str) -> bool:
    return "%" in text or "_" in text


def is_iso_digits(text: str) -> bool:
    """True if every character is an ASCII digit (vacuously true for "")."""
    return all(c in _ISO_DIGITS for c in text)


def _canonicalize(number: str, letters_to_digits: Callable[[str], str]) -> str:
    text = number
    rewritten = False
    while True:
        out: list[str] = []
        for c in text:
            digit = unicodedata.decimal(c, None)
            if digit is not None:
                out.append(str(digit))
            elif c in _LETTERS and not rewritten:
                break
            elif c == "+" and not out:
                out.append(c)
            elif c in _WILDCARDS:
                out.append(_WILDCARDS[c])
        else:
            return "".join(out)
        # Letter seen: rewrite keypad letters once and start over
        text = letters_to_digits(text)
        rewritten = True


@dataclass
class Normalizer:
    """Canonicalizes numbers and tries E.164 with the resolved country."""
    resolver: CountryResolver = field(default_factory=StaticCountryResolver)
    letters_to_digits: Callable[[str], str] = phonenumbers.convert_alpha_characters_in_number
    formatter: Callable[[str, str], str | None] = format_e164

    def normalize(self, number: str | None) -> NormalizedNumber:
        canonical = _canonicalize(number or "", self.letters_to_digits)
        if not canonical:
            return NormalizedNumber(canonical, False)
        try:
            e164 = self.formatter(canonical, resolve_region(self.resolver))
        except Exception:
            logger.warning("E.164 formatting failed for %r, keeping canonical form", canonical, exc_info=True)
            return NormalizedNumber(canonical, False)
        if e164 is None:
            return NormalizedNumber(canonical, False)
        return NormalizedNumber(e164, True)


def normalize_number(
    number: str | None,
    resolver: CountryResolver | None = None,
) -> NormalizedNumber:
    """Normalize with a one-off Normalizer (see Normalizer.normalize)."""
    if resolver is None:
        return Normalizer().normalize(number)
    return Normalizer(resolver=resolver).normalize(number)


def classify_input(
    raw: str,
    normalize: Callable[[str], NormalizedNumber] = normalize_number,
) -> tuple[str, bool]:
    """Normalize a user-entered rule and report whether it may be stored.

    Patterns are always accepted.  Literals must either format as E.164 or
    already be a plain ASCII digit string.
    """
    number, is_e164 = normalize(raw)
    if is_input_regex(number):
        return number, True
    if not is_e164 and not is_iso_digits(raw):
        return number, False
    return number, True
