"""Matcher — the main API.  Decides whether a call or message is blocked.

Usage:
    from call_blacklist import Blacklist, RuleStore, CheckMode, BLOCK_CALLS

    blacklist = Blacklist(RuleStore(), settings)
    blacklist.add_or_update("+15551234567", BLOCK_CALLS, BLOCK_CALLS)
    blacklist.is_listed("+1 555 123 4567", CheckMode.CALLS)  # MATCHED_LITERAL

Checks run in a fixed order and stop at the first answer:

    1. master switch off           → NO_MATCH
    2. unknown-number block        → MATCHED_UNKNOWN
    3. empty number (private)      → MATCHED_PRIVATE or NO_MATCH
    4. list / pattern rows         → fold_rows()
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable

from .normalizer import Normalizer, classify_input
from .store import IdentityLookup, RuleSource
from .types import CheckMode, MatchResult, PolicyFlags, RuleEntry, SettingsSource

logger = logging.getLogger(__name__)

_MODES = (CheckMode.CALLS, CheckMode.MESSAGES)


@dataclass(frozen=True, slots=True)
class ScanState:
    result: MatchResult = MatchResult.NO_MATCH
    whitelisted: bool = False


def scan_step(state: ScanState, entry: RuleEntry, mode: CheckMode) -> tuple[ScanState, bool]:
    """Apply one rule row.  Returns the new state and whether to stop."""
    blocked = entry.blocked_for(mode)
    if not entry.is_regex:
        # The last literal row decides the whitelist flag; a literal block wins outright
        return ScanState(MatchResult.MATCHED_LITERAL, whitelisted=not blocked), blocked
    if blocked:
        return ScanState(MatchResult.MATCHED_PATTERN, state.whitelisted), False
    return state, False


def fold_rows(rows: Iterable[RuleEntry], mode: CheckMode) -> MatchResult:
    state = ScanState()
    for entry in rows:
        state, stop = scan_step(state, entry, mode)
        if stop:
            break
    if state.whitelisted:
        return MatchResult.NO_MATCH
    return state.result


def _is_unknown(number: str, identity: IdentityLookup | None) -> bool:
    if identity is None:
        logger.debug("Unknown-number block enabled but no identity lookup configured")
        return False
    try:
        found = identity.lookup(number)
    except Exception:
        logger.warning("Identity lookup failed for %r, skipping unknown check", number, exc_info=True)
        return False
    return found is None or not found.exists


def check_number(
    number: str | None,
    mode: CheckMode,
    policy: PolicyFlags,
    rules: RuleSource,
    *,
    identity: IdentityLookup | None = None,
    normalizer: Normalizer | None = None,
) -> MatchResult:
    """Classify number against the rules under policy.

    Never raises for bad input or collaborator failures; those resolve to
    NO_MATCH so a call or message is let through.
    """
    if not policy.enabled:
        return MatchResult.NO_MATCH

    if isinstance(mode, bool) or mode not in _MODES:
        logger.error("Invalid mode %r", mode)
        return MatchResult.NO_MATCH
    mode = CheckMode(mode)

    logger.debug("Checking number %r against the blacklist for %s", number, mode.name)

    if policy.blocks_unknown(mode) and _is_unknown(number or "", identity):
        logger.debug("Blacklist matched due to unknown number")
        return MatchResult.MATCHED_UNKNOWN

    if not number:
        if policy.blocks_private(mode):
            logger.debug("Blacklist matched due to private number")
            return MatchResult.MATCHED_PRIVATE
        return MatchResult.NO_MATCH

    try:
        normalized = (normalizer or Normalizer()).normalize(number).number
    except Exception:
        logger.warning("Normalizing %r failed, treating as no match", number, exc_info=True)
        return MatchResult.NO_MATCH

    try:
        rows = rules.query(normalized, policy.regex)
    except Exception:
        logger.warning("Rule query failed for %r, treating as no match", normalized, exc_info=True)
        return MatchResult.NO_MATCH

    result = fold_rows(rows, mode)
    logger.debug("Blacklist check result for %r is %s", number, result.name)
    return result


class Blacklist:
    """Rule store + settings + collaborators behind the three public operations."""

    def __init__(
        self,
        rules: RuleSource,
        settings: SettingsSource,
        *,
        identity: IdentityLookup | None = None,
        normalizer: Normalizer | None = None,
    ) -> None:
        self.rules = rules
        self.settings = settings
        self.identity = identity
        self.normalizer = normalizer or Normalizer()

    def policy(self) -> PolicyFlags:
        return PolicyFlags.from_settings(self.settings)

    def add_or_update(self, number: str, flags: int, valid: int) -> bool:
        """Set per-mode block flags for number, only for the bits in valid.

        Returns True if the store reports at least one row affected.
        """
        if not self.enabled:
            return False

        fields: dict[str, bool] = {}
        if valid & CheckMode.CALLS:
            fields["block_calls"] = bool(flags & CheckMode.CALLS)
        if valid & CheckMode.MESSAGES:
            fields["block_messages"] = bool(flags & CheckMode.MESSAGES)

        normalized = self.normalizer.normalize(number).number
        count = self.rules.update(normalized, fields)
        logger.debug("Updated %r with %s: %d row(s)", normalized, fields, count)
        return count > 0

    def is_listed(self, number: str | None, mode: CheckMode) -> MatchResult:
        try:
            policy = self.policy()
        except Exception:
            logger.warning("Reading blacklist settings failed, treating as no match", exc_info=True)
            return MatchResult.NO_MATCH
        return check_number(
            number, mode, policy, self.rules,
            identity=self.identity, normalizer=self.normalizer,
        )

    def is_valid_input(self, number: str) -> tuple[str, bool]:
        """Normalize a user-entered rule and say whether it may be stored."""
        return classify_input(number, self.normalizer.normalize)

    # ------------------------------------------------------------------
    # Settings accessors
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self.policy().enabled

    @property
    def notify_enabled(self) -> bool:
        return self.policy().notify

    @property
    def regex_enabled(self) -> bool:
        return self.policy().regex

    def private_number_enabled(self, mode: CheckMode) -> bool:
        return self.policy().blocks_private(mode)

    def unknown_number_enabled(self, mode: CheckMode) -> bool:
        return self.policy().blocks_unknown(mode)
