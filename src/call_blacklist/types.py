"""Core types."""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import NamedTuple, Protocol


class CheckMode(enum.IntFlag):
    """What is being checked.  Bit values double as add/update masks."""
    CALLS = 1
    MESSAGES = 2


BLOCK_CALLS = CheckMode.CALLS
BLOCK_MESSAGES = CheckMode.MESSAGES


class MatchResult(enum.IntEnum):
    """Final classification of a number (not a score)."""
    NO_MATCH = 0
    MATCHED_PRIVATE = 1
    MATCHED_UNKNOWN = 2
    MATCHED_LITERAL = 3
    MATCHED_PATTERN = 4


class NormalizedNumber(NamedTuple):
    number: str        # "+15551234567", "555%", ...
    is_e164: bool


@dataclass(frozen=True, slots=True)
class RuleEntry:
    """A stored rule row."""
    number: str            # literal number or SQL-style pattern
    is_regex: bool
    block_calls: bool
    block_messages: bool

    def blocked_for(self, mode: CheckMode) -> bool:
        return self.block_calls if mode == CheckMode.CALLS else self.block_messages


@dataclass(frozen=True, slots=True)
class Identity:
    """Result of a caller-identity lookup."""
    number: str
    exists: bool


class SettingsSource(Protocol):
    def get_bool(self, key: str, default: bool) -> bool: ...
    def get_bitmask(self, key: str, default: int) -> int: ...


# Setting keys
KEY_ENABLED = "phone_blacklist_enabled"
KEY_NOTIFY = "phone_blacklist_notify_enabled"
KEY_PRIVATE_MODE = "phone_blacklist_private_number_mode"
KEY_UNKNOWN_MODE = "phone_blacklist_unknown_number_mode"
KEY_REGEX = "phone_blacklist_regex_enabled"


@dataclass(frozen=True, slots=True)
class PolicyFlags:
    """Blacklist settings resolved once per check."""
    enabled: bool = True
    notify: bool = True
    private_calls: bool = False
    private_messages: bool = False
    unknown_calls: bool = False
    unknown_messages: bool = False
    regex: bool = False

    @classmethod
    def from_settings(cls, settings: SettingsSource) -> "PolicyFlags":
        private = settings.get_bitmask(KEY_PRIVATE_MODE, 0)
        unknown = settings.get_bitmask(KEY_UNKNOWN_MODE, 0)
        return cls(
            enabled=settings.get_bool(KEY_ENABLED, True),
            notify=settings.get_bool(KEY_NOTIFY, True),
            private_calls=bool(private & CheckMode.CALLS),
            private_messages=bool(private & CheckMode.MESSAGES),
            unknown_calls=bool(unknown & CheckMode.CALLS),
            unknown_messages=bool(unknown & CheckMode.MESSAGES),
            regex=settings.get_bool(KEY_REGEX, False),
        )

    def blocks_private(self, mode: CheckMode) -> bool:
        return self.private_calls if mode == CheckMode.CALLS else self.private_messages

    def blocks_unknown(self, mode: CheckMode) -> bool:
        return self.unknown_calls if mode == CheckMode.CALLS else self.unknown_messages


class BlacklistError(Exception):
    """Base error for call-blacklist."""


class RuleStoreError(BlacklistError):
    """The rule store could not complete a query or update."""
