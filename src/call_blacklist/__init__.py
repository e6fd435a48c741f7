"""call-blacklist — phone number normalization and call/message blocking rules."""

from .types import (
    BLOCK_CALLS,
    BLOCK_MESSAGES,
    BlacklistError,
    CheckMode,
    Identity,
    MatchResult,
    NormalizedNumber,
    PolicyFlags,
    RuleEntry,
    RuleStoreError,
)
from .normalizer import (
    Normalizer,
    StaticCountryResolver,
    classify_input,
    format_e164,
    normalize_number,
)
from .matcher import Blacklist, check_number, fold_rows
from .store import ContactBook, RuleStore
from .store_sqlite import SqliteRuleStore
from .config import DictSettings, create_blacklist, load_config, load_from_yaml

__all__ = [
    "BLOCK_CALLS", "BLOCK_MESSAGES", "CheckMode", "MatchResult",
    "NormalizedNumber", "PolicyFlags", "RuleEntry", "Identity",
    "BlacklistError", "RuleStoreError",
    "Normalizer", "StaticCountryResolver",
    "normalize_number", "format_e164", "classify_input",
    "Blacklist", "check_number", "fold_rows",
    "RuleStore", "SqliteRuleStore", "ContactBook",
    "DictSettings", "create_blacklist", "load_config", "load_from_yaml",
]
__version__ = "0.1.0"
