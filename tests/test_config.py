"""Tests for config loading and the Blacklist factory."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from call_blacklist import CheckMode, MatchResult, RuleStore, SqliteRuleStore, create_blacklist, load_config, load_from_yaml
from call_blacklist.config import DictSettings, modes_to_mask, settings_from_config
from call_blacklist.types import KEY_ENABLED, KEY_PRIVATE_MODE, KEY_REGEX


def test_defaults():
    cfg = load_config({})
    assert cfg["enabled"] is True
    assert cfg["notify"] is True
    assert cfg["regex"] is False
    assert cfg["private_mode"] == 0
    assert cfg["store_backend"] == "memory"
    assert cfg["store_configured"] is False
    assert load_config({"store": {"backend": "sqlite"}})["store_configured"] is True


def test_nested_key():
    cfg = load_config({"blacklist": {"enabled": False, "private_numbers": ["messages"]}})
    assert cfg["enabled"] is False
    assert cfg["private_mode"] == 2


def test_modes_to_mask():
    assert modes_to_mask([]) == 0
    assert modes_to_mask(["calls"]) == 1
    assert modes_to_mask(["Calls", "MESSAGES"]) == 3
    with pytest.raises(ValueError):
        modes_to_mask(["faxes"])


def test_settings_from_config():
    settings = settings_from_config(load_config({"regex": True, "private_numbers": ["calls"]}))
    assert settings.get_bool(KEY_REGEX, False) is True
    assert settings.get_bitmask(KEY_PRIVATE_MODE, 0) == 1
    assert settings.get_bool(KEY_ENABLED, False) is True


def test_dict_settings_defaults():
    settings = DictSettings()
    assert settings.get_bool("missing", True) is True
    assert settings.get_bitmask("missing", 7) == 7


def test_load_from_yaml(tmp_path):
    path = tmp_path / "blacklist.yaml"
    path.write_text(
        "blacklist:\n"
        "  regex: true\n"
        "  unknown_numbers: [calls]\n"
        "  country:\n"
        "    locale_region: US\n"
        "  contacts:\n"
        "    - '+16502530000'\n"
    )
    cfg = load_from_yaml(path)
    assert cfg["regex"] is True
    assert cfg["unknown_mode"] == 1
    assert cfg["locale_region"] == "US"
    assert cfg["contacts"] == ["+16502530000"]


def test_create_blacklist_memory():
    bl = create_blacklist({
        "blacklist": {
            "unknown_numbers": ["calls"],
            "country": {"locale_region": "US"},
            "contacts": ["650-253-0000"],
        },
    })
    assert isinstance(bl.rules, RuleStore)
    assert bl.is_listed("+16502530000", CheckMode.CALLS) == MatchResult.NO_MATCH
    assert bl.is_listed("+16502530001", CheckMode.CALLS) == MatchResult.MATCHED_UNKNOWN


def test_create_blacklist_sqlite(tmp_path):
    path = tmp_path / "rules.db"
    bl = create_blacklist({"store": {"backend": "sqlite", "path": str(path)}})
    assert isinstance(bl.rules, SqliteRuleStore)
    bl.rules.close()
    assert path.exists()


def test_create_blacklist_db_path_override(tmp_path):
    bl = create_blacklist({}, db_path=tmp_path / "rules.db")
    assert isinstance(bl.rules, SqliteRuleStore)
    bl.rules.close()


def test_unknown_backend():
    with pytest.raises(ValueError):
        create_blacklist({"store": {"backend": "redis"}})
