"""YAML/dict config loader for call-blacklist.

Supports loading from a YAML file or a plain dict (for embedding in a
larger telephony config).

Example YAML:

    blacklist:
      enabled: true
      notify: true
      regex: false
      private_numbers: [calls]       # modes that block withheld numbers
      unknown_numbers: [messages]    # modes that block non-contacts
      country:
        network: us                  # SIM/network ISO code, optional
        locale_region: US
      contacts:
        - "+15551234567"
      store:
        backend: sqlite              # "memory" or "sqlite"
        path: ~/.call-blacklist/rules.db
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Iterable

from .matcher import Blacklist
from .normalizer import Normalizer, StaticCountryResolver
from .store import ContactBook, RuleStore
from .store_sqlite import SqliteRuleStore
from .types import (
    CheckMode,
    KEY_ENABLED,
    KEY_NOTIFY,
    KEY_PRIVATE_MODE,
    KEY_REGEX,
    KEY_UNKNOWN_MODE,
)


class DictSettings:
    """Settings store over a plain dict of ints/bools."""

    __slots__ = ("_values",)

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def get_bool(self, key: str, default: bool) -> bool:
        return bool(self._values.get(key, default))

    def get_bitmask(self, key: str, default: int) -> int:
        return int(self._values.get(key, default))

    def put(self, key: str, value: bool | int) -> None:
        self._values[key] = int(value)


def modes_to_mask(modes: Iterable[str]) -> int:
    """["calls", "messages"] → bitmask."""
    mask = 0
    for name in modes:
        try:
            mask |= CheckMode[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown mode {name!r} (expected 'calls' or 'messages')") from None
    return int(mask)


def load_config(data: dict[str, Any]) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    # Support nested under "blacklist" key or flat
    if "blacklist" in data:
        data = data["blacklist"] or {}

    country = data.get("country") or {}
    store = data.get("store") or {}
    return {
        "enabled": data.get("enabled", True),
        "notify": data.get("notify", True),
        "regex": data.get("regex", False),
        "private_mode": modes_to_mask(data.get("private_numbers") or []),
        "unknown_mode": modes_to_mask(data.get("unknown_numbers") or []),
        "network_country": country.get("network"),
        "locale_region": country.get("locale_region"),
        "contacts": list(data.get("contacts") or []),
        "store_configured": bool(store),
        "store_backend": store.get("backend", "memory"),
        "store_path": store.get("path", "rules.db"),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f) or {})


def settings_from_config(cfg: dict[str, Any]) -> DictSettings:
    return DictSettings({
        KEY_ENABLED: int(bool(cfg["enabled"])),
        KEY_NOTIFY: int(bool(cfg["notify"])),
        KEY_PRIVATE_MODE: cfg["private_mode"],
        KEY_UNKNOWN_MODE: cfg["unknown_mode"],
        KEY_REGEX: int(bool(cfg["regex"])),
    })


def create_blacklist(
    config: dict[str, Any],
    *,
    db_path: str | Path | None = None,
) -> Blacklist:
    """Create a fully configured Blacklist from a config dict.

    db_path overrides the configured store and forces the SQLite backend.
    """
    cfg = load_config(config) if "store_backend" not in config else config

    resolver = StaticCountryResolver(network_country=cfg["network_country"])
    if cfg["locale_region"]:
        resolver.region = cfg["locale_region"]
    normalizer = Normalizer(resolver=resolver)

    if db_path is not None:
        rules = SqliteRuleStore(db_path=db_path)
    elif cfg["store_backend"] == "sqlite":
        rules = SqliteRuleStore(db_path=cfg["store_path"])
    elif cfg["store_backend"] == "memory":
        rules = RuleStore()
    else:
        raise ValueError(f"Unknown store backend {cfg['store_backend']!r}")

    identity = ContactBook(cfg["contacts"], normalizer=normalizer)
    return Blacklist(
        rules,
        settings_from_config(cfg),
        identity=identity,
        normalizer=normalizer,
    )
