# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Persistence -- key -> JSON storage for cross-run progression.

Stores
------
KeyValueStore is a tiny get/set/remove interface over raw JSON strings.
Two implementations:

  - MemoryStore    -- dict-backed, for tests and headless runs
  - JsonFileStore  -- one ``<key>.json`` file per key under a directory;
                      writes go through a temp file + rename

Profile layout
--------------
  rebirth            {"rebirth_level", "highest_wave", "total_rebirths", "lifetime_kills"}
  meta_upgrades      {"levels": {upgrade_id: int}, "currency": int}
  legendary_weapons  {"unlocked": [weapon_id], "equipped": weapon_id | null}
  run_modifiers      [modifier_id, ...]
  high_wave          int

Failure policy
--------------
Reads never raise to the simulation.  A value that cannot be parsed (or
has the wrong shape) raises PersistenceCorruption inside this module,
which the typed accessors catch, log, and replace with the documented
default.  Write failures are logged and dropped (fire-and-forget).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Protocol, TypeVar

logger = logging.getLogger("engine.persistence")

T = TypeVar("T")

REBIRTH_KEY = "rebirth"
META_UPGRADES_KEY = "meta_upgrades"
LEGENDARY_KEY = "legendary_weapons"
RUN_MODIFIERS_KEY = "run_modifiers"
HIGH_WAVE_KEY = "high_wave"


class PersistenceCorruption(Exception):
    """A persisted value exists but cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"corrupt value for '{key}': {reason}")
        self.key = key
        self.reason = reason


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-memory store (dict of raw strings)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore:
    """Directory-backed store: one file per key."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self._root / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = None
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._root, prefix=f".{path.stem}-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, path)
            tmp = None
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
        finally:
            if tmp is not None:
                try:
                    os.unlink(tmp)
                except OSError:
                    pass

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove {key}: {e}")


def load_json(store: KeyValueStore, key: str) -> Any:
    """Decode the value at *key*.  Missing -> None; unparseable -> PersistenceCorruption."""
    raw = store.get(key)
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise PersistenceCorruption(key, str(e)) from e


def save_json(store: KeyValueStore, key: str, value: Any) -> None:
    try:
        store.set(key, json.dumps(value))
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to encode '{key}': {e}")


def read_or_default(
    store: KeyValueStore,
    key: str,
    decode: Callable[[Any], T],
    default: Callable[[], T],
) -> T:
    """Load, decode, and validate *key*; fall back to ``default()`` on any problem."""
    try:
        raw = load_json(store, key)
        if raw is None:
            return default()
        return decode(raw)
    except PersistenceCorruption as e:
        logger.warning(f"{e}; using defaults")
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Malformed value for '{key}' ({e}); using defaults")
    return default()


def _non_negative_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"expected non-negative int, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Profile records
# ---------------------------------------------------------------------------

@dataclass
class MetaProgress:
    """Permanent shop upgrades bought between runs."""

    levels: dict[str, int] = field(default_factory=dict)
    currency: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> MetaProgress:
        if not isinstance(data, dict):
            raise ValueError("meta_upgrades must be an object")
        levels = data.get("levels", {})
        if not isinstance(levels, dict):
            raise ValueError("levels must be an object")
        return cls(
            levels={str(k): _non_negative_int(v) for k, v in levels.items()},
            currency=_non_negative_int(data.get("currency", 0)),
        )

    def to_dict(self) -> dict:
        return {"levels": dict(self.levels), "currency": self.currency}


@dataclass
class LegendaryLoadout:
    """Legendary weapons unlocked across runs and the one equipped."""

    unlocked: list[str] = field(default_factory=list)
    equipped: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> LegendaryLoadout:
        if not isinstance(data, dict):
            raise ValueError("legendary_weapons must be an object")
        unlocked = data.get("unlocked", [])
        if not isinstance(unlocked, list) or not all(isinstance(w, str) for w in unlocked):
            raise ValueError("unlocked must be a list of ids")
        equipped = data.get("equipped")
        if equipped is not None and equipped not in unlocked:
            equipped = None
        return cls(unlocked=list(unlocked), equipped=equipped)

    def to_dict(self) -> dict:
        return {"unlocked": list(self.unlocked), "equipped": self.equipped}


class ProfileRepository:
    """Typed accessors over a KeyValueStore for everything that outlives a run."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # -- high wave ----------------------------------------------------------

    def high_wave(self) -> int:
        return read_or_default(self.store, HIGH_WAVE_KEY, _non_negative_int, lambda: 0)

    def record_wave(self, wave: int) -> int:
        """Raise the stored high-wave record to *wave* if higher.  Returns the record."""
        best = self.high_wave()
        if wave > best:
            save_json(self.store, HIGH_WAVE_KEY, wave)
            return wave
        return best

    # -- meta upgrades ------------------------------------------------------

    def meta_progress(self) -> MetaProgress:
        return read_or_default(self.store, META_UPGRADES_KEY, MetaProgress.from_dict, MetaProgress)

    def save_meta_progress(self, progress: MetaProgress) -> None:
        save_json(self.store, META_UPGRADES_KEY, progress.to_dict())

    # -- legendary weapons --------------------------------------------------

    def legendary_loadout(self) -> LegendaryLoadout:
        return read_or_default(self.store, LEGENDARY_KEY, LegendaryLoadout.from_dict, LegendaryLoadout)

    def unlock_legendary(self, weapon_id: str) -> LegendaryLoadout:
        loadout = self.legendary_loadout()
        if weapon_id not in loadout.unlocked:
            loadout.unlocked.append(weapon_id)
            save_json(self.store, LEGENDARY_KEY, loadout.to_dict())
        return loadout

    def equip_legendary(self, weapon_id: str | None) -> bool:
        """Equip an unlocked legendary (or None to unequip).  False if locked."""
        loadout = self.legendary_loadout()
        if weapon_id is not None and weapon_id not in loadout.unlocked:
            return False
        loadout.equipped = weapon_id
        save_json(self.store, LEGENDARY_KEY, loadout.to_dict())
        return True
