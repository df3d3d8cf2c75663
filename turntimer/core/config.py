import json
from pathlib import Path
from turntimer.common.logger import log
from turntimer.common.setup import PATHS
from turntimer.core.player import MAX_PLAYERS, PALETTE, Player, next_available_color

#region === Keys and Defaults ===

KEY_PLAYERS = "player_names"
KEY_SETTINGS = "settings"

# Default values for the settings entry. Anything missing or of the wrong type falls back to these.
_SETTINGS_DEFAULTS = {
    "tick_interval_ms": 100,
    "log_level": "INFO",
}

def default_settings():
    return dict(_SETTINGS_DEFAULTS)

#endregion === Keys and Defaults ===

#region === Stores ===

# In-process store, mostly for tests and for hosts that don't want anything on disk.
class MemoryStore:

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get(self, key, default=None):
        return self._data.get(key, default)

    def put(self, key, value):
        self._data[key] = value


# Key-value store backed by a single JSON object on disk. Every value is a string, the same way a platform
# preferences file would hold it. A missing or unreadable file reads as empty.
class JsonFileStore:

    def __init__(self, path=None):
        self.path = Path(path) if path is not None else PATHS.prefs

    def _read(self):
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            log.warning(f"Could not read prefs file '{self.path}', treating it as empty.", exc_info=True)
            return {}
        if not isinstance(data, dict):
            log.warning(f"Prefs file '{self.path}' does not hold a JSON object, treating it as empty.")
            return {}
        return data

    def get(self, key, default=None):
        return self._read().get(key, default)

    def put(self, key, value):
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        log.debug(f"Wrote key '{key}' to '{self.path}'")

#endregion === Stores ===

#region === Roster ===

# Turns a stored roster value into players with fresh ids from 0. Raises ValueError on anything malformed.
# Two formats are accepted: [{"name": ..., "color": ...}, ...] and the legacy ["name", ...], where each name
# gets the palette color at its index (cycling, so more than 8 legacy names will repeat colors). In the
# current format an unknown or already-taken color is swapped for the lowest free one.
def _decode_roster(raw):
    entries = json.loads(raw)
    if not isinstance(entries, list):
        raise ValueError(f"expected a list, got {type(entries).__name__}")

    players = []
    used = set()
    for i, entry in enumerate(entries):
        if isinstance(entry, str):
            name, color = entry, PALETTE[i % len(PALETTE)]
        elif isinstance(entry, dict):
            name, color = entry.get("name"), entry.get("color")
            if color not in PALETTE or color in used:
                color = next_available_color(used)
        else:
            raise ValueError(f"entry {i} is a {type(entry).__name__}")

        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"entry {i} has no usable name")
        used.add(color)
        players.append(Player(id=i, name=name.strip(), color=color))
    return players

def encode_roster(players):
    return json.dumps([{"name": p.name, "color": p.color} for p in players])

# Loads the last saved roster. Absent, empty or malformed data all come back as an empty roster.
def load_roster(store):
    raw = store.get(KEY_PLAYERS)
    if raw is None or raw == "":
        log.info("No saved roster found, starting with an empty one.")
        return []
    try:
        players = _decode_roster(raw)
    except (ValueError, TypeError):
        log.warning("Saved roster is malformed, falling back to an empty roster.", exc_info=True)
        return []
    if len(players) > MAX_PLAYERS:
        log.warning(f"Saved roster has {len(players)} players, keeping the first {MAX_PLAYERS}.")
        players = players[:MAX_PLAYERS]
    log.info(f"Loaded saved roster of {len(players)} player(s).")
    return players

# Best-effort: a failed write is logged and reported, never raised.
def save_roster(store, players):
    try:
        store.put(KEY_PLAYERS, encode_roster(players))
    except OSError:
        log.warning("Failed to save roster.", exc_info=True)
        return False
    log.info(f"Saved roster of {len(players)} player(s).")
    return True

#endregion === Roster ===

#region === Settings ===

def load_settings(store):
    settings = default_settings()
    raw = store.get(KEY_SETTINGS)
    if raw is None:
        return settings

    try:
        stored = json.loads(raw)
    except (ValueError, TypeError):
        log.warning("Saved settings are malformed, using defaults.", exc_info=True)
        return settings
    if not isinstance(stored, dict):
        log.warning("Saved settings are not an object, using defaults.")
        return settings
    return validate_settings(stored)

# Merges the given settings over the defaults, dropping anything missing, mistyped or out of range.
def validate_settings(stored):
    settings = default_settings()
    defaulted_values = set()
    for key, default in _SETTINGS_DEFAULTS.items():
        value = stored.get(key)
        # bool is an int subclass, don't let True pass as a tick interval
        if type(value) is not type(default):
            defaulted_values.add(key)
            continue
        settings[key] = value
    if settings["tick_interval_ms"] <= 0:
        defaulted_values.add("tick_interval_ms")
        settings["tick_interval_ms"] = _SETTINGS_DEFAULTS["tick_interval_ms"]

    if defaulted_values:
        log.warning(f"Settings had missing or invalid values that were defaulted: {', '.join(sorted(defaulted_values))}")
    return settings

# Best-effort like save_roster.
def save_settings(store, settings):
    merged = validate_settings(settings)
    try:
        store.put(KEY_SETTINGS, json.dumps(merged))
    except OSError:
        log.warning("Failed to save settings.", exc_info=True)
        return False
    log.info("Saved settings.")
    return True

#endregion === Settings ===
