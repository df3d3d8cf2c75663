"""Session engine: roster, phase state machine and turn timing. Pure logic, no UI."""

from dataclasses import replace
from turntimer.common.logger import log
from turntimer.core.config import MemoryStore, load_roster, save_roster
from turntimer.core.phase import Phase
from turntimer.core.player import MAX_PLAYERS, MIN_PLAYERS, PALETTE, Player, available_colors, next_available_color
from turntimer.util import format_time, now_ms

PLAYERS = "players"
PHASE = "phase"
ACTIVE_INDEX = "active_index"


class InvariantError(RuntimeError):
    """Internal state the command guards should have made impossible."""


class Session:
    """Tracks cumulative turn time for an ordered group of players.

    The active player's time is always derived as ``accumulated_before_turn +
    (now - turn_start)`` instead of summing tick deltas, so how often (or
    whether) ``tick()`` runs only affects how fresh the published value is,
    never its correctness.

    Every command returns ``True`` when it took effect and ``False`` when the
    current phase or its arguments don't allow it. Rejected commands leave
    state untouched.

    ``clock`` returns integer milliseconds and defaults to the monotonic
    clock. ``ticker`` is anything with ``start(callback)`` and ``stop()``; it
    is started on entering PLAYING and stopped on leaving it.
    """

    def __init__(self, store=None, clock=None, ticker=None):
        self._store = store if store is not None else MemoryStore()
        self._clock = clock or now_ms
        self._ticker = ticker
        self._listeners = []

        self._players = load_roster(self._store)
        self._next_id = len(self._players)
        self._phase = Phase.SETUP
        self._active_index = 0
        self._turn_start = 0
        self._accumulated_before_turn = 0

    #region === Observation ===

    @property
    def players(self):
        return tuple(self._players)

    @property
    def phase(self):
        return self._phase

    @property
    def active_index(self):
        return self._active_index

    @property
    def active_player(self):
        if self._phase not in (Phase.PLAYING, Phase.PAUSED):
            return None
        return self._players[self._checked_active_index()]

    def can_start(self):
        return self._phase == Phase.SETUP and MIN_PLAYERS <= len(self._players) <= MAX_PLAYERS

    def used_colors(self, exclude_id=None):
        return {p.color for p in self._players if p.id != exclude_id}

    # Colors a player could switch to: everything no one else is holding, their own color included.
    def available_colors(self, for_id=None):
        return available_colors(self.used_colors(exclude_id=for_id))

    def live_elapsed(self, player_id):
        for i, p in enumerate(self._players):
            if p.id == player_id:
                if self._phase == Phase.PLAYING and i == self._active_index:
                    return self._current_elapsed(self._clock())
                return p.elapsed_ms
        return None

    def total_elapsed(self):
        return sum(self.live_elapsed(p.id) for p in self._players)

    # Per-player rows for an end-of-game summary, in turn order.
    def summary(self):
        rows = []
        for p in self._players:
            elapsed = self.live_elapsed(p.id)
            rows.append({
                "id": p.id,
                "name": p.name,
                "color": p.color,
                "elapsed_ms": elapsed,
                "time": format_time(elapsed),
            })
        return rows

    @staticmethod
    def format_time(millis):
        return format_time(millis)

    # listener(session, changes) runs after each state change; changes is a frozenset of
    # "players", "phase" and/or "active_index". Returns a callable that unsubscribes.
    def subscribe(self, listener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    #endregion === Observation ===

    #region === Roster (SETUP only) ===

    def add_player(self, name):
        if not self._require(Phase.SETUP, "add_player"):
            return False
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            log.debug("Rejected add_player: empty name")
            return False
        if len(self._players) >= MAX_PLAYERS:
            log.debug(f"Rejected add_player('{name}'): roster already has {MAX_PLAYERS} players")
            return False

        player = Player(id=self._next_id, name=name, color=next_available_color(self.used_colors()))
        self._next_id += 1
        self._players.append(player)
        log.info(f"Added player {player.id} '{player.name}' ({player.color})")
        self._notify(PLAYERS)
        return True

    def remove_player(self, player_id):
        if not self._require(Phase.SETUP, "remove_player"):
            return False
        index = self._index_of(player_id)
        if index is None:
            log.debug(f"Rejected remove_player({player_id}): no such player")
            return False
        removed = self._players.pop(index)
        log.info(f"Removed player {removed.id} '{removed.name}'")
        self._notify(PLAYERS)
        return True

    def move_player(self, from_index, to_index):
        if not self._require(Phase.SETUP, "move_player"):
            return False
        count = len(self._players)
        # bool passes isinstance(int) but is never a meaningful position
        if not all(type(i) is int for i in (from_index, to_index)):
            log.debug(f"Rejected move_player({from_index!r}, {to_index!r}): indices must be ints")
            return False
        if not (0 <= from_index < count and 0 <= to_index < count):
            log.debug(f"Rejected move_player({from_index}, {to_index}): roster has {count} players")
            return False
        if from_index == to_index:
            return True
        self._players.insert(to_index, self._players.pop(from_index))
        self._notify(PLAYERS)
        return True

    def change_color(self, player_id, color):
        if not self._require(Phase.SETUP, "change_color"):
            return False
        if color not in PALETTE:
            log.debug(f"Rejected change_color({player_id}, {color!r}): not a palette color")
            return False
        index = self._index_of(player_id)
        if index is None:
            log.debug(f"Rejected change_color({player_id}): no such player")
            return False
        player = self._players[index]
        if player.color == color:
            return True
        if color in self.used_colors(exclude_id=player_id):
            log.debug(f"Rejected change_color({player_id}, {color}): already taken")
            return False
        self._players[index] = replace(player, color=color)
        self._notify(PLAYERS)
        return True

    #endregion === Roster (SETUP only) ===

    #region === Game flow ===

    def start_game(self):
        if not self.can_start():
            log.debug(f"Rejected start_game in {self._phase.name} with {len(self._players)} player(s)")
            return False
        save_roster(self._store, self._players)
        self._active_index = 0
        self._turn_start = self._clock()
        self._accumulated_before_turn = 0
        self._set_phase(Phase.PLAYING)
        log.info(f"Game started with {len(self._players)} players")
        self._notify(PHASE, ACTIVE_INDEX)
        return True

    def end_turn(self):
        if not self._require(Phase.PLAYING, "end_turn"):
            return False
        now = self._clock()
        self._freeze_active(now)
        self._active_index = (self._active_index + 1) % len(self._players)
        self._turn_start = now
        # Carry the next player's total so their time picks up where their last turn left it
        self._accumulated_before_turn = self._players[self._active_index].elapsed_ms
        log.debug(f"Turn passed to player index {self._active_index}")
        self._notify(PLAYERS, ACTIVE_INDEX)
        return True

    def pause_game(self):
        if not self._require(Phase.PLAYING, "pause_game"):
            return False
        self._accumulated_before_turn = self._freeze_active(self._clock())
        self._set_phase(Phase.PAUSED)
        log.info("Game paused")
        self._notify(PLAYERS, PHASE)
        return True

    def resume_game(self):
        if not self._require(Phase.PAUSED, "resume_game"):
            return False
        # accumulated_before_turn already holds the frozen total, so the pause itself never counts
        self._turn_start = self._clock()
        self._set_phase(Phase.PLAYING)
        log.info("Game resumed")
        self._notify(PHASE)
        return True

    def end_game(self):
        if self._phase == Phase.PLAYING:
            self._freeze_active(self._clock())
        elif self._phase != Phase.PAUSED:
            log.debug(f"Rejected end_game in {self._phase.name}")
            return False
        self._set_phase(Phase.FINISHED)
        log.info("Game finished: " + ", ".join(f"{r['name']} {r['time']}" for r in self.summary()))
        self._notify(PLAYERS, PHASE)
        return True

    # Back to SETUP with the roster saved at the last start_game. Elapsed times are discarded and ids restart
    # from 0. Not allowed mid-game.
    def reset_game(self):
        if self._phase in (Phase.PLAYING, Phase.PAUSED):
            log.debug(f"Rejected reset_game in {self._phase.name}")
            return False
        self._players = load_roster(self._store)
        self._next_id = len(self._players)
        self._active_index = 0
        self._turn_start = 0
        self._accumulated_before_turn = 0
        self._set_phase(Phase.SETUP)
        log.info("Game reset")
        self._notify(PLAYERS, PHASE, ACTIVE_INDEX)
        return True

    # Publishes the active player's live time into the roster. Driven by the ticker while PLAYING.
    def tick(self):
        if self._phase != Phase.PLAYING:
            return
        index = self._checked_active_index()
        live = self._current_elapsed(self._clock())
        if live != self._players[index].elapsed_ms:
            self._players[index] = replace(self._players[index], elapsed_ms=live)
            self._notify(PLAYERS)

    #endregion === Game flow ===

    #region === Internals ===

    def _require(self, phase, command):
        if self._phase != phase:
            log.debug(f"Rejected {command} in {self._phase.name}")
            return False
        return True

    def _index_of(self, player_id):
        for i, p in enumerate(self._players):
            if p.id == player_id:
                return i
        return None

    def _checked_active_index(self):
        if not 0 <= self._active_index < len(self._players):
            raise InvariantError(
                f"Active index {self._active_index} out of range for {len(self._players)} players in {self._phase.name}"
            )
        return self._active_index

    def _current_elapsed(self, now):
        return self._accumulated_before_turn + max(0, now - self._turn_start)

    # Writes the active player's elapsed time as of `now` into the roster and returns it.
    def _freeze_active(self, now):
        index = self._checked_active_index()
        elapsed = self._current_elapsed(now)
        self._players[index] = replace(self._players[index], elapsed_ms=elapsed)
        return elapsed

    def _set_phase(self, phase):
        self._phase = phase
        if self._ticker is None:
            return
        if phase == Phase.PLAYING:
            self._ticker.start(self.tick)
        else:
            self._ticker.stop()

    def _notify(self, *changes):
        changes = frozenset(changes)
        for listener in list(self._listeners):
            listener(self, changes)

    #endregion === Internals ===
