"""The leaderboard board: single owner of teams, timer and display flags.

Every mutation goes through this object. Each one applies the in-memory
change and then mirrors the registry to the store. Saves are best-effort:
a failed write is logged and the in-memory state stays authoritative until
the next successful save. Reset is the exception; it clears the store first
and only touches memory once that succeeded.

The server is threaded, so one lock covers every read and every
mutate-then-persist step; requests never see or save a half-applied change.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .milestones import Team, ToggleResult, clone_template, format_duration, toggle_milestone
from .ranking import rank_teams, ranked_entries
from .session_timer import SessionTimer, utcnow
from .store import TEAMS_KEY, KeyValueStore, StoreError, deserialize_teams, serialize_teams

module_logger = logging.getLogger(__name__)


@dataclass
class DisplaySettings:
    """Flags owned by the presentation layer; never gate board operations."""
    muted: bool = False
    presentation_mode: bool = False

    def to_dict(self):
        return {'muted': self.muted, 'presentation_mode': self.presentation_mode}


class Board:
    def __init__(self, store: KeyValueStore, clock: Callable = utcnow, logger: Optional[logging.Logger] = None):
        self.store = store
        self.clock = clock
        self.logger = logger or module_logger
        self.timer = SessionTimer(clock)
        self.display = DisplaySettings()
        self._teams: Dict[int, Team] = {}
        self._last_id = 0
        self._loaded = False
        # Reentrant: mutations call ensure_loaded and save while holding it
        self._lock = threading.RLock()

    # -------------------- lifecycle --------------------
    def load(self) -> None:
        """Populate the registry from the store; any failure means no teams."""
        with self._lock:
            try:
                teams = deserialize_teams(self.store.get(TEAMS_KEY))
            except (StoreError, ValueError) as exc:
                self.logger.warning(f"[store-read-failed] starting with no teams: {exc}")
                teams = []
            self._teams = {}
            for team in teams:
                if team.id in self._teams:
                    self.logger.warning(f"[store-read] duplicate team id={team.id} dropped")
                    continue
                self._teams[team.id] = team
            self._last_id = max(self._teams, default=0)
            self._loaded = True
            self.logger.info(f"[load] teams={len(self._teams)}")

    def ensure_loaded(self) -> None:
        with self._lock:
            if not self._loaded:
                self.load()

    def save(self) -> bool:
        with self._lock:
            payload = serialize_teams(self._teams.values())
            try:
                self.store.set(TEAMS_KEY, payload)
            except StoreError as exc:
                self.logger.warning(f"[store-write-failed] in-memory state kept: {exc}")
                return False
            return True

    # -------------------- reads --------------------
    @property
    def teams(self) -> List[Team]:
        with self._lock:
            self.ensure_loaded()
            return list(self._teams.values())

    def get_team(self, team_id) -> Optional[Team]:
        with self._lock:
            self.ensure_loaded()
            return self._teams.get(team_id)

    def ranking(self) -> List[Team]:
        return rank_teams(self.teams)

    def snapshot(self) -> dict:
        """Ranked teams, timer and display flags; the shape sent to every client."""
        with self._lock:
            teams = ranked_entries(self.teams)
            for entry in teams:
                entry['total_time'] = format_duration(entry['total_time_ms']) if entry['total_time_ms'] else None
            return {
                'teams': teams,
                'timer': self.timer.to_dict(self.clock()),
                'display': self.display.to_dict(),
            }

    # -------------------- mutations --------------------
    def _next_team_id(self) -> int:
        # Wall-clock ms, strictly increasing
        candidate = max(int(self.clock().timestamp() * 1000), self._last_id + 1)
        self._last_id = candidate
        return candidate

    def add_team(self, name) -> Optional[Team]:
        with self._lock:
            self.ensure_loaded()
            cleaned = name.strip() if isinstance(name, str) else ''
            if not cleaned:
                return None
            team = Team(id=self._next_team_id(), name=cleaned, milestones=tuple(clone_template()))
            self._teams[team.id] = team
            self.logger.info(f"[team-add] id={team.id} name={team.name!r}")
            self.save()
            return team

    def toggle_milestone(self, team_id, milestone_id) -> ToggleResult:
        with self._lock:
            self.ensure_loaded()
            team = self._teams.get(team_id)
            if team is None:
                return ToggleResult.NOOP
            outcome = toggle_milestone(team, milestone_id, self.clock(), self.timer.anchor)
            if outcome.result is ToggleResult.NOOP:
                return outcome.result
            self._teams[team_id] = outcome.team
            self.logger.info(
                f"[toggle] team={team_id} milestone={milestone_id} result={outcome.result.value} "
                f"total_time_ms={outcome.team.total_time_ms}"
            )
            self.save()
            return outcome.result

    def start_timer(self) -> bool:
        with self._lock:
            started = self.timer.start(self.clock())
            if started:
                self.logger.info(f"[timer-start] at={self.timer.started_at.isoformat()}")
            return started

    def reset_all(self) -> bool:
        """Drop every team, clear the store and put the timer back to idle.

        All or nothing: if the store cannot be cleared, nothing changes.
        """
        with self._lock:
            try:
                self.store.delete(TEAMS_KEY)
            except StoreError as exc:
                self.logger.error(f"[reset-failed] store not cleared, state kept: {exc}")
                return False
            self._teams = {}
            self._loaded = True
            self.timer.stop()
            self.logger.info("[reset] all teams cleared, timer idle")
            return True


def get_board(app=None) -> Board:
    """Board attached to the given (or current) Flask app."""
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions['leaderboard']
