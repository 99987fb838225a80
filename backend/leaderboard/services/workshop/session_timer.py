from datetime import datetime, timezone
from typing import Callable, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_clock(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}:{seconds % 60:02d}"


class SessionTimer:
    """Global workshop stopwatch.

    Two states: idle (no start recorded, elapsed is 0) and running. The only
    way back to idle is ``stop()``, which the board calls on reset. There is
    no pause.

    ``anchor`` is the instant total times are measured from. While running it
    is the start stamp; while idle it is the moment the timer was created or
    last stopped, the same as a freshly loaded page.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self.started_at: Optional[datetime] = None
        self._idle_since: datetime = clock()
        # Bumped on every state change so stale tick loops can tell they are done
        self.generation = 0

    @property
    def running(self) -> bool:
        return self.started_at is not None

    @property
    def anchor(self) -> datetime:
        return self.started_at if self.started_at is not None else self._idle_since

    def start(self, now: Optional[datetime] = None) -> bool:
        if self.running:
            return False
        self.started_at = now or self._clock()
        self.generation += 1
        return True

    def stop(self) -> None:
        self.started_at = None
        self._idle_since = self._clock()
        self.generation += 1

    def elapsed(self, now: Optional[datetime] = None) -> int:
        if self.started_at is None:
            return 0
        delta = (now or self._clock()) - self.started_at
        return max(0, int(delta.total_seconds()))

    def to_dict(self, now: Optional[datetime] = None):
        elapsed = self.elapsed(now)
        return {
            'running': self.running,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'elapsed': elapsed,
            'clock': format_clock(elapsed),
        }


def schedule_timer_ticks(app, timer: SessionTimer) -> None:
    """Emit ``timer_tick`` once per TIMER_TICK_SEC while the timer runs.

    - No-ops in TESTING mode unless ENABLE_TIMER_TICK_IN_TESTS is set
    - One loop per timer generation; the loop exits as soon as the timer
      stops or is restarted, so no tick fires after the timer goes idle
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_TIMER_TICK_IN_TESTS'):
        return
    if not timer.running:
        return

    from leaderboard import socketio

    interval = float(app.config.get('TIMER_TICK_SEC', 1) or 1)
    generation = timer.generation
    app.logger.info(f"[timer-set] generation={generation} interval={interval}s")

    def _worker(expected_generation: int, delay: float):
        while True:
            socketio.sleep(delay)
            if not timer.running or timer.generation != expected_generation:
                app.logger.info(f"[timer-abort] generation={expected_generation} current={timer.generation}")
                return
            socketio.emit('timer_tick', timer.to_dict(), namespace='/ws')

    socketio.start_background_task(_worker, generation, interval)
