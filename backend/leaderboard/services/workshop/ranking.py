"""Leaderboard ordering.

Teams with more completed milestones rank higher. Among teams with the same
count, the one that reached that count earlier (oldest latest-completion
stamp) ranks higher. Teams with nothing to compare fall back to id order,
which follows creation order.

The tuple key gives a strict total order for any set of distinct team ids.
"""
from typing import Iterable, List, Tuple

from .milestones import Team


def rank_key(team: Team) -> Tuple[int, int, float, int]:
    latest = team.latest_completion
    return (
        -team.completed_count,
        0 if latest is not None else 1,
        latest.timestamp() if latest is not None else 0.0,
        team.id,
    )


def rank_teams(teams: Iterable[Team]) -> List[Team]:
    return sorted(teams, key=rank_key)


def ranked_entries(teams: Iterable[Team]) -> List[dict]:
    """Ranked teams as dicts with a 1-based ``position`` for display."""
    entries = []
    for position, team in enumerate(rank_teams(teams), start=1):
        entry = team.to_dict()
        entry['position'] = position
        entries.append(entry)
    return entries
