"""Key-value persistence for the team registry.

The board only needs three operations on text values, so the medium stays
behind ``KeyValueStore``. The shipped implementation keeps each key as a row
in the ``store_entry`` table.

Teams are stored under ``TEAMS_KEY`` as a JSON array with ISO-8601
timestamps. ``deserialize_teams`` raises ``ValueError`` on anything it cannot
read; callers decide how to recover.
"""
import json
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from .milestones import Milestone, Team

TEAMS_KEY = 'teams'


class StoreError(Exception):
    """Raised when the underlying medium fails to read or write."""
    pass


class KeyValueStore:
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class SQLKeyValueStore(KeyValueStore):
    """Store backed by the ``store_entry`` table; needs an app context."""

    def __init__(self, db):
        self.db = db

    def get(self, key):
        from leaderboard.models import StoreEntry
        try:
            entry = self.db.session.get(StoreEntry, key)
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StoreError(f"read {key!r} failed: {exc}") from exc
        return entry.value if entry else None

    def set(self, key, value):
        from leaderboard.models import StoreEntry
        try:
            entry = self.db.session.get(StoreEntry, key)
            if entry is None:
                entry = StoreEntry(key=key, value=value)
            else:
                entry.value = value
            self.db.session.add(entry)
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StoreError(f"write {key!r} failed: {exc}") from exc

    def delete(self, key):
        from leaderboard.models import StoreEntry
        try:
            StoreEntry.query.filter_by(key=key).delete()
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StoreError(f"delete {key!r} failed: {exc}") from exc


# ---- serialization ----

def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValueError(f"timestamp must be a string, got {type(raw).__name__}")
    stamp = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def _milestone_from_dict(raw: Mapping[str, Any]) -> Milestone:
    completed = bool(raw.get('completed', False))
    completed_at = _parse_timestamp(raw.get('completed_at')) if completed else None
    if completed and completed_at is None:
        raise ValueError(f"milestone {raw.get('id')!r} is completed without a timestamp")
    return Milestone(
        id=int(raw['id']),
        title=str(raw.get('title', '')),
        subtitle=str(raw.get('subtitle', '')),
        completed=completed,
        completed_at=completed_at,
    )


def _team_from_dict(raw: Mapping[str, Any]) -> Team:
    name = str(raw['name']).strip()
    if not name:
        raise ValueError('team name is empty')
    milestones = tuple(_milestone_from_dict(m) for m in raw['milestones'])
    total_time_ms = max(0, int(raw.get('total_time_ms', 0) or 0))
    # Only a fully completed team carries a total time
    if not milestones or not all(m.completed for m in milestones):
        total_time_ms = 0
    return Team(
        id=int(raw['id']),
        name=name,
        milestones=milestones,
        total_time_ms=total_time_ms,
    )


def serialize_teams(teams: Iterable[Team]) -> str:
    payload = []
    for team in teams:
        payload.append({
            'id': team.id,
            'name': team.name,
            'milestones': [m.to_dict() for m in team.milestones],
            'total_time_ms': team.total_time_ms,
        })
    return json.dumps(payload)


def deserialize_teams(text: Optional[str]) -> List[Team]:
    if text is None:
        return []
    try:
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError('teams payload must be a list')
        return [_team_from_dict(raw) for raw in data]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"malformed team record: {exc}") from exc
