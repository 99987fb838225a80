from datetime import datetime, timezone
from leaderboard import db


def _utcnow():
    return datetime.now(timezone.utc)


class StoreEntry(db.Model):
    """One key in the key-value store; values are opaque text."""
    __tablename__ = 'store_entry'
    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self):
        return {
            'key': self.key,
            'value': self.value,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
