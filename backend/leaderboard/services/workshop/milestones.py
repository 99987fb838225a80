from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Milestone:
    id: int
    title: str
    subtitle: str
    completed: bool = False
    completed_at: Optional[datetime] = None

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'subtitle': self.subtitle,
            'completed': self.completed,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }


# Fixed for every workshop; teams get their own copy on creation
MILESTONE_TEMPLATE: Tuple[Milestone, ...] = (
    Milestone(1, 'Kickstart Together', 'Get the project rolling with a shared vision.'),
    Milestone(2, 'Prototype in Action', 'Build a simple, working model of your idea.'),
    Milestone(3, 'Catalyst Launchpad', 'Deploy your prototype seamlessly on Zoho Catalyst.'),
)


def clone_template() -> List[Milestone]:
    return [replace(m, completed=False, completed_at=None) for m in MILESTONE_TEMPLATE]


@dataclass(frozen=True)
class Team:
    id: int
    name: str
    milestones: Tuple[Milestone, ...] = field(default_factory=lambda: tuple(clone_template()))
    total_time_ms: int = 0

    @property
    def completed_count(self) -> int:
        return sum(1 for m in self.milestones if m.completed)

    @property
    def is_fully_completed(self) -> bool:
        return bool(self.milestones) and self.completed_count == len(self.milestones)

    @property
    def latest_completion(self) -> Optional[datetime]:
        stamps = [m.completed_at for m in self.milestones if m.completed and m.completed_at]
        return max(stamps) if stamps else None

    def milestone(self, milestone_id: int) -> Optional[Milestone]:
        for m in self.milestones:
            if m.id == milestone_id:
                return m
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'milestones': [m.to_dict() for m in self.milestones],
            'total_time_ms': self.total_time_ms,
            'completed_count': self.completed_count,
            'milestone_count': len(self.milestones),
            'is_fully_completed': self.is_fully_completed,
        }


class ToggleResult(str, Enum):
    COMPLETED = 'completed'
    REOPENED = 'reopened'
    NOOP = 'noop'


@dataclass(frozen=True)
class ToggleOutcome:
    team: Team
    result: ToggleResult


def compute_total_time_ms(milestones, session_start: datetime) -> int:
    """Elapsed ms from session start to the last completion.

    Zero unless every milestone is completed with a timestamp. A completion
    stamped before the session start (timer started late) counts as zero.
    """
    stamps = [m.completed_at for m in milestones if m.completed and m.completed_at]
    if not milestones or len(stamps) != len(milestones):
        return 0
    delta = max(stamps) - session_start
    return max(0, int(delta.total_seconds() * 1000))


def toggle_milestone(team: Team, milestone_id: int, now: datetime, session_start: datetime) -> ToggleOutcome:
    """Flip one milestone of a team and re-derive its total time.

    Returns a new Team; the input record is never modified. Unknown
    milestone ids leave the team as-is with a NOOP result.
    """
    target = team.milestone(milestone_id)
    if target is None:
        return ToggleOutcome(team, ToggleResult.NOOP)

    completing = not target.completed
    flipped = replace(target, completed=completing, completed_at=now if completing else None)
    milestones = tuple(flipped if m.id == milestone_id else m for m in team.milestones)
    updated = replace(
        team,
        milestones=milestones,
        total_time_ms=compute_total_time_ms(milestones, session_start),
    )
    return ToggleOutcome(updated, ToggleResult.COMPLETED if completing else ToggleResult.REOPENED)


def format_duration(milliseconds: int) -> str:
    seconds = int(milliseconds) // 1000
    minutes = seconds // 60
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"
