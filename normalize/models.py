"""
Unified data models for project members, activity, tasks and peer reviews,
plus the derived score/review/flag records produced by the scoring engine.
"""

from enum import Enum
from typing import List, Optional, Dict, Any


class EventKind(str, Enum):
    """Activity log event kinds that carry points. Everything else is OTHER."""
    TASK_CREATED = 'TASK_CREATED'
    MEMBER_INVITED = 'MEMBER_INVITED'
    PROJECT_CREATED = 'PROJECT_CREATED'
    OTHER = 'OTHER'


class TaskStatus(str, Enum):
    TODO = 'TODO'
    IN_PROGRESS = 'IN_PROGRESS'
    DONE = 'DONE'


class Member:
    """
    A project member.
    """
    def __init__(self, user_id: str, display_name: str):
        self.user_id = user_id
        self.display_name = display_name

    def to_dict(self) -> Dict[str, Any]:
        return {'userId': self.user_id, 'name': self.display_name}


class ActivityEvent:
    """
    Activity log entry. kind is always an EventKind; raw_kind keeps the spelling the feed used.
    """
    def __init__(self, actor_id: str, kind: EventKind, timestamp: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None, raw_kind: Optional[str] = None):
        self.actor_id = actor_id
        self.kind = kind
        self.timestamp = timestamp
        self.metadata = metadata or {}
        self.raw_kind = raw_kind or kind.value


class Task:
    """
    Project task. assignee_id, completed_at and due_date are optional.
    """
    def __init__(self, task_id: str, status: TaskStatus, assignee_id: Optional[str] = None, completed_at: Optional[str] = None, due_date: Optional[str] = None, title: str = ''):
        self.task_id = task_id
        self.status = status
        self.assignee_id = assignee_id
        self.completed_at = completed_at
        self.due_date = due_date
        self.title = title


class PeerReview:
    """
    One member's rating of another across four criteria (integers 1..5).
    """
    def __init__(self, giver_id: str, receiver_id: str, quality: int, communication: int, timeliness: int, initiative: int, receiver_name: Optional[str] = None, comment: Optional[str] = None):
        self.giver_id = giver_id
        self.receiver_id = receiver_id
        self.quality = quality
        self.communication = communication
        self.timeliness = timeliness
        self.initiative = initiative
        self.receiver_name = receiver_name
        self.comment = comment

    def ratings(self) -> List[float]:
        return [self.quality, self.communication, self.timeliness, self.initiative]


class Breakdown:
    """Per-category counters behind a contribution score."""

    def __init__(self, tasks_completed: int = 0, tasks_in_progress: int = 0, tasks_created: int = 0, other_actions: int = 0):
        self.tasks_completed = tasks_completed
        self.tasks_in_progress = tasks_in_progress
        self.tasks_created = tasks_created
        self.other_actions = other_actions

    def to_dict(self) -> Dict[str, int]:
        return {
            'tasksCompleted': self.tasks_completed,
            'tasksInProgress': self.tasks_in_progress,
            'tasksCreated': self.tasks_created,
            'otherActions': self.other_actions,
        }

    def __eq__(self, other):
        if not isinstance(other, Breakdown):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Breakdown({self.to_dict()})"


class ContributionScore:
    """
    Derived per-member score. Recomputed on every call, never persisted.
    """
    def __init__(self, user_id: str, name: str, points: int = 0, percentage: int = 0, breakdown: Optional[Breakdown] = None):
        self.user_id = user_id
        self.name = name
        self.points = points
        self.percentage = percentage
        self.breakdown = breakdown or Breakdown()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'name': self.name,
            'points': self.points,
            'percentage': self.percentage,
            'breakdown': self.breakdown.to_dict(),
        }

    def __str__(self):
        return f"{self.name}: {self.points} pts ({self.percentage}%)"


class ReviewStats:
    """
    Averaged peer ratings received by one member.
    """
    def __init__(self, name: str, avg_quality: float, avg_communication: float, avg_timeliness: float, avg_initiative: float, review_count: int):
        self.name = name
        self.avg_quality = avg_quality
        self.avg_communication = avg_communication
        self.avg_timeliness = avg_timeliness
        self.avg_initiative = avg_initiative
        self.review_count = review_count

    def averages(self) -> List[float]:
        return [self.avg_quality, self.avg_communication, self.avg_timeliness, self.avg_initiative]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'avgQuality': self.avg_quality,
            'avgCommunication': self.avg_communication,
            'avgTimeliness': self.avg_timeliness,
            'avgInitiative': self.avg_initiative,
            'reviewCount': self.review_count,
        }


class Flag:
    """
    Fairness signal raised for one member.
    """
    def __init__(self, subject_name: str, reason_code: str, user_id: Optional[str] = None):
        self.subject_name = subject_name
        self.reason_code = reason_code
        self.user_id = user_id

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.subject_name, 'reason': self.reason_code, 'userId': self.user_id}

    def __repr__(self):
        return f"Flag({self.subject_name!r}, {self.reason_code!r})"


class ProjectSnapshot:
    """
    Everything the feed returns for one project in a single read.
    """
    def __init__(self, project_id: str, name: str = '', course_code: Optional[str] = None, members: Optional[List[Member]] = None, events: Optional[List[ActivityEvent]] = None, tasks: Optional[List[Task]] = None, reviews: Optional[List[PeerReview]] = None):
        self.project_id = project_id
        self.name = name
        self.course_code = course_code
        self.members = members or []
        self.events = events or []
        self.tasks = tasks or []
        self.reviews = reviews or []
