"""
Normalization utility helpers.
Small helpers to normalize raw feed payloads into normalize.models entities.
Feeds may use camelCase or snake_case keys and either enum spelling
(TASK_CREATED / TaskCreated, IN_PROGRESS / InProgress).
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Tuple
from normalize.models import (
    ActivityEvent,
    EventKind,
    Member,
    PeerReview,
    ProjectSnapshot,
    Task,
    TaskStatus,
)

logger = logging.getLogger(__name__)

RATING_FIELDS = ('quality', 'communication', 'timeliness', 'initiative')
RATING_MIN = 1
RATING_MAX = 5


def _first(raw: Dict[str, Any], *keys, default=None):
    """Return the first non-None value among keys."""
    for k in keys:
        val = raw.get(k)
        if val is not None:
            return val
    return default


def _enum_token(value: Any) -> str:
    # TaskCreated / task_created / TASK-CREATED -> TASKCREATED
    return ''.join(ch for ch in str(value or '') if ch.isalnum()).upper()


_EVENT_KINDS = {_enum_token(k.value): k for k in EventKind if k is not EventKind.OTHER}
_TASK_STATUSES = {_enum_token(s.value): s for s in TaskStatus}


def parse_event_kind(raw_kind: Any) -> EventKind:
    """Map a raw kind string to EventKind. Unknown kinds map to OTHER."""
    return _EVENT_KINDS.get(_enum_token(raw_kind), EventKind.OTHER)


def parse_task_status(raw_status: Any) -> TaskStatus:
    """Map a raw status string to TaskStatus. Unknown statuses map to TODO."""
    return _TASK_STATUSES.get(_enum_token(raw_status), TaskStatus.TODO)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (Z suffix allowed) into an aware UTC datetime, or None."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
        except ValueError:
            logger.debug("Unparseable timestamp %r", value)
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_member(raw: Dict[str, Any]) -> Member:
    """Create a Member from a membership row.
    Accepts flat rows or rows with a nested 'user' object, as membership joins return them.
    """
    user = raw.get('user') if isinstance(raw.get('user'), dict) else {}
    user_id = _first(raw, 'userId', 'user_id') or _first(user, 'id', 'userId') or raw.get('id') or ''
    display_name = _first(raw, 'displayName', 'display_name', 'name') or _first(user, 'name', 'displayName') or str(user_id)
    return Member(user_id=str(user_id), display_name=display_name)


def normalize_event(raw: Dict[str, Any]) -> ActivityEvent:
    """Create an ActivityEvent from an activity log row ('action' or 'kind' carries the type)."""
    actor = _first(raw, 'actorId', 'actor_id', 'userId', 'user_id') or ''
    raw_kind = _first(raw, 'kind', 'action', 'type', default='')
    timestamp = _first(raw, 'timestamp', 'createdAt', 'created_at')
    metadata = raw.get('metadata') if isinstance(raw.get('metadata'), dict) else {}
    return ActivityEvent(actor_id=str(actor), kind=parse_event_kind(raw_kind), timestamp=timestamp, metadata=metadata, raw_kind=str(raw_kind))


def normalize_task(raw: Dict[str, Any]) -> Task:
    """Create a Task. A missing or empty assignee becomes None."""
    assignee = _first(raw, 'assigneeId', 'assignee_id')
    if assignee is None and isinstance(raw.get('assignee'), dict):
        assignee = raw['assignee'].get('id')
    return Task(
        task_id=str(raw.get('id') or ''),
        status=parse_task_status(raw.get('status')),
        assignee_id=str(assignee) if assignee else None,
        completed_at=_first(raw, 'completedAt', 'completed_at'),
        due_date=_first(raw, 'dueDate', 'due_date'),
        title=raw.get('title') or '',
    )


def normalize_review(raw: Dict[str, Any]) -> PeerReview:
    """Create a PeerReview. Ratings are passed through as given; see filter_valid_reviews."""
    receiver = raw.get('receiver') if isinstance(raw.get('receiver'), dict) else {}
    return PeerReview(
        giver_id=str(_first(raw, 'giverId', 'giver_id', default='')),
        receiver_id=str(_first(raw, 'receiverId', 'receiver_id', default='')),
        quality=raw.get('quality'),
        communication=raw.get('communication'),
        timeliness=raw.get('timeliness'),
        initiative=raw.get('initiative'),
        receiver_name=receiver.get('name') or raw.get('receiverName'),
        comment=raw.get('comment'),
    )


def review_problem(review: PeerReview) -> Optional[str]:
    """Return a reason string if the review must not reach the scoring core, else None."""
    if not review.giver_id or not review.receiver_id:
        return 'missing giver or receiver'
    if review.giver_id == review.receiver_id:
        return 'self-review'
    for field in RATING_FIELDS:
        val = getattr(review, field)
        if isinstance(val, bool) or not isinstance(val, int):
            return f"{field} is not an integer"
        if not RATING_MIN <= val <= RATING_MAX:
            return f"{field} out of range {RATING_MIN}..{RATING_MAX}"
    return None


def filter_valid_reviews(reviews: List[PeerReview]) -> List[PeerReview]:
    """Drop self-reviews and reviews with ratings outside 1..5, logging each drop."""
    valid = []
    for r in reviews:
        problem = review_problem(r)
        if problem:
            logger.warning("Dropping review %s -> %s: %s", r.giver_id, r.receiver_id, problem)
            continue
        valid.append(r)
    return valid


def split_tasks_by_status(tasks: List[Task]) -> Tuple[List[Task], List[Task]]:
    """Return (done_tasks, in_progress_tasks) preserving input order."""
    done = [t for t in tasks if t.status is TaskStatus.DONE]
    in_progress = [t for t in tasks if t.status is TaskStatus.IN_PROGRESS]
    return done, in_progress


def _normalize_rows(rows: Any, normalizer, label: str) -> list:
    out = []
    for row in rows or []:
        if not isinstance(row, dict):
            logger.warning("Skipping non-object %s row: %r", label, row)
            continue
        out.append(normalizer(row))
    return out


def normalize_snapshot(raw: Dict[str, Any]) -> ProjectSnapshot:
    """Build a ProjectSnapshot from a snapshot document.

    Expected shape: {project: {id, name, courseCode}, members: [], events: [], tasks: [], reviews: []}.
    'activity' and 'logs' are accepted as aliases for 'events'. Members without an id are dropped
    and reviews are passed through filter_valid_reviews.
    """
    project = raw.get('project') if isinstance(raw.get('project'), dict) else {}
    members = [m for m in _normalize_rows(raw.get('members'), normalize_member, 'member') if m.user_id]
    if len(members) != len(raw.get('members') or []):
        logger.warning("Dropped %d member row(s) without a usable id", len(raw.get('members') or []) - len(members))
    events = _normalize_rows(_first(raw, 'events', 'activity', 'logs'), normalize_event, 'event')
    tasks = _normalize_rows(raw.get('tasks'), normalize_task, 'task')
    reviews = filter_valid_reviews(_normalize_rows(raw.get('reviews'), normalize_review, 'review'))
    return ProjectSnapshot(
        project_id=str(_first(project, 'id', default='') or raw.get('projectId') or ''),
        name=project.get('name') or '',
        course_code=_first(project, 'courseCode', 'course_code'),
        members=members,
        events=events,
        tasks=tasks,
        reviews=reviews,
    )
