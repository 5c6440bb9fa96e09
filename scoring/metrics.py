"""
Contribution scoring.
Turns activity events and task states into per-member points, breakdowns and percentage shares.
"""
import logging
from typing import List, Dict, Optional
from normalize.models import ActivityEvent, Breakdown, ContributionScore, EventKind, Member, Task
from .utils import DEFAULT_WEIGHTS, percentage_of

logger = logging.getLogger(__name__)

# which breakdown counter each event kind increments
_EVENT_BUCKETS = {
    EventKind.TASK_CREATED: 'tasks_created',
    EventKind.MEMBER_INVITED: 'other_actions',
    EventKind.PROJECT_CREATED: 'other_actions',
}


def _init_scores(members: List[Member]) -> Dict[str, ContributionScore]:
    """Zeroed score per member, keyed by user id, in member order. Repeated ids keep the first entry."""
    scores: Dict[str, ContributionScore] = {}
    for m in members:
        if m.user_id not in scores:
            scores[m.user_id] = ContributionScore(m.user_id, m.display_name, breakdown=Breakdown())
    return scores


def _credit(score: ContributionScore, bucket: str, points: int):
    score.points += points
    setattr(score.breakdown, bucket, getattr(score.breakdown, bucket) + 1)


def _apply_events(scores: Dict[str, ContributionScore], events: List[ActivityEvent], weights: Dict[str, int]):
    for e in events:
        bucket = _EVENT_BUCKETS.get(e.kind)
        if bucket is None:
            continue
        score = scores.get(e.actor_id)
        if score is None:
            logger.debug("Skipping %s event from unknown actor %r", e.kind.value, e.actor_id)
            continue
        _credit(score, bucket, weights[e.kind.value])


def _apply_tasks(scores: Dict[str, ContributionScore], tasks: List[Task], bucket: str, points: int):
    for t in tasks:
        if not t.assignee_id:
            continue
        score = scores.get(t.assignee_id)
        if score is None:
            logger.debug("Skipping task %s assigned to unknown member %r", t.task_id, t.assignee_id)
            continue
        _credit(score, bucket, points)


def compute_contribution_scores(
    members: List[Member],
    events: List[ActivityEvent],
    done_tasks: List[Task],
    in_progress_tasks: List[Task],
    weights: Optional[Dict[str, int]] = None,
) -> List[ContributionScore]:
    """
    Compute one ContributionScore per member.

    Events from actors that are no longer members, and tasks assigned to nobody or to an
    unknown id, are skipped. Percentages are rounded per member, so they need not sum to 100.
    The result is sorted by points, highest first; ties keep member order.
    """
    weights = {**DEFAULT_WEIGHTS, **(weights or {})}
    scores = _init_scores(members)

    _apply_events(scores, events or [], weights)
    _apply_tasks(scores, done_tasks or [], 'tasks_completed', weights['TASK_DONE'])
    _apply_tasks(scores, in_progress_tasks or [], 'tasks_in_progress', weights['TASK_IN_PROGRESS'])

    total_points = sum(s.points for s in scores.values())
    for s in scores.values():
        s.percentage = percentage_of(s.points, total_points)

    return sorted(scores.values(), key=lambda s: s.points, reverse=True)
