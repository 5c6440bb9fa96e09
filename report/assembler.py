"""
Report data assembly.
Merges contribution scores, review averages, flags and task statistics into the
JSON-ready payload handed to the narrative-report generator.
"""

from datetime import datetime, timezone
from typing import List, Dict, Any, Optional
from normalize.models import ContributionScore, Flag, ProjectSnapshot, ReviewStats, Task, TaskStatus
from normalize.util import parse_timestamp
from scoring.reviews import mean_review_rating


def compute_task_stats(tasks: List[Task], now: Optional[datetime] = None) -> Dict[str, int]:
    """Count all tasks, done tasks, and overdue tasks (due before `now` and not done)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    overdue = 0
    for t in tasks:
        due = parse_timestamp(t.due_date)
        if due is not None and due < now and t.status is not TaskStatus.DONE:
            overdue += 1
    return {
        'total': len(tasks),
        'done': sum(1 for t in tasks if t.status is TaskStatus.DONE),
        'overdue': overdue,
    }


def build_member_summaries(scores: List[ContributionScore], peer_ratings: Dict[str, float]) -> List[Dict[str, Any]]:
    """Per-member lines for the narrative report, in score order. peerRating is None without reviews."""
    return [
        {
            'userId': s.user_id,
            'name': s.name,
            'contributionPercent': s.percentage,
            'points': s.points,
            'tasksCompleted': s.breakdown.tasks_completed,
            'tasksCreated': s.breakdown.tasks_created,
            'peerRating': peer_ratings.get(s.user_id),
        }
        for s in scores
    ]


def assemble_report_data(
    snapshot: ProjectSnapshot,
    scores: List[ContributionScore],
    review_summary: Dict[str, ReviewStats],
    flags: List[Flag],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the combined payload.

    Parameters:
        snapshot (ProjectSnapshot): project metadata, members, tasks and reviews.
        scores (List[ContributionScore]): output of compute_contribution_scores.
        review_summary (Dict[str, ReviewStats]): output of aggregate_reviews.
        flags (List[Flag]): output of detect_flags.
        now (datetime): reference time for overdue counting; current UTC time if omitted.

    Returns:
        dict: project, members (team size), taskStats, contributions, reviewSummary,
        flags and memberSummaries.
    """
    return {
        'project': {'id': snapshot.project_id, 'name': snapshot.name, 'courseCode': snapshot.course_code},
        'members': len(snapshot.members),
        'taskStats': compute_task_stats(snapshot.tasks, now),
        'contributions': [s.to_dict() for s in scores],
        'reviewSummary': {uid: stats.to_dict() for uid, stats in review_summary.items()},
        'flags': [f.to_dict() for f in flags],
        'memberSummaries': build_member_summaries(scores, mean_review_rating(snapshot.reviews)),
    }
