"""
Scoring pipeline for one project snapshot: scores and review averages, then flags, then the report payload.
Every call recomputes from the snapshot it is given; nothing is cached between calls.
"""
import logging
from datetime import datetime
from typing import Dict, Any, Optional
from normalize.models import ProjectSnapshot
from normalize.util import split_tasks_by_status
from scoring.metrics import compute_contribution_scores
from scoring.reviews import aggregate_reviews
from correlate.flags import detect_flags
from report.assembler import assemble_report_data

logger = logging.getLogger(__name__)


def evaluate_project(
    snapshot: ProjectSnapshot,
    weights: Optional[Dict[str, int]] = None,
    thresholds: Optional[Dict[str, float]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Run the full pipeline over a snapshot and return the combined report payload.

    Parameters:
        snapshot (ProjectSnapshot): members, events, tasks and reviews for one project.
        weights (dict): point overrides keyed like scoring.utils.DEFAULT_WEIGHTS.
        thresholds (dict): flag threshold overrides keyed like scoring.utils.DEFAULT_THRESHOLDS.
        now (datetime): reference time for overdue counting.

    Returns:
        dict: see report.assembler.assemble_report_data.
    """
    done, in_progress = split_tasks_by_status(snapshot.tasks)
    scores = compute_contribution_scores(snapshot.members, snapshot.events, done, in_progress, weights=weights)
    review_summary = aggregate_reviews(snapshot.reviews, members=snapshot.members)
    flags = detect_flags(scores, review_summary, len(snapshot.members), thresholds=thresholds)
    logger.info(
        "Scored project %s: %d member(s), %d event(s), %d task(s), %d review(s), %d flag(s)",
        snapshot.project_id, len(snapshot.members), len(snapshot.events), len(snapshot.tasks), len(snapshot.reviews), len(flags),
    )
    return assemble_report_data(snapshot, scores, review_summary, flags, now=now)
