"""
Peer review aggregation.
Reviews are expected to be pre-validated (no self-reviews, integer ratings 1..5); nothing here re-checks them.
"""
from typing import List, Dict, Optional
from normalize.models import Member, PeerReview, ReviewStats
from .utils import mean, round_half_up


def latest_reviews(reviews: List[PeerReview]) -> List[PeerReview]:
    """Keep the last review per (giver, receiver) pair, as a resubmission replaces the earlier one.

    Pairs stay in the order they were first seen.
    """
    latest: Dict[tuple, PeerReview] = {}
    for r in reviews or []:
        latest[(r.giver_id, r.receiver_id)] = r
    return list(latest.values())


def _group_by_receiver(reviews: List[PeerReview]) -> Dict[str, List[PeerReview]]:
    grouped: Dict[str, List[PeerReview]] = {}
    for r in reviews:
        grouped.setdefault(r.receiver_id, []).append(r)
    return grouped


def _receiver_name(receiver_id: str, received: List[PeerReview], names: Dict[str, str]) -> str:
    if receiver_id in names:
        return names[receiver_id]
    for r in received:
        if r.receiver_name:
            return r.receiver_name
    return receiver_id


def aggregate_reviews(reviews: List[PeerReview], members: Optional[List[Member]] = None) -> Dict[str, ReviewStats]:
    """
    Average each criterion per receiver, rounded half-up to one decimal.

    Members who received no reviews are absent from the result. Names come from
    `members` when given, else from the review's receiver name, else the receiver id.
    """
    names = {m.user_id: m.display_name for m in members or []}
    summary: Dict[str, ReviewStats] = {}
    for receiver_id, received in _group_by_receiver(latest_reviews(reviews)).items():
        summary[receiver_id] = ReviewStats(
            name=_receiver_name(receiver_id, received, names),
            avg_quality=round_half_up(mean(r.quality for r in received), 1),
            avg_communication=round_half_up(mean(r.communication for r in received), 1),
            avg_timeliness=round_half_up(mean(r.timeliness for r in received), 1),
            avg_initiative=round_half_up(mean(r.initiative for r in received), 1),
            review_count=len({r.giver_id for r in received}),
        )
    return summary


def mean_review_rating(reviews: List[PeerReview]) -> Dict[str, float]:
    """Overall peer rating per receiver: mean of each review's four-criterion average, one decimal."""
    return {
        receiver_id: round_half_up(mean(mean(r.ratings()) for r in received), 1)
        for receiver_id, received in _group_by_receiver(latest_reviews(reviews)).items()
    }
