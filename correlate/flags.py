"""
Anomaly detection: compare each member's activity share with how peers rated them.
Three independent rules; a member may trip none, some or all of them.
"""
from decimal import Decimal
from typing import List, Dict, Optional
from normalize.models import ContributionScore, Flag, ReviewStats
from scoring.utils import DEFAULT_THRESHOLDS
from .models import FlagReason


def peer_score(stats: Optional[ReviewStats]) -> Optional[float]:
    """Mean of the four criterion averages, or None when the member has no reviews."""
    if stats is None:
        return None
    # one-decimal averages summed as Decimal compare exactly against the thresholds
    values = [Decimal(str(v)) for v in stats.averages()]
    return float(sum(values) / len(values))


def _reasons_for(score: ContributionScore, avg_peer: Optional[float], team_size: int, th: Dict[str, float]) -> List[FlagReason]:
    reasons = []
    pct = score.percentage
    if pct < th['low_contribution_pct'] and team_size > 1:
        reasons.append(FlagReason.VERY_LOW_CONTRIBUTION)
    if avg_peer is not None and avg_peer >= th['high_rating_min'] and pct < th['high_rating_max_pct']:
        reasons.append(FlagReason.HIGH_RATING_LOW_ACTIVITY)
    if avg_peer is not None and avg_peer <= th['low_rating_max'] and pct > th['low_rating_min_pct']:
        reasons.append(FlagReason.LOW_RATING_HIGH_ACTIVITY)
    return reasons


def detect_flags(
    scores: List[ContributionScore],
    review_summary: Dict[str, ReviewStats],
    team_size: int,
    thresholds: Optional[Dict[str, float]] = None,
) -> List[Flag]:
    """
    Return flags in score order (and rule order within a member). Flags are not merged:
    a member tripping two rules yields two entries.
    """
    th = {**DEFAULT_THRESHOLDS, **(thresholds or {})}
    flags: List[Flag] = []
    for s in scores:
        avg_peer = peer_score((review_summary or {}).get(s.user_id))
        for reason in _reasons_for(s, avg_peer, team_size, th):
            flags.append(Flag(s.name, reason.value, user_id=s.user_id))
    return flags
