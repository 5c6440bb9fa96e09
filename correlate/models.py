"""
Reason codes attached to fairness flags.
"""

from enum import Enum


class FlagReason(str, Enum):
    """
    Fixed set of flag reasons. Values are the strings shown to instructors.
    The text is a reason code and does not change when a threshold is configured.
    """

    VERY_LOW_CONTRIBUTION = "Very low contribution (<10%)"
    HIGH_RATING_LOW_ACTIVITY = "High peer rating but low activity"
    LOW_RATING_HIGH_ACTIVITY = "Low peer rating but high activity"

    def __str__(self):
        return self.value
