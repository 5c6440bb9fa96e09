"""
Correlate package: cross-check contribution shares against peer ratings.
"""

from .flags import detect_flags
from .models import FlagReason

__all__ = ["detect_flags", "FlagReason"]
