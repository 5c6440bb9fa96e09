"""
Feed access: fetch project members, activity, tasks and reviews from the project API or a snapshot file.
"""

from .errors import FeedError, SnapshotError, TeamScoreError
from .feed import FeedClient, load_snapshot_file

__all__ = ["FeedClient", "load_snapshot_file", "FeedError", "SnapshotError", "TeamScoreError"]
