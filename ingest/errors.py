"""
Exceptions raised by the feed layer. The scoring core itself raises none.
"""


class TeamScoreError(Exception):
    """Base class for errors surfaced to the CLI."""


class FeedError(TeamScoreError):
    """A feed collection could not be fetched or was not the expected shape."""

    def __init__(self, message: str, status: int = 0, url: str = ''):
        super().__init__(message)
        self.status = status
        self.url = url


class SnapshotError(TeamScoreError):
    """A snapshot file could not be read or parsed."""
