import sys
import os

import pytest

# Add project root to sys.path so tests can import top-level modules like 'scoring', 'normalize', 'engine', etc.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from ingest.retry import reset_retry  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_retry_overrides():
    # CLI tests call configure_retry; keep module-level overrides from leaking between tests
    reset_retry()
    yield
    reset_retry()


@pytest.fixture
def snapshot_doc():
    """A small project snapshot document as the feed returns it."""
    return {
        'project': {'id': 'p1', 'name': 'Capstone', 'courseCode': 'CS499'},
        'members': [
            {'userId': 'u1', 'user': {'name': 'Alice'}},
            {'userId': 'u2', 'user': {'name': 'Bob'}},
            {'userId': 'u3', 'user': {'name': 'Cara'}},
        ],
        'events': [
            {'userId': 'u1', 'action': 'PROJECT_CREATED', 'createdAt': '2025-01-01T09:00:00Z'},
            {'userId': 'u1', 'action': 'MEMBER_INVITED', 'createdAt': '2025-01-01T09:05:00Z'},
            {'userId': 'u1', 'action': 'TASK_CREATED', 'createdAt': '2025-01-02T10:00:00Z'},
            {'userId': 'u2', 'action': 'TASK_CREATED', 'createdAt': '2025-01-02T11:00:00Z'},
            {'userId': 'u2', 'action': 'PEER_REVIEW_SUBMITTED', 'createdAt': '2025-01-09T11:00:00Z'},
            {'userId': 'gone', 'action': 'TASK_CREATED', 'createdAt': '2025-01-03T11:00:00Z'},
        ],
        'tasks': [
            {'id': 't1', 'assigneeId': 'u1', 'status': 'DONE', 'completedAt': '2025-01-05T00:00:00Z', 'dueDate': '2025-01-06T00:00:00Z'},
            {'id': 't2', 'assigneeId': 'u2', 'status': 'IN_PROGRESS', 'dueDate': '2025-01-04T00:00:00Z'},
            {'id': 't3', 'assigneeId': None, 'status': 'TODO', 'dueDate': '2025-01-04T00:00:00Z'},
            {'id': 't4', 'assigneeId': 'u1', 'status': 'DONE', 'dueDate': '2025-01-03T00:00:00Z'},
        ],
        'reviews': [
            {'giverId': 'u2', 'receiverId': 'u1', 'quality': 5, 'communication': 4, 'timeliness': 5, 'initiative': 4},
            {'giverId': 'u3', 'receiverId': 'u1', 'quality': 3, 'communication': 4, 'timeliness': 4, 'initiative': 4},
            {'giverId': 'u1', 'receiverId': 'u3', 'quality': 5, 'communication': 5, 'timeliness': 5, 'initiative': 5},
        ],
    }
