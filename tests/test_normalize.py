import unittest
from normalize.models import EventKind, TaskStatus, PeerReview
from normalize.util import (
    filter_valid_reviews,
    normalize_event,
    normalize_member,
    normalize_review,
    normalize_snapshot,
    normalize_task,
    parse_event_kind,
    parse_task_status,
    parse_timestamp,
    split_tasks_by_status,
)


class TestNormalize(unittest.TestCase):
    def test_normalize_member_nested_user(self):
        member = normalize_member({'userId': 'u1', 'user': {'id': 'u1', 'name': 'Alice'}})
        self.assertEqual(member.user_id, 'u1')
        self.assertEqual(member.display_name, 'Alice')

    def test_normalize_member_flat_snake_case(self):
        member = normalize_member({'user_id': 'u2', 'display_name': 'Bob'})
        self.assertEqual(member.user_id, 'u2')
        self.assertEqual(member.display_name, 'Bob')

    def test_event_kind_spellings(self):
        self.assertIs(parse_event_kind('TASK_CREATED'), EventKind.TASK_CREATED)
        self.assertIs(parse_event_kind('TaskCreated'), EventKind.TASK_CREATED)
        self.assertIs(parse_event_kind('member_invited'), EventKind.MEMBER_INVITED)
        self.assertIs(parse_event_kind('ProjectCreated'), EventKind.PROJECT_CREATED)

    def test_unknown_event_kind_is_other(self):
        event = normalize_event({'userId': 'u1', 'action': 'PEER_REVIEW_SUBMITTED'})
        self.assertIs(event.kind, EventKind.OTHER)
        self.assertEqual(event.raw_kind, 'PEER_REVIEW_SUBMITTED')
        self.assertIs(parse_event_kind(None), EventKind.OTHER)

    def test_task_status_spellings(self):
        self.assertIs(parse_task_status('IN_PROGRESS'), TaskStatus.IN_PROGRESS)
        self.assertIs(parse_task_status('InProgress'), TaskStatus.IN_PROGRESS)
        self.assertIs(parse_task_status('Done'), TaskStatus.DONE)
        self.assertIs(parse_task_status('ARCHIVED'), TaskStatus.TODO)

    def test_normalize_task_empty_assignee(self):
        task = normalize_task({'id': 't1', 'assigneeId': '', 'status': 'DONE'})
        self.assertIsNone(task.assignee_id)
        task = normalize_task({'id': 't2', 'assignee': {'id': 'u9'}, 'status': 'TODO', 'dueDate': '2025-02-01'})
        self.assertEqual(task.assignee_id, 'u9')
        self.assertEqual(task.due_date, '2025-02-01')

    def test_parse_timestamp_variants(self):
        self.assertIsNotNone(parse_timestamp('2025-01-01T00:00:00Z'))
        self.assertEqual(parse_timestamp('2025-01-01').tzinfo is not None, True)
        self.assertIsNone(parse_timestamp('not a date'))
        self.assertIsNone(parse_timestamp(None))

    def test_filter_valid_reviews_drops_self_and_out_of_range(self):
        good = PeerReview('u1', 'u2', 5, 4, 3, 2)
        self_review = PeerReview('u1', 'u1', 5, 5, 5, 5)
        out_of_range = PeerReview('u2', 'u1', 6, 4, 3, 2)
        not_int = PeerReview('u3', 'u1', 4.5, 4, 3, 2)
        with self.assertLogs('normalize.util', level='WARNING'):
            valid = filter_valid_reviews([good, self_review, out_of_range, not_int])
        self.assertEqual(valid, [good])

    def test_normalize_review_receiver_name(self):
        review = normalize_review({'giverId': 'a', 'receiverId': 'b', 'receiver': {'name': 'Bee'},
                                   'quality': 4, 'communication': 4, 'timeliness': 4, 'initiative': 4})
        self.assertEqual(review.receiver_name, 'Bee')
        self.assertEqual(review.ratings(), [4, 4, 4, 4])

    def test_split_tasks_by_status_keeps_order(self):
        tasks = [normalize_task({'id': str(i), 'status': s}) for i, s in enumerate(['DONE', 'TODO', 'IN_PROGRESS', 'DONE'])]
        done, in_progress = split_tasks_by_status(tasks)
        self.assertEqual([t.task_id for t in done], ['0', '3'])
        self.assertEqual([t.task_id for t in in_progress], ['2'])


def test_normalize_snapshot(snapshot_doc):
    snap = normalize_snapshot(snapshot_doc)
    assert snap.project_id == 'p1'
    assert snap.course_code == 'CS499'
    assert [m.display_name for m in snap.members] == ['Alice', 'Bob', 'Cara']
    assert len(snap.events) == 6
    assert len(snap.tasks) == 4
    assert len(snap.reviews) == 3


def test_normalize_snapshot_activity_alias_and_bad_rows():
    doc = {
        'project': {'id': 'p2'},
        'members': [{'userId': 'u1', 'name': 'Solo'}, {'name': 'no id'}, 'junk'],
        'activity': [{'userId': 'u1', 'action': 'TASK_CREATED'}],
        'reviews': [{'giverId': 'u1', 'receiverId': 'u1', 'quality': 5, 'communication': 5, 'timeliness': 5, 'initiative': 5}],
    }
    snap = normalize_snapshot(doc)
    assert [m.user_id for m in snap.members] == ['u1']
    assert len(snap.events) == 1
    assert snap.reviews == []
    assert snap.tasks == []


if __name__ == '__main__':
    unittest.main()
