import unittest
from unittest.mock import patch, Mock

import requests

from ingest import retry
from ingest.retry import configure_retry, get_with_retries, parse_retry_after, retry_settings


def _resp(status, body=None, headers=None):
    r = Mock()
    r.status_code = status
    r.headers = headers or {}
    r.json.return_value = body
    r.text = str(body)
    return r


class TestRetry(unittest.TestCase):
    def setUp(self):
        retry.reset_retry()
        configure_retry(max_retries=3, backoff_base=0.0, backoff_jitter=0.0)

    def tearDown(self):
        retry.reset_retry()

    def test_success_first_try(self):
        with patch('ingest.retry.requests.get', return_value=_resp(200, [1, 2])) as mocked:
            res = get_with_retries('http://feed/x')
        self.assertEqual(res['status'], 200)
        self.assertEqual(res['response'], [1, 2])
        self.assertEqual(mocked.call_count, 1)

    def test_retries_429_then_succeeds(self):
        responses = [_resp(429, 'slow down', {'Retry-After': '0'}), _resp(200, {'ok': True})]
        with patch('ingest.retry.requests.get', side_effect=responses) as mocked, patch('ingest.retry.time.sleep') as sleep:
            res = get_with_retries('http://feed/x')
        self.assertEqual(res['response'], {'ok': True})
        self.assertEqual(mocked.call_count, 2)
        self.assertEqual(sleep.call_count, 1)

    def test_404_is_not_retried(self):
        with patch('ingest.retry.requests.get', return_value=_resp(404, {'error': 'nope'})) as mocked:
            res = get_with_retries('http://feed/x')
        self.assertEqual(res['status'], 404)
        self.assertEqual(mocked.call_count, 1)

    def test_connection_errors_exhaust_attempts(self):
        with patch('ingest.retry.requests.get', side_effect=requests.ConnectionError('down')) as mocked, patch('ingest.retry.time.sleep'):
            res = get_with_retries('http://feed/x')
        self.assertEqual(res['status'], 0)
        self.assertEqual(mocked.call_count, 3)

    def test_session_is_used_when_given(self):
        session = Mock()
        session.get.return_value = _resp(200, [])
        with patch('ingest.retry.requests.get', side_effect=AssertionError('module-level get should not be used')):
            res = get_with_retries('http://feed/x', session=session)
        self.assertEqual(res['status'], 200)
        self.assertEqual(session.get.call_args.kwargs['timeout'], retry_settings()['timeout'])

    def test_parse_retry_after(self):
        self.assertEqual(parse_retry_after('5'), 5.0)
        self.assertIsNone(parse_retry_after(''))
        self.assertIsNone(parse_retry_after('soon'))
        self.assertEqual(parse_retry_after('Wed, 21 Oct 2015 07:28:00 GMT'), 0.0)

    def test_configure_retry_overrides(self):
        configure_retry(max_retries=7, timeout=2.5)
        cfg = retry_settings()
        self.assertEqual(cfg['max_retries'], 7)
        self.assertEqual(cfg['timeout'], 2.5)


if __name__ == '__main__':
    unittest.main()
