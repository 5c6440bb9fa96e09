"""
Project feed client.
Reads members, activity, tasks and peer reviews for one project from the project REST API
(or from a snapshot JSON file) and normalizes them into a ProjectSnapshot.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Dict, Any, Optional

import requests

from normalize.models import ProjectSnapshot
from normalize.util import normalize_snapshot
from .errors import FeedError, SnapshotError
from .retry import get_with_retries

logger = logging.getLogger(__name__)

COLLECTIONS = ('members', 'activity', 'tasks', 'reviews')


class FeedClient:
    """Client for the project API.

    Collections are paged with page/per_page; a page shorter than per_page ends the listing.
    A feed that keeps returning full pages past max_pages is treated as broken.
    The four collections are fetched concurrently, each with its own session.
    """

    def __init__(self, base_url: str, project_id: str, token: Optional[str] = None, per_page: int = 100, max_pages: int = 1000):
        if not base_url:
            raise FeedError("No feed base URL configured (--base-url or TEAMSCORE_BASE_URL)")
        self.base_url = base_url.rstrip('/')
        self.project_id = project_id
        self.token = token
        self.per_page = per_page
        self.max_pages = max_pages
        self.headers = {"Accept": "application/json"}
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"

    def _url(self, suffix: str = '') -> str:
        url = f"{self.base_url}/projects/{self.project_id}"
        return f"{url}/{suffix}" if suffix else url

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None):
        res = get_with_retries(url, headers=self.headers, params=params, session=session)
        status = res.get('status', 0)
        if status != 200:
            raise FeedError(f"GET {url} failed with status {status}: {res.get('response')}", status=status, url=url)
        return res.get('response')

    def get_project(self) -> Dict[str, Any]:
        """Return project metadata ({id, name, courseCode})."""
        data = self._get(self._url())
        if not isinstance(data, dict):
            raise FeedError(f"Project {self.project_id}: expected an object, got {type(data).__name__}", url=self._url())
        return data

    def get_collection(self, name: str, session: Optional[requests.Session] = None) -> List[Dict[str, Any]]:
        """Return every row of a project collection (members, activity, tasks or reviews)."""
        url = self._url(name)
        rows: List[Dict[str, Any]] = []
        page = 1
        while True:
            data = self._get(url, params={"page": page, "per_page": self.per_page}, session=session)
            if not isinstance(data, list):
                raise FeedError(f"{name}: expected a JSON array, got {type(data).__name__}", url=url)
            rows.extend(data)
            if len(data) < self.per_page:
                break
            if page >= self.max_pages:
                raise FeedError(f"{name}: still receiving full pages after {self.max_pages} page(s); the feed may be ignoring paging", url=url)
            page += 1
        logger.debug("Fetched %d %s row(s) for project %s", len(rows), name, self.project_id)
        return rows

    def _fetch_in_session(self, name: str) -> List[Dict[str, Any]]:
        with requests.Session() as session:
            return self.get_collection(name, session=session)

    def fetch_raw(self) -> Dict[str, Any]:
        """Fetch project metadata and all collections; the collections are read concurrently."""
        project = self.get_project()
        with ThreadPoolExecutor(max_workers=len(COLLECTIONS)) as pool:
            futures = {name: pool.submit(self._fetch_in_session, name) for name in COLLECTIONS}
            # .result() re-raises the first FeedError from a worker
            results = {name: fut.result() for name, fut in futures.items()}
        return {
            'project': project,
            'members': results['members'],
            'events': results['activity'],
            'tasks': results['tasks'],
            'reviews': results['reviews'],
        }

    def fetch_snapshot(self) -> ProjectSnapshot:
        snapshot = normalize_snapshot(self.fetch_raw())
        if not snapshot.project_id:
            snapshot.project_id = self.project_id
        return snapshot


def load_snapshot_file(path: str) -> ProjectSnapshot:
    """Load a snapshot document from a JSON file and normalize it."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            doc = json.load(f)
    except OSError as ex:
        raise SnapshotError(f"Failed to read snapshot file {path}: {ex}") from ex
    except json.JSONDecodeError as ex:
        raise SnapshotError(f"Snapshot file {path} is not valid JSON: {ex}") from ex
    if not isinstance(doc, dict):
        raise SnapshotError(f"Snapshot file {path} must contain a JSON object")
    return normalize_snapshot(doc)
