"""
Retry/backoff and rate-limit-aware HTTP GET helper for the project feed.
Retries connection errors, 429/502/503/504 responses and responses carrying Retry-After or an
exhausted X-RateLimit-Remaining; any other non-200 status is returned immediately.
"""

import email.utils
import logging
import os
import random
import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any

import requests

logger = logging.getLogger(__name__)

# retry/backoff defaults from environment
DEFAULT_MAX_RETRIES = int(os.getenv("TEAMSCORE_MAX_RETRIES", "3"))
DEFAULT_BACKOFF_BASE = float(os.getenv("TEAMSCORE_BACKOFF_BASE", "0.5"))
_env_jitter = os.getenv("TEAMSCORE_BACKOFF_JITTER")
DEFAULT_BACKOFF_JITTER = float(_env_jitter) if _env_jitter else None
DEFAULT_MAX_BACKOFF = float(os.getenv("TEAMSCORE_MAX_BACKOFF", "60.0"))
DEFAULT_TIMEOUT = float(os.getenv("TEAMSCORE_TIMEOUT", "10.0"))

RETRY_STATUSES = (429, 502, 503, 504)

# runtime overrides (set from the CLI)
_runtime: Dict[str, Optional[float]] = {
    'max_retries': None,
    'backoff_base': None,
    'backoff_jitter': None,
    'max_backoff': None,
    'timeout': None,
}


def configure_retry(
    max_retries: Optional[int] = None,
    backoff_base: Optional[float] = None,
    backoff_jitter: Optional[float] = None,
    max_backoff: Optional[float] = None,
    timeout: Optional[float] = None,
):
    """Configure retry/backoff defaults at runtime (e.g. from CLI). None leaves a setting unchanged."""
    if max_retries is not None:
        _runtime['max_retries'] = int(max_retries)
    if backoff_base is not None:
        _runtime['backoff_base'] = float(backoff_base)
    if backoff_jitter is not None:
        _runtime['backoff_jitter'] = float(backoff_jitter)
    if max_backoff is not None:
        _runtime['max_backoff'] = float(max_backoff)
    if timeout is not None:
        _runtime['timeout'] = float(timeout)


def reset_retry():
    """Drop runtime overrides and fall back to environment defaults."""
    for k in _runtime:
        _runtime[k] = None


def retry_settings() -> Dict[str, float]:
    """Effective settings: runtime overrides first, then environment defaults."""
    base = _runtime['backoff_base'] if _runtime['backoff_base'] is not None else DEFAULT_BACKOFF_BASE
    if _runtime['backoff_jitter'] is not None:
        jitter = _runtime['backoff_jitter']
    elif DEFAULT_BACKOFF_JITTER is not None:
        jitter = DEFAULT_BACKOFF_JITTER
    else:
        jitter = base
    return {
        'max_retries': int(_runtime['max_retries'] if _runtime['max_retries'] is not None else DEFAULT_MAX_RETRIES),
        'backoff_base': float(base),
        'backoff_jitter': float(jitter),
        'max_backoff': float(_runtime['max_backoff'] if _runtime['max_backoff'] is not None else DEFAULT_MAX_BACKOFF),
        'timeout': float(_runtime['timeout'] if _runtime['timeout'] is not None else DEFAULT_TIMEOUT),
    }


def parse_retry_after(raw_ra: Optional[str]) -> Optional[float]:
    """Seconds to wait from a Retry-After header (delta-seconds or HTTP date), or None."""
    if not raw_ra:
        return None
    try:
        return max(0.0, float(raw_ra))
    except ValueError:
        pass
    try:
        dt = email.utils.parsedate_to_datetime(raw_ra)
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())


def _rate_limit_exhausted(headers) -> bool:
    try:
        remaining = headers.get('X-RateLimit-Remaining')
        return remaining is not None and int(remaining) <= 0
    except (TypeError, ValueError):
        return False


def should_retry(resp) -> bool:
    headers = getattr(resp, 'headers', {}) or {}
    if resp.status_code in RETRY_STATUSES:
        return True
    return headers.get('Retry-After') is not None or _rate_limit_exhausted(headers)


def compute_wait_seconds(resp, backoff: float, jitter: float, max_backoff: float) -> float:
    """Honor Retry-After when present, otherwise exponential backoff plus jitter, capped at max_backoff."""
    headers = (getattr(resp, 'headers', None) or {}) if resp is not None else {}
    ra = parse_retry_after(headers.get('Retry-After'))
    wait = ra if ra is not None else backoff
    return min(wait + random.uniform(0, jitter), max_backoff)


def get_with_retries(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    """
    GET `url` with retry/backoff.

    Returns a dict {'response': body, 'status': int, 'timestamp': float}. body is parsed JSON when
    possible, else the raw text. status is 0 when every attempt failed at the connection level.
    """
    cfg = retry_settings()
    http = session or requests
    backoff = cfg['backoff_base']
    attempts = max(1, cfg['max_retries'])
    last: Dict[str, Any] = {'response': None, 'status': 0, 'timestamp': time.time()}

    for attempt in range(1, attempts + 1):
        resp = None
        try:
            resp = http.get(url, headers=headers or {}, params=params or {}, timeout=cfg['timeout'])
        except requests.RequestException as ex:
            logger.warning("GET %s failed (attempt %d/%d): %s", url, attempt, attempts, ex)
            last = {'response': str(ex), 'status': 0, 'timestamp': time.time()}
        else:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
            last = {'response': body, 'status': resp.status_code, 'timestamp': time.time()}
            if resp.status_code == 200 or not should_retry(resp):
                return last
            logger.warning("GET %s returned %s (attempt %d/%d)", url, resp.status_code, attempt, attempts)

        if attempt < attempts:
            time.sleep(compute_wait_seconds(resp, backoff, cfg['backoff_jitter'], cfg['max_backoff']))
            backoff = min(backoff * 2, cfg['max_backoff'])

    return last


__all__ = ["configure_retry", "reset_retry", "retry_settings", "get_with_retries", "parse_retry_after"]
