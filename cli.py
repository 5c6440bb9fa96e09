"""
CLI entry point for teamscore. Wires the pipeline: feed -> normalize -> score/review -> flags -> report
"""

import argparse
import logging
import os
import sys
import webbrowser
from datetime import datetime, timezone

from engine import evaluate_project
from ingest.errors import TeamScoreError
from ingest.feed import FeedClient, load_snapshot_file
from ingest.retry import configure_retry
from normalize.util import parse_timestamp
from report.renderer import FORMAT_EXTENSIONS, render
from scoring.utils import load_thresholds, load_weights

logger = logging.getLogger(__name__)

EXPORT_ALL_FORMATS = ('html', 'md', 'csv', 'json')


def _open_file_in_browser(path: str):
    """Open a file URL in the system default web browser."""
    webbrowser.open("file://" + os.path.abspath(path))


def _default_out_base(project_id: str) -> str:
    stamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')
    return f"contrib_report_{project_id or 'project'}_{stamp}"


def _write_report_file(path_base: str, ext: str, content: str, open_html: bool = False) -> str:
    """Write the rendered content to a file and optionally open HTML in the browser. Returns the path written."""
    out_path = path_base if path_base.lower().endswith(f".{ext}") else f"{path_base}.{ext}"
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' is safe for CSV on Windows and harmless for other formats
    with open(out_path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    print(f"Wrote report to {out_path}")
    if open_html:
        try:
            _open_file_in_browser(out_path)
        except webbrowser.Error:
            print('Failed to open browser automatically; file saved at', out_path)
    return out_path


def write_output(fmt: str, rendered: str, args, project_id: str = ''):
    """Write to --out-file (or a default name for html/md/csv) or print to stdout."""
    out_file = (args.out_file or '').strip()
    if out_file or fmt in ('html', 'md', 'csv'):
        base = out_file or _default_out_base(project_id)
        _write_report_file(base, FORMAT_EXTENSIONS.get(fmt, 'txt'), rendered, open_html=(args.open and fmt == 'html'))
    else:
        print(rendered)


def _parse_now(value: str, parser: argparse.ArgumentParser):
    if not value:
        return None
    now = parse_timestamp(value)
    if now is None:
        parser.error(f"--now must be an ISO-8601 timestamp, got {value!r}")
    return now


def load_snapshot(args, parser: argparse.ArgumentParser):
    """Load the snapshot from --snapshot, or fetch it from the project API."""
    if args.snapshot:
        return load_snapshot_file(args.snapshot)
    if not args.project:
        parser.error('Provide --snapshot FILE or --project ID')
    token = args.token or os.getenv('TEAMSCORE_TOKEN')
    base_url = args.base_url or os.getenv('TEAMSCORE_BASE_URL', '')
    client = FeedClient(base_url, args.project, token=token)
    return client.fetch_snapshot()


def run_pipeline(args, parser: argparse.ArgumentParser):
    """Load the snapshot, score it, and return (snapshot, payload)."""
    snapshot = load_snapshot(args, parser)
    weights = load_weights(args.weights or None)
    thresholds = load_thresholds(args.weights or None)
    payload = evaluate_project(snapshot, weights=weights, thresholds=thresholds, now=_parse_now(args.now, parser))
    return snapshot, payload


def export_all(payload, args, project_id: str) -> list:
    """Write html, md, csv and json copies side by side. Returns the written paths."""
    base = (args.out_file or '').strip() or _default_out_base(project_id)
    generated_at = datetime.now(timezone.utc).isoformat()
    paths = []
    for fmt in EXPORT_ALL_FORMATS:
        content = render(payload, fmt=fmt, generated_at=generated_at)
        paths.append(_write_report_file(base, FORMAT_EXTENSIONS[fmt], content, open_html=(fmt == 'html' and args.open)))
    return paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score team member contributions and flag fairness anomalies for a group project.")
    parser.add_argument("--snapshot", type=str, default="", help="Path to a project snapshot JSON file")
    parser.add_argument("--project", type=str, default="", help="Project id to fetch from the project API")
    parser.add_argument("--base-url", type=str, default="", help="Project API base URL (or set TEAMSCORE_BASE_URL env var)")
    parser.add_argument("--token", type=str, default="", help="Project API token (or set TEAMSCORE_TOKEN env var)")
    parser.add_argument("--output", type=str, default="text", choices=sorted(FORMAT_EXTENSIONS), help="Output format (default: text)")
    parser.add_argument("--out-file", type=str, default="", help="Output file path. If omitted, html/md/csv use a default name and other formats print to stdout")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML report in the default browser")
    parser.add_argument("--export-all", action="store_true", help="Export HTML, MD, CSV and JSON copies together")
    parser.add_argument("--weights", type=str, default="", help="Path to a weights/thresholds YAML file (or set TEAMSCORE_WEIGHTS_FILE env var)")
    parser.add_argument("--now", type=str, default="", help="Reference time for overdue counts (ISO-8601, default: current UTC time)")
    # retry/backoff knobs: environment variables TEAMSCORE_MAX_RETRIES, TEAMSCORE_BACKOFF_BASE,
    # TEAMSCORE_BACKOFF_JITTER, TEAMSCORE_MAX_BACKOFF and TEAMSCORE_TIMEOUT set the defaults.
    parser.add_argument("--max-retries", type=int, default=None, help="Maximum attempts per HTTP request")
    parser.add_argument("--backoff-base", type=float, default=None, help="Base backoff seconds")
    parser.add_argument("--backoff-jitter", type=float, default=None, help="Jitter seconds added to backoff")
    parser.add_argument("--max-backoff", type=float, default=None, help="Maximum backoff cap in seconds")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    parser.add_argument("--log-level", type=str, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level (default: WARNING)")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # CLI flags take precedence over environment variables
    configure_retry(
        max_retries=args.max_retries,
        backoff_base=args.backoff_base,
        backoff_jitter=args.backoff_jitter,
        max_backoff=args.max_backoff,
        timeout=args.timeout,
    )

    try:
        snapshot, payload = run_pipeline(args, parser)
    except TeamScoreError as ex:
        logger.debug("Pipeline failed", exc_info=True)
        print(f"Error: {ex}", file=sys.stderr)
        sys.exit(1)

    if args.export_all:
        export_all(payload, args, snapshot.project_id)
        return

    fmt = args.output.lower()
    rendered = render(payload, fmt=fmt, generated_at=datetime.now(timezone.utc).isoformat())
    write_output(fmt, rendered, args, project_id=snapshot.project_id)


if __name__ == "__main__":
    main()
