"""
Report renderer: generate text/Markdown/CSV/HTML/JSON summaries from the report payload
built by report.assembler, plus the narrative brief handed to the report-writing model.
HTML, Markdown and the brief are rendered from Jinja2 templates in report/templates.
"""

from typing import Optional, List, Dict, Any
import csv
import io
import json
import os

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')

FORMAT_EXTENSIONS = {'html': 'html', 'md': 'md', 'csv': 'csv', 'json': 'json', 'text': 'txt', 'prompt': 'txt'}

CSV_HEADER = ['user_id', 'name', 'points', 'percentage', 'tasks_completed', 'tasks_in_progress', 'tasks_created', 'other_actions', 'peer_rating', 'flags']

_env: Optional[Environment] = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(['html', 'htm', 'xml', 'html.j2']),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _env.filters['rating'] = format_rating
    return _env


def format_rating(value: Optional[float]) -> str:
    """'4.3/5' for a rating, 'No reviews yet' for None."""
    if value is None:
        return 'No reviews yet'
    return f"{value}/5"


def flags_by_user(payload: Dict[str, Any]) -> Dict[str, List[str]]:
    """Map user id -> list of flag reasons, in payload order."""
    out: Dict[str, List[str]] = {}
    for f in payload.get('flags') or []:
        out.setdefault(f.get('userId') or f.get('name'), []).append(f.get('reason'))
    return out


def _peer_ratings(payload: Dict[str, Any]) -> Dict[str, Optional[float]]:
    return {m['userId']: m.get('peerRating') for m in payload.get('memberSummaries') or []}


def _context(payload: Dict[str, Any], generated_at: Optional[str], scope: Optional[str]) -> Dict[str, Any]:
    return {
        'project': payload.get('project') or {},
        'team_size': payload.get('members', 0),
        'task_stats': payload.get('taskStats') or {},
        'contributions': payload.get('contributions') or [],
        'review_summary': payload.get('reviewSummary') or {},
        'flags': payload.get('flags') or [],
        'member_summaries': payload.get('memberSummaries') or [],
        'peer_ratings': _peer_ratings(payload),
        'flags_by_user': flags_by_user(payload),
        'generated_at': generated_at,
        'scope': scope,
    }


def _render_template(name: str, payload: Dict[str, Any], generated_at: Optional[str] = None, scope: Optional[str] = None) -> str:
    return _environment().get_template(name).render(**_context(payload, generated_at, scope))


def render_text(payload: Dict[str, Any]) -> str:
    """Render a plain-text summary: one line per member, then flags."""
    project = payload.get('project') or {}
    stats = payload.get('taskStats') or {}
    ratings = _peer_ratings(payload)
    lines = [
        f"Project: {project.get('name') or project.get('id') or ''}",
        f"Team Size: {payload.get('members', 0)}",
        f"Tasks: {stats.get('total', 0)} ({stats.get('done', 0)} completed, {stats.get('overdue', 0)} overdue)",
    ]
    for c in payload.get('contributions') or []:
        lines.append(f"{c['name']}: {c['points']} pts ({c['percentage']}%), peer rating {format_rating(ratings.get(c['userId']))}")
    for f in payload.get('flags') or []:
        lines.append(f"FLAG {f['name']}: {f['reason']}")
    return "\n".join(lines)


def render_markdown(payload: Dict[str, Any]) -> str:
    return _render_template('report.md.j2', payload)


def render_csv(payload: Dict[str, Any]) -> str:
    """One row per member in score order; flags joined with '; '."""
    ratings = _peer_ratings(payload)
    flags = flags_by_user(payload)
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)
    for c in payload.get('contributions') or []:
        b = c.get('breakdown') or {}
        rating = ratings.get(c['userId'])
        writer.writerow([
            c['userId'],
            c['name'],
            c['points'],
            c['percentage'],
            b.get('tasksCompleted', 0),
            b.get('tasksInProgress', 0),
            b.get('tasksCreated', 0),
            b.get('otherActions', 0),
            '' if rating is None else rating,
            '; '.join(flags.get(c['userId'], [])),
        ])
    return output.getvalue()


def render_json(payload: Dict[str, Any]) -> str:
    """Serialize the payload as indented JSON. Key order follows the payload."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_html(payload: Dict[str, Any], generated_at: Optional[str] = None, scope: Optional[str] = None) -> str:
    return _render_template('report.html.j2', payload, generated_at=generated_at, scope=scope)


def render_prompt(payload: Dict[str, Any]) -> str:
    """Render the narrative brief for the report-writing model. This module never calls the model."""
    return _render_template('prompt.txt.j2', payload)


def render(
    payload: Dict[str, Any],
    fmt: str = 'text',
    generated_at: Optional[str] = None,
    scope: Optional[str] = None,
) -> str:
    """Main render function. Unknown formats fall back to plain text."""
    fmt_l = (fmt or 'text').lower()
    if fmt_l in ('md', 'markdown'):
        return render_markdown(payload)
    if fmt_l == 'csv':
        return render_csv(payload)
    if fmt_l in ('html', 'htm'):
        return render_html(payload, generated_at=generated_at, scope=scope)
    if fmt_l in ('json', 'js'):
        return render_json(payload)
    if fmt_l == 'prompt':
        return render_prompt(payload)
    return render_text(payload)
