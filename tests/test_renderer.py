import csv
import io
import json
from datetime import datetime, timezone

import pytest

from engine import evaluate_project
from normalize.util import normalize_snapshot
from report import renderer


@pytest.fixture
def payload(snapshot_doc):
    return evaluate_project(normalize_snapshot(snapshot_doc), now=datetime(2025, 1, 5, 12, tzinfo=timezone.utc))


def test_format_rating():
    assert renderer.format_rating(None) == 'No reviews yet'
    assert renderer.format_rating(4.1) == '4.1/5'


def test_flags_by_user(payload):
    grouped = renderer.flags_by_user(payload)
    assert grouped == {'u3': ['Very low contribution (<10%)', 'High peer rating but low activity']}


def test_render_text(payload):
    out = renderer.render(payload, fmt='text')
    assert 'Project: Capstone' in out
    assert 'Alice: 14 pts (74%), peer rating 4.1/5' in out
    assert 'Bob: 5 pts (26%), peer rating No reviews yet' in out
    assert 'FLAG Cara: Very low contribution (<10%)' in out


def test_render_csv(payload):
    rows = list(csv.reader(io.StringIO(renderer.render(payload, fmt='csv'))))
    assert rows[0] == renderer.CSV_HEADER
    assert rows[1][:4] == ['u1', 'Alice', '14', '74']
    assert rows[2][8] == ''
    assert rows[3][9] == 'Very low contribution (<10%); High peer rating but low activity'


def test_render_json_round_trips_payload(payload):
    assert json.loads(renderer.render(payload, fmt='json')) == payload


def test_render_markdown(payload):
    md = renderer.render(payload, fmt='md')
    assert md.startswith('# Contribution Report: Capstone')
    assert '| Alice | 14 | 74% |' in md
    assert '- **Cara**: High peer rating but low activity' in md


def test_render_html_escapes_names(payload):
    payload['contributions'][0]['name'] = '<script>x</script>'
    html = renderer.render(payload, fmt='html', generated_at='now', scope='Spring')
    assert '<html' in html.lower()
    assert '&lt;script&gt;' in html
    assert '<script>x' not in html
    assert 'Scope: Spring' in html


def test_render_prompt(payload):
    prompt = renderer.render(payload, fmt='prompt')
    assert 'Project: "Capstone"' in prompt
    assert 'Course: CS499' in prompt
    assert 'Total Tasks: 4 (2 completed, 2 overdue)' in prompt
    assert 'Team Size: 3' in prompt
    assert '  Peer Rating: No reviews yet' in prompt
    assert '  Contribution: 74%' in prompt
    assert 'Suggested grading adjustment' in prompt


def test_render_empty_reviews_and_flags():
    payload = evaluate_project(normalize_snapshot({'project': {'id': 'p'}, 'members': [{'userId': 'u', 'name': 'U'}]}))
    md = renderer.render_markdown(payload)
    assert '_No peer reviews submitted._' in md
    assert '_No flags raised._' in md
    assert 'Course: N/A' in renderer.render_prompt(payload)


def test_unknown_format_falls_back_to_text(payload):
    assert renderer.render(payload, fmt='weird') == renderer.render_text(payload)
