"""
Demo script: score the bundled sample snapshot and write HTML, Markdown, CSV, JSON and the narrative brief.
"""

import os
from datetime import datetime, timezone

from engine import evaluate_project
from ingest.feed import load_snapshot_file
from report.renderer import FORMAT_EXTENSIONS, render

SAMPLE = os.path.join(os.path.dirname(__file__), 'samples', 'snapshot.json')

snapshot = load_snapshot_file(SAMPLE)
payload = evaluate_project(snapshot, now=datetime(2025, 2, 25, tzinfo=timezone.utc))
generated_at = datetime.now(timezone.utc).isoformat()

for fmt in ('html', 'md', 'csv', 'json', 'prompt'):
    content = render(payload, fmt=fmt, generated_at=generated_at)
    out_path = f"demo_report_{fmt}.{FORMAT_EXTENSIONS[fmt]}"
    with open(out_path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)
    print(f'Wrote {out_path} ({len(content)} bytes)')

print(render(payload, fmt='text'))
