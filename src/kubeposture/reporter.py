"""HTML & JSON posture reports.

Produces:
- Self-contained HTML page: risk score banner, severity counts, drivers,
  attack paths, remediation templates, and findings grouped by area
- A plain dict for JSON export
"""

from __future__ import annotations

import datetime
from collections import Counter
from dataclasses import dataclass
from typing import Any

from jinja2 import BaseLoader, Environment

from kubeposture.adapter import parse_severity
from kubeposture.engine import Severity
from kubeposture.remediation import unique_remediations
from kubeposture.scorer import PostureReport

# Area heading -> resource kinds whose findings land there
_AREAS: list[tuple[str, tuple[str, ...]]] = [
    ("RBAC", ("Role", "ClusterRole", "RoleBinding", "ClusterRoleBinding")),
    ("Pods", ("Pod",)),
    ("Deployments", ("Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job", "CronJob")),
    ("Secrets", ("Secret",)),
]
_OTHER_AREA = "Control plane & other"


@dataclass
class ReportFinding:
    raw: str
    severity: Severity
    kind: str


def _kind_of(finding: str) -> str:
    text = finding.strip()
    if text.startswith("[") and "]" in text:
        text = text[text.index("]") + 1:].strip()
    head = text.split(" ", 1)[0]
    return head.split("/", 1)[0] if "/" in head else ""


def categorize_findings(findings: list[str]) -> dict[str, list[ReportFinding]]:
    """Group findings by area, each sorted by severity rank then text."""
    groups: dict[str, list[ReportFinding]] = {area: [] for area, _ in _AREAS}
    groups[_OTHER_AREA] = []
    for raw in findings:
        rf = ReportFinding(raw=raw, severity=parse_severity(raw), kind=_kind_of(raw))
        area = next((a for a, kinds in _AREAS if rf.kind in kinds), _OTHER_AREA)
        groups[area].append(rf)
    for items in groups.values():
        items.sort(key=lambda f: (f.severity.rank, f.raw))
    return groups


_HTML_TEMPLATE = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>KubePosture Risk Report</title>
<style>
  :root {
    --bg: #0a0e14; --surface: #11151c; --surface2: #161b24; --border: #1e2733;
    --text: #e6edf3; --muted: #7d8590;
    --red: #f85149; --bright-red: #ff4444; --yellow: #d29922; --blue: #58a6ff;
    --green: #3fb950; --orange: #f0883e;
  }
  * { box-sizing: border-box; margin: 0; padding: 0; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.6; padding: 2rem; }
  .container { max-width: 1100px; margin: 0 auto; }
  h1 { font-size: 2rem; margin-bottom: .25rem; }
  h2 { font-size: 1.1rem; margin: 2rem 0 .75rem; }
  .meta { color: var(--muted); font-size: .85rem; margin-bottom: 1.5rem; }
  .banner { display: flex; align-items: center; gap: 2rem; padding: 1.5rem 2rem;
    background: var(--surface); border: 2px solid var(--border); border-radius: 12px; }
  .score-circle { width: 90px; height: 90px; border-radius: 50%; display: flex;
    align-items: center; justify-content: center; font-size: 2.2rem; font-weight: 800; border: 3px solid; }
  .band-low { border-color: var(--green); color: var(--green); }
  .band-moderate { border-color: var(--yellow); color: var(--yellow); }
  .band-high { border-color: var(--orange); color: var(--orange); }
  .band-critical { border-color: var(--bright-red); color: var(--bright-red); background: rgba(255,68,68,.08); }
  .summary { display: flex; gap: 1rem; margin-top: 1.5rem; flex-wrap: wrap; }
  .card { background: var(--surface); border: 1px solid var(--border); border-radius: 8px;
          padding: 1rem 1.5rem; min-width: 120px; text-align: center; }
  .card .num { font-size: 2rem; font-weight: 700; }
  .card.critical .num { color: var(--bright-red); }
  .card.high .num { color: var(--red); }
  .card.medium .num { color: var(--yellow); }
  .card.low .num { color: var(--blue); }
  .card .label { color: var(--muted); font-size: .8rem; text-transform: uppercase; }
  .panel { background: var(--surface); border: 1px solid var(--border); border-radius: 8px; padding: 1.25rem; }
  .panel li { margin-left: 1.5rem; font-size: .9rem; }
  .path-title { color: var(--orange); font-weight: 700; }
  pre { background: var(--bg); padding: .75rem; border-radius: 6px; font-size: .8rem; overflow-x: auto; }
  table { width: 100%; border-collapse: collapse; background: var(--surface); border-radius: 8px; overflow: hidden; }
  th { background: var(--surface2); text-align: left; padding: .6rem 1rem; font-size: .75rem;
       text-transform: uppercase; color: var(--muted); border-bottom: 1px solid var(--border); }
  td { padding: .6rem 1rem; border-bottom: 1px solid var(--border); vertical-align: top; font-size: .85rem; }
  .badge { font-weight: 700; font-size: .7rem; padding: 2px 8px; border-radius: 4px; display: inline-block; }
  .badge.critical { background: rgba(255,68,68,.2); color: var(--bright-red); }
  .badge.high { background: rgba(248,81,73,.15); color: var(--red); }
  .badge.medium { background: rgba(210,153,34,.15); color: var(--yellow); }
  .badge.low, .badge.info { background: rgba(88,166,255,.15); color: var(--blue); }
  .no-issues { text-align: center; padding: 2rem; color: var(--green); }
</style>
</head>
<body>
<div class="container">
  <h1>KubePosture Risk Report</h1>
  <p class="meta">Source: <strong>{{ source_path }}</strong> &nbsp;|&nbsp; Generated: {{ timestamp }}</p>

  <div class="banner">
    <div class="score-circle band-{{ band }}">{{ report.score }}</div>
    <div>
      <div><strong>Risk Score: {{ report.score }}/100</strong></div>
      <div>{{ report.risk_summary }}</div>
      <div class="meta">{{ report.distinct_signals }} distinct signal(s) from {{ report.total_signals }} observation(s)</div>
    </div>
  </div>

  <div class="summary">
    <div class="card critical"><div class="num">{{ report.counts.critical }}</div><div class="label">Critical</div></div>
    <div class="card high"><div class="num">{{ report.counts.high }}</div><div class="label">High</div></div>
    <div class="card medium"><div class="num">{{ report.counts.medium }}</div><div class="label">Medium</div></div>
    <div class="card low"><div class="num">{{ report.counts.low }}</div><div class="label">Low</div></div>
  </div>

  <h2>Risk Drivers</h2>
  <div class="panel"><ul>{% for d in report.drivers %}<li>{{ d }}</li>{% endfor %}</ul></div>

  {% if report.attack_paths %}
  <h2>Attack Paths</h2>
  {% for p in report.attack_paths %}
  <div class="panel">
    <div class="path-title">{{ p.title }} <span class="badge {{ p.severity.value | lower }}">{{ p.severity.value }}</span>
      &nbsp;confidence {{ p.confidence }}%</div>
    <ol>{% for s in p.steps %}<li>{{ s.kind }}: {{ s.why }}</li>{% endfor %}</ol>
    <div class="meta">Evidence: {{ p.evidence | join(", ") }}</div>
  </div>
  {% endfor %}
  {% endif %}

  {% if remediations %}
  <h2>Remediations</h2>
  {% for r in remediations %}
  <div class="panel">
    <strong>{{ r.title }}</strong> <span class="badge {{ r.priority.value | lower }}">{{ r.priority.value }}</span>
    <span class="meta">applies to {{ r.applies_to }}</span>
    {% for ns in namespaces %}<pre>{{ r.render(ns) }}</pre>{% endfor %}
  </div>
  {% endfor %}
  {% endif %}

  {% for area, items in groups.items() if items %}
  <h2>{{ area }} Findings ({{ items | length }})</h2>
  <table>
    <thead><tr><th>Severity</th><th>Finding</th></tr></thead>
    <tbody>
    {% for f in items %}
      <tr><td><span class="badge {{ f.severity.value | lower }}">{{ f.severity.value }}</span></td><td>{{ f.raw }}</td></tr>
    {% endfor %}
    </tbody>
  </table>
  {% else %}
  <div class="no-issues">No findings recorded.</div>
  {% endfor %}
</div>
</body>
</html>"""


def _band(score: int) -> str:
    if score < 30:
        return "low"
    if score < 60:
        return "moderate"
    if score < 80:
        return "high"
    return "critical"


def render_html_report(
    report: PostureReport,
    findings: list[str],
    source_path: str = "",
    namespaces: list[str] | None = None,
) -> str:
    """Render a posture report to a self-contained HTML page.

    Each remediation template is rendered once per namespace in *namespaces*.
    """
    env = Environment(loader=BaseLoader(), autoescape=True)
    template = env.from_string(_HTML_TEMPLATE)
    return template.render(
        report=report,
        band=_band(report.score),
        groups=categorize_findings(findings),
        remediations=unique_remediations(report.remediations),
        namespaces=namespaces or ["default"],
        source_path=source_path,
        timestamp=datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
    )


def render_json_report(
    report: PostureReport,
    findings: list[str],
    source_path: str = "",
    namespaces: list[str] | None = None,
) -> dict[str, Any]:
    """Plain-data form of a posture report, ready for ``json.dumps``."""
    namespaces = namespaces or ["default"]
    occurrences = Counter(r.id for r in report.remediations)
    return {
        "source_path": source_path,
        "score": report.score,
        "risk_summary": report.risk_summary,
        "counts": {
            "critical": report.counts.critical,
            "high": report.counts.high,
            "medium": report.counts.medium,
            "low": report.counts.low,
        },
        "drivers": list(report.drivers),
        "attack_paths": [
            {
                "id": p.id,
                "title": p.title,
                "severity": p.severity.value,
                "confidence": p.confidence,
                "steps": [{"kind": s.kind, "namespace": s.namespace, "name": s.name, "why": s.why} for s in p.steps],
                "evidence": list(p.evidence),
            }
            for p in report.attack_paths
        ],
        "remediations": [
            {
                "id": r.id,
                "title": r.title,
                "priority": r.priority.value,
                "applies_to": r.applies_to,
                "occurrences": occurrences[r.id],
                "namespace": ns,
                "template": r.render(ns),
            }
            for r in unique_remediations(report.remediations)
            for ns in namespaces
        ],
        "findings": [
            {"severity": parse_severity(f).value, "finding": f} for f in findings
        ],
    }
