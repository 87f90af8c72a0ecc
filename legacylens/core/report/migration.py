"""Migration complexity report (JSON, CSV and a static HTML dashboard)."""

import csv
import html
import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..constants import MIGRATION_REPORT_BASENAME
from ..page_parser.models import Page
from ..page_parser.utils import find_expressions, read_page_source
from .page_json import fact_to_dict, frame_to_dict

logger = logging.getLogger(__name__)

_CSV_COLUMNS = (
    "pageId", "title", "forms", "fields", "outputs", "navigationTargets", "jsRoutingHints",
    "urlParameters", "crossFrameInteractions", "hiddenFields", "sessionDependencies",
    "pageDependencies", "dynamicExpressions", "scriptlets", "sessionUsage", "frames",
    "frameCount", "frameset", "missingMappings", "complexity", "difficulty", "confidence",
)

_FRAME_MARKERS = ("<frame", "<frameset", "<iframe")


@dataclass
class PageReportEntry:
    page_id: str
    title: Optional[str]
    form_count: int
    field_count: int
    output_count: int
    navigation_targets: int
    js_routing_hints: int
    url_parameters: int
    cross_frame_interactions: int
    hidden_fields: int
    session_dependencies: int
    page_dependencies: int
    dynamic_expressions: int
    scriptlets: bool
    session_usage: bool
    frames_present: bool
    frame_count: int
    frameset_page: bool
    missing_mappings: bool
    complexity_score: float
    difficulty: str
    confidence_label: str
    controller_candidates: List[str] = field(default_factory=list)
    backing_bean_candidates: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def csv_row(self) -> List[Any]:
        return [
            self.page_id, self.title or "", self.form_count, self.field_count, self.output_count,
            self.navigation_targets, self.js_routing_hints, self.url_parameters,
            self.cross_frame_interactions, self.hidden_fields, self.session_dependencies,
            self.page_dependencies, self.dynamic_expressions, _flag(self.scriptlets),
            _flag(self.session_usage), _flag(self.frames_present), self.frame_count,
            _flag(self.frameset_page), _flag(self.missing_mappings), self.complexity_score,
            self.difficulty, self.confidence_label,
        ]


def _flag(value: bool) -> str:
    return "true" if value else "false"


def compute_complexity(
    form_count: int,
    field_count: int,
    output_count: int,
    dynamic_expressions: int,
    has_scriptlets: bool,
    has_session_usage: bool,
    has_frames: bool,
    missing_mappings: bool,
) -> float:
    score = 0.0
    score += min(30.0, form_count * 6.5)
    score += min(30.0, field_count * 1.5)
    score += min(15.0, output_count * 3.5)
    if has_scriptlets:
        score += 15
    if dynamic_expressions > 0:
        score += min(15, 5 + dynamic_expressions)
    if has_session_usage:
        score += 8
    if has_frames:
        score += 8
    if missing_mappings:
        score += 8
    return min(100.0, score)


def classify_difficulty(score: float) -> str:
    if score < 25:
        return "LOW"
    if score < 50:
        return "MEDIUM"
    if score < 75:
        return "HIGH"
    return "CRITICAL"


def count_dynamic_expressions(page: Page, content: Optional[str]) -> int:
    """Distinct binding expressions used by the page's fields, outputs and text."""
    expressions = set()
    for form in page.forms:
        for f in form.fields:
            expressions.update(f.binding_expressions)
    for section in page.outputs:
        for output in section.fields:
            if output.binding_expression:
                expressions.add("${" + output.binding_expression + "}")
    if content:
        expressions.update(find_expressions(content))
    return len(expressions)


def evaluate_page(page: Page) -> PageReportEntry:
    content: Optional[str]
    try:
        content = read_page_source(page.source_path)
    except OSError as e:
        logger.debug(f"Unable to read page content for {page.source_path}: {e}")
        content = None
    lowered = content.lower() if content else ""

    form_count = len(page.forms)
    field_count = page.field_count()
    output_count = len(page.outputs)
    frame_count = len(page.frames)
    dynamic = count_dynamic_expressions(page, content)
    has_scriptlets = content is not None and "<%" in content
    has_session = bool(page.session_dependencies) or "session" in lowered
    has_frames = frame_count > 0 or page.frameset_page or any(m in lowered for m in _FRAME_MARKERS)

    score = compute_complexity(
        form_count, field_count, output_count, dynamic,
        has_scriptlets, has_session, has_frames, page.missing_mappings,
    )

    notes = list(page.notes)
    if has_scriptlets:
        notes.append("Scriptlets detected")
    if dynamic > 0:
        notes.append(f"Dynamic expressions detected: {dynamic}")
    if has_session:
        notes.append("Session usage detected")
    if has_frames:
        notes.append(f"Frames detected: {frame_count}" if frame_count else "Frames or iframes detected")
        if page.frameset_page:
            notes.append("Likely layout/frameset page")
    if page.missing_mappings:
        notes.append("No controller/backing bean mapping identified")
    if page.cross_frame_interactions:
        notes.append(f"Cross-frame interactions detected: {len(page.cross_frame_interactions)}")
    if page.hidden_fields:
        notes.append(f"Hidden fields detected: {len(page.hidden_fields)}")
    if page.session_dependencies:
        notes.append(f"Session dependencies detected: {len(page.session_dependencies)}")

    return PageReportEntry(
        page_id=page.page_id,
        title=page.title,
        form_count=form_count,
        field_count=field_count,
        output_count=output_count,
        navigation_targets=len(page.navigation_targets),
        js_routing_hints=len(page.js_routing),
        url_parameters=len(page.url_parameters),
        cross_frame_interactions=len(page.cross_frame_interactions),
        hidden_fields=len(page.hidden_fields),
        session_dependencies=len(page.session_dependencies),
        page_dependencies=len(page.dependencies),
        dynamic_expressions=dynamic,
        scriptlets=has_scriptlets,
        session_usage=has_session,
        frames_present=has_frames,
        frame_count=frame_count,
        frameset_page=page.frameset_page,
        missing_mappings=page.missing_mappings,
        complexity_score=round(score, 1),
        difficulty=classify_difficulty(score),
        confidence_label=page.confidence_label,
        controller_candidates=page.controller_names(),
        backing_bean_candidates=list(page.backing_bean_candidates),
        notes=notes,
        details={
            "navigationTargets": [fact_to_dict(t) for t in page.navigation_targets],
            "urlParameters": [fact_to_dict(p) for p in page.url_parameters],
            "hiddenFields": [fact_to_dict(h) for h in page.hidden_fields],
            "frameDefinitions": [frame_to_dict(f) for f in page.frames],
            "sessionDependencies": [fact_to_dict(s) for s in page.session_dependencies],
            "jsRoutingHints": [fact_to_dict(j) for j in page.js_routing],
            "pageDependencies": [fact_to_dict(d) for d in page.dependencies],
        },
    )


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def entry_to_dict(entry: PageReportEntry) -> Dict[str, Any]:
    return {_camel(k): v for k, v in asdict(entry).items()}


def write_migration_report(output_dir: str, pages: List[Page]) -> List[PageReportEntry]:
    """Write migration-report.{json,csv,html} and return the evaluated entries."""
    os.makedirs(output_dir, exist_ok=True)
    entries = [evaluate_page(page) for page in pages]
    base = os.path.join(output_dir, MIGRATION_REPORT_BASENAME)

    with open(base + ".json", "w", encoding="utf-8") as f:
        json.dump({
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "totalPages": len(entries),
            "pages": [entry_to_dict(e) for e in entries],
        }, f, indent=2)

    with open(base + ".csv", "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(_CSV_COLUMNS)
        for entry in entries:
            writer.writerow(entry.csv_row())

    with open(base + ".html", "w", encoding="utf-8") as f:
        f.write(render_html(entries))

    logger.info(f"Migration reports generated for {len(entries)} pages")
    return entries


_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Migration Report</title>
<style>
body {{ font-family: sans-serif; margin: 2rem; color: #222; }}
table {{ border-collapse: collapse; width: 100%; }}
th, td {{ border: 1px solid #ccc; padding: 4px 8px; text-align: left; vertical-align: top; }}
th {{ background: #f0f0f0; }}
.LOW {{ color: #2e7d32; }} .MEDIUM {{ color: #f9a825; }}
.HIGH {{ color: #ef6c00; }} .CRITICAL {{ color: #c62828; font-weight: bold; }}
ul {{ margin: 0; padding-left: 1.2rem; }}
</style>
</head>
<body>
<h1>Migration Report</h1>
<p>{total} pages analyzed. {summary}</p>
<table>
<thead><tr><th>Page</th><th>Title</th><th>Forms</th><th>Fields</th><th>Outputs</th>
<th>Complexity</th><th>Difficulty</th><th>Confidence</th><th>Controllers</th><th>Notes</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
</body>
</html>
"""


def render_html(entries: List[PageReportEntry]) -> str:
    counts: Dict[str, int] = {}
    for entry in entries:
        counts[entry.difficulty] = counts.get(entry.difficulty, 0) + 1
    summary = ", ".join(
        f"{level}: {counts[level]}" for level in ("LOW", "MEDIUM", "HIGH", "CRITICAL") if level in counts
    )
    rows = []
    for entry in entries:
        notes = "".join(f"<li>{html.escape(n)}</li>" for n in entry.notes)
        rows.append(
            "<tr>"
            f"<td>{html.escape(entry.page_id)}</td>"
            f"<td>{html.escape(entry.title or '')}</td>"
            f"<td>{entry.form_count}</td>"
            f"<td>{entry.field_count}</td>"
            f"<td>{entry.output_count}</td>"
            f"<td>{entry.complexity_score}</td>"
            f"<td class=\"{entry.difficulty}\">{entry.difficulty}</td>"
            f"<td>{html.escape(entry.confidence_label)}</td>"
            f"<td>{html.escape(', '.join(entry.controller_candidates[:5]))}</td>"
            f"<td><ul>{notes}</ul></td>"
            "</tr>"
        )
    return _HTML_TEMPLATE.format(total=len(entries), summary=html.escape(summary), rows="\n".join(rows))
