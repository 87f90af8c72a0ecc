"""Per-page JSON documents and the run summary.

Every page is written to ``<output>/<page_id>.json``; ``summary.json``
lists all pages with their headline counts. Keys are camelCase and
``None`` values are omitted, so consumers treat every key as optional.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..constants import SUMMARY_FILE
from ..page_parser.models import (
    CrossFrameInteraction,
    Field,
    Form,
    FrameDefinition,
    HiddenField,
    JsRoutingHint,
    NavigationTarget,
    OutputSection,
    Page,
    PageDependency,
    SessionDependency,
    UrlParameter,
)

logger = logging.getLogger(__name__)


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _notes(notes: List[str]) -> Optional[List[str]]:
    return list(notes) if notes else None


def field_to_dict(field: Field) -> Dict[str, Any]:
    return _compact({
        "name": field.name,
        "id": field.id,
        "label": field.label,
        "type": field.type,
        "required": field.required,
        "maxLength": field.max_length,
        "minLength": field.min_length,
        "pattern": field.pattern,
        "placeholder": field.placeholder,
        "defaultValue": field.default_value,
        "options": [
            _compact({"label": o.label, "value": o.value, "selected": o.selected})
            for o in field.options
        ],
        "bindingExpressions": list(field.binding_expressions),
        "min": field.min_value,
        "max": field.max_value,
        "sourceTag": field.source_tag,
        "javaType": field.java_type,
        "constraints": list(field.constraints),
        "sourceBeanClass": field.source_bean_class,
        "sourceBeanProperty": field.source_bean_property,
        "notes": _notes(field.notes),
    })


def form_to_dict(form: Form) -> Dict[str, Any]:
    return _compact({
        "formId": form.form_id,
        "action": form.action,
        "method": form.method,
        "backingBeanClass": form.backing_bean_class,
        "fields": [field_to_dict(f) for f in form.fields],
        "notes": _notes(form.notes),
    })


def output_to_dict(section: OutputSection) -> Dict[str, Any]:
    return _compact({
        "id": section.section_id,
        "type": section.type.value,
        "itemVar": section.item_variable,
        "itemsExpression": section.items_expression,
        "fields": [
            _compact({
                "name": f.name,
                "label": f.label,
                "bindingExpression": f.binding_expression,
                "rawText": f.raw_text,
                "notes": _notes(f.notes),
            })
            for f in section.fields
        ],
        "notes": _notes(section.notes),
    })


def frame_to_dict(frame: FrameDefinition) -> Dict[str, Any]:
    return _compact({
        "frameName": frame.frame_name,
        "source": frame.source,
        "parentFrameName": frame.parent_frame_name,
        "depth": frame.depth,
        "tag": frame.tag,
        "confidence": frame.confidence.name,
    })


def fact_to_dict(fact) -> Dict[str, Any]:
    """Serialize any of the immutable fact records."""
    if isinstance(fact, NavigationTarget):
        data = {"target": fact.target_page, "sourcePattern": fact.source_pattern, "snippet": fact.snippet}
    elif isinstance(fact, JsRoutingHint):
        data = {"target": fact.target_page, "sourcePattern": fact.source_pattern, "snippet": fact.snippet}
    elif isinstance(fact, CrossFrameInteraction):
        data = {
            "fromFrame": fact.from_frame,
            "toPage": fact.to_page,
            "type": fact.interaction_type,
            "snippet": fact.snippet,
        }
    elif isinstance(fact, HiddenField):
        data = {
            "name": fact.name,
            "defaultValue": fact.default_value,
            "expression": fact.expression,
            "snippet": fact.snippet,
        }
    elif isinstance(fact, SessionDependency):
        data = {"key": fact.key, "source": fact.source, "snippet": fact.snippet}
    elif isinstance(fact, UrlParameter):
        data = {"name": fact.name, "source": fact.source, "snippet": fact.snippet}
    elif isinstance(fact, PageDependency):
        return {"from": fact.from_page, "to": fact.to_page, "type": fact.dependency_type}
    else:
        raise TypeError(f"Unsupported fact record: {type(fact).__name__}")
    data["confidence"] = fact.confidence.name
    return _compact(data)


def page_to_dict(page: Page, root_dir: Optional[str] = None) -> Dict[str, Any]:
    source_path = page.source_path
    if root_dir and source_path:
        abs_root = os.path.abspath(root_dir)
        abs_source = os.path.abspath(source_path)
        if abs_source.startswith(abs_root + os.sep):
            source_path = os.path.relpath(abs_source, abs_root).replace(os.sep, "/")

    return _compact({
        "pageId": page.page_id,
        "title": page.title,
        "sourcePath": source_path,
        "forms": [form_to_dict(f) for f in page.forms],
        "outputs": [output_to_dict(o) for o in page.outputs],
        "frameDefinitions": [frame_to_dict(f) for f in page.frames],
        "navigationTargets": [fact_to_dict(t) for t in page.navigation_targets],
        "urlParameterCandidates": [fact_to_dict(p) for p in page.url_parameters],
        "hiddenFields": [fact_to_dict(h) for h in page.hidden_fields],
        "sessionDependencies": [fact_to_dict(s) for s in page.session_dependencies],
        "crossFrameInteractions": [fact_to_dict(c) for c in page.cross_frame_interactions],
        "jsRoutingHints": [fact_to_dict(j) for j in page.js_routing],
        "pageDependencies": [fact_to_dict(d) for d in page.dependencies],
        "metadata": {
            "controllerCandidates": page.controller_names(),
            "controllerConfidence": {c.name: c.confidence.name for c in page.controller_candidates},
            "backingBeanCandidates": list(page.backing_bean_candidates),
            "notes": list(page.notes),
            "confidenceScore": page.confidence_score,
            "confidence": page.confidence_label,
            "framesetPage": page.frameset_page,
            "missingMappings": page.missing_mappings,
        },
    })


def output_path_for(output_dir: str, page_id: Optional[str]) -> str:
    """``<output>/<page_id>.json``; ids escaping the output dir are flattened."""
    if not page_id or not page_id.strip():
        return os.path.join(output_dir, "page.json")
    relative = page_id.replace("\\", "/")
    candidate = os.path.normpath(os.path.join(output_dir, relative + ".json"))
    if os.path.isabs(relative) or not candidate.startswith(os.path.normpath(output_dir) + os.sep):
        flattened = relative.strip("/").replace("/", "_").replace(":", "_")
        candidate = os.path.join(output_dir, flattened + ".json")
    return candidate


def summary_entry(page: Page, output_file: str) -> Dict[str, Any]:
    return {
        "pageId": page.page_id,
        "output": output_file,
        "forms": len(page.forms),
        "fields": page.field_count(),
        "outputs": len(page.outputs),
        "frames": len(page.frames),
        "frameset": page.frameset_page,
        "navigationTargets": len(page.navigation_targets),
        "urlParameters": len(page.url_parameters),
        "confidenceScore": page.confidence_score,
        "confidence": page.confidence_label,
    }


def write_page_reports(output_dir: str, pages: List[Page], root_dir: Optional[str] = None) -> str:
    """Write one JSON document per page plus ``summary.json``.

    Args:
        output_dir: Destination directory (created if missing)
        pages: Correlated pages
        root_dir: Codebase root, used to relativize source paths

    Returns:
        Path of the summary file
    """
    os.makedirs(output_dir, exist_ok=True)
    summary: List[Dict[str, Any]] = []
    for page in pages:
        path = output_path_for(output_dir, page.page_id)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(page_to_dict(page, root_dir), f, indent=2)
        summary.append(summary_entry(page, os.path.relpath(path, output_dir).replace(os.sep, "/")))

    summary_path = os.path.join(output_dir, SUMMARY_FILE)
    with open(summary_path, "w", encoding="utf-8") as f:
        json.dump({
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "totalPages": len(pages),
            "pages": summary,
        }, f, indent=2)
    logger.info(f"Wrote {len(pages)} page documents to {output_dir}")
    return summary_path
