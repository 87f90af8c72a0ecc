"""Client-side routing hints (script redirects and form action rewrites)."""

import re
from typing import List

from .base import BasePageExtractor
from .models import Confidence, FactCollector, JsRoutingHint, Page
from .utils import snippet

_LOCATION_ASSIGN_RE = re.compile(
    r"(window\.location(?:\.href)?|document\.location(?:\.href)?|location(?:\.href)?)"
    r"\s*[:=]\s*['\"]([^'\"]+\.jspf?[^'\"]*)['\"]",
    re.IGNORECASE,
)
_FORM_ACTION_RE = re.compile(
    r"document\.forms\[[^\]]+\]\.action\s*=\s*['\"]([^'\"]+\.jspf?[^'\"]*)['\"]",
    re.IGNORECASE,
)

FORM_ACTION_SOURCE = "document.forms.action"


class JsRoutingExtractor(BasePageExtractor):
    name = "js-routing"

    def extract_source(self, raw: str) -> List[JsRoutingHint]:
        collector = FactCollector()
        for match in _LOCATION_ASSIGN_RE.finditer(raw):
            collector.add(JsRoutingHint(
                target_page=match.group(2).strip(),
                source_pattern=match.group(1),
                snippet=snippet(raw, match.start(), match.end()),
                confidence=Confidence.HIGH,
            ))
        for match in _FORM_ACTION_RE.finditer(raw):
            collector.add(JsRoutingHint(
                target_page=match.group(1).strip(),
                source_pattern=FORM_ACTION_SOURCE,
                snippet=snippet(raw, match.start(), match.end()),
                confidence=Confidence.HIGH,
            ))
        return collector.items()

    def apply(self, page: Page, facts: List[JsRoutingHint]) -> None:
        page.js_routing = facts
