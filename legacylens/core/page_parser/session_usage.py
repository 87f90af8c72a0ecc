"""Session attribute reads (EL scope access and scriptlet getAttribute calls)."""

import re
from typing import List

from .base import BasePageExtractor
from .models import Confidence, FactCollector, Page, SessionDependency
from .utils import snippet

_SESSION_PATTERNS = (
    (re.compile(r"\$\{sessionScope\.([A-Za-z0-9_]+)\}"), "EL"),
    (re.compile(r"session\.getAttribute\(\s*\"([^\"]+)\"\s*\)"), "session.getAttribute"),
    (
        re.compile(r"request\.getSession\(\s*\)\.getAttribute\(\s*\"([^\"]+)\"\s*\)"),
        "request.getSession().getAttribute",
    ),
)


class SessionUsageExtractor(BasePageExtractor):
    name = "session-usage"

    def extract_source(self, raw: str) -> List[SessionDependency]:
        collector = FactCollector()
        for pattern, source in _SESSION_PATTERNS:
            for match in pattern.finditer(raw):
                collector.add(SessionDependency(
                    key=match.group(1),
                    source=source,
                    snippet=snippet(raw, match.start(), match.end()),
                    confidence=Confidence.HIGH,
                ))
        return collector.items()

    def apply(self, page: Page, facts: List[SessionDependency]) -> None:
        page.session_dependencies = facts
