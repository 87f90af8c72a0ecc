"""Cross-frame script interactions (one frame redirecting another)."""

import re
from typing import List, Pattern, Tuple

from .base import BasePageExtractor
from .models import Confidence, CrossFrameInteraction, FactCollector, Page
from .utils import snippet

_TARGET = r"\s*[:=]\s*['\"]([^'\"]+\.jspf?[^'\"]*)['\"]"

# (pattern, label used when the idiom does not name the frame)
_IDIOMS: Tuple[Tuple[Pattern, str], ...] = (
    (re.compile(r"parent\.([A-Za-z0-9_]+)\.location" + _TARGET, re.IGNORECASE), "parent"),
    (re.compile(r"window\.parent(?:\.([A-Za-z0-9_]+))?\.location" + _TARGET, re.IGNORECASE), "window.parent"),
    (re.compile(r"top\.frames\[['\"]?([A-Za-z0-9_]+)['\"]?\]\.location" + _TARGET, re.IGNORECASE), "top.frames"),
)

LOCATION_CHANGE = "locationChange"


class CrossFrameInteractionExtractor(BasePageExtractor):
    name = "cross-frame"

    def extract_source(self, raw: str) -> List[CrossFrameInteraction]:
        collector = FactCollector()
        for pattern, default_frame in _IDIOMS:
            for match in pattern.finditer(raw):
                collector.add(CrossFrameInteraction(
                    from_frame=match.group(1) or default_frame,
                    to_page=match.group(2).strip(),
                    interaction_type=LOCATION_CHANGE,
                    snippet=snippet(raw, match.start(), match.end()),
                    confidence=Confidence.MEDIUM,
                ))
        return collector.items()

    def apply(self, page: Page, facts: List[CrossFrameInteraction]) -> None:
        page.cross_frame_interactions = facts
