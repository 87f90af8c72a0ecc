"""Page-to-page dependency edges derived from extracted facts."""

import logging
from typing import List

from .models import FactCollector, Page, PageDependency

logger = logging.getLogger(__name__)

NAVIGATION_TARGET = "navigationTarget"
FRAME_SOURCE = "frameSource"
JS_ROUTING_HINT = "jsRoutingHint"


class PageDependencyGraphBuilder:
    """Builds deduplicated (from, to, kind) edges for every page.

    Must run after the navigation, frame and routing extractors.
    """

    def build(self, pages: List[Page]) -> None:
        total = 0
        for page in pages:
            page.dependencies = self.build_page(page)
            total += len(page.dependencies)
        logger.info(f"Dependency graph built: {total} edges across {len(pages)} pages")

    def build_page(self, page: Page) -> List[PageDependency]:
        collector = FactCollector()
        for target in page.navigation_targets:
            _add_edge(collector, page.page_id, target.target_page, NAVIGATION_TARGET)
        for frame in page.frames:
            _add_edge(collector, page.page_id, frame.source, FRAME_SOURCE)
        for hint in page.js_routing:
            _add_edge(collector, page.page_id, hint.target_page, JS_ROUTING_HINT)
        return collector.items()


def _add_edge(collector: FactCollector, from_page: str, to_page, kind: str) -> None:
    if not to_page or not to_page.strip():
        return
    collector.add(PageDependency(from_page=from_page, to_page=to_page.strip(), dependency_type=kind))
