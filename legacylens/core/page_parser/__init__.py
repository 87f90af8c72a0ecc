"""legacylens page parser: structural and pattern extraction for page templates.

Public API:
    default_extractors() → list of the seven pattern extractors
    analyze_page_source(raw, page_id) → Page
"""

from typing import List

from .base import BasePageExtractor
from .cross_frame import CrossFrameInteractionExtractor
from .dependency_graph import PageDependencyGraphBuilder
from .frames import FrameAnalyzer
from .hidden_fields import HiddenFieldStateExtractor
from .js_routing import JsRoutingExtractor
from .markup import MarkupAnalyzer
from .models import Confidence, Page
from .navigation import NavigationTargetExtractor
from .session_usage import SessionUsageExtractor
from .url_parameters import UrlParameterExtractor

__all__ = [
    "analyze_page_source",
    "default_extractors",
    "BasePageExtractor",
    "Confidence",
    "CrossFrameInteractionExtractor",
    "FrameAnalyzer",
    "HiddenFieldStateExtractor",
    "JsRoutingExtractor",
    "MarkupAnalyzer",
    "NavigationTargetExtractor",
    "Page",
    "PageDependencyGraphBuilder",
    "SessionUsageExtractor",
    "UrlParameterExtractor",
]


def default_extractors() -> List[BasePageExtractor]:
    """The pattern extractors in pipeline order."""
    return [
        FrameAnalyzer(),
        NavigationTargetExtractor(),
        CrossFrameInteractionExtractor(),
        HiddenFieldStateExtractor(),
        SessionUsageExtractor(),
        UrlParameterExtractor(),
        JsRoutingExtractor(),
    ]


def analyze_page_source(raw: str, page_id: str = "page.jsp") -> Page:
    """Run markup extraction, every pattern extractor and the dependency
    builder over in-memory page text.

    Args:
        raw: Page template text
        page_id: Identity assigned to the resulting page

    Returns:
        Page with every structural fact list filled in
    """
    page = Page(page_id=page_id, source_path=page_id)
    MarkupAnalyzer("").analyze_source(raw, page)
    for extractor in default_extractors():
        extractor.apply(page, extractor.extract_source(raw))
    page.dependencies = PageDependencyGraphBuilder().build_page(page)
    return page
