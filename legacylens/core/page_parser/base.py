"""Base interface for page pattern extractors.

Every extractor re-reads the page source, scans it and assigns one
deduplicated fact list onto the page. File handling lives here; the
scanning is delegated to subclasses.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from .models import Page
from .utils import read_page_source

logger = logging.getLogger(__name__)


class BasePageExtractor(ABC):
    """Abstract base for stateless page extractors.

    Subclasses implement:
    - extract_source(): scans raw page text and returns fact records
    - apply(): stores the records on the page
    """

    name = "extractor"

    @abstractmethod
    def extract_source(self, raw: str):
        """Scan raw page text.

        Args:
            raw: Full page template text

        Returns:
            Ordered, deduplicated fact records
        """
        ...

    @abstractmethod
    def apply(self, page: Page, facts) -> None:
        ...

    def empty(self):
        """Facts contributed when the page cannot be read."""
        return []

    def analyze(self, pages: List[Page]) -> None:
        for page in pages:
            self.analyze_page(page)

    def analyze_page(self, page: Page):
        """Read the page file and attach this extractor's facts.

        An unreadable file contributes an empty list.
        """
        try:
            raw = read_page_source(page.source_path)
        except OSError as e:
            logger.warning(f"{self.name}: failed to read {page.source_path}: {e}")
            facts = self.empty()
        else:
            facts = self.extract_source(raw)
        self.apply(page, facts)
        return facts
