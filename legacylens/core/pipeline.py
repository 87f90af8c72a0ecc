"""End-to-end analysis pipeline.

scan -> markup -> pattern extractors -> dependency graph -> Java metadata
-> correlation -> reports. Single-threaded; each stage completes for every
page before the next one starts.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import AnalyzerConfig
from .correlation import CorrelationEngine, PageCorrelation
from .java_metadata import JavaMetadataAnalyzer, MetadataIndex
from .page_parser import MarkupAnalyzer, PageDependencyGraphBuilder, default_extractors
from .page_parser.models import Page
from .report import write_migration_report, write_page_reports
from .scanner import CodebaseIndex, scan_codebase

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    root_dir: str
    codebase: CodebaseIndex
    pages: List[Page] = field(default_factory=list)
    metadata: MetadataIndex = field(default_factory=MetadataIndex.empty)
    correlations: Dict[str, PageCorrelation] = field(default_factory=dict)
    output_dir: Optional[str] = None


class AnalysisPipeline:
    """Runs every analysis stage over one codebase."""

    def __init__(self, config: AnalyzerConfig):
        self.config = config

    def analyze(self) -> AnalysisResult:
        """Scan and analyze without writing anything."""
        root = self.config.validate_root()
        codebase = scan_codebase(root, self.config.include_patterns, self.config.exclude_patterns)
        logger.info(
            f"Discovered {len(codebase.page_files)} JSP, {len(codebase.html_files)} HTML, "
            f"{len(codebase.java_files)} Java files"
        )

        pages = MarkupAnalyzer(root).analyze(codebase.page_files + codebase.html_files)
        logger.info(f"Markup analysis generated {len(pages)} pages")

        for extractor in default_extractors():
            extractor.analyze(pages)
            logger.info(f"{extractor.name} extraction complete for {len(pages)} pages")
        PageDependencyGraphBuilder().build(pages)

        metadata = JavaMetadataAnalyzer().analyze(codebase.java_files)
        correlations = CorrelationEngine(self.config, metadata).correlate(pages)

        return AnalysisResult(
            root_dir=root,
            codebase=codebase,
            pages=pages,
            metadata=metadata,
            correlations=correlations,
        )

    def run(self) -> AnalysisResult:
        """Analyze and write every report under the configured output directory."""
        result = self.analyze()
        output_dir = self.config.output_dir
        if not os.path.isabs(output_dir):
            output_dir = os.path.abspath(output_dir)
        write_page_reports(output_dir, result.pages, result.root_dir)
        write_migration_report(output_dir, result.pages)
        result.output_dir = output_dir
        logger.info(f"Migration report complete: dashboard available under {output_dir}")
        return result
