# legacylens reports - per-page JSON documents and the migration complexity report

from .migration import (
    PageReportEntry,
    classify_difficulty,
    compute_complexity,
    evaluate_page,
    write_migration_report,
)
from .page_json import page_to_dict, write_page_reports

__all__ = [
    "PageReportEntry",
    "classify_difficulty",
    "compute_complexity",
    "evaluate_page",
    "write_migration_report",
    "page_to_dict",
    "write_page_reports",
]
