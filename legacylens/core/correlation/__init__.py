# legacylens correlation - page to controller/backing-class matching and confidence scoring

from .engine import (
    CorrelationEngine,
    PageCorrelation,
    compute_confidence_score,
    confidence_label,
    select_best_candidate,
)
from .naming import apply_pattern, derive_base_names, normalize_action

__all__ = [
    "CorrelationEngine",
    "PageCorrelation",
    "compute_confidence_score",
    "confidence_label",
    "select_best_candidate",
    "apply_pattern",
    "derive_base_names",
    "normalize_action",
]
