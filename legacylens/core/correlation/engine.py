"""Correlation and confidence engine.

Matches each page to candidate controller and backing classes, merges
server-side validation metadata onto page fields and scores the result.

Order of work per page:
1. Controller candidates (pre-existing, form actions, naming patterns)
2. Backing class per form, using those candidates
3. Field enrichment from the chosen class
4. Backing-class candidates for the page
5. Confidence score and label
6. Missing-mapping flag
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import AnalyzerConfig
from ..java_metadata.models import (
    MAX,
    MAX_LENGTH,
    MIN,
    MIN_LENGTH,
    PATTERN,
    REQUIRED,
    FieldMetadata,
    MetadataIndex,
    package_of,
    simple_name,
)
from ..page_parser.models import Confidence, ControllerCandidate, Field, Form, Page
from .naming import (
    apply_pattern,
    derive_base_names,
    handler_base,
    normalize_action,
    simple_name_matches,
)

logger = logging.getLogger(__name__)

NOTE_NO_BACKING_BEAN = "No backing bean candidate identified"

_ACTION_SUFFIXES = ("action", "dispatchaction")
_CONTROLLER_SUFFIXES = ("controller",)


@dataclass
class PageCorrelation:
    """Per-page counters kept for reporting."""

    form_count: int
    output_count: int
    total_fields: int
    enriched_fields: int
    confidence_score: float
    confidence_label: str


def compute_confidence_score(
    form_count: int,
    total_fields: int,
    output_count: int,
    enriched_fields: int,
    controller_candidates: int,
) -> float:
    score = 0.2
    if form_count > 0:
        score += 0.2
    if output_count > 0:
        score += 0.1
    if controller_candidates > 0:
        score += 0.2
    if total_fields > 0:
        ratio = enriched_fields / float(total_fields)
        score += min(0.3, ratio * 0.3 + (0.1 if ratio > 0.6 else 0.0))
    return min(1.0, round(score, 2))


def confidence_label(score: float, best: Confidence) -> str:
    if best is Confidence.HIGH or score >= 0.75:
        return "HIGH"
    if best is Confidence.MEDIUM or score >= 0.45:
        return "MEDIUM"
    return "LOW"


def is_enriched(field: Field) -> bool:
    return bool(field.source_bean_class) or bool(field.constraints)


class CorrelationEngine:
    """Correlates pages with the Java metadata index."""

    def __init__(self, config: AnalyzerConfig, metadata: MetadataIndex):
        self.config = config
        self.metadata = metadata
        self.naming = config.naming_conventions

    def correlate(self, pages: List[Page]) -> Dict[str, PageCorrelation]:
        results: Dict[str, PageCorrelation] = {}
        for page in pages:
            results[page.page_id] = self.correlate_page(page)
        return results

    def correlate_page(self, page: Page) -> PageCorrelation:
        notes: List[str] = []
        base_names = derive_base_names(page.page_id)

        candidates = self._controller_candidates(page, base_names, notes)
        page.controller_candidates = candidates
        best = Confidence.best(c.confidence for c in candidates)

        total_fields = 0
        enriched_fields = 0
        for form in page.forms:
            form.backing_bean_class = self.resolve_backing_bean(form, candidates)
            for field in form.fields:
                total_fields += 1
                self.merge_field_metadata(field, form.backing_bean_class, form.notes)
                if is_enriched(field):
                    enriched_fields += 1
            if form.backing_bean_class is None and not form.notes:
                form.notes.append(NOTE_NO_BACKING_BEAN)

        page.backing_bean_candidates = self._bean_candidates(page, base_names, notes)
        for note in notes:
            if note not in page.notes:
                page.notes.append(note)

        score = compute_confidence_score(
            len(page.forms), total_fields, len(page.outputs), enriched_fields, len(candidates),
        )
        page.confidence_score = score
        page.confidence_label = confidence_label(score, best)
        page.missing_mappings = self._missing_mappings(page)

        logger.debug(
            f"Page {page.page_id}: {len(candidates)} controller candidates, "
            f"{enriched_fields}/{total_fields} fields enriched, confidence {page.confidence_label}"
        )
        return PageCorrelation(
            form_count=len(page.forms),
            output_count=len(page.outputs),
            total_fields=total_fields,
            enriched_fields=enriched_fields,
            confidence_score=score,
            confidence_label=page.confidence_label,
        )

    # =========================================================================
    # Controller candidates
    # =========================================================================

    def classify_controller(self, class_name: Optional[str]) -> Confidence:
        if not class_name:
            return Confidence.LOW
        packages = self.config.configured_packages
        if not packages:
            return Confidence.MEDIUM
        package = package_of(class_name)
        if any(package.startswith(configured) for configured in packages):
            return Confidence.HIGH
        return Confidence.MEDIUM

    @staticmethod
    def _add_candidate(candidates: List[ControllerCandidate], name: str, level: Confidence) -> None:
        if not name or not name.strip():
            return
        for candidate in candidates:
            if candidate.name == name:
                candidate.promote(level)
                return
        candidates.append(ControllerCandidate(name=name, confidence=level))

    def _controller_candidates(
        self, page: Page, base_names: List[str], notes: List[str]
    ) -> List[ControllerCandidate]:
        candidates: List[ControllerCandidate] = []
        for existing in page.controller_candidates:
            self._add_candidate(candidates, existing.name, existing.confidence)
            self._add_candidate(candidates, existing.name, self.classify_controller(existing.name))

        for form in page.forms:
            base = normalize_action(form.action)
            if base is None:
                continue
            for match in self.match_controllers_by_base(base):
                self._add_candidate(candidates, match, self.classify_controller(match))
                notes.append(f"Matched controller {match} from form action {form.action}")

        fallback_packages = self.config.configured_packages + [""]
        synthesized = 0
        limit = self.config.max_fallback_candidates
        for base in base_names:
            for pattern in self.naming.jsp_to_controller_patterns:
                simple = apply_pattern(pattern, base)
                matches = self.match_controllers_by_simple(simple)
                if matches:
                    for match in matches:
                        self._add_candidate(candidates, match, self.classify_controller(match))
                    notes.append(f"Matched controller candidates {matches} via pattern {pattern} for base {base}")
                    continue
                for package in fallback_packages:
                    name = f"{package}.{simple}" if package else simple
                    if any(c.name == name for c in candidates):
                        continue
                    if limit is not None and synthesized >= limit:
                        continue
                    self._add_candidate(candidates, name, Confidence.LOW)
                    synthesized += 1
                    notes.append(f"Heuristic controller candidate {name} inferred from pattern {pattern}")

        candidates.sort(key=lambda c: (-c.confidence.value, c.name.lower()))
        return candidates

    def match_controllers_by_base(self, base: str) -> List[str]:
        matches: List[str] = []
        for cls in self.metadata.struts_action_classes:
            if simple_name_matches(cls, base, _ACTION_SUFFIXES) and cls not in matches:
                matches.append(cls)
        for cls in self.metadata.controller_classes:
            if simple_name_matches(cls, base, _CONTROLLER_SUFFIXES) and cls not in matches:
                matches.append(cls)
        return matches

    def match_controllers_by_simple(self, simple: str) -> List[str]:
        wanted = simple.lower()
        matches: List[str] = []
        for cls in self.metadata.struts_action_classes + self.metadata.controller_classes:
            if simple_name(cls).lower() == wanted and cls not in matches:
                matches.append(cls)
        return matches

    # =========================================================================
    # Backing classes
    # =========================================================================

    def resolve_backing_bean(self, form: Form, candidates: List[ControllerCandidate]) -> Optional[str]:
        """Pick the class a form binds to: via controller, action name, then field overlap."""
        for candidate in candidates:
            bean = self._bean_from_controller(candidate.name)
            if bean is not None:
                return bean
        base = normalize_action(form.action)
        if base is not None:
            bean = self._bean_by_base_name(base)
            if bean is not None:
                return bean
        return self._bean_by_field_overlap(form)

    def _bean_from_controller(self, controller: str) -> Optional[str]:
        package = package_of(controller)
        base = handler_base(controller)
        for suffix in self.naming.form_bean_suffixes:
            candidate = f"{package}.{base}{suffix}" if package else f"{base}{suffix}"
            if self.metadata.has_class(candidate):
                return candidate
        return None

    def _bean_by_base_name(self, base: str) -> Optional[str]:
        suffixes = [s.lower() for s in self.naming.form_bean_suffixes]
        for cls in self.metadata.fields_by_class:
            simple = simple_name(cls).lower()
            if simple in (base, base + "form"):
                return cls
            if any(simple == base + suffix for suffix in suffixes):
                return cls
        return None

    def _bean_by_field_overlap(self, form: Form) -> Optional[str]:
        names = {f.name.lower() for f in form.fields if f.name}
        if not names:
            return None
        best_class: Optional[str] = None
        best_overlap = 0
        for cls, fields in self.metadata.fields_by_class.items():
            overlap = sum(1 for name in names if any(fn.lower() == name for fn in fields))
            if overlap > best_overlap:
                best_class, best_overlap = cls, overlap
        return best_class

    def _bean_candidates(self, page: Page, base_names: List[str], notes: List[str]) -> List[str]:
        beans: List[str] = []
        for form in page.forms:
            if form.backing_bean_class and form.backing_bean_class not in beans:
                beans.append(form.backing_bean_class)
        limit = self.config.max_fallback_candidates
        synthesized = 0
        for base in base_names:
            for suffix in self.naming.form_bean_suffixes:
                simple = base + suffix
                matches = self.metadata.classes_with_simple_name(simple)
                if matches:
                    beans.extend(m for m in matches if m not in beans)
                elif simple not in beans and (limit is None or synthesized < limit):
                    beans.append(simple)
                    synthesized += 1
                    notes.append(f"Heuristic bean candidate {simple} inferred from suffix {suffix}")
        return beans

    # =========================================================================
    # Field enrichment
    # =========================================================================

    def merge_field_metadata(self, field: Field, bean_class: Optional[str], form_notes: List[str]) -> None:
        if not field.name:
            form_notes.append(f"No Java metadata found for field {field.name}")
            return
        wanted = field.name.lower()
        candidates: List[FieldMetadata] = []
        if bean_class is not None:
            # a property the bean lacks is looked up index-wide instead
            candidates.extend(
                m for m in self.metadata.fields_of(bean_class).values() if m.field_name.lower() == wanted
            )
        if not candidates:
            candidates.extend(self.metadata.fields_named(field.name))
        if not candidates:
            form_notes.append(f"No Java metadata found for field {field.name}")
            return

        metadata = select_best_candidate(candidates, field.name)
        field.enrich("source_bean_class", metadata.class_name)
        field.enrich("source_bean_property", metadata.field_name)
        field.enrich("java_type", metadata.field_type)
        for constraint in metadata.constraints:
            field.add_constraint(constraint)

        required = metadata.attribute(REQUIRED)
        if required is not None:
            field.enrich("required", required is True or str(required).lower() == "true")
        field.enrich("max_length", _as_int(metadata.attribute(MAX_LENGTH)))
        field.enrich("min_length", _as_int(metadata.attribute(MIN_LENGTH)))
        field.enrich("pattern", _as_text(metadata.attribute(PATTERN)))
        field.enrich("min_value", _as_text(metadata.attribute(MIN)))
        field.enrich("max_value", _as_text(metadata.attribute(MAX)))

    def _missing_mappings(self, page: Page) -> bool:
        has_controller = any(self.metadata.is_handler_class(c.name) for c in page.controller_candidates)
        has_bean = any(self.metadata.has_class(b) for b in page.backing_bean_candidates)
        return not has_controller and not has_bean


def select_best_candidate(candidates: List[FieldMetadata], field_name: Optional[str]) -> FieldMetadata:
    """Prefer the one exact-name match, else the most constrained of the matches."""
    wanted = field_name.lower() if field_name else None
    filtered = [c for c in candidates if wanted is not None and c.field_name.lower() == wanted]
    if len(filtered) == 1:
        return filtered[0]
    pool = filtered or candidates
    best = pool[0]
    for candidate in pool[1:]:
        if len(candidate.constraints) > len(best.constraints):
            best = candidate
    return best


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
