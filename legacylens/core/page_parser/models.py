"""Page model data structures.

Defines the per-page fact model filled in by the markup analyzer, the
pattern extractors and the correlation engine. Pure data containers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple


class Confidence(Enum):
    """Ordered confidence level. Only ever merged upward."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    def promote(self, other: "Confidence") -> "Confidence":
        """Return the higher of the two levels."""
        return self if self.value >= other.value else other

    @classmethod
    def best(cls, levels: Iterable["Confidence"]) -> "Confidence":
        result = cls.LOW
        for level in levels:
            result = result.promote(level)
        return result


class OutputSectionType(Enum):
    TABLE = "TABLE"
    TEXT_BLOCK = "TEXT_BLOCK"


@dataclass
class Option:
    value: Optional[str] = None
    label: Optional[str] = None
    selected: bool = False


@dataclass
class Field:
    """One input control inside a form.

    Server-side enrichment writes each attribute at most once; the names of
    attributes already written are kept in ``enriched_attributes``.
    """

    name: Optional[str] = None
    id: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = None
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    placeholder: Optional[str] = None
    default_value: Optional[str] = None
    min_value: Optional[str] = None
    max_value: Optional[str] = None
    options: List[Option] = field(default_factory=list)
    binding_expressions: List[str] = field(default_factory=list)
    source_tag: Optional[str] = None
    java_type: Optional[str] = None
    constraints: List[str] = field(default_factory=list)
    source_bean_class: Optional[str] = None
    source_bean_property: Optional[str] = None
    notes: List[str] = field(default_factory=list)
    enriched_attributes: Set[str] = field(default_factory=set, repr=False)

    def add_constraint(self, constraint: str) -> None:
        if constraint and constraint not in self.constraints:
            self.constraints.append(constraint)

    def enrich(self, attribute: str, value) -> bool:
        """Set ``attribute`` from server metadata unless already enriched.

        Returns True when the value was written.
        """
        if value is None or attribute in self.enriched_attributes:
            return False
        setattr(self, attribute, value)
        self.enriched_attributes.add(attribute)
        return True


@dataclass
class Form:
    form_id: Optional[str] = None
    action: Optional[str] = None
    method: str = "GET"
    backing_bean_class: Optional[str] = None
    fields: List[Field] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


@dataclass
class OutputField:
    name: Optional[str] = None
    label: Optional[str] = None
    binding_expression: Optional[str] = None
    raw_text: Optional[str] = None
    notes: List[str] = field(default_factory=list)


@dataclass
class OutputSection:
    section_id: str
    type: OutputSectionType
    item_variable: Optional[str] = None
    items_expression: Optional[str] = None
    fields: List[OutputField] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


@dataclass
class FrameDefinition:
    frame_name: Optional[str]
    source: Optional[str]
    parent_frame_name: Optional[str]
    depth: int
    tag: str  # "FRAME" | "IFRAME"
    confidence: Confidence = Confidence.HIGH


# ---------------------------------------------------------------------------
# Fact records (immutable, deduplicated per page by dedup_key)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NavigationTarget:
    target_page: str
    source_pattern: str
    snippet: str
    confidence: Confidence = Confidence.HIGH

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.target_page, self.source_pattern, self.snippet)


@dataclass(frozen=True)
class CrossFrameInteraction:
    from_frame: str
    to_page: str
    interaction_type: str
    snippet: str
    confidence: Confidence = Confidence.MEDIUM

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.from_frame, self.to_page, self.snippet)


@dataclass(frozen=True)
class HiddenField:
    name: str
    default_value: Optional[str]
    expression: Optional[str]
    snippet: str
    confidence: Confidence = Confidence.HIGH

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.name, self.snippet)


@dataclass(frozen=True)
class SessionDependency:
    key: str
    source: str
    snippet: str
    confidence: Confidence = Confidence.HIGH

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.key, self.source)


@dataclass(frozen=True)
class UrlParameter:
    name: str
    source: str
    snippet: str
    confidence: Confidence = Confidence.HIGH

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.name, self.source, self.snippet)


@dataclass(frozen=True)
class JsRoutingHint:
    target_page: str
    source_pattern: str
    snippet: str
    confidence: Confidence = Confidence.HIGH

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.target_page, self.source_pattern, self.snippet)


@dataclass(frozen=True)
class PageDependency:
    from_page: str
    to_page: str
    dependency_type: str  # "navigationTarget" | "frameSource" | "jsRoutingHint"

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        return (self.from_page, self.to_page, self.dependency_type)


@dataclass
class ControllerCandidate:
    """A candidate server-side handler class for a page.

    The confidence only moves upward via ``promote``.
    """

    name: str
    confidence: Confidence = Confidence.LOW

    def promote(self, level: Confidence) -> None:
        self.confidence = self.confidence.promote(level)


@dataclass
class Page:
    """Everything known about one page template."""

    page_id: str
    source_path: str
    title: Optional[str] = None
    forms: List[Form] = field(default_factory=list)
    outputs: List[OutputSection] = field(default_factory=list)
    frames: List[FrameDefinition] = field(default_factory=list)
    navigation_targets: List[NavigationTarget] = field(default_factory=list)
    cross_frame_interactions: List[CrossFrameInteraction] = field(default_factory=list)
    hidden_fields: List[HiddenField] = field(default_factory=list)
    session_dependencies: List[SessionDependency] = field(default_factory=list)
    url_parameters: List[UrlParameter] = field(default_factory=list)
    js_routing: List[JsRoutingHint] = field(default_factory=list)
    dependencies: List[PageDependency] = field(default_factory=list)
    controller_candidates: List[ControllerCandidate] = field(default_factory=list)
    backing_bean_candidates: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    confidence_score: float = 0.0
    confidence_label: str = "LOW"
    frameset_page: bool = False
    missing_mappings: bool = False

    def controller_names(self) -> List[str]:
        return [candidate.name for candidate in self.controller_candidates]

    def field_count(self) -> int:
        return sum(len(form.fields) for form in self.forms)


class FactCollector:
    """Ordered collection of fact records that rejects repeated keys."""

    def __init__(self):
        self._items: list = []
        self._seen: set = set()

    def add(self, record) -> bool:
        key = record.dedup_key
        if key in self._seen:
            return False
        self._seen.add(key)
        self._items.append(record)
        return True

    def items(self) -> list:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
