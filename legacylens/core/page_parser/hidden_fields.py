"""Hidden-field state carried between requests."""

from typing import List, Optional

from bs4 import Tag

from .base import BasePageExtractor
from .models import Confidence, FactCollector, HiddenField, Page
from .utils import first_expression, parse_markup, truncate

HIDDEN_SNIPPET_LIMIT = 200

_LEGACY_HIDDEN_TAGS = ("s:hidden", "form:hidden", "html:hidden")
_NAME_ATTRIBUTES = ("name", "id", "property", "path")


def _is_hidden(tag: Tag) -> bool:
    if tag.name == "input":
        return (tag.get("type") or "").strip().lower() == "hidden"
    return tag.name in _LEGACY_HIDDEN_TAGS


class HiddenFieldStateExtractor(BasePageExtractor):
    name = "hidden-fields"

    def extract_source(self, raw: str) -> List[HiddenField]:
        collector = FactCollector()
        for tag in parse_markup(raw).find_all(_is_hidden):
            name = _hidden_name(tag)
            if name is None:
                continue
            value = tag.get("value")
            collector.add(HiddenField(
                name=name,
                default_value=value if value and value.strip() else None,
                expression=first_expression(value),
                snippet=truncate(str(tag), HIDDEN_SNIPPET_LIMIT),
                confidence=Confidence.HIGH,
            ))
        return collector.items()

    def apply(self, page: Page, facts: List[HiddenField]) -> None:
        page.hidden_fields = facts


def _hidden_name(tag: Tag) -> Optional[str]:
    for attribute in _NAME_ATTRIBUTES:
        value = tag.get(attribute)
        if value and value.strip():
            return value.strip()
    return None
