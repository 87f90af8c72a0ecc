"""Tag dialect table.

Legacy pages mix plain HTML controls with three server-side tag families.
Each dialect declares its prefix and which attributes carry a control's
bound property name when ``name`` is absent. Dispatch is a table lookup;
there is no per-dialect subclassing.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from bs4 import Tag

from .utils import has_expression


@dataclass(frozen=True)
class TagDialect:
    key: str
    prefix: Optional[str]
    name_attributes: Tuple[str, ...] = ()


NATIVE = TagDialect("NATIVE", None)
_LEGACY_NAME_ATTRIBUTES = ("path", "property")

STRUTS2 = TagDialect("STRUTS2", "s", _LEGACY_NAME_ATTRIBUTES)
STRUTS1 = TagDialect("STRUTS1", "html", _LEGACY_NAME_ATTRIBUTES)
SPRING = TagDialect("SPRING", "form", _LEGACY_NAME_ATTRIBUTES)

_DIALECTS_BY_PREFIX: Dict[str, TagDialect] = {
    d.prefix: d for d in (STRUTS2, STRUTS1, SPRING)
}

FORM_TAGS = ("form", "s:form", "html:form", "form:form")

NATIVE_FIELD_TAGS = frozenset({"input", "select", "textarea", "button"})

LEGACY_FIELD_NAMES = frozenset({
    "input", "textfield", "textarea", "password", "checkbox", "radio",
    "radiobutton", "select", "option", "button", "submit", "hidden", "file",
})

# Controls whose bound property may come from path/property instead of name
_DATA_ENTRY_NAMES = frozenset({
    "input", "textfield", "textarea", "password", "checkbox", "radiobutton",
    "radio", "select", "hidden",
})

# Fixed type per local tag name; input/button/submit are resolved from attributes
_FIXED_TYPES = {
    "textfield": "text",
    "password": "password",
    "textarea": "textarea",
    "checkbox": "checkbox",
    "radio": "radio",
    "radiobutton": "radio",
    "select": "select",
    "hidden": "hidden",
    "file": "file",
}

ITERATION_TAGS = frozenset({"foreach", "iterate", "fortokens"})


def split_tag_name(name: str) -> Tuple[Optional[str], str]:
    """Split ``prefix:local`` into its parts (lower-cased)."""
    lowered = (name or "").lower()
    if ":" in lowered:
        prefix, local = lowered.split(":", 1)
        return prefix, local
    return None, lowered


def dialect_for(tag: Tag) -> Optional[TagDialect]:
    """Return the dialect of a tag, NATIVE for plain HTML, None if unknown."""
    prefix, _ = split_tag_name(tag.name)
    if prefix is None:
        return NATIVE
    return _DIALECTS_BY_PREFIX.get(prefix)


def is_field_tag(tag: Tag) -> bool:
    prefix, local = split_tag_name(tag.name)
    if prefix is None:
        return local in NATIVE_FIELD_TAGS
    return prefix in _DIALECTS_BY_PREFIX and local in LEGACY_FIELD_NAMES


def resolve_field_name(tag: Tag) -> Optional[str]:
    name = _literal_attribute(tag, "name")
    if name:
        return name
    dialect = dialect_for(tag)
    if dialect is None or dialect is NATIVE:
        return None
    _, local = split_tag_name(tag.name)
    if local not in _DATA_ENTRY_NAMES:
        return None
    for attribute in dialect.name_attributes:
        value = _literal_attribute(tag, attribute)
        if value:
            return value
    return None


def _literal_attribute(tag: Tag, attribute: str) -> Optional[str]:
    """Attribute value, or None when blank or a runtime expression."""
    value = tag.get(attribute)
    if not value or not value.strip() or has_expression(value):
        return None
    return value


def resolve_field_type(tag: Tag) -> str:
    _, local = split_tag_name(tag.name)
    if local == "input":
        declared = tag.get("type")
        return declared.lower() if declared else "text"
    if local in ("button", "submit"):
        declared = tag.get("type")
        return declared.strip().lower() if declared and declared.strip() else "button"
    return _FIXED_TYPES.get(local, local)


def is_select_tag(tag: Tag) -> bool:
    return tag.name == "select" or tag.name.endswith(":select")


def is_iteration_tag(tag: Tag) -> bool:
    prefix, local = split_tag_name(tag.name)
    return prefix is not None and local in ITERATION_TAGS
