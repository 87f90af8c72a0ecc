"""Markup structural extraction.

Parses a page template into a lenient tag tree and recovers its forms,
fields, options and rendered output sections (data tables and inline
text bindings). Regex-level signals are handled by the pattern extractors;
this module only deals with the tree.
"""

import logging
import os
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from .dialects import (
    FORM_TAGS,
    is_field_tag,
    is_iteration_tag,
    is_select_tag,
    resolve_field_name,
    resolve_field_type,
    split_tag_name,
)
from .models import (
    Field,
    Form,
    Option,
    OutputField,
    OutputSection,
    OutputSectionType,
    Page,
)
from .utils import (
    collapse_whitespace,
    find_expressions,
    first_expression,
    has_expression,
    normalize_expression,
    parse_boolean,
    parse_int,
    parse_markup,
    read_page_source,
    sanitize_attribute,
    strip_expressions,
)

logger = logging.getLogger(__name__)

NOTE_NO_BINDING = "No binding expression detected"
NOTE_ITERATION_WITHOUT_SOURCE = "Iteration tag detected without collection binding"

_LABEL_ATTRIBUTES = ("label", "title", "aria-label")
_ITEM_VARIABLE_ATTRIBUTES = ("var", "id", "item")
_ITEMS_SOURCE_ATTRIBUTES = ("items", "collection", "list", "value", "name")
_TEXT_BLOCK_EXCLUDED = frozenset({"script", "style"})
_NON_TEXT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def page_id_for(path: str, root_dir: str) -> str:
    """Root-relative, forward-slash page identity (absolute outside the root)."""
    abs_path = os.path.abspath(path)
    abs_root = os.path.abspath(root_dir)
    try:
        rel = os.path.relpath(abs_path, abs_root)
    except ValueError:
        rel = abs_path
    if rel.startswith(".."):
        rel = abs_path
    return rel.replace(os.sep, "/").replace("\\", "/")


class MarkupAnalyzer:
    """Builds Page objects from template files."""

    def __init__(self, root_dir: str):
        self.root_dir = root_dir

    def analyze(self, paths: List[str]) -> List[Page]:
        pages: List[Page] = []
        for path in paths:
            pages.append(self.analyze_file(path))
        return pages

    def analyze_file(self, path: str) -> Page:
        """Create the Page for one template.

        An unreadable file yields a page with empty fact lists.
        """
        page = Page(page_id=page_id_for(path, self.root_dir), source_path=path)
        try:
            raw = read_page_source(path)
        except OSError as e:
            logger.warning(f"Failed to read page {path}: {e}")
            return page
        self.analyze_source(raw, page)
        logger.info("Page %s - forms detected: %d", page.page_id, len(page.forms))
        return page

    def analyze_source(self, raw: str, page: Page) -> Page:
        soup = parse_markup(raw)
        title = soup.find("title")
        if title is not None:
            page.title = collapse_whitespace(title.get_text()) or None
        page.forms = extract_forms(soup)
        page.outputs = extract_table_sections(soup) + extract_text_blocks(soup)
        return page


# ---------------------------------------------------------------------------
# Forms and fields
# ---------------------------------------------------------------------------

def extract_forms(soup: BeautifulSoup) -> List[Form]:
    forms: List[Form] = []
    for element in soup.find_all(list(FORM_TAGS)):
        form = Form(
            form_id=_resolve_form_id(element),
            action=sanitize_attribute(element.get("action")),
            method=_resolve_method(element),
        )
        for control in element.find_all(is_field_tag):
            form.fields.append(build_field(control, soup))
        forms.append(form)
    return forms


def _resolve_form_id(element: Tag) -> str:
    for attribute in ("id", "name"):
        value = sanitize_attribute(element.get(attribute))
        if value:
            return value
    prefix, local = split_tag_name(element.name)
    return f"{prefix}:{local}" if prefix else local


def _resolve_method(element: Tag) -> str:
    for attribute in ("method", "type"):
        value = sanitize_attribute(element.get(attribute))
        if value:
            return value.upper()
    return "GET"


def build_field(control: Tag, soup: BeautifulSoup) -> Field:
    field = Field(
        name=resolve_field_name(control),
        id=sanitize_attribute(control.get("id")),
        type=resolve_field_type(control),
        source_tag=control.name,
    )
    field.label = _resolve_label(control, soup)
    field.required = _resolve_required(control)
    field.max_length = parse_int(control.get("maxlength"))
    field.min_length = parse_int(control.get("minlength"))
    field.pattern = sanitize_attribute(control.get("pattern"))
    field.placeholder = sanitize_attribute(control.get("placeholder"))
    field.default_value = sanitize_attribute(control.get("value"))
    field.min_value = sanitize_attribute(control.get("min"))
    field.max_value = sanitize_attribute(control.get("max"))
    if is_select_tag(control):
        field.options = _extract_options(control)
    field.binding_expressions = _attribute_expressions(control)
    return field


def _resolve_label(control: Tag, soup: BeautifulSoup) -> Optional[str]:
    for attribute in _LABEL_ATTRIBUTES:
        value = sanitize_attribute(control.get(attribute))
        if value:
            return value
    enclosing = control.find_parent("label")
    if enclosing is not None:
        text = collapse_whitespace(strip_expressions(enclosing.get_text()))
        if text:
            return text
    control_id = control.get("id")
    if control_id:
        target = soup.find("label", attrs={"for": control_id})
        if target is not None:
            text = collapse_whitespace(strip_expressions(target.get_text()))
            if text:
                return text
    return None


def _resolve_required(control: Tag) -> bool:
    if control.has_attr("required"):
        value = control.get("required") or ""
        return True if not value.strip() else parse_boolean(value)
    for attribute in ("data-required", "validate"):
        value = control.get(attribute)
        if value and value.strip():
            return parse_boolean(value)
    return False


def _extract_options(control: Tag) -> List[Option]:
    options: List[Option] = []
    for option in control.find_all("option"):
        options.append(Option(
            value=option.get("value"),
            label=collapse_whitespace(option.get_text()) or None,
            selected=option.has_attr("selected"),
        ))
    return options


def _attribute_expressions(tag: Tag) -> List[str]:
    seen: List[str] = []
    for value in tag.attrs.values():
        if not isinstance(value, str):
            continue
        for expression in find_expressions(value):
            if expression not in seen:
                seen.append(expression)
    return seen


# ---------------------------------------------------------------------------
# Output sections
# ---------------------------------------------------------------------------

def extract_table_sections(soup: BeautifulSoup) -> List[OutputSection]:
    sections: List[OutputSection] = []
    for index, table in enumerate(soup.find_all("table"), start=1):
        section = OutputSection(
            section_id=table.get("id") or f"table-{index}",
            type=OutputSectionType.TABLE,
        )
        headers = _header_labels(table)
        data_row = _first_row_with(table, "td")
        if data_row is not None:
            for column, cell in enumerate(data_row.find_all(["td", "th"], recursive=False)):
                output = _table_cell_field(cell, headers, column)
                if output is not None:
                    section.fields.append(output)
            _apply_iteration_context(section, data_row)
        if section.fields:
            sections.append(section)
    return sections


def _first_row_with(table: Tag, cell_name: str) -> Optional[Tag]:
    section_name = "thead" if cell_name == "th" else "tbody"
    for group in table.find_all(section_name):
        for row in group.find_all("tr"):
            if row.find(cell_name, recursive=False) is not None:
                return row
    for row in table.find_all("tr"):
        if row.find(cell_name, recursive=False) is not None:
            return row
    return None


def _header_labels(table: Tag) -> List[str]:
    row = _first_row_with(table, "th")
    if row is None:
        return []
    return [collapse_whitespace(th.get_text()) for th in row.find_all("th", recursive=False)]


def _table_cell_field(cell: Tag, headers: List[str], column: int) -> Optional[OutputField]:
    expression = _cell_expression(cell)
    binding = normalize_expression(expression)
    raw_text = sanitize_attribute(collapse_whitespace(cell.get_text()))
    if binding is None and raw_text is None:
        return None
    label = headers[column] if column < len(headers) and headers[column] else raw_text
    output = OutputField(
        name=_binding_name(binding) if binding else raw_text,
        label=label,
        binding_expression=binding,
        raw_text=raw_text,
    )
    if binding is None:
        output.notes.append(NOTE_NO_BINDING)
    return output


def _cell_expression(cell: Tag) -> Optional[str]:
    for value in cell.attrs.values():
        if isinstance(value, str) and has_expression(value):
            return first_expression(value)
    text_expression = first_expression(cell.get_text())
    if text_expression:
        return text_expression
    for descendant in cell.find_all(True):
        for value in descendant.attrs.values():
            if isinstance(value, str) and has_expression(value):
                return first_expression(value)
    return None


def _apply_iteration_context(section: OutputSection, row: Tag) -> None:
    for ancestor in row.parents:
        if not isinstance(ancestor, Tag) or not is_iteration_tag(ancestor):
            continue
        for attribute in _ITEM_VARIABLE_ATTRIBUTES:
            value = sanitize_attribute(ancestor.get(attribute))
            if value:
                section.item_variable = value
                break
        for attribute in _ITEMS_SOURCE_ATTRIBUTES:
            value = ancestor.get(attribute)
            if value and value.strip():
                section.items_expression = normalize_expression(value)
                break
        if section.items_expression is None:
            section.notes.append(NOTE_ITERATION_WITHOUT_SOURCE)
        return


def _binding_name(binding: str) -> str:
    return binding.rsplit(".", 1)[-1].strip() or binding


def extract_text_blocks(soup: BeautifulSoup) -> List[OutputSection]:
    sections: List[OutputSection] = []
    for element in _text_block_candidates(soup):
        own_text = _own_text(element)
        expression = first_expression(own_text)
        if expression is None:
            continue
        binding = normalize_expression(expression)
        if binding is None:
            continue
        label = collapse_whitespace(strip_expressions(own_text)) or None
        raw_text = collapse_whitespace(strip_expressions(element.get_text())) or None
        sections.append(OutputSection(
            section_id=f"text-{len(sections) + 1}",
            type=OutputSectionType.TEXT_BLOCK,
            fields=[OutputField(
                name=_binding_name(binding),
                label=label,
                binding_expression=binding,
                raw_text=raw_text,
            )],
        ))
    return sections


def _text_block_candidates(soup: BeautifulSoup) -> Iterator[Tag]:
    yield soup
    for element in soup.find_all(True):
        if element.name in _TEXT_BLOCK_EXCLUDED:
            continue
        if _inside_table_or_form(element):
            continue
        yield element


def _inside_table_or_form(element: Tag) -> bool:
    if element.name == "table" or element.name in FORM_TAGS:
        return True
    for ancestor in element.parents:
        if ancestor.name == "table" or ancestor.name in FORM_TAGS:
            return True
    return False


def _own_text(element: Tag) -> str:
    parts = [
        str(child) for child in element.children
        if isinstance(child, NavigableString) and not isinstance(child, _NON_TEXT_STRINGS)
    ]
    return collapse_whitespace(" ".join(parts))
