"""Annotation argument evaluation over tree-sitter Java nodes.

Only literal shapes are evaluated. Anything unrecognised falls back to its
source text; a shape that cannot be evaluated contributes no value.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import tree_sitter

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|[0-7]{1,3}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "s": " ",
    '"': '"', "'": "'", "\\": "\\",
}
_INTEGER_BASES = {
    "decimal_integer_literal": 10,
    "hex_integer_literal": 16,
    "octal_integer_literal": 8,
    "binary_integer_literal": 2,
}
_NAME_NODES = ("identifier", "field_access", "scoped_identifier", "type_identifier")
_SKIPPED_NODES = ("line_comment", "block_comment")


def node_text(node: tree_sitter.Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _unescape(body: str) -> str:
    def replace(match: re.Match) -> str:
        token = match.group(1)
        if token.startswith("u") and len(token) == 5:
            return chr(int(token[1:], 16))
        if token[0] in "01234567":
            return chr(int(token, 8))
        return _SIMPLE_ESCAPES.get(token, token)

    return _ESCAPE_RE.sub(replace, body)


def _string_value(text: str) -> str:
    if text.startswith('"""') and text.endswith('"""') and len(text) >= 6:
        body = text[3:-3]
        # text blocks start after the opening line terminator
        if body.startswith("\r\n"):
            body = body[2:]
        elif body.startswith("\n"):
            body = body[1:]
        return _unescape(body)
    return _unescape(text[1:-1])


def _integer_value(node_type: str, text: str) -> int:
    cleaned = text.replace("_", "").rstrip("lL")
    base = _INTEGER_BASES[node_type]
    if base == 16:
        cleaned = cleaned[2:]
    elif base == 2:
        cleaned = cleaned[2:]
    elif base == 8 and len(cleaned) > 1:
        cleaned = cleaned.lstrip("0") or "0"
    return int(cleaned, base)


def evaluate(node: Optional[tree_sitter.Node], source: bytes) -> Any:
    """Evaluate an annotation element value.

    Returns ``MISSING`` when the node cannot be turned into a value.
    """
    if node is None:
        return MISSING
    kind = node.type
    text = node_text(node, source).strip()
    try:
        if kind == "string_literal":
            return _string_value(text)
        if kind in _INTEGER_BASES:
            return _integer_value(kind, text)
        if kind == "decimal_floating_point_literal":
            return float(text.replace("_", "").rstrip("fFdD"))
        if kind == "true":
            return True
        if kind == "false":
            return False
        if kind == "character_literal":
            return _unescape(text[1:-1])
        if kind == "null_literal":
            return None
        if kind in _NAME_NODES:
            return text
        if kind == "parenthesized_expression":
            inner = [child for child in node.named_children if child.type not in _SKIPPED_NODES]
            return evaluate(inner[0], source) if inner else MISSING
        if kind in ("element_value_array_initializer", "array_initializer"):
            return _flatten(node, source)
        if kind == "unary_expression":
            return _unary_value(node, source, text)
        if kind in ("annotation", "marker_annotation"):
            return text
    except (ValueError, IndexError) as e:
        logger.debug(f"Cannot evaluate annotation value {text!r}: {e}")
        return MISSING
    return text


def _flatten(node: tree_sitter.Node, source: bytes) -> List[Any]:
    values: List[Any] = []
    for child in node.named_children:
        if child.type in _SKIPPED_NODES:
            continue
        value = evaluate(child, source)
        if value is MISSING:
            continue
        if isinstance(value, list):
            values.extend(value)
        else:
            values.append(value)
    return values


def _unary_value(node: tree_sitter.Node, source: bytes, text: str) -> Any:
    operator = node.child_by_field_name("operator")
    operand = node.child_by_field_name("operand")
    value = evaluate(operand, source)
    if operator is None or value is MISSING:
        return text
    symbol = node_text(operator, source)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if symbol == "-":
            return -value
        if symbol == "+":
            return value
    if symbol == "!" and isinstance(value, bool):
        return not value
    return text


def annotation_arguments(annotation: tree_sitter.Node, source: bytes) -> Tuple[Dict[str, Any], Any]:
    """Split an annotation's arguments into named pairs and a lone value.

    Returns:
        (named arguments, single unnamed value or MISSING)
    """
    named: Dict[str, Any] = {}
    single: Any = MISSING
    arguments = annotation.child_by_field_name("arguments")
    if arguments is None:
        return named, single
    for child in arguments.named_children:
        if child.type in _SKIPPED_NODES:
            continue
        if child.type == "element_value_pair":
            key = child.child_by_field_name("key")
            value = evaluate(child.child_by_field_name("value"), source)
            if key is not None and value is not MISSING:
                named[node_text(key, source)] = value
        else:
            single = evaluate(child, source)
    return named, single


def as_list(value: Any) -> List[Any]:
    if value is MISSING or value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def as_int(value: Any) -> Optional[int]:
    if value is MISSING or value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        logger.debug(f"Ignoring non-integer annotation value {value!r}")
        return None
