"""Name derivation helpers for page-to-class matching."""

import re
from typing import Iterable, List, Optional

from ..java_metadata.models import simple_name

_SEPARATOR_RE = re.compile(r"[\\._-]")
_CAPITAL_RE = re.compile(r"(?<!^)(?=[A-Z])")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]+")
_ACTION_SUFFIX_RE = re.compile(r"\.(jsp|do|action)$", re.IGNORECASE)

_HANDLER_SUFFIXES = ("Controller", "DispatchAction", "Action")


def split_tokens(value: str) -> List[str]:
    """``order_history`` / ``orderHistory`` -> ``["order", "history"]``."""
    cleaned = _CAPITAL_RE.sub(" ", _SEPARATOR_RE.sub(" ", value or ""))
    return [part.lower() for part in cleaned.split() if part.strip()]


def pascal_case(parts: Iterable[str]) -> str:
    return "".join(part[0].upper() + part[1:] for part in parts if part and part.strip())


def _strip_extension(segment: str) -> str:
    if "." in segment:
        return segment[:segment.rindex(".")]
    return segment


def derive_base_names(page_id: Optional[str]) -> List[str]:
    """Candidate class-name stems for a page.

    For ``admin/orderHistory.jsp`` this yields ``AdminOrderHistory``,
    ``OrderHistory`` and ``History``.
    """
    if not page_id or not page_id.strip():
        return ["page"]
    segments = [s for s in page_id.replace("\\", "/").split("/") if s]
    if not segments:
        return ["page"]
    file_name = _strip_extension(segments[-1])
    segments = segments[:-1] + [file_name]

    tokens: List[str] = []
    for segment in segments:
        tokens.extend(split_tokens(segment))

    bases: List[str] = [pascal_case(tokens[i:]) for i in range(len(tokens))]
    file_base = pascal_case(split_tokens(file_name))
    if file_base:
        bases.append(file_base)
    if len(segments) > 1:
        combined = pascal_case([
            _NON_ALNUM_RE.sub("", segments[-2]),
            _NON_ALNUM_RE.sub("", file_name),
        ])
        if combined:
            bases.append(combined)
    if not bases:
        bases.append("Page")

    unique: List[str] = []
    for base in bases:
        if base and base not in unique:
            unique.append(base)
    return unique


def normalize_action(action: Optional[str]) -> Optional[str]:
    """``/order/submit.do?x=1`` -> ``ordersubmit``; None when nothing is left."""
    if action is None:
        return None
    cleaned = action.split("?", 1)[0]
    cleaned = cleaned.replace("\\", "/").lstrip("/")
    cleaned = _ACTION_SUFFIX_RE.sub("", cleaned)
    cleaned = _NON_ALNUM_RE.sub(" ", cleaned).strip()
    if not cleaned:
        return None
    return cleaned.replace(" ", "").lower()


def apply_pattern(pattern: str, base: str) -> str:
    if "%s" in pattern:
        return pattern.replace("%s", base)
    return base + pattern


def handler_base(class_name: str) -> str:
    """``OrderController`` -> ``Order``."""
    simple = simple_name(class_name)
    for suffix in _HANDLER_SUFFIXES:
        if simple.endswith(suffix) and len(simple) > len(suffix):
            return simple[:-len(suffix)]
    return simple


def simple_name_matches(class_name: str, base: str, suffixes: Iterable[str]) -> bool:
    """Case-insensitive stem match of a class against a normalized action base."""
    simple = simple_name(class_name).lower()
    if simple == base:
        return True
    for suffix in suffixes:
        if simple in (base + suffix, base + "dispatch" + suffix):
            return True
        if base in simple and simple.endswith(suffix):
            return True
    return False
