"""Frame and frameset layout extraction."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import Tag

from .base import BasePageExtractor
from .models import Confidence, FrameDefinition, Page
from .utils import parse_markup

logger = logging.getLogger(__name__)

_FRAME_TAGS = ("frame", "iframe")


@dataclass
class FrameLayout:
    frames: List[FrameDefinition] = field(default_factory=list)
    has_frameset: bool = False

    @property
    def is_layout_page(self) -> bool:
        return self.has_frameset or bool(self.frames)


class FrameAnalyzer(BasePageExtractor):
    """Recovers the frame hierarchy of layout pages.

    Framesets are containers: the outermost one opens level 0 and each
    nested frameset opens the next level, naming the enclosing container
    as parent. A frame found inside another frame sits one level below it.
    Unnamed containers get a synthetic ``TAG@depth`` token.
    """

    name = "frames"

    def extract_source(self, raw: str) -> FrameLayout:
        soup = parse_markup(raw)
        layout = FrameLayout(has_frameset=soup.find("frameset") is not None)
        self._walk(soup, None, 0, None, False, layout.frames)
        return layout

    def empty(self) -> FrameLayout:
        return FrameLayout()

    def apply(self, page: Page, facts: FrameLayout) -> None:
        page.frames = list(facts.frames)
        page.frameset_page = facts.is_layout_page
        if page.frameset_page:
            logger.debug(f"Page {page.page_id} is a layout page with {len(page.frames)} frames")

    def _walk(
        self,
        element: Tag,
        parent: Optional[str],
        depth: int,
        container: Optional[str],
        in_frameset: bool,
        frames: List[FrameDefinition],
    ) -> None:
        for child in element.children:
            if not isinstance(child, Tag):
                continue
            if child.name == "frameset":
                if in_frameset:
                    nested = _container_token(child, depth + 1)
                    self._walk(child, container, depth + 1, nested, True, frames)
                else:
                    self._walk(child, None, depth, _container_token(child, depth), True, frames)
            elif child.name in _FRAME_TAGS:
                frame_name = _identifier(child)
                frames.append(FrameDefinition(
                    frame_name=frame_name,
                    source=child.get("src"),
                    parent_frame_name=parent,
                    depth=depth,
                    tag=child.name.upper(),
                    confidence=Confidence.HIGH,
                ))
                token = frame_name or f"{child.name.upper()}@{depth}"
                self._walk(child, token, depth + 1, token, in_frameset, frames)
            else:
                self._walk(child, parent, depth, container, in_frameset, frames)


def _container_token(frameset: Tag, depth: int) -> str:
    return _identifier(frameset) or f"FRAMESET@{depth}"


def _identifier(tag: Tag) -> Optional[str]:
    for attribute in ("name", "id"):
        value = (tag.get(attribute) or "").strip()
        if value:
            return value
    return None
