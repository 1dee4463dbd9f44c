"""Keep result counts and highlighting in sync with rendered search results."""

import logging
from typing import Any, Callable, Iterable, Optional, Protocol

from src.common.highlight import highlight_matches
from src.common.models import Query

logger = logging.getLogger(__name__)

ResultCountCallback = Callable[[Optional[int], str], None]


class RenderedEntry(Protocol):
    """A node drawn by the renderer for one catalog entry."""

    text: str

    def set_markup(self, markup: str) -> None: ...


class EntryNode:
    """Minimal rendered node: visible text plus the markup shown for it."""

    def __init__(self, text: str, entry: Any = None):
        self.text = text
        self.entry = entry
        self.markup: Optional[str] = None

    def set_markup(self, markup: str) -> None:
        self.markup = markup

    def __repr__(self) -> str:
        return f"EntryNode({self.text!r})"


class HighlightState:
    """Tracks which rendered nodes were highlighted, and for which query text."""

    def __init__(self):
        # id(node) -> (node, query). Holding the node keeps its id from being reused.
        self._marks: dict[int, tuple[RenderedEntry, str]] = {}

    def __len__(self) -> int:
        return len(self._marks)

    def is_marked(self, node: RenderedEntry, query: str) -> bool:
        mark = self._marks.get(id(node))
        return mark is not None and mark[0] is node and mark[1] == query

    def mark(self, node: RenderedEntry, query: str) -> None:
        self._marks[id(node)] = (node, query)

    def retain(self, nodes: Iterable[RenderedEntry]) -> None:
        """Forget nodes that are no longer rendered."""
        alive = {id(node) for node in nodes}
        for key in list(self._marks):
            if key not in alive:
                del self._marks[key]

    def clear(self) -> None:
        self._marks.clear()


def format_result_count(count: Optional[int], query: str = "") -> Optional[str]:
    """Label for the result counter, or None when no filter is active."""
    if count is None:
        return None
    label = f"Found {count} result{'' if count == 1 else 's'}"
    if query:
        label += f' for "{query}"'
    return label


class ResultObserver:
    """
    Reacts to render passes of an external renderer.

    The renderer calls `on_content_changed` once per pass with the entry
    nodes it currently displays (status and header nodes excluded). The
    observer reports the count and highlights each node once per query. It
    only rewrites node markup; it never adds, removes or reorders nodes.
    """

    def __init__(
        self,
        current_query: Callable[[], Query],
        update_result_count: ResultCountCallback,
        highlighter: Callable[[str, str], str] = highlight_matches,
    ):
        self._current_query = current_query
        self._update_result_count = update_result_count
        self._highlighter = highlighter
        self.highlight_state = HighlightState()

    def invalidate(self, query: Optional[Query] = None) -> None:
        """Start a new query epoch. Signature fits SearchSession.subscribe."""
        self.highlight_state.clear()

    def on_content_changed(self, nodes: Iterable[RenderedEntry]) -> Optional[int]:
        """
        Count and highlight the currently rendered entry nodes.

        Returns:
            The reported count, or None when no filter is active
        """
        nodes = list(nodes)
        current = self._current_query()
        query = current.text

        if not current.is_active:
            self.highlight_state.clear()
            self._update_result_count(None, "")
            return None

        self.highlight_state.retain(nodes)

        highlighted = 0
        for node in nodes:
            if self.highlight_state.is_marked(node, query):
                continue
            node.set_markup(self._highlighter(node.text, query))
            self.highlight_state.mark(node, query)
            highlighted += 1

        if highlighted:
            logger.debug(f"Highlighted {highlighted} new result(s) for {query!r}")

        count = len(nodes)
        self._update_result_count(count, query)
        return count
