import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from src.common.models import CatalogEntry, FuzzyConfig
from src.common.storage import LocalStore
from src.search.evaluator import filter_entries
from src.search.observer import EntryNode, ResultObserver, format_result_count
from src.search.session import SearchSession

logging.basicConfig(
    level=logging.INFO,
    format="[SearchServer] %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

mcp = FastMCP("Bardbook Search Server")


class CatalogView:
    """
    Renders filtered catalog entries into nodes and reports each pass to a
    ResultObserver, standing in for the browser page.
    """

    def __init__(
        self,
        catalog: list[Any],
        session: SearchSession,
        config: Optional[FuzzyConfig] = None,
    ):
        self.catalog = catalog
        self.session = session
        self.config = config or FuzzyConfig()
        self.nodes: list[EntryNode] = []
        self.result_count: Optional[int] = None
        self.observer = ResultObserver(session.current, self.update_result_count)
        session.subscribe(self.observer.invalidate)
        session.subscribe(lambda query: self.render())

    def update_result_count(self, count: Optional[int], query: str) -> None:
        self.result_count = count

    def render(self) -> list[EntryNode]:
        """Redraw the matching entries, then notify the observer once."""
        matches = filter_entries(self.session.current(), self.catalog, self.config)
        self.nodes = [EntryNode(_entry_text(entry), entry) for entry in matches]
        self.observer.on_content_changed(self.nodes)
        return self.nodes

    def snapshot(self) -> dict:
        query = self.session.current()
        return {
            "query": query.text,
            "fuzzy_enabled": query.fuzzy_enabled,
            "count": self.result_count,
            "label": format_result_count(self.result_count, query.text),
            "results": [
                {"entry": _entry_json(node.entry), "highlighted": node.markup}
                for node in self.nodes
            ],
        }


def _entry_text(entry: Any) -> str:
    if isinstance(entry, CatalogEntry):
        return "\n".join(entry.fields())
    if isinstance(entry, dict):
        return "\n".join(str(v) for v in entry.values() if v)
    return str(entry)


def _entry_json(entry: Any) -> Any:
    if isinstance(entry, CatalogEntry):
        return entry.model_dump(exclude_none=True)
    return entry


def load_catalog(path: Path) -> list[Any]:
    """
    Load catalog entries from a JSON file: a list, or an object of lists
    (one per section). Structured items become CatalogEntry, strings stay as-is.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    items = data if isinstance(data, list) else [
        item for section in data.values() if isinstance(section, list) for item in section
    ]

    catalog: list[Any] = []
    for item in items:
        if isinstance(item, dict):
            try:
                catalog.append(CatalogEntry.model_validate(item))
                continue
            except ValueError:
                logger.warning(f"Keeping malformed catalog item as-is: {item!r}")
        catalog.append(item)

    logger.info(f"Loaded {len(catalog)} catalog entries from {path}")
    return catalog


# Global view (initialized on first use)
_view: Optional[CatalogView] = None


def get_view() -> CatalogView:
    """Get or create the catalog view from environment configuration."""
    global _view
    if _view is None:
        catalog_file = os.environ.get("BARDBOOK_CATALOG_FILE")
        catalog = load_catalog(Path(catalog_file)) if catalog_file else []
        threshold = int(os.environ.get("BARDBOOK_FUZZY_THRESHOLD", "2"))
        session = SearchSession(store=LocalStore.from_env())
        _view = CatalogView(catalog, session, FuzzyConfig(threshold=threshold))
        _view.render()
    return _view


@mcp.tool()
def search_catalog(query: str, fuzzy: Optional[bool] = None) -> str:
    """
    Search the catalog and return highlighted matches.

    Args:
        query: Search text (empty shows every entry without highlighting)
        fuzzy: Enable or disable typo-tolerant matching (optional, persisted)

    Returns:
        JSON object with the result count, label and highlighted results
    """
    view = get_view()
    if fuzzy is not None and fuzzy != view.session.current().fuzzy_enabled:
        view.session.set_fuzzy_enabled(fuzzy)
    view.session.set_text(query)
    return json.dumps(view.snapshot(), indent=2)


@mcp.tool()
def set_fuzzy_search(enabled: bool) -> str:
    """
    Turn fuzzy matching on or off for subsequent searches.

    Args:
        enabled: Whether similar words with typos should match

    Returns:
        JSON object with the updated search state
    """
    view = get_view()
    view.session.set_fuzzy_enabled(enabled)
    return json.dumps(view.snapshot(), indent=2)


@mcp.tool()
def get_search_state() -> str:
    """Get the current query, fuzzy flag and visible results."""
    return json.dumps(get_view().snapshot(), indent=2)


@mcp.resource("bardbook://catalog")
def list_catalog() -> str:
    """List every catalog entry as a resource."""
    return json.dumps([_entry_json(entry) for entry in get_view().catalog], indent=2)


def main():
    """Entry point for the search MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
