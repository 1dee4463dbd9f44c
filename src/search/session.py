"""Search session state: current query and persisted fuzzy preference."""

import logging
from typing import Callable, Optional

from src.common.models import Query
from src.common.storage import KeyValueStore

logger = logging.getLogger(__name__)

FUZZY_STORAGE_KEY = "fuzzySearchEnabled"

QueryListener = Callable[[Query], None]


class SearchSession:
    """
    Holds the Query for the current epoch.

    Every mutation replaces the Query snapshot and notifies listeners, which
    is where highlight state is invalidated and a re-filter is triggered. The
    fuzzy flag is loaded from and saved to the key-value store; store
    failures are logged and the in-memory state stays authoritative.
    """

    def __init__(self, store: Optional[KeyValueStore] = None, fuzzy_default: bool = True):
        self._store = store
        self._listeners: list[QueryListener] = []
        self._query = Query(text="", fuzzy_enabled=self._load_fuzzy(fuzzy_default))

    def _load_fuzzy(self, default: bool) -> bool:
        if self._store is None:
            return default
        try:
            saved = self._store.get(FUZZY_STORAGE_KEY)
        except Exception as e:
            logger.warning(f"Could not load fuzzy search preference: {e}")
            return default
        if saved is None:
            return default
        return saved == "true"

    def _save_fuzzy(self, enabled: bool) -> None:
        if self._store is None:
            return
        try:
            self._store.set(FUZZY_STORAGE_KEY, "true" if enabled else "false")
        except Exception as e:
            logger.warning(f"Could not save fuzzy search preference: {e}")

    def subscribe(self, listener: QueryListener) -> None:
        """Register a callback invoked with the new Query after every change."""
        self._listeners.append(listener)

    def current(self) -> Query:
        return self._query

    def set_text(self, text: str) -> Query:
        """Replace the search text (trimmed) and start a new epoch."""
        return self._replace(text=(text or "").strip())

    def set_fuzzy_enabled(self, enabled: bool) -> Query:
        """Toggle fuzzy matching, persist it, and start a new epoch."""
        query = self._replace(fuzzy_enabled=bool(enabled))
        self._save_fuzzy(query.fuzzy_enabled)
        return query

    def _replace(self, **changes) -> Query:
        self._query = self._query.model_copy(update=changes)
        for listener in self._listeners:
            listener(self._query)
        return self._query
