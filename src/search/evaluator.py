"""Decide whether catalog entries match a search query."""

import logging
from collections.abc import Mapping
from typing import Any, Iterable

from pydantic import ValidationError

from src.common.fuzzy_search import fuzzy_match
from src.common.models import CatalogEntry, FuzzyConfig, Query

logger = logging.getLogger(__name__)

DEFAULT_FUZZY_CONFIG = FuzzyConfig()


def _as_catalog_entry(entry: Any):
    """Coerce a structured entry, or None for anything that is not one."""
    if isinstance(entry, CatalogEntry):
        return entry
    if isinstance(entry, Mapping):
        try:
            return CatalogEntry.model_validate(entry)
        except ValidationError:
            logger.debug(f"Skipping malformed entry: {entry!r}")
    return None


def evaluate(query: Query, entry: Any, config: FuzzyConfig = DEFAULT_FUZZY_CONFIG) -> bool:
    """
    Check if an entry matches a query.

    Structured entries are checked by substring on title, subtitle and
    attribution, then by fuzzy match in the same order when enabled. Plain
    string entries get the same two passes. Any other shape never matches.

    Args:
        query: The current query snapshot
        entry: A CatalogEntry, a mapping with entry fields, or a string
        config: Fuzzy matching threshold

    Returns:
        True if the entry should be shown
    """
    if not query.is_active:
        return True

    q = query.text.lower()

    if isinstance(entry, str):
        if q in entry.lower():
            return True
        return query.fuzzy_enabled and fuzzy_match(q, entry, config.threshold)

    structured = _as_catalog_entry(entry)
    if structured is None:
        return False

    fields = structured.fields()
    if any(q in field.lower() for field in fields):
        return True

    if query.fuzzy_enabled:
        return any(fuzzy_match(q, field, config.threshold) for field in fields)

    return False


def filter_entries(
    query: Query,
    entries: Iterable[Any],
    config: FuzzyConfig = DEFAULT_FUZZY_CONFIG,
) -> list[Any]:
    """Matching entries in catalog order, all evaluated against one query."""
    return [entry for entry in entries if evaluate(query, entry, config)]
