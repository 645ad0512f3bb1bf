"""Selection of the best series among search results."""

from typing import Sequence

from tvdbcache.models.media import Entity


def _fold(value) -> str | None:
    return value.casefold() if isinstance(value, str) else None


def best_match(results: Sequence[Entity], query_name: str) -> Entity | None:
    """Select the best result for ``query_name``.

    Priority:
    1. First result whose name equals the query (case-insensitive)
    2. First result with an alias equal to the query (case-insensitive)
    3. First result in ranked order
    """
    if not results:
        return None

    query = query_name.casefold()
    for result in results:
        if _fold(result.peek(result.NAME_FIELD)) == query:
            return result

    for result in results:
        aliases = result.peek("aliases") if "aliases" in result.all_fields() else None
        if any(_fold(alias) == query for alias in aliases or []):
            return result

    return results[0]
