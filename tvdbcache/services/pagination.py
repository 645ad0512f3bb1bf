"""Aggregation of the paged episode listing."""

import logging
from typing import Any, Callable, List, Mapping

from tvdbcache.models.media import Episode

logger = logging.getLogger(__name__)

# Fixed server-side page size of /series/{id}/episodes
PAGE_SIZE = 100

FetchPage = Callable[[int, Mapping[str, Any], str], List[Episode]]


def _number(value: Any) -> tuple[int, int]:
    # Missing or non-numeric numbers sort after every numbered episode
    try:
        return (0, int(value))
    except (TypeError, ValueError):
        return (1, 0)


def episode_sort_key(episode: Episode) -> tuple:
    """Sort key (season, episode) of an episode, read without fetching."""
    return (
        _number(episode.peek("airedSeason")),
        _number(episode.peek("airedEpisodeNumber")),
    )


def list_episodes(
    fetch_page: FetchPage,
    series_id: int,
    params: Mapping[str, Any] | None,
    language: str,
) -> List[Episode]:
    """Return the episodes of a series.

    An explicit ``page`` parameter returns that page only; ``None`` values,
    ``page=None`` included, count as absent. Otherwise pages are read in
    order until one holds fewer than PAGE_SIZE items; a last page of
    exactly PAGE_SIZE items costs one more request answering nothing.
    The result is sorted by (season, episode), stable on ties.
    """
    params = {k: v for k, v in (params or {}).items() if v is not None}
    if "page" in params:
        return fetch_page(series_id, params, language)

    episodes: List[Episode] = []
    page = 1
    while True:
        result = fetch_page(series_id, {**params, "page": page}, language)
        logger.debug(
            "Series %s page %s: %s episodes [%s]", series_id, page, len(result), language
        )
        episodes.extend(result)
        if len(result) < PAGE_SIZE:
            break
        page += 1

    return sorted(episodes, key=episode_sort_key)
