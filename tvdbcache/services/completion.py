"""Lazy completion of partially loaded entities."""

import logging
from typing import Callable

from tvdbcache.core.errors import RequestFailure
from tvdbcache.models.media import Completeness, Entity
from tvdbcache.services.classifier import Failure, Outcome, Success

logger = logging.getLogger(__name__)

FetchEntity = Callable[[str, int, str], Outcome]


class EntityCompletionTracker:
    """Decides when an entity needs its detail record and merges it in.

    Completeness is tracked per language. A listing payload only makes its
    own language PARTIAL; reading a show field, or any field under a
    language never seen, costs one detail fetch for that language.
    """

    def __init__(self, fetch_entity: FetchEntity):
        self._fetch_entity = fetch_entity

    def needs_fetch(self, entity: Entity, field: str, language: str) -> bool:
        state = entity.completeness(language)
        if field in entity.SHOW_FIELDS and state is not Completeness.COMPLETE:
            return True
        if field in entity.INDEX_FIELDS and state is Completeness.UNKNOWN:
            return True
        return False

    def ensure_complete(self, entity: Entity, field: str, language: str) -> None:
        """Run a completion fetch if ``field`` is not trustworthy for ``language``."""
        with entity.lock:
            if self.needs_fetch(entity, field, language):
                self.complete(entity, language)

    def complete(self, entity: Entity, language: str) -> None:
        """Fetch the detail record of ``entity`` and merge it.

        Raises RequestFailure without touching completeness when the api
        answers with an error. A 404, or a 200 without a record, marks the
        language complete and keeps the values held.
        """
        with entity.lock:
            logger.debug(
                "Completing %s %s [%s]", type(entity).__name__, entity.id, language
            )
            outcome = self._fetch_entity(entity.KIND, entity.id, language)
            if isinstance(outcome, Failure):
                raise RequestFailure(outcome.status_code, outcome.message)
            data = outcome.data if isinstance(outcome, Success) else None
            if isinstance(data, dict):
                entity.merge(data, language)
            else:
                # 404, or a 200 without a record: keep what is held
                logger.debug("%s %s has no detail record, keeping values", entity.KIND, entity.id)
                entity.mark_complete(language)
