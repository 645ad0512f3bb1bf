"""Media models for TVDB records.

``Series`` and ``Episode`` are lazy: they may be built from a listing payload
that only carries their index fields, and complete themselves through the
owning client the first time a missing field is read.
"""

import random
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional
from urllib.parse import urljoin

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from tvdbcache.client import TVDBClient

IMAGE_BASE_URL = "https://thetvdb.com/banners/"


def image_url(path: str | None, base_url: str = IMAGE_BASE_URL) -> str | None:
    """Return the absolute url of an image path returned by the api."""
    if not path:
        return None
    return urljoin(base_url, path)


class Record(BaseModel):
    """Untyped api record (languages, actors, summaries, images)."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    image: Optional[str] = None
    fileName: Optional[str] = None
    thumbnail: Optional[str] = None
    keyType: Optional[str] = None
    subKey: Optional[str] = None

    @property
    def image_url(self) -> str | None:
        return image_url(self.image)

    @property
    def fileName_url(self) -> str | None:
        return image_url(self.fileName)

    @property
    def thumbnail_url(self) -> str | None:
        return image_url(self.thumbnail)

    @property
    def url(self) -> str | None:
        return self.fileName_url


class Completeness(str, Enum):
    """How much of an entity is loaded for one language."""

    UNKNOWN = "unknown"
    PARTIAL = "partial"  # Index fields only
    COMPLETE = "complete"


class Entity:
    """Base class for records that complete themselves on demand.

    Field values are read with ``entity.<field>`` or ``entity.get(field)``;
    both go through the client's completion tracker first. ``id`` is the
    identity and never triggers a fetch.
    """

    KIND: str = ""
    NAME_FIELD: str = ""
    INDEX_FIELDS: frozenset = frozenset()
    SHOW_FIELDS: frozenset = frozenset()

    def __init__(
        self,
        client: "TVDBClient",
        data: dict[str, Any],
        language: str,
        completeness: Completeness = Completeness.PARTIAL,
    ):
        self._client = client
        self.id: int = data.get("id")
        self._lock = threading.RLock()
        # One value set per language; listings only fill their own language
        self._values: dict[str, dict[str, Any]] = {language: self._pick(data)}
        self._last_language = language
        self._completeness: dict[str, Completeness] = {language: completeness}

    @classmethod
    def all_fields(cls) -> frozenset:
        return cls.INDEX_FIELDS | cls.SHOW_FIELDS

    @classmethod
    def _pick(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {field: data.get(field) for field in cls.all_fields()}

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def completeness(self, language: str) -> Completeness:
        return self._completeness.get(language, Completeness.UNKNOWN)

    def merge(self, data: dict[str, Any], language: str) -> None:
        """Overwrite the fields of ``language`` from a detail record and mark it complete."""
        values = self._pick(data)
        with self._lock:
            self._values[language] = values
            self._last_language = language
            self._completeness[language] = Completeness.COMPLETE

    def mark_complete(self, language: str) -> None:
        """Mark complete without new data, keeping the values last held."""
        with self._lock:
            if language not in self._values:
                self._values[language] = dict(self._values[self._last_language])
            self._completeness[language] = Completeness.COMPLETE

    def get(self, field: str, language: str | None = None) -> Any:
        """Return a field value, completing the entity first when needed."""
        if field not in self.all_fields():
            raise KeyError(f"{type(self).__name__} has no field {field!r}")
        language = self._client.resolve_language(language)
        with self._lock:
            self._client.tracker.ensure_complete(self, field, language)
            return self._values[language][field]

    def peek(self, field: str, language: str | None = None) -> Any:
        """Return the held value of a field without any fetch.

        Without ``language``, the values last merged (or listed) are read.
        """
        with self._lock:
            values = self._values.get(language) or self._values[self._last_language]
            return values[field]

    def load(self, language: str | None = None) -> "Entity":
        """Re-read the detail record for ``language`` and merge it."""
        self._client.tracker.complete(self, self._client.resolve_language(language))
        return self

    def __getattr__(self, name: str) -> Any:
        if name in type(self).all_fields():
            return self.get(name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    @property
    def name(self) -> Any:
        return self.get(self.NAME_FIELD)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} name={self.peek(self.NAME_FIELD)!r}>"


class Series(Entity):
    """A TV series."""

    KIND = "series"
    NAME_FIELD = "seriesName"
    INDEX_FIELDS = frozenset(
        {"seriesName", "aliases", "banner", "firstAired", "overview", "status"}
    )
    SHOW_FIELDS = frozenset(
        {
            "added",
            "airsDayOfWeek",
            "airsTime",
            "genre",
            "imdbId",
            "lastUpdated",
            "network",
            "networkId",
            "rating",
            "runtime",
            "seriesId",
            "siteRating",
            "siteRatingCount",
            "zap2itId",
        }
    )

    def summary(self) -> Record | None:
        """Return the episodes/seasons summary of the series."""
        return self._client.series_summary(self.id)

    def episodes(self, params: dict[str, Any] | None = None) -> List["Episode"]:
        """Return the episodes of the series, every page unless ``page`` is given."""
        return self._client.list_episodes(self.id, params)

    def actors(self) -> List[Record]:
        return self._client.actors(self.id)

    def __getitem__(self, index: int | str) -> Optional["Episode"]:
        """Episode by absolute number (``29``) or by ``"3x9"``."""
        episodes = self.episodes()
        if isinstance(index, int):
            return next((e for e in episodes if e.absoluteNumber == index), None)
        season, number = (int(part) for part in index.lower().split("x"))
        return next(
            (
                e
                for e in episodes
                if e.airedSeason == season and e.airedEpisodeNumber == number
            ),
            None,
        )

    def images_summary(self) -> Record | None:
        return self._client.images_summary(self.id)

    def images(self, params: dict[str, Any]) -> List[Record]:
        return self._client.images(self.id, params)

    def fanarts(self) -> List[Record]:
        return self.images({"keyType": "fanart"})

    def posters(self) -> List[Record]:
        return self.images({"keyType": "poster"})

    def banners(self) -> List[Record]:
        return self.images({"keyType": "series"})

    def season_images(self, season: int | None = None) -> List[Record]:
        return self._keyed_images("season", season)

    def seasonwide_images(self, season: int | None = None) -> List[Record]:
        return self._keyed_images("seasonwide", season)

    def _keyed_images(self, key_type: str, season: int | None) -> List[Record]:
        images = self.images({"keyType": key_type})
        if season is not None:
            images = [i for i in images if i.subKey == str(season)]
        return sorted(images, key=lambda i: i.subKey or "")

    def banner_url(self, random_pick: bool = False) -> str | None:
        if random_pick:
            banners = self.banners()
            return random.choice(banners).url if banners else None
        return self._client.image_url(self.banner)

    def poster_url(self, random_pick: bool = False) -> str | None:
        posters = self.posters()
        if random_pick:
            random.shuffle(posters)
        return posters[0].url if posters else None


class Episode(Entity):
    """An episode of a TV series."""

    KIND = "episodes"
    NAME_FIELD = "episodeName"
    INDEX_FIELDS = frozenset(
        {
            "absoluteNumber",
            "airedEpisodeNumber",
            "airedSeason",
            "dvdEpisodeNumber",
            "dvdSeason",
            "episodeName",
            "firstAired",
            "lastUpdated",
            "overview",
        }
    )
    SHOW_FIELDS = frozenset(
        {
            "airsAfterSeason",
            "airsBeforeEpisode",
            "airsBeforeSeason",
            "director",
            "directors",
            "dvdChapter",
            "dvdDiscid",
            "filename",
            "guestStars",
            "imdbId",
            "lastUpdatedBy",
            "productionCode",
            "seriesId",
            "showUrl",
            "siteRating",
            "siteRatingCount",
            "thumbAdded",
            "thumbAuthor",
            "thumbHeight",
            "thumbWidth",
            "writers",
        }
    )

    @property
    def number(self) -> int | None:
        return self.get("airedEpisodeNumber")

    @property
    def season_number(self) -> int | None:
        return self.get("airedSeason")

    @property
    def x(self) -> str:
        """Episode number as ``"3x9"``."""
        return f"{self.season_number}x{self.number}"
