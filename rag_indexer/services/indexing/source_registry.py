"""Source adapter registry: which collections exist and how their rows map.

Each source collection stores its identifier, title and body text under
different column names, and older rows sometimes use a legacy column.  Rather
than one hand-written adapter per collection, every collection is described
by a :class:`CollectionSpec` -- an ordered list of candidate keys per target
field -- and a single generic transform walks those lists.  The first key
whose value is present and non-empty wins.

The set of collections is closed: asking for an unregistered name raises
:class:`~rag_indexer.utils.errors.UnknownCollectionError`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from rag_indexer.interfaces.row_source import IRowSource, Row
from rag_indexer.models.documents import CanonicalDocument
from rag_indexer.utils.errors import FetchError, TransformError, UnknownCollectionError

logger = structlog.get_logger(logger_name=__name__)

_UNKNOWN_SOURCE_ID = "unknown"


@dataclass(frozen=True)
class CollectionSpec:
    """Field mapping for one source collection.

    Attributes
    ----------
    name:
        Collection (table) name.
    title_fields:
        Candidate keys for the document title, highest priority first.
    content_fields:
        Candidate keys for the document body, highest priority first.
    id_fields:
        Candidate keys for the row identifier.
    """

    name: str
    title_fields: tuple[str, ...]
    content_fields: tuple[str, ...]
    id_fields: tuple[str, ...] = ("id",)


DEFAULT_COLLECTIONS: tuple[CollectionSpec, ...] = (
    CollectionSpec(
        name="internal_data",
        title_fields=("title", "name"),
        content_fields=("content", "description", "notes"),
    ),
    CollectionSpec(
        name="press_release",
        title_fields=("title", "headline"),
        content_fields=("content", "body", "text"),
    ),
    CollectionSpec(
        name="board_members",
        title_fields=("name", "title"),
        content_fields=("bio", "background", "experience", "description"),
    ),
    CollectionSpec(
        name="partnerships",
        title_fields=("name", "partner_name", "title"),
        content_fields=("description", "details", "overview"),
    ),
    CollectionSpec(
        name="financial_reports",
        title_fields=("title", "report_name", "period"),
        content_fields=("content", "summary", "analysis", "details"),
    ),
    CollectionSpec(
        name="company_news",
        title_fields=("title", "headline", "news_title"),
        content_fields=("content", "body", "article", "summary"),
    ),
    CollectionSpec(
        name="product_info",
        title_fields=("name", "product_name", "title"),
        content_fields=("description", "overview", "features", "details"),
    ),
    CollectionSpec(
        name="executive_team",
        title_fields=("name", "title", "role"),
        content_fields=("bio", "background", "experience", "description"),
    ),
    CollectionSpec(
        name="investor_relations",
        title_fields=("title", "topic", "subject"),
        content_fields=("content", "details", "information", "overview"),
    ),
)

DEFAULT_COLLECTION_NAMES: tuple[str, ...] = tuple(s.name for s in DEFAULT_COLLECTIONS)


def first_present(row: Mapping[str, Any], candidates: Iterable[str]) -> str | None:
    """Return the first non-empty value among *candidates* in *row*.

    ``None`` and the empty string count as absent; any other value is
    converted with ``str()``.
    """
    for key in candidates:
        value = row.get(key)
        if value is None:
            continue
        text = value if isinstance(value, str) else str(value)
        if text:
            return text
    return None


class SourceAdapterRegistry:
    """Dispatch table from collection name to fetch and transform.

    Parameters
    ----------
    row_source:
        Backend that pages through raw rows.
    collections:
        Collection specs to register; defaults to :data:`DEFAULT_COLLECTIONS`.
    """

    def __init__(
        self,
        row_source: IRowSource,
        collections: Iterable[CollectionSpec] = DEFAULT_COLLECTIONS,
    ) -> None:
        self._row_source = row_source
        self._specs: dict[str, CollectionSpec] = {}
        for spec in collections:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate collection spec: {spec.name}")
            self._specs[spec.name] = spec

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def names(self) -> list[str]:
        """Registered collection names, in registration order."""
        return list(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def spec(self, name: str) -> CollectionSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownCollectionError(
                message=f"No adapter registered for collection: {name}",
                collection=name,
            ) from None

    # ------------------------------------------------------------------
    # Fetch / transform
    # ------------------------------------------------------------------

    async def fetch_rows(self, name: str, limit: int, offset: int) -> list[Row]:
        """Fetch one page of raw rows for *name*.

        Any failure of the row source is reported as :class:`FetchError`.
        """
        self.spec(name)
        try:
            return await self._row_source.fetch_rows(name, limit, offset)
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(
                message=f"Failed to fetch {name} (limit={limit}, offset={offset}): {exc}",
                provider_name=self._row_source.get_provider_name(),
            ) from exc

    def transform_row(self, name: str, row: Row) -> CanonicalDocument:
        """Map a raw row of *name* to a :class:`CanonicalDocument`."""
        spec = self.spec(name)
        if not isinstance(row, Mapping):
            raise TransformError(
                message=f"Row of {name} is {type(row).__name__}, expected a mapping"
            )

        return CanonicalDocument(
            source_collection=spec.name,
            source_id=first_present(row, spec.id_fields) or _UNKNOWN_SOURCE_ID,
            title=first_present(row, spec.title_fields),
            content=first_present(row, spec.content_fields) or "",
        )

    # ------------------------------------------------------------------
    # Pre-flight
    # ------------------------------------------------------------------

    async def validate(self, names: Iterable[str]) -> list[str]:
        """Return the subset of *names* that is registered and readable.

        Unknown and unreadable collections are logged and dropped.
        """
        valid: list[str] = []
        for name in names:
            if name not in self._specs:
                logger.warning("collection_unknown", collection=name)
                continue
            try:
                accessible = await self._row_source.is_accessible(name)
            except Exception as exc:
                logger.warning("collection_check_failed", collection=name, error=str(exc))
                continue
            if not accessible:
                logger.warning("collection_not_accessible", collection=name)
                continue
            valid.append(name)
        return valid

    async def row_counts(self, names: Iterable[str] | None = None) -> dict[str, int]:
        """Return the row count of each collection; failures count as 0."""
        counts: dict[str, int] = {}
        for name in names if names is not None else self.names():
            try:
                counts[name] = await self._row_source.count_rows(name)
            except Exception as exc:
                logger.warning("collection_count_failed", collection=name, error=str(exc))
                counts[name] = 0
        return counts
