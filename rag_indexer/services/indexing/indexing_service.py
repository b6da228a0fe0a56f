"""Orchestrator for incremental RAG indexing.

Pipeline per row: **transform -> fingerprint -> diff -> chunk -> embed -> store**.

The :class:`IndexingService` coordinates four collaborators (source
registry, chunker, embedding provider, document store) without any of them
knowing about each other.  All of them are injected via the constructor, so
tests run the whole pipeline against in-memory fakes.

Failure scopes:

* a row that cannot be transformed or persisted is counted as one error and
  the next row proceeds;
* a row whose chunks were not all written is left without a fingerprint,
  so the next run picks it up again;
* an embedding failure is counted, and the chunk is still written, without
  a vector;
* a page that cannot be fetched ends that collection only;
* nothing ends the run.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from rag_indexer.models.indexing import (
    IndexingReport,
    IndexingStats,
    ReembedMode,
    RowOutcome,
    RowResult,
    RunConfig,
)
from rag_indexer.services.indexing.chunker import TextChunker
from rag_indexer.services.indexing.fingerprint import fingerprint
from rag_indexer.utils.concurrency import throttled_gather
from rag_indexer.utils.errors import ConfigError, EmbeddingUnavailableError
from rag_indexer.utils.logging import bind_log_context, unbind_log_context

if TYPE_CHECKING:
    from rag_indexer.interfaces.document_store import IDocumentStore
    from rag_indexer.interfaces.embedding_provider import IEmbeddingProvider
    from rag_indexer.interfaces.row_source import Row
    from rag_indexer.models.documents import CanonicalDocument, StoredChunk
    from rag_indexer.services.indexing.source_registry import SourceAdapterRegistry

logger = structlog.get_logger(logger_name=__name__)

_CHECK_TEXT = "connection test"

# Stored in place of the real fingerprint while a document's chunks are
# incomplete; never equal to a SHA-256 digest, so the next run retries.
_UNSETTLED_HASH = ""


def needs_embedding(mode: ReembedMode, existing: StoredChunk | None) -> bool:
    """Decide whether the chunk at one position must be (re)embedded.

    ALL embeds unconditionally; MISSING embeds when no vector is stored;
    NONE embeds only positions that have never been written.
    """
    if mode is ReembedMode.ALL:
        return True
    if mode is ReembedMode.MISSING:
        return existing is None or existing.embedding is None
    return existing is None


class IndexingService:
    """Drives indexing runs over the registered source collections.

    Parameters
    ----------
    registry:
        Source adapter registry (fetch + transform per collection).
    store:
        Document/chunk store; the only writer of persisted state.
    embedding_provider:
        Produces chunk vectors.
    chunker:
        Chunk assembler.  When omitted, one is built from the run config's
        chunk sizes at the start of every run.
    """

    def __init__(
        self,
        registry: SourceAdapterRegistry,
        store: IDocumentStore,
        embedding_provider: IEmbeddingProvider,
        chunker: TextChunker | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._embedding_provider = embedding_provider
        self._fixed_chunker = chunker
        self._chunker = chunker or TextChunker()
        self._stop_requested = False
        self._deadline: float | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def request_stop(self) -> None:
        """Ask the running pass to stop before it starts another row."""
        self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        if self._stop_requested:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    async def check_embedding_provider(self) -> None:
        """Embed a short test string once; raise ConfigError if that fails."""
        name = self._embedding_provider.get_provider_name()
        try:
            await self._embedding_provider.embed_single(_CHECK_TEXT)
        except EmbeddingUnavailableError as exc:
            raise ConfigError(
                message=f"Embedding provider check failed: {exc}",
                provider_name=name,
            ) from exc
        logger.info("embedding_provider_ready", provider=name)

    async def run(self, config: RunConfig) -> IndexingReport:
        """Index every requested collection and return the run report."""
        self._stop_requested = False
        self._deadline = (
            time.monotonic() + config.max_runtime_seconds
            if config.max_runtime_seconds is not None
            else None
        )
        if self._fixed_chunker is None:
            self._chunker = TextChunker(
                target_size=config.chunk_target,
                overlap=config.chunk_overlap,
                min_size=config.chunk_min,
                max_size=config.chunk_max,
            )

        logger.info(
            "indexing_started",
            collections=config.collections,
            page_size=config.page_size,
            start_offset=config.start_offset,
            reembed=config.reembed_mode.value,
            embedding_provider=self._embedding_provider.get_provider_name(),
            chunking=self._chunker.params,
        )

        report = IndexingReport()
        valid = await self._registry.validate(config.collections)
        report.rejected_collections = [c for c in config.collections if c not in valid]

        if not valid:
            logger.warning("no_valid_collections", requested=config.collections)
            return report

        for name, count in (await self._registry.row_counts(valid)).items():
            logger.info("collection_row_count", collection=name, rows=count)

        for name in valid:
            if self.stop_requested:
                report.interrupted = True
                break
            stats = await self.process_collection(name, config)
            report.collections.append(stats)
            if self.stop_requested:
                report.interrupted = True

        self._log_report(report)
        return report

    async def process_collection(self, name: str, config: RunConfig) -> IndexingStats:
        """Page through one collection and index each row."""
        stats = IndexingStats(collection=name)
        bind_log_context(collection=name)
        try:
            offset = config.start_offset
            while not self.stop_requested:
                rows = await self._registry.fetch_rows(name, config.page_size, offset)
                if not rows:
                    break

                logger.info("processing_page", rows=len(rows), offset=offset)
                for row in rows:
                    if self.stop_requested:
                        logger.warning("indexing_stop_requested", offset=offset)
                        break
                    result = await self.process_row(
                        name,
                        row,
                        mode=config.reembed_mode,
                        embed_concurrency=config.embed_concurrency,
                    )
                    stats.record(result)

                offset += len(rows)
                if len(rows) < config.page_size:
                    break

            logger.info(
                "collection_complete",
                documents=stats.documents_processed,
                chunks=stats.chunks_created,
                embeddings=stats.embeddings_written,
                errors=stats.errors,
            )
        except Exception as exc:
            logger.error("collection_failed", error=str(exc), exc_info=True)
            stats.errors += 1
        finally:
            unbind_log_context("collection")
        return stats

    async def process_row(
        self,
        name: str,
        row: Row,
        mode: ReembedMode = ReembedMode.NONE,
        embed_concurrency: int = 1,
    ) -> RowResult:
        """Run the per-row procedure and report how it ended.

        Never raises for row-level problems; they come back as a
        ``FAILED`` result carrying the reason.
        """
        source_id: str | None = None
        try:
            document = self._registry.transform_row(name, row)
            source_id = document.source_id

            if document.is_empty:
                return RowResult(outcome=RowOutcome.SKIPPED_EMPTY, source_id=source_id)

            content_hash = fingerprint(document.content)
            stored_hash = await self._store.get_document_fingerprint(name, source_id)
            if mode is ReembedMode.NONE and stored_hash == content_hash:
                logger.debug("document_unchanged", source_id=source_id)
                return RowResult(outcome=RowOutcome.SKIPPED_UNCHANGED, source_id=source_id)

            document_id = await self._store.upsert_document(document, content_hash)
            try:
                chunks = self._chunker.chunk(document.content)
                written, embedded, failed = await self._write_chunks(
                    document_id, chunks, mode, embed_concurrency
                )
            except Exception:
                await self._unsettle_fingerprint(document)
                raise
        except Exception as exc:
            logger.error(
                "row_failed",
                source_id=source_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return RowResult(
                outcome=RowOutcome.FAILED,
                source_id=source_id,
                reason=f"{type(exc).__name__}: {exc}",
            )

        logger.debug(
            "document_indexed",
            source_id=source_id,
            chunks=written,
            embeddings=embedded,
            embedding_failures=failed,
        )
        return RowResult(
            outcome=RowOutcome.INDEXED,
            source_id=source_id,
            chunks_written=written,
            embeddings_written=embedded,
            embedding_failures=failed,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _unsettle_fingerprint(self, document: CanonicalDocument) -> None:
        """Drop the stored fingerprint of a document whose chunks failed.

        A failure here is logged only; the chunk-stage error that led here
        is what the row reports.
        """
        try:
            await self._store.upsert_document(document, _UNSETTLED_HASH)
        except Exception as exc:
            logger.error(
                "fingerprint_reset_failed",
                source_id=document.source_id,
                error=str(exc),
            )

    async def _write_chunks(
        self,
        document_id: str,
        chunks: list[str],
        mode: ReembedMode,
        concurrency: int,
    ) -> tuple[int, int, int]:
        """Embed as needed and upsert every chunk of one document.

        Embedding calls may overlap (bounded by *concurrency*); upserts are
        issued one at a time in index order.

        Returns
        -------
        tuple[int, int, int]
            ``(chunks_written, embeddings_written, embedding_failures)``.
        """
        existing = [await self._store.get_chunk(document_id, i) for i in range(len(chunks))]
        to_embed = [i for i, prior in enumerate(existing) if needs_embedding(mode, prior)]

        results = await throttled_gather(
            [self._embedding_provider.embed_single(chunks[i]) for i in to_embed],
            limit=concurrency,
        )
        fresh: dict[int, list[float] | None] = {}
        failures = 0
        for i, result in zip(to_embed, results, strict=True):
            if isinstance(result, EmbeddingUnavailableError):
                logger.warning(
                    "embedding_failed",
                    document_id=document_id,
                    chunk_index=i,
                    error=str(result),
                )
                failures += 1
                fresh[i] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                fresh[i] = result

        for i, content in enumerate(chunks):
            if i in fresh:
                embedding = fresh[i]
            else:
                prior = existing[i]
                embedding = prior.embedding if prior is not None else None
            await self._store.upsert_chunk(document_id, i, content, embedding)

        embedded = sum(1 for vector in fresh.values() if vector is not None)
        return len(chunks), embedded, failures

    @staticmethod
    def _log_report(report: IndexingReport) -> None:
        for stats in report.collections:
            logger.info(
                "collection_summary",
                collection=stats.collection,
                documents=stats.documents_processed,
                chunks=stats.chunks_created,
                embeddings=stats.embeddings_written,
                errors=stats.errors,
            )
        totals = report.totals
        logger.info(
            "indexing_complete",
            documents=totals.documents_processed,
            chunks=totals.chunks_created,
            embeddings=totals.embeddings_written,
            errors=totals.errors,
            rejected=report.rejected_collections,
            interrupted=report.interrupted,
        )
