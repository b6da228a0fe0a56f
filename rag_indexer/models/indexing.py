"""Run configuration, per-row results and run statistics for the indexer.

``RunConfig`` is validated once, before any collection is touched; a bad
option surfaces as :class:`~rag_indexer.utils.errors.ConfigError`.

``RowResult`` is what the orchestrator's per-row procedure returns instead
of raising: every row ends as indexed, skipped, or failed-with-reason, and
those results are folded into the collection's :class:`IndexingStats`.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from rag_indexer.utils.errors import ConfigError


class ReembedMode(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """How far existing embeddings are trusted during a run.

    NONE     -- unchanged documents are skipped; existing chunk vectors are
                reused, only brand-new chunk positions are embedded.
    MISSING  -- every chunk without a stored vector is embedded.
    ALL      -- every chunk is embedded again.
    """

    NONE = "none"
    MISSING = "missing"
    ALL = "all"


class RunConfig(BaseModel):
    """Options for one indexing run."""

    model_config = ConfigDict(frozen=True)

    collections: list[str] = Field(description="Source collections to index, in order.")
    page_size: int = Field(default=100, gt=0, description="Rows fetched per page.")
    start_offset: int = Field(default=0, ge=0, description="Offset of the first page.")
    reembed_mode: ReembedMode = ReembedMode.NONE
    chunk_target: int = Field(default=1200, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    chunk_min: int = Field(default=800, gt=0)
    chunk_max: int = Field(default=1500, gt=0)
    embed_concurrency: int = Field(
        default=1,
        ge=1,
        description="Maximum embedding requests in flight for one document.",
    )
    max_runtime_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Stop before the next row once this much time has elapsed.",
    )

    @field_validator("collections")
    @classmethod
    def _dedupe_collections(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for name in value:
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    @model_validator(mode="after")
    def _check_chunk_sizes(self) -> RunConfig:
        if not self.chunk_min <= self.chunk_target <= self.chunk_max:
            raise ValueError(
                "chunk sizes must satisfy min <= target <= max "
                f"(got min={self.chunk_min}, target={self.chunk_target}, max={self.chunk_max})"
            )
        return self

    @classmethod
    def from_options(cls, **options: object) -> RunConfig:
        """Build a config, converting validation failures to ConfigError."""
        try:
            return cls.model_validate(options)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigError(message=f"Invalid run configuration: {problems}") from exc


class RowOutcome(str, Enum):  # noqa: UP042
    """Terminal state of one row in the per-row procedure."""

    INDEXED = "indexed"
    SKIPPED_EMPTY = "skipped_empty"
    SKIPPED_UNCHANGED = "skipped_unchanged"
    FAILED = "failed"


class RowResult(BaseModel):
    """Outcome of processing a single source row."""

    model_config = ConfigDict(frozen=True)

    outcome: RowOutcome
    source_id: str | None = None
    reason: str | None = None
    chunks_written: int = Field(default=0, ge=0)
    embeddings_written: int = Field(default=0, ge=0)
    embedding_failures: int = Field(default=0, ge=0)

    @property
    def errors(self) -> int:
        """Errors this row contributes to the run statistics."""
        return self.embedding_failures + (1 if self.outcome is RowOutcome.FAILED else 0)


class IndexingStats(BaseModel):
    """Counters for one collection within one run.

    Mutable: the orchestrator updates it in place as rows complete.
    """

    collection: str
    rows_seen: int = 0
    rows_skipped: int = 0
    documents_processed: int = 0
    chunks_created: int = 0
    embeddings_written: int = 0
    errors: int = 0

    def record(self, result: RowResult) -> None:
        """Fold one row's result into the counters."""
        self.rows_seen += 1
        if result.outcome is RowOutcome.INDEXED:
            self.documents_processed += 1
        elif result.outcome in (RowOutcome.SKIPPED_EMPTY, RowOutcome.SKIPPED_UNCHANGED):
            self.rows_skipped += 1
        self.chunks_created += result.chunks_written
        self.embeddings_written += result.embeddings_written
        self.errors += result.errors


class IndexingReport(BaseModel):
    """Summary of a whole run, per collection and in total."""

    collections: list[IndexingStats] = Field(default_factory=list)
    rejected_collections: list[str] = Field(default_factory=list)
    interrupted: bool = False

    @property
    def totals(self) -> IndexingStats:
        total = IndexingStats(collection="TOTAL")
        for stats in self.collections:
            total.rows_seen += stats.rows_seen
            total.rows_skipped += stats.rows_skipped
            total.documents_processed += stats.documents_processed
            total.chunks_created += stats.chunks_created
            total.embeddings_written += stats.embeddings_written
            total.errors += stats.errors
        return total

    def for_collection(self, name: str) -> IndexingStats | None:
        return next((s for s in self.collections if s.collection == name), None)
