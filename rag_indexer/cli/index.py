# =============================================================================
# rag_indexer/cli/index.py: CLI Index Command (RAG Index Builder)
# =============================================================================
#
# Standalone CLI for building and inspecting the RAG index.  Source rows
# live in the tables of a SQLite database; the index (documents, chunks and
# their embedding vectors) lives in a second SQLite database.
#
# Supported subcommands:
#
#   build: Index the requested collections (incremental by default)
#   stats: Display source row counts and index statistics
#
# The indexing pipeline for each row:
#   1. Map the raw row to a canonical document (title + content)
#   2. Fingerprint the content; skip unchanged documents
#   3. Chunk the text into ~1200-character windows with word overlap
#   4. Embed chunks (OpenAI text-embedding-3-small or Nomic via Ollama)
#   5. Upsert the document and every chunk into the index
#
# Option precedence (highest first):
#   CLI flags -> environment / .env -> config/indexer.yaml -> built-in defaults
#
# Usage examples:
#   python -m rag_indexer.cli build
#   python -m rag_indexer.cli build --tables press_release,company_news --limit 50
#   python -m rag_indexer.cli build --reembed missing --concurrency 4
#   python -m rag_indexer.cli stats
# =============================================================================

"""Standalone CLI for building the RAG index.

Usage::

    rag-indexer build --tables press_release --reembed missing

    rag-indexer stats

Exit status is 0 once a run completes (row-level errors included) and 1 on
a configuration or environment problem.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import sys
from pathlib import Path
from typing import Any

from rag_indexer.config.loader import DEFAULT_CONFIG_PATH, load_config
from rag_indexer.config.settings import Settings
from rag_indexer.models.indexing import IndexingReport, IndexingStats, RunConfig
from rag_indexer.utils.errors import ConfigError
from rag_indexer.utils.logging import configure_logging

# YAML/CLI chunking keys -> RunConfig fields.
_CHUNKING_FIELDS = {
    "target": "chunk_target",
    "overlap": "chunk_overlap",
    "min": "chunk_min",
    "max": "chunk_max",
}


def _build_embedding_provider(app_settings: Settings, model: str | None = None):  # noqa: ANN202
    """Construct the embedding provider selected by ``EMBEDDING_PROVIDER``.

    ``auto`` resolves to OpenAI when a key is configured and to Nomic via
    Ollama otherwise.  *model* overrides the OpenAI embedding model; Nomic
    has a single model and rejects it.

    Raises
    ------
    ConfigError
        If the provider name is not recognised, or *model* is given for
        Nomic.
    """
    provider_name = app_settings.resolved_embedding_provider()

    if provider_name == "openai":
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        return OpenAIEmbeddingProvider(settings=app_settings, model=model)

    if provider_name == "nomic":
        if model:
            raise ConfigError(
                message="--model only applies to the OpenAI embedding provider",
                provider_name="nomic_embedding",
            )
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        return NomicEmbeddingProvider(settings=app_settings)

    raise ConfigError(
        message=f"Unknown embedding provider {provider_name!r} (expected openai or nomic)"
    )


def _build_registry(app_settings: Settings):  # noqa: ANN202
    """Source adapter registry over the SQLite source database."""
    from rag_indexer.providers.source.sqlite_row_source import SQLiteRowSource
    from rag_indexer.services.indexing.source_registry import SourceAdapterRegistry

    return SourceAdapterRegistry(SQLiteRowSource(app_settings.source_db_path))


def _build_indexing_service(app_settings: Settings, model: str | None = None):  # noqa: ANN202
    """Wire registry, store and embedding provider into an IndexingService.

    Returns
    -------
    tuple[IndexingService, SQLiteDocumentStore, str]
        The service, the store (so the caller can initialize it) and a
        status message.
    """
    from rag_indexer.providers.store.sqlite_document_store import SQLiteDocumentStore
    from rag_indexer.services.indexing.indexing_service import IndexingService

    embedding_provider = _build_embedding_provider(app_settings, model)
    store = SQLiteDocumentStore(app_settings.store_db_path)
    service = IndexingService(
        registry=_build_registry(app_settings),
        store=store,
        embedding_provider=embedding_provider,
    )
    status = (
        f"Embedding: {embedding_provider.get_provider_name()} "
        f"| Index: {app_settings.store_db_path}"
    )
    return service, store, status


def _resolve_run_config(args: argparse.Namespace, config: dict[str, Any]) -> RunConfig:
    """Merge CLI flags over the loaded config and validate the result."""
    options: dict[str, Any] = dict(config.get("indexing", {}))
    for key, field in _CHUNKING_FIELDS.items():
        if key in config.get("chunking", {}):
            options[field] = config["chunking"][key]

    if args.tables:
        options["collections"] = [t.strip() for t in args.tables.split(",") if t.strip()]
    if args.limit is not None:
        options["page_size"] = args.limit
    if args.offset is not None:
        options["start_offset"] = args.offset
    if args.reembed is not None:
        options["reembed_mode"] = args.reembed
    if args.concurrency is not None:
        options["embed_concurrency"] = args.concurrency
    if args.max_runtime is not None:
        options["max_runtime_seconds"] = args.max_runtime

    return RunConfig.from_options(**options)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _print_stats_line(stats: IndexingStats) -> None:
    print(
        f"  {stats.collection:<20} docs={stats.documents_processed:<6} "
        f"chunks={stats.chunks_created:<7} embeddings={stats.embeddings_written:<7} "
        f"skipped={stats.rows_skipped:<6} errors={stats.errors}"
    )


def _print_report(report: IndexingReport) -> None:
    print("\nIndexing complete:")
    for stats in report.collections:
        _print_stats_line(stats)
    print("  " + "-" * 38)
    _print_stats_line(report.totals)

    if report.rejected_collections:
        print(f"\n  Skipped collections: {', '.join(report.rejected_collections)}")
    if report.interrupted:
        print("\n  Run was interrupted before all rows were processed.")


async def _handle_build(
    service,  # noqa: ANN001
    store,  # noqa: ANN001
    run_config: RunConfig,
    skip_preflight: bool = False,
) -> int:
    """Initialize the store, verify the embedding provider and run."""
    await store.initialize()

    if not skip_preflight:
        try:
            await service.check_embedding_provider()
        except ConfigError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    # First Ctrl-C finishes the current row and stops.
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, service.request_stop)

    try:
        report = await service.run(run_config)
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)

    _print_report(report)
    return 0


async def _handle_stats(app_settings: Settings) -> int:
    """Display source row counts and index statistics."""
    registry = _build_registry(app_settings)
    counts = await registry.row_counts()

    print("Source Collections")
    print("=" * 40)
    for name, count in counts.items():
        print(f"  {name:<20} {count}")
    print(f"  {'TOTAL':<20} {sum(counts.values())}")

    if not Path(app_settings.store_db_path).exists():
        print(f"\nIndex not built yet ({app_settings.store_db_path}).")
        return 0

    from rag_indexer.providers.store.sqlite_document_store import SQLiteDocumentStore

    stats = await SQLiteDocumentStore(app_settings.store_db_path).get_stats()

    print("\nIndex Statistics")
    print("=" * 40)
    print(f"  Total documents:        {stats.total_documents}")
    print(f"  Total chunks:           {stats.total_chunks}")
    print(f"  Chunks with embeddings: {stats.chunks_with_embeddings}")

    if stats.documents_by_collection:
        print("\n  Documents by collection:")
        for name, count in stats.documents_by_collection.items():
            print(f"    {name:<20} {count}")

    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the indexing CLI."""
    parser = argparse.ArgumentParser(
        prog="rag-indexer",
        description="Build and inspect the RAG document index.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Indexer commands")

    # -- build --
    build_parser = subparsers.add_parser("build", help="Index source collections")
    build_parser.add_argument(
        "--tables", help="Comma-separated collections to index (default: all registered)"
    )
    build_parser.add_argument("--limit", type=int, help="Rows fetched per page")
    build_parser.add_argument("--offset", type=int, help="Row offset to start each collection at")
    build_parser.add_argument(
        "--reembed",
        choices=["none", "missing", "all"],
        help="Re-embedding policy for existing chunks (default: none)",
    )
    build_parser.add_argument("--model", help="Embedding model override (OpenAI provider)")
    build_parser.add_argument(
        "--concurrency", type=int, help="Concurrent embedding calls per document"
    )
    build_parser.add_argument(
        "--max-runtime",
        type=float,
        dest="max_runtime",
        help="Stop after this many seconds (the current row completes)",
    )
    build_parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"YAML config file (default: {DEFAULT_CONFIG_PATH})",
    )
    build_parser.add_argument(
        "--skip-preflight",
        action="store_true",
        dest="skip_preflight",
        help="Do not test the embedding provider before indexing",
    )

    # -- stats --
    subparsers.add_parser("stats", help="Show source and index statistics")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the indexer.

    ``stats`` only needs the two databases.  ``build`` validates the
    environment and the run options before any provider is constructed.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    if args.command == "stats":
        configure_logging(app_settings.log_level, json_output=app_settings.app_env == "production")
        sys.exit(asyncio.run(_handle_stats(app_settings)))

    missing = app_settings.missing_indexer_settings()
    if missing:
        print(f"Error: missing required settings: {', '.join(missing)}", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args.config, app_settings)
        run_config = _resolve_run_config(args, config)
        service, store, status_msg = _build_indexing_service(app_settings, model=args.model)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config["logging"]["level"], json_output=config["logging"]["json"])

    print(f"Providers: {status_msg}")
    print()

    exit_code = asyncio.run(
        _handle_build(service, store, run_config, skip_preflight=args.skip_preflight)
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
