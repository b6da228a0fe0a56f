# =============================================================================
# rag_indexer/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Command-line entry points for operators running the indexer outside of
# any host application.  One module, two workflows:
#
#   1. BUILD (index.py build)
#      Pages through the source collections, chunks and embeds changed
#      documents, and upserts them into the index.
#
#   2. STATS (index.py stats)
#      Prints row counts per registered source collection alongside the
#      document/chunk/embedding counts already in the index.
#
# Architecture Notes:
#   - argparse for argument parsing, as a one-shot script.
#   - Provider imports are deferred inside factory functions so that
#     `stats` never loads the OpenAI SDK.
# =============================================================================

"""CLI tools for the RAG indexer.

- ``python -m rag_indexer.cli build`` (or ``rag-indexer build``): index
  source collections.
- ``python -m rag_indexer.cli stats``: show source and index statistics.
"""
