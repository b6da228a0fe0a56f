"""Allow ``python -m rag_indexer.cli`` execution."""

from rag_indexer.cli.index import main

main()
