"""Sentence-aligned text chunking with word-level overlap.

Splits document content into chunks sized for embedding models (by default
~1200 characters, never intentionally above 1500, and not below 800 unless
the whole document is small).

Four size knobs pull against each other:

* **target** -- where the greedy sentence accumulator prefers to cut.
* **min** -- a chunk below this is grown past the target rather than cut.
* **max** -- a buffer above this is re-packed word by word.
* **overlap** -- the last N *words* of each chunk are repeated at the start
  of the next one so a fact straddling a boundary is retrievable from both.

After overlap is applied, a final pass merges neighbours whose combined
length is still under *min*.  ``max`` is not re-enforced after the flush,
overlap or merge steps: a too-small tail is glued onto the previous chunk
rather than dropped.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

import structlog

from rag_indexer.utils.errors import ConfigError

logger = structlog.get_logger(logger_name=__name__)

# Whitespace that directly follows terminal punctuation.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> Iterator[str]:
    """Yield the sentences of *text* in order.

    A boundary is ``.``, ``!`` or ``?`` followed by whitespace or the end
    of the text.  Sentences are trimmed; empty ones are dropped.  Each call
    returns a fresh generator.
    """
    start = 0
    for match in _SENTENCE_BOUNDARY.finditer(text):
        sentence = text[start : match.start()].strip()
        if sentence:
            yield sentence
        start = match.end()

    tail = text[start:].strip()
    if tail:
        yield tail


def _join(left: str, right: str) -> str:
    return f"{left} {right}" if left else right


class TextChunker:
    """Splits text into overlapping, sentence-aligned chunks.

    Parameters
    ----------
    target_size:
        Preferred chunk length in characters.
    overlap:
        Number of trailing words of each chunk prefixed onto the next.
    min_size:
        Chunks shorter than this are grown or merged where possible.
    max_size:
        Buffers longer than this are force-split.

    Raises
    ------
    ConfigError
        Unless ``0 < min_size <= target_size <= max_size`` and
        ``overlap >= 0``.
    """

    def __init__(
        self,
        target_size: int = 1200,
        overlap: int = 200,
        min_size: int = 800,
        max_size: int = 1500,
    ) -> None:
        if not 0 < min_size <= target_size <= max_size:
            raise ConfigError(
                message=(
                    "Chunk sizes must satisfy 0 < min <= target <= max "
                    f"(got min={min_size}, target={target_size}, max={max_size})"
                )
            )
        if overlap < 0:
            raise ConfigError(message=f"Chunk overlap must be >= 0 (got {overlap})")

        self._target_size = target_size
        self._overlap = overlap
        self._min_size = min_size
        self._max_size = max_size

    @property
    def params(self) -> dict[str, int]:
        return {
            "target_size": self._target_size,
            "overlap": self._overlap,
            "min_size": self._min_size,
            "max_size": self._max_size,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into an ordered list of chunk strings.

        Text no longer than the target comes back unchanged as a single
        chunk (including the empty string).  The same input always yields
        the same output.
        """
        if len(text) <= self._target_size:
            return [text]

        chunks = self._assemble(split_sentences(text))
        chunks = self._apply_overlap(chunks)
        chunks = self._merge_small(chunks)

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            text_length=len(text),
        )
        return chunks

    # ------------------------------------------------------------------
    # Sentence accumulation
    # ------------------------------------------------------------------

    def _assemble(self, sentences: Iterator[str]) -> list[str]:
        """Greedily pack sentences into pre-overlap chunks."""
        chunks: list[str] = []
        buffer = ""

        for sentence in sentences:
            candidate = _join(buffer, sentence)

            if len(candidate) <= self._target_size:
                buffer = candidate
            elif len(buffer) >= self._min_size:
                chunks.append(buffer)
                buffer = sentence
            else:
                # Too small to cut yet: accept the oversize append.
                buffer = candidate

            # Anything before the last sentence is either emitted already or
            # shorter than min, so there is no sentence boundary worth keeping.
            if len(buffer) > self._max_size:
                buffer = self._pack_words(buffer, chunks)

        if len(buffer) >= self._min_size:
            chunks.append(buffer)
        elif chunks:
            if buffer:
                chunks[-1] = _join(chunks[-1], buffer)
        else:
            chunks.append(buffer)

        return chunks

    def _pack_words(self, buffer: str, chunks: list[str]) -> str:
        """Re-pack an oversized *buffer* word by word.

        Full chunks are appended to *chunks*; the unfinished remainder is
        returned as the new running buffer.  Below ``min_size`` a word is
        added even if it breaks ``max_size`` -- words are never split.
        """
        packed = ""
        for word in buffer.split():
            candidate = _join(packed, word)
            if len(candidate) <= self._max_size:
                packed = candidate
            elif len(packed) >= self._min_size:
                chunks.append(packed)
                packed = word
            else:
                packed = candidate
        return packed

    # ------------------------------------------------------------------
    # Overlap and final merge
    # ------------------------------------------------------------------

    def _overlap_text(self, previous: str) -> str:
        """Return the last ``overlap`` words of *previous*, space-joined."""
        if self._overlap <= 0:
            return ""
        return " ".join(previous.split()[-self._overlap :])

    def _apply_overlap(self, chunks: list[str]) -> list[str]:
        """Prefix each chunk after the first with its predecessor's tail.

        The tail always comes from the *pre-overlap* predecessor, so
        overlap never compounds across chunks.
        """
        overlapped: list[str] = []
        for i, chunk in enumerate(chunks):
            if i > 0:
                prefix = self._overlap_text(chunks[i - 1])
                if prefix:
                    chunk = f"{prefix} {chunk}"
            overlapped.append(chunk)
        return overlapped

    def _merge_small(self, chunks: list[str]) -> list[str]:
        """Merge neighbours whose combined length is below ``min_size``."""
        if not chunks:
            return chunks

        merged: list[str] = []
        current = chunks[0]
        for nxt in chunks[1:]:
            if len(current) + len(nxt) < self._min_size:
                current = f"{current} {nxt}"
            else:
                merged.append(current)
                current = nxt
        merged.append(current)
        return merged


def chunk_text(
    text: str,
    target_size: int = 1200,
    overlap: int = 200,
    min_size: int = 800,
    max_size: int = 1500,
) -> list[str]:
    """Functional shorthand for ``TextChunker(...).chunk(text)``."""
    return TextChunker(
        target_size=target_size,
        overlap=overlap,
        min_size=min_size,
        max_size=max_size,
    ).chunk(text)
