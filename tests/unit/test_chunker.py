"""Unit tests for the sentence splitter and the TextChunker."""

from __future__ import annotations

import pytest

from rag_indexer.services.indexing.chunker import TextChunker, chunk_text, split_sentences
from rag_indexer.utils.errors import ConfigError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sentence(length: int) -> str:
    """Build one sentence of exactly *length* characters ending in a period."""
    body = ("lorem ipsum " * length)[: length - 1].rstrip()
    return body.ljust(length - 1, "m") + "."


def _prose(count: int) -> str:
    """*count* sentences of 113 characters, single-space separated."""
    return " ".join(
        f"Sentence number {i:02d} reports that the quarterly review covered "
        f"revenue, staffing and the product roadmap in detail."
        for i in range(count)
    )


# ---------------------------------------------------------------------------
# split_sentences
# ---------------------------------------------------------------------------


class TestSplitSentences:
    def test_splits_on_terminal_punctuation(self) -> None:
        text = "First one. Second one! Third one? Fourth"
        assert list(split_sentences(text)) == [
            "First one.",
            "Second one!",
            "Third one?",
            "Fourth",
        ]

    def test_boundary_whitespace_is_dropped(self) -> None:
        text = "Alpha.\n\n  Beta.\tGamma."
        assert list(split_sentences(text)) == ["Alpha.", "Beta.", "Gamma."]

    def test_punctuation_without_whitespace_is_not_a_boundary(self) -> None:
        assert list(split_sentences("Version 2.5 shipped.")) == ["Version 2.5 shipped."]

    def test_empty_and_blank_text_yield_nothing(self) -> None:
        assert list(split_sentences("")) == []
        assert list(split_sentences("   \n ")) == []

    def test_each_call_is_a_fresh_generator(self) -> None:
        text = "One. Two."
        first = split_sentences(text)
        assert list(first) == ["One.", "Two."]
        assert list(first) == []
        assert list(split_sentences(text)) == ["One.", "Two."]


# ---------------------------------------------------------------------------
# TextChunker
# ---------------------------------------------------------------------------


class TestShortText:
    def test_text_under_target_is_returned_unchanged(self) -> None:
        text = _sentence(500)
        assert TextChunker().chunk(text) == [text]

    def test_text_exactly_at_target_is_single_chunk(self) -> None:
        text = _sentence(1200)
        assert TextChunker().chunk(text) == [text]

    def test_empty_text_gives_single_empty_chunk(self) -> None:
        assert TextChunker().chunk("") == [""]


class TestSentenceAccumulation:
    def test_three_sentences_split_into_two_chunks(self) -> None:
        sentences = [_sentence(900), _sentence(500), _sentence(598)]
        text = " ".join(sentences)
        assert len(text) == 2000

        chunks = TextChunker(target_size=1200, overlap=0, min_size=800, max_size=1500).chunk(text)

        assert len(chunks) == 2
        assert len(chunks[0]) <= 1200
        assert all(len(c) >= 800 for c in chunks)
        assert chunks[0] == sentences[0]
        assert chunks[1] == f"{sentences[1]} {sentences[2]}"

    def test_even_prose_fills_to_target(self) -> None:
        chunks = TextChunker(overlap=0).chunk(_prose(40))

        assert len(chunks) == 4
        assert all(len(c) == 1139 for c in chunks)

    def test_undersized_tail_is_appended_to_previous_chunk(self) -> None:
        chunks = TextChunker(overlap=0).chunk(_prose(42))

        assert len(chunks) == 4
        # Ten sentences plus the two left over.
        assert len(chunks[-1]) == 1139 + 1 + 227
        assert chunks[-1].endswith(_prose(42)[-113:])


class TestWordFallback:
    def test_text_without_punctuation_is_packed_by_words(self) -> None:
        words = [f"word{i:03d}" for i in range(375)]
        text = " ".join(words)
        assert len(text) == 2999

        chunks = TextChunker(target_size=1200, overlap=0, min_size=800, max_size=1500).chunk(text)

        assert len(chunks) == 2
        assert all(len(c) <= 1500 for c in chunks[:-1])
        assert " ".join(chunks) == text
        assert chunks[-1].endswith("word374")

    def test_words_are_never_split(self) -> None:
        text = " ".join(f"token{i:04d}" for i in range(600))
        chunks = TextChunker(overlap=0).chunk(text)

        produced = " ".join(chunks).split()
        assert produced == text.split()


class TestOversizeBuffer:
    def test_short_buffer_absorbing_long_sentence_is_word_packed(self) -> None:
        sentences = [_sentence(700), _sentence(900), _sentence(400)]
        text = " ".join(sentences)

        chunks = TextChunker(overlap=0).chunk(text)

        # 700 + 900 overflows max and is word-packed; the 400 tail is then
        # below min and glued back on, so max is not re-enforced.
        assert chunks == [text]
        assert len(chunks[0]) == 2002

    def test_sentence_longer_than_max_is_split_by_words(self) -> None:
        sentences = [_sentence(900), _sentence(2000), _sentence(900)]
        text = " ".join(sentences)

        chunks = TextChunker(overlap=0).chunk(text)

        assert len(chunks) == 3
        assert chunks[0] == sentences[0]
        assert 800 <= len(chunks[1]) <= 1500
        assert sentences[1].startswith(chunks[1])
        assert chunks[2].endswith(sentences[2])
        assert " ".join(chunks) == text

    def test_word_packing_starts_at_the_short_buffer(self) -> None:
        sentences = [_sentence(300), _sentence(2000)]
        text = " ".join(sentences)

        chunks = TextChunker(overlap=0).chunk(text)

        assert chunks[0].startswith(sentences[0])
        assert len(chunks[0]) <= 1500
        assert " ".join(chunks) == text


class TestOverlap:
    def test_each_chunk_starts_with_tail_words_of_previous(self) -> None:
        chunks = TextChunker(overlap=5).chunk(_prose(40))

        assert len(chunks) == 4
        for chunk in chunks[1:]:
            assert chunk.startswith("the product roadmap in detail. Sentence number")
        assert chunks[1].startswith("the product roadmap in detail. Sentence number 10")

    def test_overlap_does_not_compound(self) -> None:
        chunker = TextChunker(overlap=5)
        chunks = chunker.chunk(_prose(40))
        plain = TextChunker(overlap=0).chunk(_prose(40))

        for overlapped, original in zip(chunks[1:], plain[1:], strict=True):
            assert len(overlapped) == len(original) + len("the product roadmap in detail.") + 1

    def test_zero_overlap_preserves_text_order(self) -> None:
        text = _prose(40)
        assert " ".join(TextChunker(overlap=0).chunk(text)) == text


class TestFinalMerge:
    def test_neighbours_below_min_are_merged(self) -> None:
        chunker = TextChunker()
        merged = chunker._merge_small(["a" * 10, "b" * 10, "c" * 900])

        assert merged == [f"{'a' * 10} {'b' * 10}", "c" * 900]

    def test_neighbours_at_min_are_kept_apart(self) -> None:
        chunker = TextChunker(min_size=800)
        assert chunker._merge_small(["a" * 400, "b" * 400]) == ["a" * 400, "b" * 400]


class TestDeterminism:
    def test_same_input_same_output(self, long_text: str) -> None:
        chunker = TextChunker()
        assert chunker.chunk(long_text) == chunker.chunk(long_text)

    def test_chunk_text_matches_chunker(self, long_text: str) -> None:
        assert chunk_text(long_text, overlap=20) == TextChunker(overlap=20).chunk(long_text)


class TestConfiguration:
    @pytest.mark.parametrize(
        ("target", "minimum", "maximum"),
        [(1200, 1300, 1500), (1600, 800, 1500), (1200, 0, 1500)],
    )
    def test_invalid_sizes_raise_config_error(
        self, target: int, minimum: int, maximum: int
    ) -> None:
        with pytest.raises(ConfigError):
            TextChunker(target_size=target, min_size=minimum, max_size=maximum)

    def test_negative_overlap_raises_config_error(self) -> None:
        with pytest.raises(ConfigError):
            TextChunker(overlap=-1)

    def test_params(self) -> None:
        assert TextChunker().params == {
            "target_size": 1200,
            "overlap": 200,
            "min_size": 800,
            "max_size": 1500,
        }
