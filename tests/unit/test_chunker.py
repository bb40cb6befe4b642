"""Unit tests for the chunker module."""

import pytest

from workspace_rag.ingestion.chunker import chunk_text

SAMPLE = (
    "Refunds are issued within thirty days of purchase. Items must be unused "
    "and in their original packaging. Contact support with your order number "
    "to start a return, and a prepaid label will be emailed to you shortly. "
) * 6


def test_empty_input_yields_no_chunks() -> None:
    assert chunk_text("") == []


def test_whitespace_only_input_yields_no_chunks() -> None:
    assert chunk_text("   \n\t  ") == []


def test_short_text_is_single_chunk() -> None:
    assert chunk_text("Short text.", target_size=300) == ["Short text."]


def test_1200_chars_with_target_300_yields_four_chunks() -> None:
    text = ("word " * 240).strip()  # 1199 chars
    chunks = chunk_text(text, target_size=300)
    assert len(chunks) == 4


def test_chunks_reconstruct_normalised_words() -> None:
    """Joining chunks with single spaces restores the word sequence."""
    text = "  alpha\tbeta\n\ngamma   delta " + SAMPLE
    chunks = chunk_text(text, target_size=50)
    assert " ".join(chunks).split(" ") == text.split()


def test_all_but_last_chunk_reach_target() -> None:
    chunks = chunk_text(SAMPLE, target_size=80)
    assert len(chunks) > 1
    assert all(len(c) >= 80 for c in chunks[:-1])


def test_chunks_seal_as_soon_as_target_reached() -> None:
    """Dropping the last word of any sealed chunk puts it under target."""
    chunks = chunk_text(SAMPLE, target_size=80)
    for c in chunks[:-1]:
        words = c.split(" ")
        if len(words) > 1:
            assert len(" ".join(words[:-1])) < 80


def test_overlong_word_is_its_own_chunk() -> None:
    long_word = "x" * 50
    chunks = chunk_text(f"{long_word} tail", target_size=10)
    assert chunks == [long_word, "tail"]


def test_chunking_is_deterministic() -> None:
    assert chunk_text(SAMPLE, target_size=120) == chunk_text(SAMPLE, target_size=120)


def test_invalid_target_size_raises() -> None:
    with pytest.raises(ValueError, match="target_size"):
        chunk_text("anything", target_size=0)
