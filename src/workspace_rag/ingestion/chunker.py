"""Text chunking strategy — a greedy, character-bounded word packer."""

from __future__ import annotations


def chunk_text(text: str, target_size: int = 300) -> list[str]:
    """Split *text* into fragments of roughly *target_size* characters.

    Whitespace-delimited words are accumulated into a running fragment.
    As soon as the fragment rendered with single spaces reaches
    *target_size* characters it is sealed and a new one is started.
    The trailing partial fragment is always kept.

    Parameters
    ----------
    text:
        Raw document text.
    target_size:
        Character length at which a fragment is sealed.

    Returns
    -------
    list[str]
        Ordered fragments; empty for empty or whitespace-only input.
        A single word longer than *target_size* becomes its own
        fragment untruncated.
    """
    if target_size < 1:
        raise ValueError(f"target_size must be >= 1, got {target_size}")

    chunks: list[str] = []
    current: list[str] = []
    length = 0

    for word in text.split():
        # rendered length grows by the word plus one joining space
        length += len(word) if not current else len(word) + 1
        current.append(word)
        if length >= target_size:
            chunks.append(" ".join(current))
            current = []
            length = 0

    if current:
        chunks.append(" ".join(current))

    return chunks
