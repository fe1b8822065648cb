"""Plain text to styled HTML pages, translation and study flashcards.

The chunker and merger are pure functions; everything model-backed lives in
`textformatter.service` and talks to providers through `aiadapters`.
"""

from .chunker import (
    FLASHCARD_CHUNKING,
    FORMAT_CHUNKING,
    MAX_CHUNK_WORDS,
    MIN_CHUNK_WORDS,
    ChunkingOptions,
    split_text_into_chunks,
    word_count,
)
from .merger import merge_html_chunks

__all__ = [
    "FLASHCARD_CHUNKING",
    "FORMAT_CHUNKING",
    "MAX_CHUNK_WORDS",
    "MIN_CHUNK_WORDS",
    "ChunkingOptions",
    "split_text_into_chunks",
    "word_count",
    "merge_html_chunks",
]
