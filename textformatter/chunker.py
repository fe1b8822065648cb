"""Word-bounded text chunking for model context windows.

Text is grouped paragraph by paragraph into chunks of at most `max_words`
words. A paragraph that is too large on its own is split into sentences and
packed greedily. A second pass then merges undersized chunks upward until
each reaches `min_words`, so every request to the model carries enough
context.

Sentence detection is a plain regex over `.`, `!`, `?` and the Arabic `؟`.
Abbreviations ("e.g."), decimals ("3.14") and quoted terminators split like
any other terminator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

MIN_CHUNK_WORDS = 1000
MAX_CHUNK_WORDS = 2000

PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")
# A sentence is a run of non-terminators closed by optional terminators and
# trailing whitespace. The second branch keeps stray terminator runs
# ("...", "?!") so no token is lost between matches.
SENTENCE_RE = re.compile(r"[.!?؟]*[^.!?؟]+[.!?؟]*\s*|[.!?؟]+\s*")

PARAGRAPH_SEP = "\n\n"


@dataclass(frozen=True)
class ChunkingOptions:
    """Thresholds and passes used by split_text_into_chunks."""

    min_words: int = MIN_CHUNK_WORDS
    max_words: int = MAX_CHUNK_WORDS
    # Break paragraphs larger than max_words into sentence packs
    split_sentences: bool = True
    # Merge chunks smaller than min_words into their neighbours
    merge_small: bool = True


FORMAT_CHUNKING = ChunkingOptions()
FLASHCARD_CHUNKING = ChunkingOptions(min_words=0, max_words=1500, split_sentences=False, merge_small=False)


def word_count(text: str) -> int:
    """Number of whitespace-delimited, non-empty tokens in `text`."""
    return len(text.split())


def split_paragraphs(text: str) -> List[str]:
    """Paragraphs separated by two or more newlines; blank ones are dropped."""
    return [p for p in PARAGRAPH_SPLIT_RE.split(text) if p.strip()]


def split_sentences(paragraph: str) -> List[str]:
    """Sentences of `paragraph`; the whole paragraph when none are found."""
    return SENTENCE_RE.findall(paragraph) or [paragraph]


def _pack_sentences(paragraph: str, max_words: int) -> List[str]:
    chunks: List[str] = []
    buf = ""
    buf_words = 0
    for sentence in split_sentences(paragraph):
        sentence = sentence.strip()
        n = word_count(sentence)
        if buf_words + n > max_words:
            if buf:
                chunks.append(buf.strip())
            buf, buf_words = sentence, n
        else:
            buf = (buf + " " + sentence) if buf else sentence
            buf_words += n
    if buf.strip():
        chunks.append(buf.strip())
    return chunks


def _initial_chunks(text: str, opts: ChunkingOptions) -> List[str]:
    chunks: List[str] = []
    current = ""
    current_words = 0
    for paragraph in split_paragraphs(text):
        n = word_count(paragraph)
        if opts.split_sentences and n > opts.max_words:
            if current.strip():
                chunks.append(current.strip())
            current, current_words = "", 0
            chunks.extend(_pack_sentences(paragraph, opts.max_words))
            continue

        if current_words + n > opts.max_words:
            if current.strip():
                chunks.append(current.strip())
            current, current_words = paragraph, n
        else:
            current = (current + PARAGRAPH_SEP + paragraph) if current else paragraph
            current_words += n
    if current.strip():
        chunks.append(current.strip())
    return chunks


def _merge_small_chunks(chunks: List[str], opts: ChunkingOptions) -> List[str]:
    merged: List[str] = []
    buf = ""
    for chunk in chunks:
        buf = (buf + PARAGRAPH_SEP + chunk) if buf else chunk
        if word_count(buf) >= opts.min_words:
            merged.append(buf)
            buf = ""

    if buf.strip():
        leftover = word_count(buf)
        if (
            merged
            and leftover < opts.min_words / 2
            and word_count(merged[-1]) + leftover <= opts.max_words
        ):
            merged[-1] = merged[-1] + PARAGRAPH_SEP + buf
        else:
            merged.append(buf)

    return [c for c in merged if c.strip()]


def split_text_into_chunks(text: str, options: ChunkingOptions = FORMAT_CHUNKING) -> List[str]:
    """Split `text` into an ordered list of chunks sized for one model request.

    Text at or under `options.max_words` comes back unchanged as a single
    chunk (this includes the empty string). Longer text is partitioned on
    paragraph boundaries and, when enabled, undersized chunks are merged.
    Words are never dropped, added or reordered; only the separators between
    them may change.
    """
    if word_count(text) <= options.max_words:
        return [text]

    chunks = _initial_chunks(text, options)
    if not options.merge_small or len(chunks) <= 1:
        return chunks
    return _merge_small_chunks(chunks, options)
