"""Model-backed operations: format, translate, improve and flashcards.

Each operation builds its prompt, calls the adapter and normalizes the
output. Provider failures surface as FormatterError carrying a message fit
for the end user; empty input is never an error.
"""

from __future__ import annotations

import re
import time
from typing import Callable, Iterable, Iterator, List, Optional

from aiadapters.base import LLMAdapter, LLMError, LLMSafetyError

from .chunker import FLASHCARD_CHUNKING, FORMAT_CHUNKING, ChunkingOptions, split_text_into_chunks, word_count
from .flashcards import FLASHCARD_SCHEMA, Flashcard, FlashcardParseError, parse_flashcards
from .html_text import extract_text_from_html
from .logging_helper import is_enabled_for, log_debug, log_info, log_trace_block, log_warn
from .merger import merge_html_chunks
from .prompt_builder import (
    StyleOptions,
    flashcard_messages,
    format_messages,
    improve_messages,
    translate_messages,
)

ProgressCallback = Callable[[int, int], None]

_FENCE_OPEN_RE = re.compile(r"^\s*```[A-Za-z]*[ \t]*\n")
_FENCE_CLOSE_RE = re.compile(r"\s*```\s*$")
# What a response may start with before an opening fence can be ruled in or out
_FENCE_PARTIAL_RE = re.compile(r"`{0,3}|```[A-Za-z]*[ \t]*")

SAFETY_MESSAGE = "Generation was blocked by content safety filters. Please review the input text."


class FormatterError(Exception):
    """A model-backed operation failed; str() is the user-facing message."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


def _wrap_error(operation: str, exc: Exception) -> FormatterError:
    if isinstance(exc, LLMSafetyError):
        return FormatterError(operation, SAFETY_MESSAGE)
    return FormatterError(operation, f"Failed to {operation} text. Details: {exc}")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang line and a trailing ``` from a model response."""
    return _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", text, count=1))


def _strip_fences_stream(pieces: Iterable[str]) -> Iterator[str]:
    """Streaming counterpart of strip_code_fences.

    The concatenated output equals strip_code_fences of the concatenated input.
    A trailing run of backticks and whitespace is held back until more text
    arrives or the stream ends.
    """
    buf = ""
    head_done = False
    for piece in pieces:
        buf += piece
        if not head_done:
            if _FENCE_PARTIAL_RE.fullmatch(buf.lstrip()):
                continue
            buf = _FENCE_OPEN_RE.sub("", buf, count=1)
            head_done = True
        cut = len(buf.rstrip("` \t\r\n"))
        if cut:
            yield buf[:cut]
            buf = buf[cut:]
    if not head_done:
        buf = _FENCE_OPEN_RE.sub("", buf, count=1)
    tail = _FENCE_CLOSE_RE.sub("", buf)
    if tail:
        yield tail


def _stream(operation: str, adapter: LLMAdapter, messages, *, model: Optional[str], label: Optional[str]) -> Iterator[str]:
    log_trace_block(f"{operation} request" + (f" [{label}]" if label else ""), messages[-1]["content"])
    try:
        yield from _strip_fences_stream(
            adapter.generate_stream(messages, model=model, debug=is_enabled_for("debug"), label=label)
        )
    except LLMError as e:
        raise _wrap_error(operation, e) from e


def format_text(
    adapter: LLMAdapter,
    text: str,
    *,
    style: Optional[StyleOptions] = None,
    output_language: str = "ar",
    mode: str = "speed",
    label: Optional[str] = None,
) -> Iterator[str]:
    """Stream an HTML document for `text`. Yields nothing for blank input."""
    if not text.strip():
        return
    messages = format_messages(text, style or StyleOptions(), output_language)
    yield from _stream("format", adapter, messages, model=adapter.model_for_mode(mode), label=label)


def format_document(
    adapter: LLMAdapter,
    text: str,
    *,
    style: Optional[StyleOptions] = None,
    output_language: str = "ar",
    mode: str = "speed",
    options: ChunkingOptions = FORMAT_CHUNKING,
    request_delay: float = 0.0,
    on_progress: Optional[ProgressCallback] = None,
) -> str:
    """Format text of any length into a single HTML document.

    Long text is chunked, each chunk formatted separately and the resulting
    documents merged. Text that fits in one chunk is returned as generated.
    """
    if not text.strip():
        return ""
    chunks = split_text_into_chunks(text, options)
    total = len(chunks)
    log_info(f"Prepared {total} chunk(s) from {word_count(text)} words.")

    if total == 1:
        return "".join(format_text(adapter, chunks[0], style=style, output_language=output_language, mode=mode))

    fragments: List[str] = []
    for idx, chunk in enumerate(chunks, 1):
        if on_progress is not None:
            on_progress(idx, total)
        if request_delay > 0 and idx > 1:
            time.sleep(request_delay)
        log_info(f"[{idx}/{total}] Formatting {word_count(chunk)} words…")
        fragment = "".join(
            format_text(
                adapter, chunk, style=style, output_language=output_language, mode=mode,
                label=f"chunk {idx}/{total}",
            )
        )
        log_debug(f"chunk {idx}/{total}: {len(fragment)} chars of HTML")
        fragments.append(fragment)
    return merge_html_chunks(fragments)


def translate_html(adapter: LLMAdapter, html: str, target_language: str) -> Iterator[str]:
    """Stream `html` with its visible text translated to `target_language`."""
    if not html.strip():
        return
    yield from _stream("translate", adapter, translate_messages(html, target_language), model=None, label=target_language)


def improve_text(adapter: LLMAdapter, text: str) -> Iterator[str]:
    """Stream `text` with chemical formulas and exponents rewritten in Unicode sub/superscripts."""
    if not text.strip():
        return
    messages = improve_messages(text)
    log_trace_block("improve request", text)
    try:
        for piece in adapter.generate_stream(messages, debug=is_enabled_for("debug"), label="improve"):
            yield piece
    except LLMError as e:
        raise _wrap_error("improve", e) from e


def generate_flashcards_from_text(adapter: LLMAdapter, text: str, *, id_prefix: str = "", label: Optional[str] = None) -> List[Flashcard]:
    if not text.strip():
        return []
    try:
        raw = adapter.generate_json(flashcard_messages(text), schema=FLASHCARD_SCHEMA, debug=is_enabled_for("debug"), label=label)
    except LLMError as e:
        raise _wrap_error("generate flashcards from", e) from e
    log_trace_block("flashcards response", raw)
    try:
        return parse_flashcards(raw, id_prefix=id_prefix)
    except FlashcardParseError as e:
        raise FormatterError("generate flashcards from", f"Failed to generate flashcards. Details: {e}") from e


def generate_flashcards_from_html(
    adapter: LLMAdapter,
    html: str,
    *,
    options: ChunkingOptions = FLASHCARD_CHUNKING,
    request_delay: float = 0.0,
    on_progress: Optional[ProgressCallback] = None,
) -> List[Flashcard]:
    """Flashcards covering the visible text of `html`, chunk by chunk.

    Card ids are '<chunk>-<index>' so they stay unique across chunks.
    """
    text = extract_text_from_html(html)
    if not text.strip():
        return []
    chunks = split_text_into_chunks(text, options)
    total = len(chunks)
    cards: List[Flashcard] = []
    for idx, chunk in enumerate(chunks, 1):
        if on_progress is not None:
            on_progress(idx, total)
        if request_delay > 0 and idx > 1:
            time.sleep(request_delay)
        chunk_cards = generate_flashcards_from_text(adapter, chunk, id_prefix=str(idx), label=f"chunk {idx}/{total}")
        log_info(f"[{idx}/{total}] {len(chunk_cards)} flashcard(s)")
        cards.extend(chunk_cards)
    if not cards:
        log_warn("No flashcards could be generated from this text.")
    return cards
