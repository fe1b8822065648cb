from __future__ import annotations

import re
from dataclasses import dataclass

READING_WPM = 238  # average Arabic reading speed
SPEAKING_WPM = 150

SENTENCE_COUNT_RE = re.compile(r"[^.!?؟]+[.!?؟]+")
_PUNCT_RE = re.compile(r"[.,!?;:\"'()]")


@dataclass(frozen=True)
class TextStats:
    words: int
    characters: int
    characters_no_spaces: int
    sentences: int
    paragraphs: int
    unique_words: int
    reading_seconds: int
    speaking_seconds: int


def _seconds_for(words: int, wpm: int) -> int:
    return int(round(words / wpm * 60)) if words else 0


def compute_text_stats(text: str) -> TextStats:
    trimmed = text.strip()
    words = trimmed.split()
    sentences = len(SENTENCE_COUNT_RE.findall(text)) or (1 if trimmed else 0)
    paragraphs = len([p for p in re.split(r"\n+", trimmed) if p.strip()]) if trimmed else 0
    return TextStats(
        words=len(words),
        characters=len(text),
        characters_no_spaces=len(re.sub(r"\s", "", text)),
        sentences=sentences,
        paragraphs=paragraphs,
        unique_words=len({_PUNCT_RE.sub("", w.lower()) for w in words}),
        reading_seconds=_seconds_for(len(words), READING_WPM),
        speaking_seconds=_seconds_for(len(words), SPEAKING_WPM),
    )


def format_duration(seconds: int) -> str:
    """Render seconds as '45s', '3m' or '2m 5s'."""
    if seconds < 60:
        return f"{seconds}s"
    m, s = divmod(seconds, 60)
    return f"{m}m {s}s" if s else f"{m}m"
