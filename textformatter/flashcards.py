from __future__ import annotations

import html
import json
import re
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List

from .logging_helper import log_warn

DIFFICULTIES = ("easy", "medium", "hard")
# Export order: hardest first
EXPORT_ORDER = ("hard", "medium", "easy")
DIFFICULTY_LABELS = {"easy": "سهل", "medium": "متوسط", "hard": "صعب"}

FLASHCARD_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "question": {
                "type": "string",
                "description": "A clear, concise question based on a key piece of information from the text.",
            },
            "answer": {
                "type": "string",
                "description": "A direct and brief answer to the corresponding question, taken from the text.",
            },
            "difficulty": {
                "type": "string",
                "description": "The estimated difficulty of the question. Must be one of: 'easy', 'medium', or 'hard'.",
                "enum": list(DIFFICULTIES),
            },
        },
        "required": ["question", "answer", "difficulty"],
    },
}

_JSON_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class FlashcardParseError(ValueError):
    """The model's flashcard output is not a JSON list of records."""


@dataclass(frozen=True)
class Flashcard:
    id: str
    question: str
    answer: str
    difficulty: str = "medium"
    is_done: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _records_from_payload(payload: Any) -> List[Any]:
    if isinstance(payload, list):
        return payload
    # Structured-output providers wrap the array in an object
    if isinstance(payload, dict):
        for key in ("flashcards", "cards", "items"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise FlashcardParseError(f"Expected a JSON array of flashcards, got {type(payload).__name__}")


def parse_flashcards(json_text: str, id_prefix: str = "") -> List[Flashcard]:
    """Parse a model response into Flashcards.

    Empty responses give no cards. Records without a question or answer are
    skipped; an unknown difficulty becomes 'medium'.
    """
    cleaned = _JSON_FENCE_RE.sub("", (json_text or "").strip())
    if not cleaned:
        log_warn("Received empty response for flashcard generation")
        return []
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise FlashcardParseError(f"Flashcard response is not valid JSON: {e}") from e

    cards: List[Flashcard] = []
    for index, rec in enumerate(_records_from_payload(payload)):
        if not isinstance(rec, dict):
            log_warn(f"Skipping flashcard #{index}: not an object")
            continue
        question = str(rec.get("question") or "").strip()
        answer = str(rec.get("answer") or "").strip()
        if not question or not answer:
            log_warn(f"Skipping flashcard #{index}: missing question or answer")
            continue
        difficulty = str(rec.get("difficulty") or "").strip().lower()
        if difficulty not in DIFFICULTIES:
            difficulty = "medium"
        card_id = f"{id_prefix}-{index}" if id_prefix else str(index)
        cards.append(Flashcard(id=card_id, question=question, answer=answer, difficulty=difficulty))
    return cards


def toggle_done(cards: List[Flashcard], card_id: str) -> List[Flashcard]:
    return [replace(c, is_done=not c.is_done) if c.id == card_id else c for c in cards]


def filter_flashcards(cards: List[Flashcard], status: str = "all", difficulty: str = "all") -> List[Flashcard]:
    """Filter by status ('all', 'active', 'done') then by difficulty ('all' or a level)."""
    if status == "active":
        cards = [c for c in cards if not c.is_done]
    elif status == "done":
        cards = [c for c in cards if c.is_done]
    elif status != "all":
        raise ValueError(f"Unknown status filter '{status}'")
    if difficulty == "all":
        return list(cards)
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty filter '{difficulty}'")
    return [c for c in cards if c.difficulty == difficulty]


def group_by_difficulty(cards: List[Flashcard]) -> Dict[str, List[Flashcard]]:
    grouped: Dict[str, List[Flashcard]] = {d: [] for d in DIFFICULTIES}
    for c in cards:
        grouped[c.difficulty].append(c)
    return grouped


_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="ar" dir="rtl">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>البطاقات التعليمية</title>
    <link rel="preconnect" href="https://fonts.googleapis.com">
    <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
    <link href="https://fonts.googleapis.com/css2?family=Tajawal:wght@400;500;700&display=swap" rel="stylesheet">
    <style>
        :root {
            --bg-color: #111827;
            --card-front-bg: #1f2937;
            --card-back-bg: #374151;
            --text-color: #e5e7eb;
            --cyan-color: #22d3ee;
            --yellow-color: #facc15;
            --border-color: #4b5563;
        }
        body { font-family: 'Tajawal', sans-serif; background-color: var(--bg-color); color: var(--text-color); line-height: 1.6; margin: 0; padding: 2rem; }
        h1 { text-align: center; color: var(--cyan-color); }
        h2 { color: var(--yellow-color); border-bottom: 1px solid var(--border-color); padding-bottom: 0.5rem; }
        .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(300px, 1fr)); gap: 1.5rem; }
        .card-container { perspective: 1000px; height: 220px; cursor: pointer; }
        .card-inner { position: relative; width: 100%; height: 100%; transition: transform 0.6s; transform-style: preserve-3d; }
        .card-container.flipped .card-inner { transform: rotateY(180deg); }
        .card-front, .card-back { position: absolute; inset: 0; backface-visibility: hidden; border-radius: 0.75rem; padding: 1.25rem; border: 1px solid var(--border-color); overflow: auto; }
        .card-front { background: var(--card-front-bg); }
        .card-back { background: var(--card-back-bg); transform: rotateY(180deg); }
        .card-label { font-size: 0.8rem; opacity: 0.7; margin: 0 0 0.5rem; }
        .badge { font-size: 0.75rem; padding: 0.1rem 0.6rem; border-radius: 999px; float: left; }
        .badge-easy { background: #166534; }
        .badge-medium { background: #854d0e; }
        .badge-hard { background: #991b1b; }
    </style>
</head>
<body>
__BODY__
    <script>
        document.querySelectorAll('.card-container').forEach(function (card) {
            card.addEventListener('click', function () { card.classList.toggle('flipped'); });
        });
    </script>
</body>
</html>
"""


def _render_card(card: Flashcard) -> str:
    q = html.escape(card.question)
    a = html.escape(card.answer)
    label = DIFFICULTY_LABELS[card.difficulty]
    return (
        f'            <div class="card-container" role="button" tabindex="0" aria-label="بطاقة سؤال: {q}">\n'
        '                <div class="card-inner">\n'
        '                    <div class="card-front">\n'
        f'                        <span class="badge badge-{card.difficulty}">{label}</span>\n'
        '                        <p class="card-label">سؤال</p>\n'
        f'                        <p class="card-text">{q}</p>\n'
        '                    </div>\n'
        '                    <div class="card-back">\n'
        '                        <p class="card-label">إجابة</p>\n'
        f'                        <p class="card-text">{a}</p>\n'
        '                    </div>\n'
        '                </div>\n'
        '            </div>'
    )


def render_flashcards_html(cards: List[Flashcard]) -> str:
    """Standalone page of flip cards grouped hard, medium, easy. Empty groups are omitted."""
    grouped = group_by_difficulty(cards)
    parts = ["    <h1>مجموعة البطاقات التعليمية</h1>"]
    for level in EXPORT_ORDER:
        level_cards = grouped[level]
        if not level_cards:
            continue
        parts.append('    <div class="difficulty-group">')
        parts.append(f"        <h2>{DIFFICULTY_LABELS[level]} ({len(level_cards)})</h2>")
        parts.append('        <div class="grid">')
        parts.extend(_render_card(c) for c in level_cards)
        parts.append("        </div>")
        parts.append("    </div>")
    return _PAGE_TEMPLATE.replace("__BODY__", "\n".join(parts))


def flashcards_to_json(cards: List[Flashcard]) -> str:
    return json.dumps([c.to_dict() for c in cards], ensure_ascii=False, indent=2)
