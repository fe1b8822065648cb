from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional

from .base import LLMAdapter, Message


class DummyAdapter(LLMAdapter):
    """A minimal offline adapter for demos/tests.

    Echoes back the last user message content. Useful as a template for new
    providers.
    """

    def name(self) -> str:
        return "dummy"

    def _last_content(self, messages: List[Message]) -> str:
        last = ""
        for m in messages:
            if m.get("role") != "system":
                last = m.get("content", last)
        return last

    def generate(
        self,
        messages: List[Message],
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        debug: bool = False,
        label: Optional[str] = None,
    ) -> str:
        return f"[DUMMY:{model or self.model or 'n/a'}] {self._last_content(messages)}"

    def generate_stream(
        self,
        messages: List[Message],
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        debug: bool = False,
        label: Optional[str] = None,
    ) -> Iterator[str]:
        text = self.generate(messages, model=model)
        # Line-sized pieces so callers see more than one delta
        for piece in text.splitlines(keepends=True):
            yield piece

    def generate_json(
        self,
        messages: List[Message],
        *,
        schema: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
        debug: bool = False,
        label: Optional[str] = None,
    ) -> str:
        # One card per non-empty paragraph of the user text
        paragraphs = [p.strip() for p in self._last_content(messages).split("\n\n") if p.strip()]
        cards = [
            {
                "question": f"What does paragraph {i} say?",
                "answer": " ".join(p.split()[:12]),
                "difficulty": "easy",
            }
            for i, p in enumerate(paragraphs, 1)
        ]
        return json.dumps(cards, ensure_ascii=False)
