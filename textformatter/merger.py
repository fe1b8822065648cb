"""Stitch per-chunk HTML documents back into one page."""

from __future__ import annotations

import re
from typing import Sequence

HEAD_RE = re.compile(r"<head>([\s\S]*?)</head>")
BODY_RE = re.compile(r"<body[^>]*>([\s\S]*?)</body>")

DEFAULT_HEAD = '<meta charset="UTF-8"><title>Merged Document</title>'
CHUNK_SEPARATOR = '\n<hr style="border-top: 1px dashed #ccc; margin: 2rem 0;" />\n'


def extract_head(fragment: str) -> str:
    """Inner HTML of the first <head> element, or DEFAULT_HEAD."""
    m = HEAD_RE.search(fragment)
    return m.group(1) if m else DEFAULT_HEAD


def extract_body(fragment: str) -> str:
    """Inner HTML of the first <body> element; the raw fragment when it has none."""
    m = BODY_RE.search(fragment)
    return m.group(1) if m else fragment


def merge_html_chunks(fragments: Sequence[str]) -> str:
    """Merge HTML fragments into a single document.

    The head comes from the first fragment only. Every fragment contributes
    exactly one body section, separated by a dashed rule.
    """
    if not fragments:
        return ""
    head = extract_head(fragments[0])
    bodies = CHUNK_SEPARATOR.join(extract_body(f) for f in fragments)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head>\n{head}\n</head>\n"
        f"<body>\n{bodies}\n</body>\n"
        "</html>"
    ).strip()
