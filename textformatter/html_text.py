from __future__ import annotations

import re

from bs4 import BeautifulSoup

# Elements that end a paragraph in the rendered page
BLOCK_TAGS = [
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
    "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section",
    "table", "tr", "ul",
]

_BLANK_LINES_RE = re.compile(r"\n[ \t\r\f\v]*\n\s*")


def extract_text_from_html(html: str) -> str:
    """Visible text of an HTML document, without <style> and <script> contents.

    Block elements are followed by a blank line so paragraphs survive for the
    chunker. html.parser collapses whitespace-only text between tags to a
    single newline, which would otherwise glue every paragraph together.
    """
    if not html or not html.strip():
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for el in soup(["style", "script"]):
        el.decompose()
    for el in soup.find_all(BLOCK_TAGS):
        el.insert_after("\n\n")
    for el in soup.find_all("br"):
        el.insert_after("\n")
    return _BLANK_LINES_RE.sub("\n\n", soup.get_text()).strip()
