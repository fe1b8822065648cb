from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

PROMPTS_DIR = Path(__file__).parent / "prompts"

LANGUAGES = ("ar", "en")

# Font family -> Google Fonts css2 family spec
FONTS: Dict[str, str] = {
    "Tajawal": "Tajawal:wght@400;500;700",
    "Cairo": "Cairo:wght@400;500;700",
    "Noto Sans Arabic": "Noto Sans Arabic:wght@400;500;700",
    "Amiri": "Amiri:wght@400;700",
}
DEFAULT_FONT = "Tajawal"


@dataclass(frozen=True)
class StyleOptions:
    background_color: str = "#ffffff"
    text_color: str = "#000000"
    heading_color: str = "#0d6efd"
    font_family: str = DEFAULT_FONT
    line_height: float = 1.8


def direction_for(language: str) -> str:
    return "rtl" if language == "ar" else "ltr"


def load_template(name: str) -> str:
    with open(PROMPTS_DIR / name, "r", encoding="utf-8") as f:
        return f.read()


def _messages(system_prompt: str, text: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": text},
    ]


def build_format_prompt(style: StyleOptions, output_language: str) -> str:
    font_name = style.font_family if style.font_family in FONTS else DEFAULT_FONT
    return load_template("format_template.md").format(
        OUTPUT_LANGUAGE=output_language,
        FONT_LINK=FONTS[font_name].replace(" ", "+"),
        FONT_NAME=font_name,
        LINE_HEIGHT=style.line_height,
        TEXT_COLOR=style.text_color,
        BACKGROUND_COLOR=style.background_color,
        HEADING_COLOR=style.heading_color,
        DIRECTION=direction_for(output_language),
    )


def build_translate_prompt(target_language: str) -> str:
    return load_template("translate_template.md").format(
        TARGET_LANGUAGE=target_language,
        DIRECTION=direction_for(target_language),
    )


def format_messages(text: str, style: StyleOptions, output_language: str) -> List[Dict[str, str]]:
    return _messages(build_format_prompt(style, output_language), text)


def translate_messages(html: str, target_language: str) -> List[Dict[str, str]]:
    return _messages(build_translate_prompt(target_language), html)


def improve_messages(text: str) -> List[Dict[str, str]]:
    return _messages(load_template("improve_template.md"), text)


def flashcard_messages(text: str) -> List[Dict[str, str]]:
    return _messages(load_template("flashcards_template.md"), text)
