#!/usr/bin/env python3
import argparse
import sys
import traceback
from pathlib import Path
from typing import Dict, List, Optional

from aiadapters.base import LLMAdapter, LLMError
from aiadapters.factory import create_llm_adapter

from textformatter.chunker import ChunkingOptions
from textformatter.config_loader import chunking_options_from_config, load_effective_config
from textformatter.flashcards import filter_flashcards, flashcards_to_json, render_flashcards_html
from textformatter.logging_helper import log_debug, log_error, log_info, log_warn, set_log_level
from textformatter.prompt_builder import FONTS, LANGUAGES, StyleOptions
from textformatter.service import (
    FormatterError,
    format_document,
    generate_flashcards_from_html,
    improve_text,
    translate_html,
)
from textformatter.text_stats import compute_text_stats, format_duration

PROJECT_ROOT = Path(__file__).parent.parent


def load_text(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read()


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _request_delay(cfg: Dict, override: Optional[float]) -> float:
    if override is not None:
        return max(0.0, float(override))
    llm = cfg.get("llm") if isinstance(cfg.get("llm"), dict) else {}
    try:
        return max(0.0, float(llm.get("request_delay_seconds", 0) or 0))
    except (TypeError, ValueError):
        log_warn("llm.request_delay_seconds is not a number; using 0")
        return 0.0


def _style_from(cfg: Dict, args: argparse.Namespace) -> StyleOptions:
    style = cfg.get("style") if isinstance(cfg.get("style"), dict) else {}
    base = StyleOptions()
    return StyleOptions(
        background_color=args.bg_color or style.get("background_color") or base.background_color,
        text_color=args.text_color or style.get("text_color") or base.text_color,
        heading_color=args.heading_color or style.get("heading_color") or base.heading_color,
        font_family=args.font or style.get("font_family") or base.font_family,
        line_height=float(args.line_height or style.get("line_height") or base.line_height),
    )


def _progress(current: int, total: int) -> None:
    log_debug(f"progress {current}/{total}")


def cmd_format(args: argparse.Namespace, cfg: Dict, adapter: LLMAdapter) -> int:
    text = load_text(args.input)
    if not text.strip():
        log_error("input file is empty after trimming whitespace.")
        return 1
    lang = args.lang or cfg.get("output_language") or "ar"
    mode = args.mode or cfg.get("processing_mode") or "speed"
    options: ChunkingOptions = chunking_options_from_config(cfg, "format")
    html = format_document(
        adapter,
        text,
        style=_style_from(cfg, args),
        output_language=lang,
        mode=mode,
        options=options,
        request_delay=_request_delay(cfg, args.request_delay),
        on_progress=_progress,
    )
    out = Path(args.outdir) / f"page_{lang}.html"
    write_text(out, html)
    log_info(f"Done. HTML: {out}")
    return 0


def cmd_translate(args: argparse.Namespace, cfg: Dict, adapter: LLMAdapter) -> int:
    html = load_text(args.input)
    if not html.strip():
        log_error("input file is empty after trimming whitespace.")
        return 1
    source = args.source or cfg.get("output_language") or "ar"
    target = args.to or ("en" if source == "ar" else "ar")
    translated = "".join(translate_html(adapter, html, target))
    out = Path(args.outdir) / f"page_{target}.html"
    write_text(out, translated)
    log_info(f"Done. Translated HTML: {out}")
    return 0


def cmd_improve(args: argparse.Namespace, cfg: Dict, adapter: LLMAdapter) -> int:
    in_path = Path(args.input)
    text = load_text(str(in_path))
    improved = "".join(improve_text(adapter, text))
    out = Path(args.outdir) / f"{in_path.stem}_improved.txt"
    write_text(out, improved)
    log_info(f"Done. Improved text: {out}")
    return 0


def cmd_flashcards(args: argparse.Namespace, cfg: Dict, adapter: LLMAdapter) -> int:
    html = load_text(args.input)
    cards = generate_flashcards_from_html(
        adapter,
        html,
        options=chunking_options_from_config(cfg, "flashcards"),
        request_delay=_request_delay(cfg, args.request_delay),
        on_progress=_progress,
    )
    if not cards:
        log_error("No flashcards could be generated from this text. Try again with different text.")
        return 1
    cards = filter_flashcards(cards, difficulty=args.difficulty)
    outdir = Path(args.outdir)
    write_text(outdir / "flashcards.html", render_flashcards_html(cards))
    write_text(outdir / "flashcards.json", flashcards_to_json(cards))
    log_info(f"Done. {len(cards)} flashcard(s): {outdir / 'flashcards.html'}")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    stats = compute_text_stats(load_text(args.input))
    rows: List[tuple] = [
        ("Words", stats.words),
        ("Characters", stats.characters),
        ("Sentences", stats.sentences),
        ("Paragraphs", stats.paragraphs),
        ("Reading time", format_duration(stats.reading_seconds)),
        ("Speaking time", format_duration(stats.speaking_seconds)),
        ("Characters (no spaces)", stats.characters_no_spaces),
        ("Unique words", stats.unique_words),
    ]
    for label, value in rows:
        print(f"{label}: {value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description=(
            "Turn plain text into a styled HTML page, translate it, and derive study flashcards. "
            "Long input is split into word-bounded chunks and the generated pages are merged."
        )
    )
    ap.add_argument("--config-dir", default=str(PROJECT_ROOT), help="Directory holding config.default.yaml / config.yaml")
    ap.add_argument("--llm-provider", default=None, help="Override LLM provider: gemini|openai|dummy")
    ap.add_argument("--debug", action="store_true", help="Enable debug logging (no full prompts/responses)")
    ap.add_argument("--trace", action="store_true", help="Enable trace logging: print full prompts and responses (large, sensitive)")
    sub = ap.add_subparsers(dest="command", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--input", required=True, help="Input file")
        p.add_argument("--outdir", default="output", help="Output directory")

    p = sub.add_parser("format", help="Format plain text into an HTML page")
    _common(p)
    p.add_argument("--lang", choices=LANGUAGES, help="Output language")
    p.add_argument("--mode", choices=["speed", "quality"], help="Processing mode")
    p.add_argument("--font", choices=sorted(FONTS), help="Font family")
    p.add_argument("--line-height", type=float, default=None)
    p.add_argument("--heading-color", default=None)
    p.add_argument("--bg-color", default=None)
    p.add_argument("--text-color", default=None)
    p.add_argument("--request-delay", type=float, default=None, help="Delay in seconds between chunk requests")

    p = sub.add_parser("translate", help="Translate an HTML page")
    _common(p)
    p.add_argument("--source", choices=LANGUAGES, help="Current page language (default: config output_language)")
    p.add_argument("--to", choices=LANGUAGES, help="Target language (default: the other language)")

    p = sub.add_parser("improve", help="Rewrite chemical formulas and exponents with Unicode sub/superscripts")
    _common(p)

    p = sub.add_parser("flashcards", help="Generate flashcards from an HTML page")
    _common(p)
    p.add_argument("--difficulty", choices=["all", "easy", "medium", "hard"], default="all")
    p.add_argument("--request-delay", type=float, default=None, help="Delay in seconds between chunk requests")

    p = sub.add_parser("stats", help="Print text statistics")
    p.add_argument("--input", required=True, help="Input file")
    return ap


COMMANDS = {
    "format": cmd_format,
    "translate": cmd_translate,
    "improve": cmd_improve,
    "flashcards": cmd_flashcards,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "stats":
        return cmd_stats(args)

    try:
        cfg, has_local = load_effective_config(Path(args.config_dir))
    except (OSError, ValueError) as e:
        log_error(f"Failed to load config: {e}")
        return 2

    level = cfg.get("logging", {}).get("level", "info") if isinstance(cfg.get("logging"), dict) else "info"
    if args.debug:
        level = "debug"
    if args.trace:
        level = "trace"
    set_log_level(level)
    if not has_local:
        log_debug("config.yaml not found; using only config.default.yaml")

    try:
        adapter = create_llm_adapter(cfg, provider_override=args.llm_provider, project_root=Path(args.config_dir))
        log_debug(f"Using LLM adapter: {adapter.name()}")
    except (LLMError, ValueError) as e:
        log_error(f"Failed to initialize LLM adapter: {e}")
        return 1

    try:
        return COMMANDS[args.command](args, cfg, adapter)
    except (FormatterError, LLMError) as e:
        log_error(str(e))
        if level in ("debug", "trace"):
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
