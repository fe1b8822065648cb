from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .chunker import FLASHCARD_CHUNKING, FORMAT_CHUNKING, ChunkingOptions

DEFAULT_CONFIG_NAME = "config.default.yaml"
LOCAL_CONFIG_NAME = "config.yaml"


def _read_yaml_dict(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping: {path}")
    return data


def deep_merge(base: Any, override: Any) -> Any:
    """Merge override onto base.

    - dicts merge recursively
    - lists are replaced whole
    - scalars override
    """
    if isinstance(base, dict) and isinstance(override, dict):
        merged: Dict[str, Any] = dict(base)
        for key, value in override.items():
            merged[key] = deep_merge(base[key], value) if key in base else value
        return merged
    return override


def load_default_and_local(
    base_dir: Path,
    default_name: str = DEFAULT_CONFIG_NAME,
    local_name: str = LOCAL_CONFIG_NAME,
) -> Tuple[Dict[str, Any], Dict[str, Any], bool]:
    default_path = base_dir / default_name
    if not default_path.exists():
        raise FileNotFoundError(f"Missing required config: {default_path}")
    default_cfg = _read_yaml_dict(default_path)

    local_path = base_dir / local_name
    if local_path.exists():
        return default_cfg, _read_yaml_dict(local_path), True
    return default_cfg, {}, False


def load_effective_config(
    base_dir: Path,
    default_name: str = DEFAULT_CONFIG_NAME,
    local_name: str = LOCAL_CONFIG_NAME,
) -> Tuple[Dict[str, Any], bool]:
    default_cfg, local_cfg, has_local = load_default_and_local(
        base_dir, default_name=default_name, local_name=local_name
    )
    return deep_merge(default_cfg, local_cfg), has_local


def chunking_options_from_config(cfg: Dict[str, Any], section: str) -> ChunkingOptions:
    """Build ChunkingOptions for `section` ('format' or 'flashcards') from `chunking.<section>`.

    Missing keys keep the built-in defaults of that section.
    """
    base = FLASHCARD_CHUNKING if section == "flashcards" else FORMAT_CHUNKING
    chunking = cfg.get("chunking") if isinstance(cfg.get("chunking"), dict) else {}
    sec = chunking.get(section) if isinstance(chunking.get(section), dict) else {}
    return ChunkingOptions(
        min_words=int(sec.get("min_words", base.min_words)),
        max_words=int(sec.get("max_words", base.max_words)),
        split_sentences=bool(sec.get("split_sentences", base.split_sentences)),
        merge_small=bool(sec.get("merge_small", base.merge_small)),
    )
