from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional, Tuple

from .base import LLMAdapter


def _load_env_file_generic(project_root: Path) -> bool:
    """Load key=value pairs from .env into os.environ.

    - Supports optional 'export ' prefix per line.
    - Keys already present in the environment are left untouched.
    - Returns True if at least one key=value pair was loaded.
    """
    env_path = project_root / ".env"
    if not env_path.exists():
        return False
    loaded_any = False
    try:
        with open(env_path, "r", encoding="utf-8", errors="ignore") as f:
            for raw in f:
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                if line.lower().startswith("export "):
                    line = line[7:].lstrip()
                if "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and v and k not in os.environ:
                    os.environ[k] = v
                    loaded_any = True
    except OSError:
        # unreadable .env: fall back to existing environment
        return loaded_any
    return loaded_any


def _effective_provider_and_config(cfg: Dict, provider_override: Optional[str]) -> Tuple[str, Dict]:
    """Resolve provider name and its config from the global config dict.

    Expects:
      llm:
        provider: gemini|openai|dummy
        gemini: { model, quality_model, temperature, top_p }
        openai: { model, quality_model, temperature, top_p }
    """
    llm_section = cfg.get("llm", {}) if isinstance(cfg.get("llm"), dict) else {}
    provider = (provider_override or llm_section.get("provider") or "gemini").strip().lower()
    provider_cfg = {}
    if isinstance(llm_section.get(provider), dict):
        provider_cfg = dict(llm_section.get(provider) or {})
    return provider, provider_cfg


def create_llm_adapter(cfg: Dict, *, provider_override: Optional[str] = None, project_root: Optional[Path] = None) -> LLMAdapter:
    """Factory returning a configured LLMAdapter based on config and CLI override.

    - Loads .env into process environment (non-destructive for existing vars).
    - Instantiates the appropriate adapter and validates its environment.
    """
    if project_root is not None:
        _load_env_file_generic(project_root)

    provider, p_cfg = _effective_provider_and_config(cfg, provider_override)
    kwargs = {
        "model": p_cfg.get("model"),
        "temperature": p_cfg.get("temperature"),
        "top_p": p_cfg.get("top_p"),
        "quality_model": p_cfg.get("quality_model"),
    }

    if provider == "gemini":
        from .gemini_adapter import GeminiAdapter
        adapter: LLMAdapter = GeminiAdapter(**kwargs)
    elif provider == "openai":
        from .openai_adapter import OpenAIAdapter
        adapter = OpenAIAdapter(**kwargs)
    elif provider == "dummy":
        from .dummy_adapter import DummyAdapter
        adapter = DummyAdapter(**kwargs)
    else:
        raise ValueError(f"Unknown LLM provider '{provider}'. Implement an adapter and register it in the factory.")

    adapter.validate_environment()
    return adapter
