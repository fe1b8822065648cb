from __future__ import annotations

import os
from typing import Any, Dict, Iterator, List, Optional

from textformatter.logging_helper import log_debug

from .base import (
    LLMAdapter,
    LLMAuthError,
    LLMUnknownError,
    Message,
    classify_provider_error,
)


class OpenAIAdapter(LLMAdapter):
    """OpenAI adapter wrapping the `openai` Python SDK (responses API).

    Expects OPENAI_API_KEY to be present in environment (or configured via the SDK).
    """

    def __init__(
        self,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        quality_model: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, temperature=temperature, top_p=top_p, quality_model=quality_model)
        # Lazy import so that other providers can be used without installing openai
        try:
            from openai import OpenAI  # type: ignore
        except Exception as e:  # pragma: no cover - import error path
            raise LLMUnknownError(f"OpenAI SDK import failed: {e}")
        # OpenAI() itself raises without a key; surface the clearer error first
        self.validate_environment()
        self._client = OpenAI()

    def name(self) -> str:
        return "openai"

    def validate_environment(self) -> None:
        if not os.environ.get("OPENAI_API_KEY"):
            raise LLMAuthError("Missing OPENAI_API_KEY in environment (expected via .env or shell env)")

    def _build_params(self, messages: List[Message], model: Optional[str], temperature: Optional[float], top_p: Optional[float]) -> Dict[str, Any]:
        sys_msgs = [m for m in messages if m.get("role") == "system"]
        other_msgs = [m for m in messages if m.get("role") != "system"]
        input_msgs = [{"role": m.get("role", "user"), "content": m.get("content", "")} for m in sys_msgs + other_msgs]
        params: Dict[str, Any] = {
            "model": (model or self.model),
            "input": input_msgs,
        }
        eff_temperature = self.temperature if temperature is None else temperature
        if eff_temperature is not None:
            params["temperature"] = eff_temperature
        eff_top_p = self.top_p if top_p is None else top_p
        if eff_top_p is not None:
            params["top_p"] = eff_top_p
        return params

    def _log_request(self, params: Dict[str, Any], label: Optional[str]) -> None:
        log_debug(
            f"{self.name()} request" + (f" [{label}]" if label else "")
            + f" | model={params.get('model')} | temperature={params.get('temperature')}"
            + f" | top_p={params.get('top_p')} | messages={len(params.get('input', []))}"
        )

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
        params = self._build_params(messages, model, temperature, top_p)
        if debug:
            self._log_request(params, label)
        try:
            resp = self._client.responses.create(**params)
            return getattr(resp, "output_text", "") or ""
        except Exception as e:
            mapped = classify_provider_error(e, {LLMAuthError: ("invalid_api_key",)})
            if debug:
                log_debug(f"{self.name()} error mapped to {type(mapped).__name__}")
            raise mapped from e

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
        params = self._build_params(messages, model, temperature, top_p)
        if debug:
            self._log_request(params, label)
        try:
            stream = self._client.responses.create(stream=True, **params)
            for event in stream:
                if getattr(event, "type", "") == "response.output_text.delta":
                    delta = getattr(event, "delta", "") or ""
                    if delta:
                        yield delta
        except Exception as e:
            raise classify_provider_error(e, {LLMAuthError: ("invalid_api_key",)}) from e

    def generate_json(
        self,
        messages: List[Message],
        *,
        schema: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
        debug: bool = False,
        label: Optional[str] = None,
    ) -> str:
        params = self._build_params(messages, model, None, None)
        if schema is not None:
            # Structured outputs require an object at the root; arrays go under "items".
            root = schema
            if schema.get("type") == "array":
                root = {"type": "object", "properties": {"items": schema}, "required": ["items"]}
            params["text"] = {"format": {"type": "json_schema", "name": "response", "schema": root, "strict": False}}
        else:
            params["text"] = {"format": {"type": "json_object"}}
        if debug:
            self._log_request(params, label)
        try:
            resp = self._client.responses.create(**params)
            return getattr(resp, "output_text", "") or ""
        except Exception as e:
            raise classify_provider_error(e, {LLMAuthError: ("invalid_api_key",)}) from e
