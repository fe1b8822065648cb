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

# Content filtering is left to the caller; the tool formats user text verbatim.
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiAdapter(LLMAdapter):
    """Google Gemini adapter using the `google-generativeai` SDK.

    Expects GOOGLE_API_KEY in the environment. System messages become the
    model's system instruction; the rest is flattened into a single prompt.
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
        try:
            import google.generativeai as genai  # type: ignore
        except Exception as e:  # pragma: no cover
            raise LLMUnknownError(f"Gemini SDK import failed: {e}")
        self._genai = genai
        self.validate_environment()
        self._genai.configure(api_key=os.environ["GOOGLE_API_KEY"])  # type: ignore

    def name(self) -> str:
        return "gemini"

    def validate_environment(self) -> None:
        if not os.environ.get("GOOGLE_API_KEY"):
            raise LLMAuthError("Missing GOOGLE_API_KEY in environment (expected via .env or shell env)")

    def _split_messages(self, messages: List[Message]) -> Dict[str, str]:
        sys_texts = []
        conv_texts = []
        for m in messages:
            role = m.get("role", "user")
            content = m.get("content", "")
            if not content:
                continue
            if role == "system":
                sys_texts.append(content)
            elif role == "user":
                conv_texts.append(content)
            else:
                conv_texts.append(f"{role.upper()}: {content}")
        return {
            "system_instruction": "\n\n".join(sys_texts).strip(),
            "conversation": "\n\n".join(conv_texts).strip(),
        }

    def _generation_config(self, temperature: Optional[float], top_p: Optional[float]) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        elif self.temperature is not None:
            generation_config["temperature"] = self.temperature
        if top_p is not None:
            generation_config["top_p"] = top_p
        elif self.top_p is not None:
            generation_config["top_p"] = self.top_p
        return generation_config

    def _model_obj(self, model_name: str, system_instruction: Optional[str]):
        if system_instruction:
            return self._genai.GenerativeModel(model_name, system_instruction=system_instruction)
        return self._genai.GenerativeModel(model_name)

    def _log_request(self, model_name: str, generation_config: Dict[str, Any], prompt: str, label: Optional[str]) -> None:
        log_debug(
            f"{self.name()} request" + (f" [{label}]" if label else "")
            + f" | model={model_name} | temperature={generation_config.get('temperature')}"
            + f" | top_p={generation_config.get('top_p')} | prompt chars={len(prompt)}"
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
        split = self._split_messages(messages)
        model_name = model or self.model or DEFAULT_MODEL
        generation_config = self._generation_config(temperature, top_p)
        if debug:
            self._log_request(model_name, generation_config, split["conversation"], label)
        try:
            model_obj = self._model_obj(model_name, split["system_instruction"] or None)
            resp = model_obj.generate_content(
                split["conversation"],
                generation_config=generation_config or None,
                safety_settings=SAFETY_SETTINGS,
            )
            # google-generativeai returns .text for aggregated text
            return getattr(resp, "text", "") or ""
        except Exception as e:
            mapped = classify_provider_error(e)
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
        split = self._split_messages(messages)
        model_name = model or self.model or DEFAULT_MODEL
        generation_config = self._generation_config(temperature, top_p)
        if debug:
            self._log_request(model_name, generation_config, split["conversation"], label)
        try:
            model_obj = self._model_obj(model_name, split["system_instruction"] or None)
            stream = model_obj.generate_content(
                split["conversation"],
                generation_config=generation_config or None,
                safety_settings=SAFETY_SETTINGS,
                stream=True,
            )
            for part in stream:
                # The first parts can be empty while safety checks run.
                text = getattr(part, "text", "") or ""
                if text:
                    yield text
        except Exception as e:
            mapped = classify_provider_error(e)
            if debug:
                log_debug(f"{self.name()} stream error mapped to {type(mapped).__name__}")
            raise mapped from e

    def generate_json(
        self,
        messages: List[Message],
        *,
        schema: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
        debug: bool = False,
        label: Optional[str] = None,
    ) -> str:
        split = self._split_messages(messages)
        model_name = model or self.model or DEFAULT_MODEL
        generation_config = self._generation_config(None, None)
        generation_config["response_mime_type"] = "application/json"
        if schema is not None:
            generation_config["response_schema"] = schema
        if debug:
            self._log_request(model_name, generation_config, split["conversation"], label)
        try:
            model_obj = self._model_obj(model_name, split["system_instruction"] or None)
            resp = model_obj.generate_content(
                split["conversation"],
                generation_config=generation_config,
                safety_settings=SAFETY_SETTINGS,
            )
            return getattr(resp, "text", "") or ""
        except Exception as e:
            raise classify_provider_error(e) from e
