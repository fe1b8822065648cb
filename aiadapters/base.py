from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Optional, Type


class LLMError(Exception):
    """Base error for LLM providers."""


class LLMRateLimitError(LLMError):
    """Provider reported rate limiting or quota exhaustion."""


class LLMAuthError(LLMError):
    """Authentication or authorization failed (e.g., missing/invalid API key)."""


class LLMConnectionError(LLMError):
    """Transport-level errors (network, timeouts, transient failures)."""


class LLMSafetyError(LLMError):
    """The provider refused the request or response on content-safety grounds."""


class LLMUnknownError(LLMError):
    """Unexpected/unknown provider error."""


Message = Dict[str, str]

# Checked in order: the first category whose keyword appears in the lowercased
# provider message wins.
_SAFETY_KEYS = ("safety", "blocked", "prohibited_content", "blockedprompt", "stopcandidate")
_RATE_KEYS = ("rate limit", "429", "resourceexhausted", "too many requests", "retry in", "retry_delay", "retry_after")
_CONN_KEYS = ("deadline exceeded", "timeout", "temporarily unavailable", "connection", "unavailable", "dns")
_AUTH_KEYS = (
    "unauthenticated", "unauthorized", "invalid api key", "api key not valid", "401", "permission", "forbidden",
    "payment required", "insufficient_quota", "insufficient quota", "insufficient funds", "billing", "subscription",
)


def classify_provider_error(exc: BaseException, extra_keys: Optional[Dict[Type[LLMError], Iterable[str]]] = None) -> LLMError:
    """Map an SDK exception onto the LLMError taxonomy by message keywords.

    Unknown messages map to LLMUnknownError (non-retriable by default).
    """
    if isinstance(exc, LLMError):
        return exc
    err = f"{type(exc).__name__} {exc}".lower()
    table: List[tuple] = [
        (LLMSafetyError, _SAFETY_KEYS),
        (LLMRateLimitError, _RATE_KEYS),
        (LLMConnectionError, _CONN_KEYS),
        (LLMAuthError, _AUTH_KEYS),
    ]
    for cls, keys in table:
        keys = tuple(keys) + tuple((extra_keys or {}).get(cls, ()))
        for k in keys:
            if k in err:
                return cls(str(exc))
    return LLMUnknownError(str(exc))


class LLMAdapter(ABC):
    """Unified interface for LLM providers.

    Adapters translate provider-agnostic inputs (a list of role/content messages)
    into provider-specific API calls and normalize the response into plain text.

    Implementors should:
    - Map message roles and content to the provider API.
    - Apply provider-specific parameters (model, temperature, top_p, etc.).
    - Catch provider SDK exceptions and re-raise as LLMError subclasses.
    - Avoid leaking provider SDK objects to callers.

    Only `generate` is mandatory. Streaming and JSON output fall back to a
    single `generate` call for providers that lack them.
    """

    def __init__(
        self,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        quality_model: Optional[str] = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._top_p = top_p
        self._quality_model = quality_model

    @property
    def model(self) -> Optional[str]:
        return self._model

    @property
    def temperature(self) -> Optional[float]:
        return self._temperature

    @property
    def top_p(self) -> Optional[float]:
        return self._top_p

    def model_for_mode(self, mode: str) -> Optional[str]:
        """Model to use for a processing mode ('speed' or 'quality')."""
        if mode == "quality" and self._quality_model:
            return self._quality_model
        return self._model

    @abstractmethod
    def name(self) -> str:
        """Human-friendly provider name (e.g., 'openai', 'gemini')."""

    @abstractmethod
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
        """Generate text given a list of role/content messages.

        Parameters:
        - messages: [{'role': 'system'|'user'|'assistant', 'content': '...'}, ...]
        - model, temperature, top_p: Optional overrides for this call.
        - debug: When True, adapters may log basic request/response info (avoid sensitive content).
        - label: Optional label for logs (e.g., 'chunk 3/10').

        Returns plain text response.
        """

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
        """Yield the response as successive text pieces.

        Concatenating every yielded piece gives the full response.
        """
        text = self.generate(
            messages, model=model, temperature=temperature, top_p=top_p, debug=debug, label=label
        )
        if text:
            yield text

    def generate_json(
        self,
        messages: List[Message],
        *,
        schema: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
        debug: bool = False,
        label: Optional[str] = None,
    ) -> str:
        """Generate a JSON document (returned as raw text) matching `schema` when the provider supports it."""
        return self.generate(messages, model=model, debug=debug, label=label)

    # Optional: adapters can override to perform per-provider validation or setup.
    def validate_environment(self) -> None:
        """Validate required environment (e.g., API keys). Raise LLMAuthError when missing."""
        return None
