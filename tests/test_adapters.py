import os
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from aiadapters.base import (
    LLMAdapter,
    LLMAuthError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMSafetyError,
    LLMUnknownError,
    classify_provider_error,
)
from aiadapters.dummy_adapter import DummyAdapter
from aiadapters.factory import _load_env_file_generic, create_llm_adapter
from aiadapters.gemini_adapter import SAFETY_SETTINGS, GeminiAdapter
from aiadapters.openai_adapter import OpenAIAdapter

MESSAGES = [
    {"role": "system", "content": "sys"},
    {"role": "user", "content": "hello"},
]


@pytest.mark.parametrize(
    "message, expected",
    [
        ("429 Too Many Requests", LLMRateLimitError),
        ("Resource has been exhausted (ResourceExhausted)", LLMRateLimitError),
        ("Deadline Exceeded", LLMConnectionError),
        ("API key not valid. Please pass a valid API key.", LLMAuthError),
        ("The response was blocked due to SAFETY", LLMSafetyError),
        ("something odd happened", LLMUnknownError),
    ],
)
def test_classify_provider_error(message, expected):
    mapped = classify_provider_error(Exception(message))
    assert type(mapped) is expected
    assert str(mapped) == message


def test_classify_passes_llm_errors_through():
    err = LLMAuthError("already mapped")
    assert classify_provider_error(err) is err


def test_classify_extra_keys():
    mapped = classify_provider_error(Exception("code: invalid_api_key"), {LLMAuthError: ("invalid_api_key",)})
    assert isinstance(mapped, LLMAuthError)


class _GenerateOnly(LLMAdapter):
    def name(self) -> str:
        return "generate-only"

    def generate(self, messages, *, model=None, temperature=None, top_p=None, debug=False, label=None) -> str:
        return f"{model or self.model}:{messages[-1]['content']}"


def test_base_stream_and_json_fall_back_to_generate():
    adapter = _GenerateOnly(model="m")
    assert list(adapter.generate_stream(MESSAGES)) == ["m:hello"]
    assert adapter.generate_json(MESSAGES, schema={"type": "array"}, model="j") == "j:hello"


def test_dummy_stream_matches_generate():
    adapter = DummyAdapter(model="m")
    assert "".join(adapter.generate_stream(MESSAGES)) == adapter.generate(MESSAGES) == "[DUMMY:m] hello"


def test_model_for_mode():
    adapter = DummyAdapter(model="fast", quality_model="slow")
    assert adapter.model_for_mode("speed") == "fast"
    assert adapter.model_for_mode("quality") == "slow"
    assert DummyAdapter(model="fast").model_for_mode("quality") == "fast"


def test_factory_builds_dummy_adapter():
    cfg = {"llm": {"provider": "dummy", "dummy": {"model": "m", "temperature": 0.2}}}
    adapter = create_llm_adapter(cfg)
    assert isinstance(adapter, DummyAdapter)
    assert adapter.model == "m"
    assert adapter.temperature == 0.2


def test_factory_provider_override_and_unknown_provider():
    cfg = {"llm": {"provider": "gemini"}}
    assert create_llm_adapter(cfg, provider_override="DUMMY").name() == "dummy"
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        create_llm_adapter(cfg, provider_override="nope")


def test_factory_gemini_requires_key(monkeypatch, tmp_path):
    monkeypatch.setenv("GOOGLE_API_KEY", "x")
    monkeypatch.delenv("GOOGLE_API_KEY")
    with pytest.raises(LLMError):
        create_llm_adapter({"llm": {"provider": "gemini"}}, project_root=tmp_path)


def test_env_file_loading(monkeypatch, tmp_path):
    monkeypatch.setenv("TF_TEST_NEW", "x")
    monkeypatch.delenv("TF_TEST_NEW")
    monkeypatch.setenv("TF_TEST_KEEP", "keep")
    (tmp_path / ".env").write_text(
        "# comment\nexport TF_TEST_NEW='bar'\nTF_TEST_KEEP=new\nnot a pair\n", encoding="utf-8"
    )

    assert _load_env_file_generic(tmp_path) is True
    assert os.environ["TF_TEST_NEW"] == "bar"
    assert os.environ["TF_TEST_KEEP"] == "keep"


def test_env_file_missing(tmp_path):
    assert _load_env_file_generic(tmp_path) is False


def _gemini(model="gemini-test"):
    adapter = GeminiAdapter.__new__(GeminiAdapter)
    LLMAdapter.__init__(adapter, model=model, temperature=0.3)
    adapter._genai = MagicMock()
    return adapter


def test_gemini_stream_skips_empty_parts():
    adapter = _gemini()
    model_obj = adapter._genai.GenerativeModel.return_value
    model_obj.generate_content.return_value = iter(
        [SimpleNamespace(text=""), SimpleNamespace(text="<p>"), SimpleNamespace(text="x</p>")]
    )

    assert list(adapter.generate_stream(MESSAGES)) == ["<p>", "x</p>"]

    adapter._genai.GenerativeModel.assert_called_once_with("gemini-test", system_instruction="sys")
    args, kwargs = model_obj.generate_content.call_args
    assert args == ("hello",)
    assert kwargs["stream"] is True
    assert kwargs["safety_settings"] == SAFETY_SETTINGS
    assert kwargs["generation_config"] == {"temperature": 0.3}


def test_gemini_json_requests_schema():
    adapter = _gemini()
    model_obj = adapter._genai.GenerativeModel.return_value
    model_obj.generate_content.return_value = SimpleNamespace(text="[]")

    assert adapter.generate_json(MESSAGES, schema={"type": "array"}) == "[]"

    config = model_obj.generate_content.call_args.kwargs["generation_config"]
    assert config["response_mime_type"] == "application/json"
    assert config["response_schema"] == {"type": "array"}


def test_gemini_maps_sdk_errors():
    adapter = _gemini()
    model_obj = adapter._genai.GenerativeModel.return_value
    model_obj.generate_content.side_effect = RuntimeError("429 Resource exhausted")
    with pytest.raises(LLMRateLimitError):
        adapter.generate(MESSAGES)


def _openai(model="gpt-test"):
    adapter = OpenAIAdapter.__new__(OpenAIAdapter)
    LLMAdapter.__init__(adapter, model=model)
    adapter._client = MagicMock()
    return adapter


def test_openai_stream_yields_text_deltas():
    adapter = _openai()
    adapter._client.responses.create.return_value = [
        SimpleNamespace(type="response.created"),
        SimpleNamespace(type="response.output_text.delta", delta="Hel"),
        SimpleNamespace(type="response.output_text.delta", delta="lo"),
        SimpleNamespace(type="response.completed"),
    ]

    assert list(adapter.generate_stream(MESSAGES)) == ["Hel", "lo"]

    kwargs = adapter._client.responses.create.call_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["model"] == "gpt-test"
    assert kwargs["input"][0] == {"role": "system", "content": "sys"}
    assert "temperature" not in kwargs


def test_openai_json_wraps_array_schema():
    adapter = _openai()
    adapter._client.responses.create.return_value = SimpleNamespace(output_text='{"items": []}')

    assert adapter.generate_json(MESSAGES, schema={"type": "array", "items": {}}) == '{"items": []}'

    fmt = adapter._client.responses.create.call_args.kwargs["text"]["format"]
    assert fmt["type"] == "json_schema"
    assert fmt["schema"]["type"] == "object"
    assert fmt["schema"]["properties"]["items"] == {"type": "array", "items": {}}


def test_openai_maps_auth_errors():
    adapter = _openai()
    adapter._client.responses.create.side_effect = RuntimeError("Error code: 401 - invalid_api_key")
    with pytest.raises(LLMAuthError):
        adapter.generate(MESSAGES)


def test_dummy_json_has_one_card_per_paragraph():
    adapter = DummyAdapter()
    raw = adapter.generate_json([{"role": "user", "content": "first part\n\nsecond part\n\n  "}])
    assert '"answer": "first part"' in raw
    assert raw.count('"question"') == 2
