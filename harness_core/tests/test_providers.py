import pytest

from harness_core.domain.exceptions import ValidationError
from harness_core.providers import create_provider
from harness_core.providers.chat_client import ChatCompletionsClient
from harness_core.providers.registry import GLM, KIMI, lookup_provider


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "glm"
        glm_api_key = "g-0123456789"
        http_timeout = 1.0

    monkeypatch.setattr("harness_core.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, ChatCompletionsClient)
    assert provider.name == "glm"


def test_create_provider_explicit():
    class DummySettings:
        default_provider = "glm"
        kimi_api_key = "k-0123456789"
        http_timeout = 1.0

    provider = create_provider("KIMI", DummySettings())
    assert provider.name == "kimi"


def test_create_provider_unknown():
    with pytest.raises(ValidationError) as exc:
        create_provider("nope")
    assert exc.value.code == "UNKNOWN_PROVIDER"


def test_create_provider_without_key():
    class DummySettings:
        default_provider = "kimi"
        kimi_api_key = None
        http_timeout = 1.0

    with pytest.raises(ValidationError) as exc:
        create_provider(cfg=DummySettings())
    assert exc.value.code == "MISSING_API_KEY"


def test_lookup_is_case_insensitive():
    assert lookup_provider("Glm") is GLM


def test_alias_resolves_to_vendor_model_with_defaults():
    assert GLM.resolve("chat", {}) == {"model": "glm-4.6", "temperature": 0.7}
    assert KIMI.resolve("long", {"temperature": 0.9, "max_tokens": 256}) == {
        "model": "moonshot-v1-128k",
        "temperature": 0.9,
        "max_tokens": 256,
    }


def test_unknown_model_id_passes_through():
    assert GLM.resolve("glm-4-air", {"top_p": 0.8, "provider_metadata": True}) == {"model": "glm-4-air", "top_p": 0.8}


def test_endpoint_prefers_settings_base_url():
    class DummySettings:
        kimi_base_url = "https://proxy.local/v1/"

    assert KIMI.endpoint(DummySettings()) == "https://proxy.local/v1/chat/completions"
    assert KIMI.endpoint(object()) == "https://api.moonshot.cn/v1/chat/completions"
