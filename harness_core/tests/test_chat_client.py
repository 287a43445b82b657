import httpx
import pytest

from harness_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from harness_core.domain.models import GenerationRequest, Turn
from harness_core.providers.chat_client import ChatCompletionsClient
from harness_core.providers.registry import GLM


class SettingsStub:
    glm_api_key = "g-0123456789"
    http_timeout = 1.0
    glm_base_url = "https://open.bigmodel.cn/api/paas/v4"


def _request(model="chat", **options):
    turns = (
        Turn(role="user", content="My name is Helen."),
        Turn(role="assistant", content="Hi Helen."),
        Turn(role="user", content="What's my name?"),
    )
    return GenerationRequest(model=model, turns=turns, options=options)


class Resp:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


def _fake_client(resp, calls):
    class Client:
        def __init__(self, *a, **kw):
            calls.append(("init", kw))

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None):
            calls.append(("post", url, json, headers))
            if isinstance(resp, Exception):
                raise resp
            return resp

    return Client


OK_BODY = {
    "id": "resp-1",
    "model": "glm-4.6",
    "choices": [{"index": 0, "message": {"role": "assistant", "content": "Your name is Helen."}, "finish_reason": "stop"}],
    "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
}


def test_generate_sends_full_history(monkeypatch):
    calls = []
    monkeypatch.setattr("httpx.Client", _fake_client(Resp(data=OK_BODY), calls))
    client = ChatCompletionsClient(GLM, SettingsStub())

    res = client.generate(_request())

    _, url, payload, headers = calls[-1]
    assert url == "https://open.bigmodel.cn/api/paas/v4/chat/completions"
    assert headers["Authorization"] == "Bearer g-0123456789"
    assert payload["model"] == "glm-4.6"
    assert [m["role"] for m in payload["messages"]] == ["user", "assistant", "user"]
    assert payload["temperature"] == 0.7
    assert res.text == "Your name is Helen."
    assert res.finish_reason == "stop"
    assert res.usage.total_tokens == 17
    assert res.metadata == {}


def test_generate_options_and_metadata(monkeypatch):
    calls = []
    monkeypatch.setattr("httpx.Client", _fake_client(Resp(data=OK_BODY), calls))
    client = ChatCompletionsClient(GLM, SettingsStub())

    res = client.generate(_request(model="glm-4-air", temperature=0.1, top_p=0.5, provider_metadata=True, unknown="x"))

    payload = calls[-1][2]
    assert payload["model"] == "glm-4-air"
    assert payload["temperature"] == 0.1
    assert payload["top_p"] == 0.5
    assert "unknown" not in payload
    assert "max_tokens" not in payload
    assert res.metadata["id"] == "resp-1"
    assert res.metadata["raw"] == OK_BODY


def test_missing_api_key_fails_at_construction():
    class NoKey(SettingsStub):
        glm_api_key = None

    with pytest.raises(ValidationError) as exc:
        ChatCompletionsClient(GLM, NoKey())
    assert exc.value.code == "MISSING_API_KEY"


def test_null_content_parses_as_empty_text(monkeypatch):
    body = {"choices": [{"message": {"role": "assistant", "content": None}}]}
    monkeypatch.setattr("httpx.Client", _fake_client(Resp(data=body), []))
    res = ChatCompletionsClient(GLM, SettingsStub()).generate(_request())
    assert res.text == ""
    assert res.usage is None


@pytest.mark.parametrize(
    "resp, code",
    [
        (Resp(status_code=500, text="server down"), "API_ERROR"),
        (Resp(status_code=401, text="bad key"), "AUTH_ERROR"),
        (Resp(status_code=200), "MALFORMED_RESPONSE"),
        (Resp(data=["not", "an", "object"]), "MALFORMED_RESPONSE"),
        (Resp(data={"choices": []}), "MALFORMED_RESPONSE"),
        (Resp(data={"choices": "oops"}), "MALFORMED_RESPONSE"),
        (Resp(data={"choices": ["oops"]}), "MALFORMED_RESPONSE"),
        (Resp(data={"choices": [{"message": "oops"}]}), "MALFORMED_RESPONSE"),
        (
            Resp(data={"choices": [{"message": {"content": [{"type": "text", "text": "hi"}]}}]}),
            "MALFORMED_RESPONSE",
        ),
    ],
)
def test_http_failures(monkeypatch, resp, code):
    monkeypatch.setattr("httpx.Client", _fake_client(resp, []))
    with pytest.raises(ApiError) as exc:
        ChatCompletionsClient(GLM, SettingsStub()).generate(_request())
    assert exc.value.code == code


def test_rate_limit(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client(Resp(status_code=429), []))
    with pytest.raises(RateLimitError):
        ChatCompletionsClient(GLM, SettingsStub()).generate(_request())


def test_network_errors(monkeypatch):
    monkeypatch.setattr("httpx.Client", _fake_client(httpx.ConnectError("refused"), []))
    with pytest.raises(NetworkError) as exc:
        ChatCompletionsClient(GLM, SettingsStub()).generate(_request())
    assert exc.value.code == "NETWORK_ERROR"

    monkeypatch.setattr("httpx.Client", _fake_client(httpx.ReadTimeout("slow"), []))
    with pytest.raises(NetworkError) as exc:
        ChatCompletionsClient(GLM, SettingsStub()).generate(_request())
    assert exc.value.code == "TIMEOUT"
