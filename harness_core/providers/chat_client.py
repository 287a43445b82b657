"""OpenAI 兼容的 chat/completions 后端。

GLM / Kimi 等厂商都使用相同风格的端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

模型别名与采样参数的解析在 registry 中完成，这里只负责 HTTP 与响应解析。
"""

from typing import Any, Dict, Optional

import httpx

from harness_core.config.settings import settings
from harness_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from harness_core.domain.models import GenerationRequest, GenerationResult, GenerationUsage
from harness_core.infrastructure.logging.logger import logger
from harness_core.providers.registry import SAMPLING_KEYS, ProviderEntry

# 由本后端解释的 options 键，其余键忽略
RECOGNIZED_OPTIONS = frozenset(SAMPLING_KEYS) | {"provider_metadata"}


class ChatCompletionsClient:
    """chat/completions 协议的后端实现。

    api key 在构造时检查，缺失属于配置错误（ValidationError）；
    generate 只以 BackendError 的子类失败。
    """

    def __init__(self, provider: ProviderEntry, cfg=settings):
        api_key = provider.api_key(cfg)
        if not api_key:
            raise ValidationError(
                code="MISSING_API_KEY",
                message=f"{provider.name.upper()}_API_KEY not set",
                provider=provider.name,
            )
        self._provider = provider
        self._settings = cfg
        self._api_key = api_key
        self.name = provider.name

    def generate(self, req: GenerationRequest) -> GenerationResult:
        payload = self._build_payload(req)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    self._provider.endpoint(self._settings),
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException as e:
            raise NetworkError(code="TIMEOUT", message=str(e) or "request timed out", provider=self.name) from e
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name) from e
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", provider=self.name)
        if resp.status_code in (401, 403):
            raise ApiError(code="AUTH_ERROR", message=resp.text, provider=self.name, http_status=resp.status_code)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, provider=self.name, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="MALFORMED_RESPONSE", message=f"Invalid JSON: {e}", provider=self.name) from e
        return self._parse_response(data, req)

    # ---- 辅助方法 ----

    def _build_payload(self, req: GenerationRequest) -> Dict[str, Any]:
        options = req.options or {}
        ignored = sorted(k for k in options if k not in RECOGNIZED_OPTIONS)
        if ignored:
            logger.debug("Ignoring unrecognized options", extra={"extra": {"provider": self.name, "keys": ignored}})
        payload = self._provider.resolve(req.model, options)
        payload["messages"] = [t.to_payload() for t in req.turns]
        return payload

    def _malformed(self, message: str) -> ApiError:
        return ApiError(code="MALFORMED_RESPONSE", message=message, provider=self.name)

    def _parse_response(self, data: Any, req: GenerationRequest) -> GenerationResult:
        if not isinstance(data, dict):
            raise self._malformed("Response body is not an object")
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise self._malformed("Response has no choices")
        first = choices[0]
        if not isinstance(first, dict):
            raise self._malformed("Choice is not an object")
        msg = first.get("message")
        if not isinstance(msg, dict):
            raise self._malformed("Choice has no message object")
        content = msg.get("content")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise self._malformed(f"Message content must be a string, got {type(content).__name__}")

        metadata: Dict[str, Any] = {}
        if (req.options or {}).get("provider_metadata"):
            metadata = {
                "id": data.get("id"),
                "created": data.get("created"),
                "provider_model": data.get("model"),
                "raw": data,
            }
        return GenerationResult(
            text=content,
            provider=self.name,
            model=req.model,
            usage=self._parse_usage(data.get("usage")),
            finish_reason=first.get("finish_reason"),
            metadata=metadata,
        )

    @staticmethod
    def _parse_usage(usage_raw: Any) -> Optional[GenerationUsage]:
        if not isinstance(usage_raw, dict) or not usage_raw:
            return None
        return GenerationUsage(
            prompt_tokens=usage_raw.get("prompt_tokens", 0),
            completion_tokens=usage_raw.get("completion_tokens", 0),
            total_tokens=usage_raw.get("total_tokens", 0),
        )
