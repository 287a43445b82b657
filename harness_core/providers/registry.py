"""Provider 目录与模型解析。

ChatCompletionsClient 通过这里把 runner 传来的 (model_id, options) 解析成
请求体里的模型与采样参数：

- 目录中登记的别名映射为厂商模型 ID，并带上该别名的默认采样参数；
- 其他 model_id 视为厂商模型 ID 原样透传，只使用调用方给出的 options；
- options 中显式给出的采样参数总是优先于别名默认值。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from harness_core.domain.exceptions import ValidationError

# 会被写入请求体的采样参数；其余 options 键由后端自行解释或忽略
SAMPLING_KEYS = ("temperature", "top_p", "max_tokens")


@dataclass(frozen=True)
class ModelAlias:
    vendor_model: str
    defaults: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderEntry:
    """一个 OpenAI 兼容 Provider 的目录项。

    api key 与 base url 从 settings 的 ``<name>_api_key`` / ``<name>_base_url``
    读取，base url 缺省时退回 ``base_url``。
    """

    name: str
    base_url: str
    aliases: Mapping[str, ModelAlias]

    def api_key(self, cfg) -> Optional[str]:
        return getattr(cfg, f"{self.name}_api_key", None)

    def endpoint(self, cfg) -> str:
        base = getattr(cfg, f"{self.name}_base_url", None) or self.base_url
        return f"{base.rstrip('/')}/chat/completions"

    def resolve(self, model_id: str, options: Mapping[str, Any]) -> Dict[str, Any]:
        """返回请求体中的 model 与采样参数。"""

        alias = self.aliases.get(model_id)
        params: Dict[str, Any] = {"model": alias.vendor_model if alias else model_id}
        if alias:
            params.update(alias.defaults)
        for key in SAMPLING_KEYS:
            if options.get(key) is not None:
                params[key] = options[key]
        return params


GLM = ProviderEntry(
    name="glm",
    base_url="https://open.bigmodel.cn/api/paas/v4",
    aliases={
        "chat": ModelAlias("glm-4.6", {"temperature": 0.7}),
        "fast": ModelAlias("glm-4-flash", {"temperature": 0.7}),
    },
)

KIMI = ProviderEntry(
    name="kimi",
    base_url="https://api.moonshot.cn/v1",
    aliases={
        "chat": ModelAlias("kimi-k2-turbo-preview", {"temperature": 0.6}),
        "long": ModelAlias("moonshot-v1-128k", {"temperature": 0.3}),
    },
)

PROVIDERS: Mapping[str, ProviderEntry] = {p.name: p for p in (GLM, KIMI)}


def lookup_provider(name: str) -> ProviderEntry:
    """按名称（不区分大小写）查找 Provider，未登记时抛 ValidationError。"""

    entry = PROVIDERS.get(name.lower())
    if entry is None:
        raise ValidationError(
            code="UNKNOWN_PROVIDER",
            message=f"Unknown provider: {name!r} (known: {', '.join(sorted(PROVIDERS))})",
            provider=name,
        )
    return entry
