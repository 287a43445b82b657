"""生成后端集成层。

该包下的模块负责：
- 定义后端抽象接口 (base)。
- Provider 目录与模型别名解析 (registry)。
- 提供具体实现 (chat_client 走 HTTP，scripted 离线回放)。
"""

from typing import Optional

from harness_core.config.settings import settings
from harness_core.providers.base import GenerationBackend
from harness_core.providers.chat_client import ChatCompletionsClient
from harness_core.providers.registry import lookup_provider
from harness_core.providers.scripted import ScriptedBackend


def create_provider(name: Optional[str] = None, cfg=None) -> GenerationBackend:
    """根据名称创建后端实例，默认取配置中的 provider。

    未登记的 provider 或缺失 api key 都在这里以 ValidationError 失败。
    """

    cfg = cfg or settings
    provider_name = name or getattr(cfg, "default_provider", "glm")
    return ChatCompletionsClient(lookup_provider(provider_name), cfg)


__all__ = ["ChatCompletionsClient", "GenerationBackend", "ScriptedBackend", "create_provider"]
