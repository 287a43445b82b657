"""生成后端抽象接口。

ConversationRunner 不直接依赖具体厂商的 HTTP SDK，而是依赖此协议：

- 每个后端实现一个 GenerationBackend（如 ChatCompletionsClient）。
- 负责：将 GenerationRequest 转成具体 API 请求，并把响应解析为 GenerationResult。
- 失败时抛出 BackendError（或其子类），超时由后端自行暴露。
"""

from typing import Protocol

from harness_core.domain.models import GenerationRequest, GenerationResult


class GenerationBackend(Protocol):
    """生成后端协议。

    实现者需要提供：
    - name: 后端名称，用于日志。
    - generate(req): 接收有序的 turn 序列、模型标识与选项，返回 GenerationResult。
    """

    name: str

    def generate(self, req: GenerationRequest) -> GenerationResult:
        ...
