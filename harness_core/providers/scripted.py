"""离线后端：按顺序回放预置回复。

用于测试与 --offline 模式，不访问网络。每个预置项可以是：
- str: 直接作为回复文本；
- Exception: 调用时抛出（用于模拟失败）；
- callable(req) -> str: 根据请求动态生成回复。
"""

from typing import Callable, Iterable, List, Union

from harness_core.domain.exceptions import BackendError
from harness_core.domain.models import GenerationRequest, GenerationResult

ScriptedReply = Union[str, BaseException, Callable[[GenerationRequest], str]]


class ScriptedBackend:
    name = "scripted"

    def __init__(self, replies: Iterable[ScriptedReply]):
        self._replies: List[ScriptedReply] = list(replies)
        self.requests: List[GenerationRequest] = []

    def generate(self, req: GenerationRequest) -> GenerationResult:
        self.requests.append(req)
        if not self._replies:
            raise BackendError(code="SCRIPT_EXHAUSTED", message="No scripted replies left", provider=self.name)
        reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        text = reply(req) if callable(reply) else reply
        return GenerationResult(text=text, provider=self.name, model=req.model)
