"""对话数据模型。

- Turn: 一条对话消息（system/user/assistant），创建后不可修改。
- GenerationRequest: 发给生成后端的完整请求（历史快照 + 模型 + 选项）。
- GenerationResult: 后端解析后的统一响应。

所有后端适配器只依赖这些模型，并负责在各自的 API JSON 与这些模型之间转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Literal, Optional, Tuple

from .exceptions import InvalidTurnError


Role = Literal["system", "user", "assistant"]

VALID_ROLES: FrozenSet[str] = frozenset({"system", "user", "assistant"})


@dataclass(frozen=True)
class Turn:
    """一条对话消息。

    构造时即校验 role 与 content，非法输入直接抛 InvalidTurnError，
    保证进入 MessageStore 的记录都是合法的。
    """

    role: Role
    content: str

    def __post_init__(self) -> None:
        if not isinstance(self.role, str) or self.role not in VALID_ROLES:
            raise InvalidTurnError(
                code="INVALID_ROLE",
                message=f"Unrecognized role: {self.role!r}",
                role=self.role,
            )
        if not isinstance(self.content, str) or not self.content.strip():
            raise InvalidTurnError(
                code="EMPTY_CONTENT",
                message=f"Turn content must be non-empty text (role={self.role})",
                role=self.role,
            )

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GenerationRequest:
    """一次生成调用的输入，仅由创建它的那次调用持有。"""

    model: str
    turns: Tuple[Turn, ...]
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GenerationUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class GenerationResult:
    """一次生成调用的结果。

    - text: 生成的文本，会被追加为 assistant turn。
    - provider / model: 实际处理请求的后端与模型名。
    - usage: 可选的 token 统计。
    - finish_reason: 结束原因（如 "stop"）。
    - metadata: 其余结构化元数据（例如请求了 provider_metadata 时的原始字段）。
    """

    text: str
    provider: str
    model: str
    usage: Optional[GenerationUsage] = None
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
