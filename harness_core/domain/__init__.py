"""领域层模型与异常。

包含：
- models: Turn / GenerationRequest / GenerationResult。
- store: 追加式的 MessageStore。
- exceptions: 异常类型定义。
"""

from .exceptions import (
    ApiError,
    BackendError,
    ConcurrentSubmissionError,
    ExpectationError,
    HarnessError,
    InvalidTurnError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from .models import GenerationRequest, GenerationResult, GenerationUsage, Role, Turn, VALID_ROLES
from .store import MessageStore

__all__ = [
    "ApiError",
    "BackendError",
    "ConcurrentSubmissionError",
    "ExpectationError",
    "GenerationRequest",
    "GenerationResult",
    "GenerationUsage",
    "HarnessError",
    "InvalidTurnError",
    "MessageStore",
    "NetworkError",
    "RateLimitError",
    "Role",
    "Turn",
    "VALID_ROLES",
    "ValidationError",
]
