"""Harness Core 顶层包。

提供多轮对话状态检查所需的核心实现：
领域模型与追加式 MessageStore、生成后端适配、对话运行器与历史检查。
"""

from harness_core.domain.store import MessageStore
from harness_core.runner.conversation import ConversationRunner

__all__ = ["ConversationRunner", "MessageStore"]
