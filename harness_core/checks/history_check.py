"""多轮对话历史检查。

先告诉模型名字和职业，两轮之后再问名字，回复里仍能找到名字，
说明历史确实逐轮传给了后端。
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from harness_core.runner.conversation import ConversationRunner

HISTORY_PROMPTS = [
    "My name is Helen and I'm a data scientist. Remember this.",
    "What's my profession?",
    "And what was my name again?",
]

EXPECTED_NAME = "helen"

# --offline 模式下 ScriptedBackend 回放的回复
OFFLINE_REPLIES = [
    "Nice to meet you, Helen.",
    "You're a data scientist.",
    "Your name is Helen.",
]


@dataclass
class HistoryCheckReport:
    replies: List[str] = field(default_factory=list)
    context_maintained: bool = False


def run_history_check(
    runner: ConversationRunner,
    echo: Optional[Callable[[str], None]] = None,
) -> HistoryCheckReport:
    """依次提交三轮用户输入，检查最后一条回复是否还记得名字。

    后端错误直接向上抛出，由调用方决定如何报告。
    """

    echo = echo or (lambda _line: None)
    report = HistoryCheckReport()
    for step, prompt in enumerate(HISTORY_PROMPTS, start=1):
        echo(f"Turn {step}: {prompt}")
        result = runner.submit_user_turn(prompt)
        echo(f"Assistant: {result.text}")
        report.replies.append(result.text)
    report.context_maintained = runner.reply_contains(EXPECTED_NAME)
    echo(f"Context maintained via message history: {report.context_maintained}")
    return report
