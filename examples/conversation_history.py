"""Minimal demonstration of the conversation history check."""

from harness_core.checks.history_check import run_history_check
from harness_core.providers import create_provider
from harness_core.runner import ConversationRunner

if __name__ == "__main__":
    runner = ConversationRunner().configure(create_provider(), "chat", {"provider_metadata": True})
    report = run_history_check(runner, echo=print)
    print("Replies:", report.replies)
