"""harness-check 命令行入口。

Usage:
    harness-check history                  # 使用默认 provider
    harness-check history --provider kimi  # 指定 provider
    harness-check history --offline        # 离线回放，不访问网络
"""

import sys
from typing import Optional

import click

from harness_core.checks.history_check import OFFLINE_REPLIES, run_history_check
from harness_core.config.settings import settings
from harness_core.domain.exceptions import HarnessError
from harness_core.providers import ScriptedBackend, create_provider
from harness_core.runner.conversation import ConversationRunner


@click.group()
def cli():
    """Conversation-state integration checks."""


@cli.command()
@click.option("--provider", "provider_name", default=None, help="Provider name (glm, kimi)")
@click.option("--model", "model_id", default=None, help="Model identifier")
@click.option("--offline", is_flag=True, help="Replay canned replies instead of calling a provider")
@click.option("--strict", is_flag=True, help="Exit with 1 when the name is not recalled")
def history(provider_name: Optional[str], model_id: Optional[str], offline: bool, strict: bool):
    """Check that earlier turns are still visible several turns later."""

    click.echo("Testing conversation with message history...")
    try:
        backend = ScriptedBackend(OFFLINE_REPLIES) if offline else create_provider(provider_name)
        runner = ConversationRunner().configure(
            backend,
            model_id or settings.default_model,
            {"provider_metadata": True},
        )
        report = run_history_check(runner, echo=click.echo)
    except HarnessError as e:
        click.echo(f"Test failed: {e}", err=True)
        sys.exit(1)

    if strict and not report.context_maintained:
        click.echo("Test failed: context was not maintained", err=True)
        sys.exit(1)
    click.echo("Test completed")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
