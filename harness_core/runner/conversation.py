"""对话运行器。

负责一次次提交用户 turn：构造完整历史、调用后端、把回复追加回历史，
并对外提供对回复的断言能力。
"""

import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple
from uuid import uuid4

from harness_core.domain.exceptions import (
    BackendError,
    ExpectationError,
    HarnessError,
    ValidationError,
)
from harness_core.domain.models import GenerationRequest, GenerationResult, Turn
from harness_core.domain.store import MessageStore
from harness_core.infrastructure.logging.logger import logger
from harness_core.providers.base import GenerationBackend


class ConversationRunner:
    """持有一个 MessageStore，并把每次提交串行地交给生成后端。

    状态只有两种：idle 与 awaiting-response。同一个 store 上同一时刻只允许
    一次提交在途（守卫在 MessageStore 上），第二次调用直接抛出
    ConcurrentSubmissionError，不写入任何 turn。

    后端失败时用户 turn 保留、不追加 assistant turn，调用方可以直接重试。
    """

    def __init__(self, store: Optional[MessageStore] = None):
        self._store = store if store is not None else MessageStore()
        self._backend: Optional[GenerationBackend] = None
        self._model_id: Optional[str] = None
        self._options: Dict[str, Any] = {}
        self._max_context_turns: Optional[int] = None

    def configure(
        self,
        backend: GenerationBackend,
        model_id: str,
        options: Optional[Dict[str, Any]] = None,
        *,
        system_prompt: Optional[str] = None,
        max_context_turns: Optional[int] = None,
    ) -> "ConversationRunner":
        """绑定生成后端与模型。

        所有校验都在修改任何状态之前完成，被拒绝的 configure 不会留下半套配置。

        Args:
            backend: 实现 GenerationBackend 协议的对象。
            model_id: 模型标识，由后端解释。
            options: 透传给后端的选项，runner 不做校验。
            system_prompt: 可选系统提示词，作为第一条 system turn 写入。
            max_context_turns: 显式上下文窗口；None 表示发送完整历史。
        """
        if not model_id:
            raise ValidationError(code="MISSING_MODEL", message="model_id must be non-empty")
        if max_context_turns is not None and max_context_turns < 1:
            raise ValidationError(
                code="INVALID_CONTEXT_WINDOW",
                message=f"max_context_turns must be >= 1, got {max_context_turns}",
            )
        system_turn = None
        if system_prompt is not None:
            if len(self._store):
                raise ValidationError(
                    code="SYSTEM_PROMPT_AFTER_START",
                    message="system_prompt can only be set before the first turn",
                )
            system_turn = Turn(role="system", content=system_prompt)

        self._backend = backend
        self._model_id = model_id
        self._options = dict(options or {})
        self._max_context_turns = max_context_turns
        if system_turn is not None:
            self._store.append(system_turn)
        return self

    def submit_user_turn(self, content: str) -> GenerationResult:
        """提交一条用户 turn 并等待回复。

        Raises:
            ConcurrentSubmissionError: 同一个 store 上已有提交在途。
            InvalidTurnError: content 为空。
            BackendError: 后端调用失败（用户 turn 仍保留在历史中）。
        """
        with self._store.submission():
            return self._submit(content)

    def history(self) -> Tuple[Turn, ...]:
        return self._store.snapshot()

    # ---- 断言 ----

    def last_reply(self) -> Optional[str]:
        turn = self._store.last("assistant")
        return turn.content if turn else None

    def reply(self, index: int = -1) -> str:
        replies = self._store.replies()
        try:
            return replies[index].content
        except IndexError:
            raise ExpectationError(
                code="NO_SUCH_REPLY",
                message=f"No assistant reply at index {index} ({len(replies)} replies)",
            ) from None

    def reply_contains(self, needle: str, *, index: int = -1, case_sensitive: bool = False) -> bool:
        text = self.reply(index)
        if case_sensitive:
            return needle in text
        return needle.lower() in text.lower()

    def expect_reply(
        self,
        predicate: Callable[[str], bool],
        description: str,
        *,
        index: int = -1,
    ) -> str:
        """断言第 index 条回复满足 predicate，成立时返回该回复文本。"""

        text = self.reply(index)
        if not predicate(text):
            raise ExpectationError(
                code="EXPECTATION_FAILED",
                message=f"Reply {index} does not satisfy: {description}",
                reply=text,
            )
        return text

    def expect_reply_contains(self, needle: str, *, index: int = -1, case_sensitive: bool = False) -> str:
        return self.expect_reply(
            lambda text: (needle in text) if case_sensitive else (needle.lower() in text.lower()),
            f"contains {needle!r}",
            index=index,
        )

    # ---- 内部实现 ----

    def _submit(self, content: str) -> GenerationResult:
        if self._backend is None or self._model_id is None:
            raise ValidationError(
                code="RUNNER_NOT_CONFIGURED",
                message="configure() must be called before submitting turns",
            )
        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "backend": self._backend.name,
            "model": self._model_id,
        }

        self._store.add("user", content)
        req = GenerationRequest(
            model=self._model_id,
            turns=self._context(self._store.snapshot()),
            options=dict(self._options),
        )
        self._log(logging.INFO, "Calling backend", log_ctx, turn_count=len(req.turns))

        try:
            result = self._backend.generate(req)
        except BackendError as e:
            self._log(logging.ERROR, "Backend call failed", log_ctx, code=e.code, error=e.message)
            raise
        except Exception as e:
            # 协议约定后端只以 BackendError 失败，其余异常（含其他 HarnessError）统一包装
            code = e.code if isinstance(e, HarnessError) else "BACKEND_ERROR"
            self._log(logging.ERROR, "Backend call failed", log_ctx, code=code, error=str(e))
            raise BackendError(code=code, message=str(e) or type(e).__name__, backend=self._backend.name) from e
        # KeyboardInterrupt 等取消信号原样向上传播，不追加 assistant turn

        text = getattr(result, "text", None)
        if not isinstance(text, str):
            self._log(logging.ERROR, "Backend returned malformed result", log_ctx, text_type=type(text).__name__)
            raise BackendError(
                code="MALFORMED_RESULT",
                message=f"Backend reply text must be str, got {type(text).__name__}",
                backend=self._backend.name,
            )
        if not text.strip():
            self._log(logging.ERROR, "Backend returned empty completion", log_ctx)
            raise BackendError(
                code="EMPTY_COMPLETION",
                message="Backend returned an empty reply",
                backend=self._backend.name,
            )
        self._store.add("assistant", text)

        if result.usage:
            self._log(
                logging.INFO,
                "Token usage",
                log_ctx,
                prompt_tokens=result.usage.prompt_tokens,
                completion_tokens=result.usage.completion_tokens,
                total_tokens=result.usage.total_tokens,
            )
        self._log(
            logging.INFO,
            "Completed turn",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            history_length=len(self._store),
        )
        return result

    def _context(self, turns: Tuple[Turn, ...]) -> Tuple[Turn, ...]:
        """按 max_context_turns 裁剪上下文；开头的 system turn 始终保留。"""

        limit = self._max_context_turns
        if limit is None:
            return turns
        head = 0
        while head < len(turns) and turns[head].role == "system":
            head += 1
        body = turns[head:]
        if len(body) <= limit:
            return turns
        return turns[:head] + body[-limit:]

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
