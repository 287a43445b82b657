"""内存中的追加式消息存储。"""

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Tuple

from .exceptions import ConcurrentSubmissionError, InvalidTurnError
from .models import Role, Turn


class MessageStore:
    """按对话顺序保存 Turn 的追加式序列。

    - 只支持 append，已写入的记录不会被修改或删除。
    - snapshot() 返回 tuple 副本，之后的 append 不会影响已返回的快照。
    - submission() 是同一时刻只允许一次在途提交的守卫；锁跟着 store 走，
      即使多个 runner 共用一个 store 也不会交错写入。
    """

    def __init__(self, turns: Optional[Iterable[Turn]] = None):
        self._turns: List[Turn] = []
        self._in_flight = threading.Lock()
        for turn in turns or ():
            self.append(turn)

    def append(self, turn: Turn) -> None:
        if not isinstance(turn, Turn):
            raise InvalidTurnError(
                code="INVALID_TURN",
                message=f"Expected Turn, got {type(turn).__name__}",
            )
        self._turns.append(turn)

    def add(self, role: Role, content: str) -> Turn:
        """构造并追加一条 Turn，返回新记录。"""

        turn = Turn(role=role, content=content)
        self.append(turn)
        return turn

    def snapshot(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    @contextmanager
    def submission(self) -> Iterator["MessageStore"]:
        """占用本 store 的提交槽位，已被占用时抛出 ConcurrentSubmissionError。"""

        if not self._in_flight.acquire(blocking=False):
            raise ConcurrentSubmissionError(
                code="CONCURRENT_SUBMISSION",
                message="A submission is already in flight on this conversation",
            )
        try:
            yield self
        finally:
            self._in_flight.release()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def last(self, role: Optional[Role] = None) -> Optional[Turn]:
        for turn in reversed(self._turns):
            if role is None or turn.role == role:
                return turn
        return None

    def replies(self) -> Tuple[Turn, ...]:
        return tuple(t for t in self._turns if t.role == "assistant")

    def __len__(self) -> int:
        return len(self._turns)
