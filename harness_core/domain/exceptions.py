"""统一异常模型。

所有 harness 抛出的错误都继承自 HarnessError，调用方可以按子类区分：

- InvalidTurnError: 输入的 Turn 不合法（本地前置条件失败，不做自动修正）。
- BackendError: 生成调用失败（网络、鉴权、限流、响应格式异常）。
- ConcurrentSubmissionError: 同一个 MessageStore 上出现重叠提交。
"""


class HarnessError(Exception):
    """异常基类。

    Attributes:
        code: 机器可读错误码（如 "EMPTY_CONTENT"）。
        message: 人类可读错误信息。
        extra: 其他补充字段（例如 trace_id、provider、http_status 等）。
    """

    def __init__(self, code: str, message: str, **extra):
        self.code = code
        self.message = message
        self.extra = extra
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidTurnError(HarnessError):
    """Turn 的 role 不被识别或 content 为空。"""


class BackendError(HarnessError):
    """生成后端调用失败，始终交给调用方处理，核心层不做重试。"""


class NetworkError(BackendError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BackendError):
    """Provider 返回非 2xx/429 错误，或响应体无法解析。"""


class RateLimitError(BackendError):
    """Provider 限流（HTTP 429）。"""


class ConcurrentSubmissionError(HarnessError):
    """上一次提交尚未结束时再次调用 submit_user_turn。"""


class ValidationError(HarnessError):
    """参数或配置校验失败。"""


class ExpectationError(HarnessError):
    """对某条回复的断言不成立。"""
