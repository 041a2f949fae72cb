from typing import Optional


class CollaboratorUnavailable(Exception):
    """
    平台调用失败（频道、消息、成员或身份组不可用）时抛出。
    """

    def __init__(self, operation: str, detail: Optional[str] = None):
        self.operation = operation
        self.detail = detail
        message = f"平台操作 '{operation}' 失败"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
