class TargetNotFound(Exception):
    """
    撤回提案引用的决议无法被定位时抛出。
    异常消息会直接回复给提案作者。
    """

    def __init__(
        self,
        message: str = (
            "Could not find the target resolution to withdraw. "
            "Please ensure you have referenced a valid resolution."
        ),
    ):
        super().__init__(message)
