class InvalidModeratorDirective(Exception):
    """
    管理员提案格式无法解析时抛出。
    异常消息会直接回复给提案作者。
    """

    def __init__(
        self,
        message: str = (
            "Could not read the moderator change. Use `**Add Moderator**: @user` "
            "or `**Remove Moderator**: @user`."
        ),
    ):
        super().__init__(message)
