from typing import Sequence

from discord.app_commands import AppCommandError


class MissingRole(AppCommandError):
    """
    命令发起者缺少所需身份组。消息会以仅自己可见的方式回复给用户。
    """

    def __init__(self, role_keys: Sequence[str] = ()):
        self.role_keys = tuple(role_keys)
        if self.role_keys:
            message = f"Sorry, you need the {' or '.join(self.role_keys)} role to do that."
        else:
            message = "Sorry, you do not have permission to do that."
        super().__init__(message)
