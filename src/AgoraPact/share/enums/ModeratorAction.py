from enum import Enum


class ModeratorAction(str, Enum):
    """管理员身份组变更动作"""

    ADD = "add"
    REMOVE = "remove"
