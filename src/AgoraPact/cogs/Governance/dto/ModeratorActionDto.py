from AgoraPact.share.BaseDto import BaseDto
from AgoraPact.share.enums.ModeratorAction import ModeratorAction


class ModeratorActionDto(BaseDto):
    """
    解析后的管理员变更指令。
    """

    action: ModeratorAction
    user_id: int
    target_text: str
