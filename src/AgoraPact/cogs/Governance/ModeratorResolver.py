from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional

from AgoraPact.cogs.Governance.dto.ModeratorActionDto import ModeratorActionDto
from AgoraPact.share.enums.ModeratorAction import ModeratorAction
from AgoraPact.share.exceptions.CollaboratorUnavailable import CollaboratorUnavailable
from AgoraPact.share.exceptions.InvalidModeratorDirective import InvalidModeratorDirective

if TYPE_CHECKING:
    from AgoraPact.cogs.Governance.PlatformGateway import PlatformGateway

logger = logging.getLogger(__name__)

_DIRECTIVE = re.compile(r"^\*\*(Add|Remove) Moderator\*\*:\s*(.+)$", re.IGNORECASE)
_MENTION = re.compile(r"<@!?(\d{17,20})>")
_SNOWFLAKE = re.compile(r"^\d{17,20}$")


class ModeratorResolver:
    """
    管理员任免提案的解析与执行。
    """

    def __init__(self, gateway: "PlatformGateway"):
        self.gateway = gateway

    @staticmethod
    def extract_user_id(reference: str) -> Optional[int]:
        """
        支持 `<@id>`、`<@!id>` 或裸的用户 ID。
        """
        reference = reference.strip()
        mention = _MENTION.search(reference)
        if mention:
            return int(mention.group(1))
        if _SNOWFLAKE.match(reference):
            return int(reference)
        return None

    @staticmethod
    def parse(text: str) -> Optional[ModeratorActionDto]:
        """
        解析提案首行的 `**Add Moderator**: @user` 或 `**Remove Moderator**: @user`。
        格式不符或无法识别用户时返回 None。
        """
        first_line = text.strip().split("\n", 1)[0].strip()
        match = _DIRECTIVE.match(first_line)
        if not match:
            return None

        target_text = match.group(2).strip()
        user_id = ModeratorResolver.extract_user_id(target_text)
        if user_id is None:
            logger.debug(f"无法从 '{target_text}' 中识别用户。")
            return None

        action = ModeratorAction.ADD if match.group(1).lower() == "add" else ModeratorAction.REMOVE
        return ModeratorActionDto(action=action, user_id=user_id, target_text=target_text)

    @staticmethod
    def require(text: str) -> ModeratorActionDto:
        """
        Raises:
            InvalidModeratorDirective: 无法解析出任免指令。
        """
        directive = ModeratorResolver.parse(text)
        if directive is None:
            raise InvalidModeratorDirective()
        return directive

    @staticmethod
    def summarize(text: str) -> str:
        """列表中展示用的一句话说明。"""
        directive = ModeratorResolver.parse(text)
        if directive is None:
            return "Unknown moderator action"
        if directive.action == ModeratorAction.ADD:
            return f"Add {directive.target_text} as moderator"
        return f"Remove {directive.target_text} from moderator role"

    async def apply(self, directive: ModeratorActionDto, role_id: int) -> bool:
        """
        执行身份组变更。已经处于目标状态时直接视为成功，不产生写操作。

        Returns:
            成功（含无需变更）返回 True；成员或身份组不可用时返回 False。
        """
        try:
            has_role = await self.gateway.member_has_role(directive.user_id, role_id)
            if directive.action == ModeratorAction.ADD and has_role:
                logger.info(f"用户 {directive.user_id} 已经拥有管理员身份组，无需变更。")
                return True
            if directive.action == ModeratorAction.REMOVE and not has_role:
                logger.info(f"用户 {directive.user_id} 本来就没有管理员身份组，无需变更。")
                return True

            await self.gateway.apply_role_change(
                directive.user_id, role_id, directive.action, reason="Passed moderator proposal"
            )
        except CollaboratorUnavailable as e:
            logger.error(f"为用户 {directive.user_id} 执行 {directive.action.value} 失败: {e}")
            return False

        logger.info(f"已为用户 {directive.user_id} 执行管理员身份组变更: {directive.action.value}")
        return True
