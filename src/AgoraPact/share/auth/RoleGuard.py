import functools
import logging
from typing import Any, Callable, Coroutine, Dict, Iterable, Set, TypeVar

import discord

from AgoraPact.share.auth.MissingRole import MissingRole

T = TypeVar("T")
logger = logging.getLogger(__name__)


class RoleGuard:
    """
    斜杠命令的身份组检查。

    键名对应 config.json 中 roles 下的条目。
    "moderator" 未在 roles 中配置时，退回使用 governance.moderatorRoleId。
    """

    @staticmethod
    def resolve_role_ids(config: Dict[str, Any], role_keys: Iterable[str]) -> Set[int]:
        roles = config.get("roles", {})
        governance = config.get("governance", {})
        resolved: Set[int] = set()
        for key in role_keys:
            role_id = roles.get(key)
            if not role_id and key == "moderator":
                role_id = governance.get("moderatorRoleId")
            if not role_id:
                logger.warning(f"config.json 中没有配置身份组 '{key}'，该键不授予任何权限。")
                continue
            resolved.add(int(role_id))
        return resolved

    @staticmethod
    def hasRoles(interaction: discord.Interaction, *role_keys: str) -> bool:
        """交互发起者是否拥有任一指定身份组。私信中的交互一律视为没有。"""
        member = interaction.user
        if not isinstance(member, discord.Member):
            return False

        config = getattr(interaction.client, "config", None)
        if config is None:
            raise RuntimeError("Bot 不存在 'config' 属性")

        required = RoleGuard.resolve_role_ids(config, role_keys)
        return any(role.id in required for role in member.roles)

    @staticmethod
    def requireRoles(*role_keys: str) -> Callable[[T], T]:
        """
        命令装饰器，检查失败时抛出 MissingRole，由 Cog 的错误处理器回复用户。
        需放在 app_commands.command 与 app_commands.describe 之下。
        """

        def decorator(
            func: Callable[..., Coroutine[Any, Any, Any]],
        ) -> Callable[..., Coroutine[Any, Any, Any]]:
            @functools.wraps(func)
            async def wrapper(cog, interaction: discord.Interaction, *args, **kwargs):
                if not RoleGuard.hasRoles(interaction, *role_keys):
                    logger.info(
                        f"用户 {interaction.user.id} 缺少身份组 {role_keys}，拒绝执行 {func.__name__}。"
                    )
                    raise MissingRole(role_keys)
                return await func(cog, interaction, *args, **kwargs)

            return wrapper

        return decorator  # type: ignore[return-value]
