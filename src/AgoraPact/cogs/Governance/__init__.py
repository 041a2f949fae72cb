import asyncio
import logging

from AgoraPact.dto.GovernanceConfigDto import GovernanceConfigDto
from AgoraPact.share.AgoraPactBot import AgoraPactBot

from .Cog import Governance
from .GovernanceLogic import GovernanceLogic
from .listeners.ReactionListener import ReactionListener
from .PlatformGateway import PlatformGateway
from .tasks.VoteCloser import VoteCloser
from .tasks.VoteScheduler import VoteScheduler

__all__ = [
    "Governance",
    "GovernanceLogic",
    "PlatformGateway",
    "ReactionListener",
    "VoteCloser",
    "VoteScheduler",
]

logger = logging.getLogger(__name__)


async def setup(bot: AgoraPactBot):
    """
    设置并加载所有与议事相关的 Cogs。
    """
    config = GovernanceConfigDto.from_bot_config(bot.config)
    gateway = PlatformGateway(bot)

    # 状态变更以 proposal_transition 事件分派，其他 Cog 可以直接监听
    logic = GovernanceLogic(
        bot.db_handler,
        gateway,
        config,
        on_transition=lambda record: bot.dispatch("proposal_transition", record),
    )
    scheduler = VoteScheduler(logic)
    logic.bind_scheduler(scheduler)

    cogs_to_load = [
        Governance(bot, logic),
        ReactionListener(bot, logic),
        VoteCloser(bot, scheduler),
    ]

    await asyncio.gather(*[bot.add_cog(cog) for cog in cogs_to_load])
    logger.info(
        f"成功为 Governance 模块加载了 {len(cogs_to_load)} 个 Cogs，"
        f"提案类型: {', '.join(config.proposal_types)}"
    )
