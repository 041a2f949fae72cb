import asyncio
import logging

import discord
from discord.ext import commands

from AgoraPact.cogs.Governance.GovernanceLogic import GovernanceLogic
from AgoraPact.cogs.Governance.VoteTally import VoteTally
from AgoraPact.share.AgoraPactBot import AgoraPactBot
from AgoraPact.share.ApiScheduler import Priority
from AgoraPact.share.enums.VoteOption import VoteOption

logger = logging.getLogger(__name__)


class ReactionListener(commands.Cog):
    """
    监听原始反应事件，分发给支持流程和投票流程。
    两个流程各自捕获异常，互不影响。
    """

    def __init__(self, bot: AgoraPactBot, logic: GovernanceLogic):
        self.bot = bot
        self.logic = logic

    def _is_relevant(self, payload: discord.RawReactionActionEvent) -> bool:
        if payload.guild_id is None or payload.guild_id != self.bot.guild_id:
            return False
        # 忽略机器人自己预置的反应
        return self.bot.user is None or payload.user_id != self.bot.user.id

    async def _support_pipeline(self, payload: discord.RawReactionActionEvent, added: bool):
        if not added or str(payload.emoji) != VoteOption.SUPPORT:
            return
        if not self.logic.parser.is_debate_channel(payload.channel_id):
            return

        try:
            candidate = await self.logic.gateway.fetch_message(
                payload.channel_id, payload.message_id, Priority.VOTE_PANEL
            )
            support = VoteTally.support_count(candidate.signals)
            await self.logic.on_support_signal(candidate, support)
        except Exception as e:
            logger.error(f"处理讨论帖 {payload.message_id} 的支持反应时出错: {e}", exc_info=True)

    async def _vote_pipeline(self, payload: discord.RawReactionActionEvent, added: bool):
        emoji = str(payload.emoji)
        if emoji not in (VoteOption.YES, VoteOption.NO):
            return
        if self.logic.parser.type_for_vote_channel(payload.channel_id) is None:
            return

        try:
            await self.logic.on_vote_signal(payload.message_id, emoji, added)
        except Exception as e:
            logger.error(f"处理投票 {payload.message_id} 的反应时出错: {e}", exc_info=True)

    async def _dispatch(self, payload: discord.RawReactionActionEvent, added: bool):
        if not self._is_relevant(payload):
            return
        await asyncio.gather(
            self._support_pipeline(payload, added),
            self._vote_pipeline(payload, added),
        )

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        await self._dispatch(payload, added=True)

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent):
        await self._dispatch(payload, added=False)
