import logging

import discord
from discord import app_commands
from discord.ext import commands

from AgoraPact.cogs.Governance.GovernanceLogic import GovernanceLogic
from AgoraPact.cogs.Governance.views.ProposalMessageBuilder import ProposalMessageBuilder
from AgoraPact.share.AgoraPactBot import AgoraPactBot
from AgoraPact.share.ApiScheduler import Priority
from AgoraPact.share.auth.MissingRole import MissingRole
from AgoraPact.share.auth.RoleGuard import RoleGuard
from AgoraPact.share.SafeDefer import safeDefer
from AgoraPact.share.StringUtils import StringUtils

logger = logging.getLogger(__name__)


class Governance(commands.Cog):
    """
    议事相关的斜杠命令。
    """

    def __init__(self, bot: AgoraPactBot, logic: GovernanceLogic):
        self.bot = bot
        self.logic = logic

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ):
        """
        这个 Cog 的局部错误处理器。
        """
        original_error = getattr(error, "original", error)

        if isinstance(original_error, MissingRole):
            message = str(original_error)
        else:
            logger.error(f"在 Governance Cog 中发生未处理的错误: {error}", exc_info=True)
            message = "❌ An error occurred while processing the command."

        if interaction.response.is_done():
            coro = interaction.followup.send(message, ephemeral=True)
        else:
            coro = interaction.response.send_message(message, ephemeral=True)
        await self.bot.api_scheduler.submit(coro=coro, priority=Priority.INTERACTION)

    async def _send(self, interaction: discord.Interaction, **kwargs):
        await self.bot.api_scheduler.submit(
            coro=interaction.followup.send(**kwargs), priority=Priority.INTERACTION
        )

    @app_commands.command(name="proposals", description="Show proposals still gathering support")
    async def proposals(self, interaction: discord.Interaction):
        await safeDefer(interaction)
        pending = await self.logic.get_pending_proposals()
        featured = GovernanceLogic.select_featured(pending)
        embed = ProposalMessageBuilder.create_pending_embed(featured, len(pending), self.bot.guild_id)
        await self._send(interaction, embed=embed)

    @app_commands.command(name="activevotes", description="Show votes that are currently running")
    async def active_votes(self, interaction: discord.Interaction):
        await safeDefer(interaction)
        votes = await self.logic.get_active_votes()
        embed = ProposalMessageBuilder.create_active_votes_embed(
            votes, self.bot.guild_id, self.logic.clock()
        )
        await self._send(interaction, embed=embed)

    @app_commands.command(name="voteinfo", description="Show the current results of a vote")
    @app_commands.describe(message_id="ID or link of the vote message or the original proposal")
    async def vote_info(self, interaction: discord.Interaction, message_id: str):
        await safeDefer(interaction)
        cleaned = StringUtils.clean_message_id(message_id)
        if cleaned is None:
            await self._send(interaction, content="❌ Please provide a valid message ID.", ephemeral=True)
            return

        proposal = await self.logic.get_vote_info(cleaned)
        if proposal is None:
            await self._send(interaction, content="❌ Vote not found or not currently active.")
            return

        embed = ProposalMessageBuilder.create_vote_info_embed(
            proposal, self.bot.guild_id, self.logic.clock()
        )
        await self._send(interaction, embed=embed)

    @app_commands.command(name="proposalstats", description="Show proposal statistics")
    async def proposal_stats(self, interaction: discord.Interaction):
        await safeDefer(interaction)
        stats = await self.logic.get_stats()
        await self._send(interaction, embed=ProposalMessageBuilder.create_stats_embed(stats))

    @app_commands.command(name="forcevote", description="Move a proposal to voting regardless of support")
    @app_commands.describe(message_id="ID or link of the proposal in a debate channel")
    @RoleGuard.requireRoles("moderator")
    async def force_vote(self, interaction: discord.Interaction, message_id: str):
        await safeDefer(interaction, ephemeral=True)
        cleaned = StringUtils.clean_message_id(message_id)
        if cleaned is None:
            await self._send(interaction, content="❌ Please provide a valid message ID.", ephemeral=True)
            return

        result = await self.logic.force_advance(cleaned)
        if result.success:
            content = f"✅ Successfully forced vote to start for proposal: {cleaned}"
        else:
            content = f"❌ Failed to force vote: {result.error}"
        await self._send(interaction, content=content, ephemeral=True)
