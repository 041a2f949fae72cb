from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

import discord

from AgoraPact.cogs.Governance.dto.PendingProposalDto import PendingProposalDto
from AgoraPact.cogs.Governance.dto.ProposalStatsDto import ProposalStatsDto
from AgoraPact.cogs.Governance.ModeratorResolver import ModeratorResolver
from AgoraPact.cogs.Governance.ProposalParser import ProposalParser
from AgoraPact.dto.ProposalDto import ProposalDto
from AgoraPact.dto.ProposalTypeConfigDto import ProposalTypeConfigDto
from AgoraPact.share.StringUtils import StringUtils
from AgoraPact.share.TimeUtils import TimeUtils

logger = logging.getLogger(__name__)


class ProposalMessageBuilder:
    """
    负责生成提案流程中发送到频道的所有文本，以及斜杠命令使用的 Embed。

    投票消息、决议记录等正文是纯文本，撤回流程需要从决议频道的历史消息中
    重新解析 `**Resolution:**` 等标记，所以这些模板的措辞不能随意改动。
    """

    @staticmethod
    def compose_vote_message(
        author_name: str,
        content: str,
        type_name: str,
        config: ProposalTypeConfigDto,
        is_withdrawal: bool,
        now: datetime,
    ) -> str:
        """
        生成投票阶段的消息正文。相同输入总是得到相同输出。
        """
        end_time = now + config.vote_duration
        withdrawal_text = "WITHDRAWAL " if is_withdrawal else ""
        if is_withdrawal:
            instructions = (
                "✅ React with ✅ to SUPPORT withdrawing this resolution\n"
                "❌ React with ❌ to OPPOSE withdrawal (keep the resolution)"
            )
        else:
            instructions = (
                "✅ React with ✅ to SUPPORT this proposal\n"
                "❌ React with ❌ to OPPOSE this proposal"
            )

        return (
            f"🗳️ **{type_name.upper()} {withdrawal_text}VOTING PHASE**\n\n"
            f"**Proposed by:** {author_name}\n"
            f"**Type:** {type_name}{' (withdrawal)' if is_withdrawal else ''}\n"
            f"**Original Proposal:**\n{content}\n\n"
            f"**Instructions:**\n{instructions}\n\n"
            f"**Voting ends:** {TimeUtils.discord_timestamp(end_time)}\n\n"
            "React below to cast your vote!"
        )

    @staticmethod
    def build_result_block(passed: bool, yes_votes: int, no_votes: int, is_withdrawal: bool) -> str:
        """
        结算后追加到投票消息末尾的结果块。
        """
        emoji = "✅" if passed else "❌"
        verdict = "PASSED" if passed else "FAILED"
        block = (
            "**VOTING COMPLETED**\n"
            f"{emoji} **{verdict}**\n"
            f"✅ Support: {yes_votes}\n"
            f"❌ Oppose: {no_votes}"
        )
        if passed:
            block += (
                "\n\nThe target resolution has been withdrawn."
                if is_withdrawal
                else "\n\nThis proposal has been moved to resolutions."
            )
        return block

    @staticmethod
    def append_result(vote_message_content: str, result_block: str) -> str:
        return f"{vote_message_content}\n\n{result_block}"

    @staticmethod
    def render_moved_notice(vote_channel_id: int, is_withdrawal: bool) -> str:
        """
        讨论帖进入投票后的说明。优先追加到原帖末尾，无法编辑时作为回复发送。
        """
        withdrawal_text = "withdrawal " if is_withdrawal else ""
        return f"**This {withdrawal_text}proposal has been moved to voting in <#{vote_channel_id}>**"

    @staticmethod
    def render_resolution(proposal: ProposalDto) -> str:
        """
        已通过提案在决议频道的正式记录。
        """
        completed_at = proposal.completed_at or proposal.end_time
        return (
            f"**PASSED {proposal.proposal_type.upper()} RESOLUTION**\n\n"
            f"**Proposed by:** <@{proposal.author_id}>\n"
            f"**Type:** {proposal.proposal_type}\n"
            f"**Passed on:** {TimeUtils.discord_timestamp(completed_at)}\n"
            f"**Final Vote:** ✅ {proposal.final_yes} - ❌ {proposal.final_no}\n\n"
            f"**Resolution:**\n{proposal.content}\n\n"
            f"*This resolution is now active {proposal.proposal_type} policy.*"
        )

    @staticmethod
    def render_withdrawal_notice(proposal: ProposalDto) -> str:
        """
        撤回通过后发布在决议频道的公告。
        """
        completed_at = proposal.completed_at or proposal.end_time
        original = proposal.target_resolution.original_content if proposal.target_resolution else ""
        return (
            f"🗑️ **WITHDRAWN {proposal.proposal_type.upper()} RESOLUTION**\n\n"
            f"**Withdrawn by:** <@{proposal.author_id}>\n"
            f"**Withdrawn on:** {TimeUtils.discord_timestamp(completed_at)}\n"
            f"**Final Vote:** ✅ {proposal.final_yes} - ❌ {proposal.final_no}\n\n"
            f"**Original Resolution (now withdrawn):**\n{original}\n\n"
            f"**Withdrawal Proposal:**\n{proposal.content}\n\n"
            "*This resolution has been officially withdrawn and is no longer active policy.*"
        )

    # --- 斜杠命令 ---

    @staticmethod
    def listing_title(content: str, limit: int = 100) -> str:
        """列表中展示的标题。管理员任免提案显示为一句话说明。"""
        if ModeratorResolver.parse(content) is not None:
            return ModeratorResolver.summarize(content)
        return StringUtils.strip_mentions(ProposalParser.extract_title(content, limit))

    @staticmethod
    def progress_bar(current: int, total: int, length: int = 6) -> str:
        if total <= 0:
            return "░" * length
        filled = min(length, round(current / total * length))
        return "█" * filled + "░" * (length - filled)

    @staticmethod
    def create_pending_embed(
        featured: Sequence[PendingProposalDto], total_pending: int, guild_id: int
    ) -> discord.Embed:
        """
        `/proposals` 的结果。
        """
        if not featured:
            return discord.Embed(
                title="📋 Pending Proposals",
                description="No pending proposals found. Post a proposal in a debate channel to get started!",
                color=discord.Color.light_grey(),
            )

        count_text = (
            f"{len(featured)} of {total_pending}" if total_pending > len(featured) else f"{len(featured)}"
        )
        embed = discord.Embed(
            title=f"📋 Pending Proposals ({count_text})",
            description="💡 **React with ✅ on proposals to show support!**",
            color=discord.Color.blue(),
        )
        for index, pending in enumerate(featured, 1):
            marker = "🗑️ WITHDRAWAL" if pending.is_withdrawal else "📝"
            title = ProposalMessageBuilder.listing_title(pending.content, 60)
            link = StringUtils.message_link(guild_id, pending.channel_id, pending.message_id)
            bar = ProposalMessageBuilder.progress_bar(pending.support_count, pending.required_support)
            embed.add_field(
                name=f"{index}. {marker} {pending.proposal_type.upper()}",
                value=(
                    f"👤 {pending.author_name}\n"
                    f"📋 [{title}]({link})\n"
                    f"✅ **{pending.support_count}/{pending.required_support}** {bar} "
                    f"({round(pending.progress * 100)}%)"
                ),
                inline=False,
            )
        if total_pending > len(featured):
            embed.set_footer(text="Showing the proposals closest to passing and the most recent ones.")
        return embed

    @staticmethod
    def create_active_votes_embed(
        votes: Sequence[ProposalDto], guild_id: int, now: Optional[datetime] = None
    ) -> discord.Embed:
        """
        `/activevotes` 的结果。
        """
        if not votes:
            return discord.Embed(
                title="🗳️ Active Votes",
                description="No active votes currently running.",
                color=discord.Color.light_grey(),
            )

        embed = discord.Embed(
            title=f"🗳️ Active Votes ({len(votes)} item{'s' if len(votes) != 1 else ''})",
            description="🗳️ **Vote on proposals using the ✅ and ❌ reactions!**",
            color=discord.Color.green(),
        )
        for index, vote in enumerate(votes, 1):
            marker = "🗑️ WITHDRAWAL" if vote.is_withdrawal else "📝"
            title = ProposalMessageBuilder.listing_title(vote.content, 50)
            link = StringUtils.message_link(guild_id, vote.vote_channel_id, vote.vote_message_id)
            embed.add_field(
                name=f"{index}. {marker} {vote.proposal_type.upper()}",
                value=(
                    f"👤 <@{vote.author_id}>\n"
                    f"📋 [{title}]({link})\n"
                    f"📊 {vote.yes_votes}✅ / {vote.no_votes}❌ - "
                    f"⏰ {TimeUtils.format_remaining(vote.end_time, now)}"
                ),
                inline=False,
            )
        return embed

    @staticmethod
    def create_vote_info_embed(
        proposal: ProposalDto, guild_id: int, now: Optional[datetime] = None
    ) -> discord.Embed:
        """
        `/voteinfo` 的结果，展示单个投票的当前票数。
        """
        title = ProposalMessageBuilder.listing_title(proposal.content)
        link = StringUtils.message_link(guild_id, proposal.vote_channel_id, proposal.vote_message_id)
        heading = "🗑️ WITHDRAWAL VOTE" if proposal.is_withdrawal else "🗳️ VOTE"
        total = proposal.yes_votes + proposal.no_votes

        embed = discord.Embed(
            title=heading,
            description=f"**📋 Proposal:** [{title}]({link})",
            color=discord.Color.blue(),
        )
        embed.add_field(name="👤 Author", value=f"<@{proposal.author_id}>", inline=True)
        embed.add_field(name="📊 Type", value=proposal.proposal_type.upper(), inline=True)
        embed.add_field(
            name="🗳️ Current Results",
            value=(
                f"✅ **Yes:** {proposal.yes_votes} votes\n"
                f"❌ **No:** {proposal.no_votes} votes\n"
                f"📊 **Total:** {total} votes"
            ),
            inline=False,
        )
        if total > 0:
            yes_pct = round(proposal.yes_votes / total * 100)
            embed.add_field(
                name="📈 Breakdown", value=f"{yes_pct}% Yes, {100 - yes_pct}% No", inline=False
            )
        embed.add_field(
            name="⏰ Time Remaining",
            value=TimeUtils.format_remaining(proposal.end_time, now),
            inline=False,
        )
        return embed

    @staticmethod
    def create_stats_embed(stats: ProposalStatsDto) -> discord.Embed:
        """
        `/proposalstats` 的结果。
        """
        embed = discord.Embed(title="📊 Proposal Statistics", color=discord.Color.gold())
        embed.add_field(name="Total", value=str(stats.total), inline=True)
        embed.add_field(name="Active", value=str(stats.active), inline=True)
        embed.add_field(name="Passed", value=str(stats.passed), inline=True)
        embed.add_field(name="Failed", value=str(stats.failed), inline=True)
        if stats.by_type:
            embed.add_field(
                name="By Type",
                value="\n".join(
                    f"**{name}**: {count}" for name, count in sorted(stats.by_type.items())
                ),
                inline=False,
            )
        return embed
