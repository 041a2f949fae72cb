from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Coroutine, List, Optional

import discord

from AgoraPact.cogs.Governance.dto.MessageSnapshotDto import MessageSnapshotDto
from AgoraPact.cogs.Governance.dto.SignalCountsDto import SignalCountsDto
from AgoraPact.share.ApiScheduler import Priority
from AgoraPact.share.enums.ModeratorAction import ModeratorAction
from AgoraPact.share.exceptions.CollaboratorUnavailable import CollaboratorUnavailable

if TYPE_CHECKING:
    from AgoraPact.share.AgoraPactBot import AgoraPactBot

logger = logging.getLogger(__name__)


class PlatformGateway:
    """
    议事流程与 Discord 之间的唯一通道。

    - 所有请求都经过 bot.api_scheduler 按优先级排队；
    - 对外只暴露 ID 和 DTO，不泄露 discord.py 对象；
    - discord.py 抛出的异常统一转换为 CollaboratorUnavailable。
    """

    def __init__(self, bot: "AgoraPactBot"):
        self.bot = bot

    async def _call(self, operation: str, coro: Coroutine[Any, Any, Any], priority: int) -> Any:
        try:
            return await self.bot.api_scheduler.submit(coro, priority)
        except discord.DiscordException as e:
            raise CollaboratorUnavailable(operation, str(e)) from e

    async def _get_channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self._call(
                "fetch_channel", self.bot.fetch_channel(channel_id), Priority.BACKGROUND
            )
        if not isinstance(channel, discord.abc.Messageable):
            raise CollaboratorUnavailable("fetch_channel", f"频道 {channel_id} 不是文字频道")
        return channel

    async def _get_guild(self) -> discord.Guild:
        guild = self.bot.get_guild(self.bot.guild_id)
        if guild is None:
            guild = await self._call(
                "fetch_guild", self.bot.fetch_guild(self.bot.guild_id), Priority.BACKGROUND
            )
        return guild

    @staticmethod
    def _signals_of(message: discord.Message) -> SignalCountsDto:
        counts = {}
        bot_reacted = {}
        for reaction in message.reactions:
            key = str(reaction.emoji)
            counts[key] = reaction.count
            bot_reacted[key] = reaction.me
        return SignalCountsDto(counts=counts, bot_reacted=bot_reacted)

    @staticmethod
    def _snapshot_of(message: discord.Message) -> MessageSnapshotDto:
        return MessageSnapshotDto(
            id=message.id,
            channel_id=message.channel.id,
            author_id=message.author.id,
            author_name=str(message.author),
            content=message.content,
            created_at=message.created_at.replace(tzinfo=None),
            signals=PlatformGateway._signals_of(message),
        )

    # --- 消息 ---

    async def post_message(
        self, channel_id: int, content: str, priority: int = Priority.BACKGROUND
    ) -> MessageSnapshotDto:
        channel = await self._get_channel(channel_id)
        message = await self._call("post_message", channel.send(content), priority)
        return self._snapshot_of(message)

    async def edit_message(
        self, channel_id: int, message_id: int, content: str, priority: int = Priority.BACKGROUND
    ):
        channel = await self._get_channel(channel_id)
        partial = channel.get_partial_message(message_id)  # type: ignore[attr-defined]
        await self._call("edit_message", partial.edit(content=content), priority)

    async def delete_message(
        self, channel_id: int, message_id: int, priority: int = Priority.BACKGROUND
    ):
        channel = await self._get_channel(channel_id)
        partial = channel.get_partial_message(message_id)  # type: ignore[attr-defined]
        await self._call("delete_message", partial.delete(), priority)

    async def reply(
        self, channel_id: int, message_id: int, content: str, priority: int = Priority.BACKGROUND
    ):
        channel = await self._get_channel(channel_id)
        partial = channel.get_partial_message(message_id)  # type: ignore[attr-defined]
        await self._call("reply", partial.reply(content), priority)

    async def add_reaction(
        self, channel_id: int, message_id: int, emoji: str, priority: int = Priority.VOTE_PANEL
    ):
        channel = await self._get_channel(channel_id)
        partial = channel.get_partial_message(message_id)  # type: ignore[attr-defined]
        await self._call("add_reaction", partial.add_reaction(emoji), priority)

    async def fetch_message(
        self, channel_id: int, message_id: int, priority: int = Priority.BACKGROUND
    ) -> MessageSnapshotDto:
        channel = await self._get_channel(channel_id)
        message = await self._call("fetch_message", channel.fetch_message(message_id), priority)
        return self._snapshot_of(message)

    async def fetch_recent_messages(
        self, channel_id: int, limit: int, priority: int = Priority.HISTORY
    ) -> List[MessageSnapshotDto]:
        """按从新到旧的顺序读取频道最近的 limit 条消息。"""
        channel = await self._get_channel(channel_id)

        async def _collect() -> List[discord.Message]:
            return [message async for message in channel.history(limit=limit)]

        messages = await self._call("fetch_recent_messages", _collect(), priority)
        return [self._snapshot_of(m) for m in messages]

    async def read_signal_counts(
        self, channel_id: int, message_id: int, priority: int = Priority.VOTE_PANEL
    ) -> SignalCountsDto:
        snapshot = await self.fetch_message(channel_id, message_id, priority)
        return snapshot.signals

    # --- 身份组 ---

    async def _get_member_and_role(
        self, user_id: int, role_id: int
    ) -> tuple[discord.Member, discord.Role]:
        guild = await self._get_guild()
        role = guild.get_role(role_id)
        if role is None:
            raise CollaboratorUnavailable("get_role", f"身份组 {role_id} 不存在")

        member: Optional[discord.Member] = guild.get_member(user_id)
        if member is None:
            member = await self._call(
                "fetch_member", guild.fetch_member(user_id), Priority.BACKGROUND
            )
        assert member is not None
        return member, role

    async def member_has_role(self, user_id: int, role_id: int) -> bool:
        member, role = await self._get_member_and_role(user_id, role_id)
        return role in member.roles

    async def apply_role_change(
        self, user_id: int, role_id: int, action: ModeratorAction, reason: Optional[str] = None
    ):
        member, role = await self._get_member_and_role(user_id, role_id)
        if action == ModeratorAction.ADD:
            coro = member.add_roles(role, reason=reason)
        else:
            coro = member.remove_roles(role, reason=reason)
        await self._call("apply_role_change", coro, Priority.BACKGROUND)
