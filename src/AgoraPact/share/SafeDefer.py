import logging

import discord

logger = logging.getLogger(__name__)


async def safeDefer(interaction: discord.Interaction, ephemeral: bool = False):
    """
    如果交互还没有被响应，就先延迟响应，给后续的频道扫描和数据库查询留出时间。

    :param interaction: 要延迟的交互对象。
    :param ephemeral: 之后的 followup 是否仅自己可见。
    """
    if interaction.response.is_done():
        return
    try:
        await interaction.response.defer(ephemeral=ephemeral, thinking=True)
    except discord.errors.InteractionResponded:
        logger.warning(f"safeDefer: 交互 {interaction.id} 已在别处被响应。")
