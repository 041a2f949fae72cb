import logging

from discord.ext import commands

from AgoraPact.cogs.Governance.tasks.VoteScheduler import VoteScheduler
from AgoraPact.share.AgoraPactBot import AgoraPactBot

logger = logging.getLogger(__name__)


class VoteCloser(commands.Cog):
    """
    持有投票调度器的生命周期：就绪后启动（顺带结算离线期间到期的投票），卸载时停止。
    """

    def __init__(self, bot: AgoraPactBot, scheduler: VoteScheduler):
        self.bot = bot
        self.scheduler = scheduler

    async def cog_unload(self):
        self.scheduler.stop()

    @commands.Cog.listener()
    async def on_ready(self):
        # on_ready 在断线重连后可能再次触发，已经在计时就不重复安排
        if self.scheduler.is_armed:
            return
        logger.info("投票调度器启动，检查离线期间到期的投票...")
        self.scheduler.reschedule()
