from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Optional

from AgoraPact.share.TimeUtils import TimeUtils

if TYPE_CHECKING:
    from AgoraPact.cogs.Governance.GovernanceLogic import GovernanceLogic

logger = logging.getLogger(__name__)

IDLE_RECHECK = timedelta(hours=1)
ERROR_RETRY = timedelta(minutes=5)


class VoteScheduler:
    """
    在最早的投票截止时间准时唤醒并结算到期投票。

    任意时刻最多只有一个计时任务，reschedule 会取消旧的计时再安排新的。
    没有进行中的投票时每小时复查一次；查询截止时间失败或有投票结算失败时，
    5 分钟后重试。
    """

    def __init__(
        self,
        logic: "GovernanceLogic",
        clock: Callable[[], datetime] = TimeUtils.utc_now,
        idle_recheck: timedelta = IDLE_RECHECK,
        error_retry: timedelta = ERROR_RETRY,
    ):
        self.logic = logic
        self.clock = clock
        self.idle_recheck = idle_recheck
        self.error_retry = error_retry
        self.next_wake_at: Optional[datetime] = None
        self._timer: Optional[asyncio.Task] = None
        self._firing = False
        self._stopped = False

    @staticmethod
    def compute_delay(deadline: datetime, now: datetime) -> timedelta:
        """距离截止时间还有多久，已经过期时为 0。"""
        return max(timedelta(0), deadline - now)

    @property
    def is_armed(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def reschedule(self):
        """
        取消当前计时，按最早的截止时间重新安排唤醒。

        正在结算时不打断，结算结束后循环本身会重新查询截止时间。
        """
        if self._stopped:
            return
        if self._firing and self.is_armed:
            logger.debug("调度器正在结算，结束后会重新规划。")
            return
        self._cancel_timer()
        self._timer = asyncio.create_task(self._run(), name="vote-scheduler")

    def _cancel_timer(self):
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        self.next_wake_at = None

    async def _next_delay(self) -> timedelta:
        try:
            deadline = await self.logic.get_next_deadline()
        except Exception as e:
            logger.error(f"查询下一个投票截止时间失败，{self.error_retry} 后重试: {e}", exc_info=True)
            return self.error_retry

        if deadline is None:
            logger.debug(f"当前没有进行中的投票，{self.idle_recheck} 后复查。")
            return self.idle_recheck

        delay = self.compute_delay(deadline, self.clock())
        logger.debug(f"下一个投票将于 {deadline} 截止，{delay} 后唤醒。")
        return delay

    async def _run(self):
        delay = await self._next_delay()
        while True:
            self.next_wake_at = self.clock() + delay
            await asyncio.sleep(delay.total_seconds())
            self.next_wake_at = None

            self._firing = True
            try:
                failures = await self.logic.finalize_due()
            except Exception as e:
                logger.error(f"结算到期投票时出错: {e}", exc_info=True)
                failures = 1
            finally:
                self._firing = False

            if failures:
                logger.warning(f"有 {failures} 个投票结算失败，{self.error_retry} 后重试。")
                delay = self.error_retry
            else:
                delay = await self._next_delay()

    def stop(self):
        """停止调度，之后的 reschedule 调用将被忽略。"""
        self._stopped = True
        self._cancel_timer()
        logger.info("投票调度器已停止。")
