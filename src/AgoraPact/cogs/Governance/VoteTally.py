from typing import Tuple

from AgoraPact.cogs.Governance.dto.SignalCountsDto import SignalCountsDto
from AgoraPact.share.enums.VoteOption import VoteOption


class VoteTally:
    """
    计票与判定。

    机器人在投票消息上预置了 ✅ 和 ❌ 两个反应，计票时需要减去它自己的那一票；
    讨论频道里的支持数使用同样的规则。
    """

    @staticmethod
    def discount_bot_signal(raw_count: int, bot_participated: bool) -> int:
        """从原始反应数中扣除机器人自己的反应，结果不小于 0。"""
        return max(0, raw_count - (1 if bot_participated else 0))

    @staticmethod
    def tally(raw_yes: int, raw_no: int, bot_participated: bool) -> Tuple[int, int]:
        """
        计算有效票数。

        Returns:
            (赞成票, 反对票)
        """
        return (
            VoteTally.discount_bot_signal(raw_yes, bot_participated),
            VoteTally.discount_bot_signal(raw_no, bot_participated),
        )

    @staticmethod
    def tally_signals(signals: SignalCountsDto) -> Tuple[int, int]:
        """
        按选项分别判断机器人是否参与，再计算有效票数。
        """
        return (
            VoteTally.discount_bot_signal(
                signals.count(VoteOption.YES), signals.bot_participated(VoteOption.YES)
            ),
            VoteTally.discount_bot_signal(
                signals.count(VoteOption.NO), signals.bot_participated(VoteOption.NO)
            ),
        )

    @staticmethod
    def support_count(signals: SignalCountsDto) -> int:
        """讨论帖上的有效支持数。"""
        return VoteTally.discount_bot_signal(
            signals.count(VoteOption.SUPPORT), signals.bot_participated(VoteOption.SUPPORT)
        )

    @staticmethod
    def is_passed(yes_votes: int, no_votes: int) -> bool:
        """赞成票严格多于反对票才算通过，平票不通过。"""
        return yes_votes > no_votes
