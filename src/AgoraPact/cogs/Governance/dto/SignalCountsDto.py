from typing import Dict

from pydantic import Field

from AgoraPact.share.BaseDto import BaseDto


class SignalCountsDto(BaseDto):
    """
    某条消息上各反应选项的原始计数，以及机器人自己是否参与了该选项。
    """

    counts: Dict[str, int] = Field(default_factory=dict)
    bot_reacted: Dict[str, bool] = Field(default_factory=dict)

    def count(self, option: str) -> int:
        return self.counts.get(option, 0)

    def bot_participated(self, option: str) -> bool:
        return self.bot_reacted.get(option, False)
