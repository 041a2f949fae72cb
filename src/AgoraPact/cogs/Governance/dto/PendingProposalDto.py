from datetime import datetime

from AgoraPact.share.BaseDto import BaseDto


class PendingProposalDto(BaseDto):
    """
    仍在讨论阶段、正在收集支持的候选提案。
    """

    message_id: int
    channel_id: int
    content: str
    author_name: str
    created_at: datetime
    support_count: int
    required_support: int
    proposal_type: str
    is_withdrawal: bool

    @property
    def progress(self) -> float:
        return self.support_count / self.required_support
