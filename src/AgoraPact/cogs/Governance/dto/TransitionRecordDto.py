from datetime import datetime

from AgoraPact.share.BaseDto import BaseDto
from AgoraPact.share.enums.ProposalStatus import ProposalStatus


class TransitionRecordDto(BaseDto):
    """
    提案状态迁移记录，供日志与外部观察使用。
    """

    message_id: int
    from_status: ProposalStatus
    to_status: ProposalStatus
    timestamp: datetime
