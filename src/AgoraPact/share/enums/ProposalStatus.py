from enum import IntEnum


class ProposalStatus(IntEnum):
    """提案当前状态"""

    NONE = 0  # 尚未入库 (仅用于状态迁移记录)
    VOTING = 1  # 投票中
    PASSED = 2  # 已通过
    FAILED = 3  # 未通过
