from enum import IntEnum


class ProposalKind(IntEnum):
    """提案变体"""

    STANDARD = 0  # 普通提案
    WITHDRAWAL = 1  # 撤回已通过的决议
