from AgoraPact.dto.ProposalTypeConfigDto import ProposalTypeConfigDto
from AgoraPact.share.BaseDto import BaseDto
from AgoraPact.share.enums.ProposalKind import ProposalKind


class ProposalMatchDto(BaseDto):
    """
    格式校验的结果：提案类型 × 变体。
    """

    type_name: str
    config: ProposalTypeConfigDto
    kind: ProposalKind

    @property
    def is_withdrawal(self) -> bool:
        return self.kind == ProposalKind.WITHDRAWAL
