from .GovernanceConfigDto import GovernanceConfigDto
from .ProposalDto import ProposalDto
from .ProposalTypeConfigDto import ProposalTypeConfigDto
from .TargetResolutionDto import TargetResolutionDto

__all__ = [
    "GovernanceConfigDto",
    "ProposalDto",
    "ProposalTypeConfigDto",
    "TargetResolutionDto",
]
