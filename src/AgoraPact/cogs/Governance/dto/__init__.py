from .ForceVoteResultDto import ForceVoteResultDto
from .MessageSnapshotDto import MessageSnapshotDto
from .ModeratorActionDto import ModeratorActionDto
from .PendingProposalDto import PendingProposalDto
from .ProposalMatchDto import ProposalMatchDto
from .ProposalStatsDto import ProposalStatsDto
from .SignalCountsDto import SignalCountsDto
from .TransitionRecordDto import TransitionRecordDto

__all__ = [
    "ForceVoteResultDto",
    "MessageSnapshotDto",
    "ModeratorActionDto",
    "PendingProposalDto",
    "ProposalMatchDto",
    "ProposalStatsDto",
    "SignalCountsDto",
    "TransitionRecordDto",
]
