from .ModeratorAction import ModeratorAction
from .ProposalKind import ProposalKind
from .ProposalStatus import ProposalStatus
from .VoteOption import VoteOption

__all__ = [
    "ModeratorAction",
    "ProposalKind",
    "ProposalStatus",
    "VoteOption",
]
