from .CompleteProposalQo import CompleteProposalQo
from .CreateProposalQo import CreateProposalQo

__all__ = [
    "CompleteProposalQo",
    "CreateProposalQo",
]
