from .BaseModel import BaseModel
from .Proposal import Proposal

__all__ = [
    "BaseModel",
    "Proposal",
]
