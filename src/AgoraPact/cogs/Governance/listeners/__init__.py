from .ReactionListener import ReactionListener

__all__ = [
    "ReactionListener",
]
