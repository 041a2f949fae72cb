from .AlreadyExists import AlreadyExists
from .CollaboratorUnavailable import CollaboratorUnavailable
from .ConfigurationMissing import ConfigurationMissing
from .InvalidModeratorDirective import InvalidModeratorDirective
from .TargetNotFound import TargetNotFound

__all__ = [
    "AlreadyExists",
    "CollaboratorUnavailable",
    "ConfigurationMissing",
    "InvalidModeratorDirective",
    "TargetNotFound",
]
