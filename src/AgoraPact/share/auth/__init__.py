from .MissingRole import MissingRole
from .RoleGuard import RoleGuard

__all__ = [
    "MissingRole",
    "RoleGuard",
]
