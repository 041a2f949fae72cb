from .AgoraPactBot import AgoraPactBot
from .ApiScheduler import APIScheduler, Priority
from .auth import MissingRole, RoleGuard
from .BaseDto import BaseDto
from .DatabaseHandler import DatabaseHandler
from .LoggingConfigurator import LoggingConfigurator
from .SafeDefer import safeDefer
from .StringUtils import StringUtils
from .TimeUtils import TimeUtils
from .UnitOfWork import UnitOfWork

__all__ = [
    "AgoraPactBot",
    "APIScheduler",
    "BaseDto",
    "DatabaseHandler",
    "LoggingConfigurator",
    "Priority",
    "safeDefer",
    "StringUtils",
    "TimeUtils",
    "UnitOfWork",
    "MissingRole",
    "RoleGuard",
]
