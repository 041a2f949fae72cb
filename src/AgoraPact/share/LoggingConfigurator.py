import logging
import os
from typing import List, Tuple


class LoggingConfigurator:
    """
    集中配置日志记录器。

    包 logger 使用 LOG_LEVEL；SQLAlchemy 使用 SQLALCHEMY_LOG_LEVEL（默认 WARNING）；
    discord.py 固定为 INFO。三者共用同一个 StreamHandler，且都不向 root 传播。
    """

    PACKAGE_LOGGER = "AgoraPact"
    LOG_FORMAT = "%(asctime)s:%(levelname)s:%(name)s: %(message)s"

    def __init__(self, rootLogLevel: str = "INFO"):
        """
        :param rootLogLevel: 包 logger 的级别名，通常来自 .env 的 LOG_LEVEL。
        """
        self.logLevel = self._levelOf(rootLogLevel, logging.INFO)
        self.streamHandler = logging.StreamHandler()
        self.streamHandler.setFormatter(logging.Formatter(self.LOG_FORMAT))

    @staticmethod
    def _levelOf(name: str, default: int) -> int:
        level = logging.getLevelName(name.strip().upper())
        return level if isinstance(level, int) else default

    def targets(self) -> List[Tuple[str, int]]:
        """需要接管的 logger 及其级别。"""
        sql_level = self._levelOf(os.getenv("SQLALCHEMY_LOG_LEVEL", "WARNING"), logging.WARNING)
        return [
            (self.PACKAGE_LOGGER, self.logLevel),
            ("sqlalchemy.engine", sql_level),
            ("discord", logging.INFO),
        ]

    def configure(self):
        for name, level in self.targets():
            target = logging.getLogger(name)
            target.setLevel(level)
            if self.streamHandler not in target.handlers:
                target.addHandler(self.streamHandler)
            target.propagate = False
        logging.getLogger(self.PACKAGE_LOGGER).info(
            f"日志记录器配置完成，级别: {logging.getLevelName(self.logLevel)}"
        )
