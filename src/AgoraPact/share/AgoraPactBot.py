from typing import Any, Dict, Optional

from discord.ext import commands

from AgoraPact.share.ApiScheduler import APIScheduler
from AgoraPact.share.DatabaseHandler import DatabaseHandler


class AgoraPactBot(commands.Bot):
    """
    自定义 Bot 基类。
    它继承自 commands.Bot，并为项目中的自定义属性（如 api_scheduler）
    提供一个集中的定义，以便在整个项目中获得准确的类型提示。
    """

    api_scheduler: APIScheduler
    db_handler: Optional[DatabaseHandler]
    config: Dict[str, Any]

    @property
    def guild_id(self) -> int:
        """本进程服务的唯一服务器 ID。"""
        return int(self.config["guildId"])
