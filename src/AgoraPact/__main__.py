import json
import logging
import os
import sys
from typing import Any, Dict, Optional

import aiorun
import discord
from discord import app_commands
from dotenv import load_dotenv

from AgoraPact.share.AgoraPactBot import AgoraPactBot
from AgoraPact.share.ApiScheduler import APIScheduler, Priority
from AgoraPact.share.auth.MissingRole import MissingRole
from AgoraPact.share.DatabaseHandler import initialize_db_handler
from AgoraPact.share.LoggingConfigurator import LoggingConfigurator

# --- .env 和 日志配置 ---
load_dotenv()
LoggingConfigurator(rootLogLevel=os.getenv("LOG_LEVEL", "INFO")).configure()

logger = logging.getLogger("AgoraPact")
# --- 日志配置结束 ---


if sys.platform != "win32":
    try:
        import uvloop

        uvloop.install()
        logger.info("已成功启用 uvloop 作为 asyncio 事件循环")
    except ImportError:
        logger.warning("尝试启用 uvloop 失败，将使用默认事件循环")


bot: Optional[AgoraPactBot] = None


def load_config(path: str) -> Dict[str, Any]:
    """读取 config.json，文件缺失时直接退出。"""
    if not os.path.exists(path):
        logger.error(f"错误: 找不到配置文件 '{path}'，请参考 config.example.json 创建。")
        sys.exit(1)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def prepare(target: AgoraPactBot):
    """
    setup_hook 的实际内容: 启动 API 调度器、建表、加载议事模块、按服务器同步命令。
    """
    target.api_scheduler.start()

    target.db_handler = initialize_db_handler()
    try:
        await target.db_handler.init_db()
    except Exception as e:
        logger.exception(f"数据库表处理失败: {e}")
        await target.close()
        return

    from AgoraPact.cogs import Governance

    try:
        await Governance.setup(target)
    except Exception as e:
        # 配置校验失败时不继续运行，避免在错误的频道上计票
        logger.exception(f"加载 Governance 模块时发生错误: {e}")
        await target.close()
        return

    guild = discord.Object(id=target.guild_id)
    target.tree.copy_global_to(guild=guild)
    await target.api_scheduler.submit(target.tree.sync(guild=guild), priority=Priority.HISTORY)
    logger.info(f"命令已同步到服务器 {target.guild_id}。")


async def on_tree_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    """Cog 之外的命令错误兜底，只在交互尚未被响应时回复。"""
    original_error = getattr(error, "original", error)
    if isinstance(original_error, MissingRole):
        message = str(original_error)
    else:
        logger.error(f"在应用命令中发生未处理的错误: {error}", exc_info=True)
        message = "❌ An unexpected error occurred."

    if bot is None or interaction.response.is_done():
        return
    await bot.api_scheduler.submit(
        interaction.response.send_message(message, ephemeral=True),
        priority=Priority.INTERACTION,
    )


def create_bot(config: Dict[str, Any]) -> AgoraPactBot:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = True
    intents.reactions = True

    created = AgoraPactBot(command_prefix="!", intents=intents, proxy=config.get("proxy") or None)
    created.api_scheduler = APIScheduler()
    created.db_handler = None
    created.config = config

    async def setup_hook():
        await prepare(created)

    async def on_ready():
        logger.info(f"以 {created.user} 的身份登录，服务器: {created.guild_id}")

    created.event(setup_hook)
    created.event(on_ready)
    created.tree.error(on_tree_error)
    return created


async def shutdown(loop):
    """aiorun 的关闭回调: 依次关闭 Bot、数据库与 API 调度器。"""
    logger.info("收到关闭信号，正在关闭 Bot 资源...")
    if bot is None:
        return
    await bot.close()
    if bot.db_handler:
        await bot.db_handler.close()
    await bot.api_scheduler.stop()
    logger.info("所有资源已清理，程序退出。")


async def main_async():
    global bot
    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "YOUR_BOT_TOKEN_HERE":
        logger.error("错误: 未找到或未配置 DISCORD_TOKEN。")
        return

    bot = create_bot(load_config(os.getenv("CONFIG_PATH", "config.json")))
    await bot.start(token)


def main():
    aiorun.run(main_async(), shutdown_callback=shutdown, stop_on_unhandled_errors=True)


if __name__ == "__main__":
    main()
