import logging
import os
from pathlib import Path
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "data/agora_pact.db"


class DatabaseHandler:
    """
    持有提案库的异步引擎，并为每个工作单元发放独立会话。

    运行时由 initialize_db_handler 创建唯一实例；测试可以传入自己的 URL。
    """

    def __init__(self, database_url: Optional[str] = None):
        self._database_url = database_url
        self._engine: Optional[AsyncEngine] = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @staticmethod
    def default_url() -> str:
        """由 DATABASE_NAME 推导 SQLite 地址，必要时创建所在目录。"""
        db_path = Path(os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME))
        if not db_path.parent.exists():
            logger.info(f"数据库目录 '{db_path.parent}' 不存在，正在创建...")
            db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{db_path}"

    def initialize(self):
        """创建引擎。重复调用只会记录警告。"""
        if self.is_initialized:
            logger.warning("DatabaseHandler 已经初始化，跳过重复初始化。")
            return

        url = self._database_url or self.default_url()
        echo = os.getenv("SQL_ECHO", "False").lower() in ("true", "1", "t")
        self._engine = create_async_engine(url, echo=echo, connect_args={"timeout": 15})

        # 读写并发时避免 database is locked
        @event.listens_for(self._engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA journal_mode=WAL;")
            finally:
                cursor.close()

        logger.info(f"提案库引擎已创建: {url}")

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("DatabaseHandler 尚未初始化。请先调用 initialize。")
        return self._engine

    async def init_db(self):
        """建表（含唯一约束与索引），已存在的表保持不变。"""
        import AgoraPact.models  # noqa: F401

        async with self._require_engine().begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("提案表检查完成。")

    def get_session(self) -> AsyncSession:
        return AsyncSession(self._require_engine(), expire_on_commit=False)

    async def close(self):
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("数据库连接已关闭。")


_db_handler_instance: Optional[DatabaseHandler] = None


def initialize_db_handler() -> DatabaseHandler:
    """创建并初始化进程内唯一的 DatabaseHandler。"""
    global _db_handler_instance
    if _db_handler_instance is None:
        _db_handler_instance = DatabaseHandler()
        _db_handler_instance.initialize()
    return _db_handler_instance
