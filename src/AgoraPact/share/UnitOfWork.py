from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

if TYPE_CHECKING:
    from AgoraPact.services.ProposalService import ProposalService
    from AgoraPact.share.DatabaseHandler import DatabaseHandler


logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    一次业务操作对应一个会话和一个事务。

    块内抛出异常时回滚；正常退出且未显式提交时自动提交。
    条件写入失败（AlreadyExists）应在块内捕获，避免被当作异常回滚并记录警告。

    用法:<br>
    async with UnitOfWork(db_handler) as uow:<br>
        proposal = await uow.proposal.get_by_vote_message_id(...)<br>
    """

    def __init__(self, db_handler: Optional["DatabaseHandler"]):
        if db_handler is None:
            raise RuntimeError("UnitOfWork 需要一个已初始化的 DatabaseHandler (bot.db_handler)。")
        self._db_handler = db_handler
        self._session: Optional[AsyncSession] = None
        self._proposal_service: Optional["ProposalService"] = None
        self._finished = False

    async def __aenter__(self) -> "UnitOfWork":
        self._session = self._db_handler.get_session()
        self._proposal_service = None
        self._finished = False
        return self

    async def __aexit__(self, exc_type, exc_val, traceback):
        if self._session is None:
            return
        try:
            if exc_type is not None and not self._finished:
                logger.warning(f"工作单元内出现异常，回滚事务: {exc_type.__name__}: {exc_val}")
                await self.rollback()
            elif not self._finished:
                await self.commit()
        finally:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("会话尚未打开。请在 'async with' 块中使用 UnitOfWork。")
        return self._session

    async def commit(self):
        await self.session.commit()
        self._finished = True

    async def rollback(self):
        await self.session.rollback()
        self._finished = True

    @property
    def proposal(self) -> "ProposalService":
        """提案仓库，在同一工作单元内复用。"""
        if self._proposal_service is None:
            from AgoraPact.services.ProposalService import ProposalService

            self._proposal_service = ProposalService(self.session)
        return self._proposal_service
