import asyncio
import logging
import sys
from itertools import count
from typing import Any, Coroutine, NamedTuple, Optional

logger = logging.getLogger(__name__)


class Priority:
    """
    API 请求优先级，数字越小越先执行。
    """

    INTERACTION = 1  # 斜杠命令的回复
    VOTE_PANEL = 2  # 投票消息与反应
    BACKGROUND = 3  # 结算、决议发布等后台写入
    HISTORY = 5  # 频道历史扫描


class APIRequest(NamedTuple):
    """
    优先级队列中的一个 API 请求。
    - priority: 优先级，数字越小越高。
    - count: 同优先级内的先后顺序。
    - coro: 需要被执行的协程对象。
    - future: 协程执行完毕后用于回传结果或异常。
    """

    priority: int
    count: int
    coro: Optional[Coroutine[Any, Any, Any]]
    future: Optional[asyncio.Future]


class APIScheduler:
    """
    一个带优先级的中央 Discord API 请求调度器。
    用户交互优先于后台结算，Semaphore 限制同时在途的请求数量。
    """

    def __init__(self, concurrent_requests: int = 10):
        """
        :param concurrent_requests: 允许同时发往 Discord API 的最大并发请求数。
        """
        self._queue: "asyncio.PriorityQueue[APIRequest]" = asyncio.PriorityQueue()
        self._semaphore = asyncio.Semaphore(concurrent_requests)
        self._task: Optional[asyncio.Task] = None
        self._workers: set[asyncio.Task] = set()
        self._counter = count()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _dispatcher_loop(self):
        """调度器的主循环，从队列中拉取请求并派发给 worker。"""
        logger.info("API 调度器主循环已启动。")
        while True:
            await self._semaphore.acquire()
            request = await self._queue.get()
            self._queue.task_done()

            if request.coro is None:
                self._semaphore.release()
                break

            worker = asyncio.create_task(self._worker(request))
            self._workers.add(worker)
            worker.add_done_callback(self._workers.discard)

    async def _worker(self, request: APIRequest):
        """执行单个 API 请求，并把结果或异常交还给提交者。"""
        try:
            result = await request.coro
        except Exception as e:
            logger.debug(f"API 请求 (优先级: {request.priority}) 失败: {e}")
            if not request.future.done():
                request.future.set_exception(e)
        else:
            if not request.future.done():
                request.future.set_result(result)
        finally:
            self._semaphore.release()

    async def submit(self, coro: Coroutine, priority: int) -> Any:
        """
        向调度器提交一个 API 请求并等待其结果。

        :param coro: 要执行的 API 调用协程。
        :param priority: 请求的优先级，参见 Priority。
        :return: API 调用协程的返回结果；协程抛出的异常会原样抛给调用方。
        """
        if not self.is_running:
            coro.close()
            raise RuntimeError("API 调度器没有在运行")

        future = asyncio.get_running_loop().create_future()
        await self._queue.put(
            APIRequest(priority=priority, count=next(self._counter), coro=coro, future=future)
        )
        return await future

    def start(self):
        """启动调度器后台任务。"""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._dispatcher_loop())

    async def stop(self):
        """停止调度器，等待在途请求完成。"""
        if not self.is_running or self._task is None:
            return

        logger.info("即将停止 API 调度器...")
        # 哨兵排在所有已提交请求之后
        await self._queue.put(
            APIRequest(priority=sys.maxsize, count=next(self._counter), coro=None, future=None)
        )
        await self._task
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        self._task = None
        logger.info("API 调度器已停止。")
