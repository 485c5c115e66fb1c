"""
Request Queue
트위터 API 요청 직렬화 (동시 요청 1개, FIFO)

The platform penalizes concurrent requests even when the per-endpoint
rate limit is not exhausted, so every call that shares a queue runs
strictly one at a time in submission order. No retry, no backoff.
"""
import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, Tuple, TypeVar

logger = logging.getLogger("agent")

T = TypeVar("T")


class RequestQueue:
    def __init__(self):
        self._queue: Deque[Tuple[Callable[[], Awaitable], asyncio.Future]] = deque()
        self._processing = False
        self._worker: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def processing(self) -> bool:
        return self._processing

    def add(self, request: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        """
        요청 등록 (호출 시점에 순서 확정)

        Args:
            request: 인자 없는 코루틴 함수

        Returns:
            요청 결과/예외를 담는 future (await 해서 사용)
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append((request, future))

        if not self._processing:
            self._processing = True
            self._worker = loop.create_task(self._process_queue())
        return future

    async def _process_queue(self):
        try:
            while self._queue:
                request, future = self._queue.popleft()
                if future.cancelled():
                    continue

                try:
                    result = await request()
                except asyncio.CancelledError:
                    # 워커 취소: 실행 중이던 요청과 대기 요청 모두 취소
                    future.cancel()
                    self._cancel_pending()
                    raise
                except Exception as e:
                    logger.debug(f"[QUEUE] Request failed: {type(e).__name__}: {e}")
                    if not future.cancelled():
                        future.set_exception(e)
                else:
                    if not future.cancelled():
                        future.set_result(result)
        finally:
            self._processing = False

    def _cancel_pending(self):
        while self._queue:
            _, future = self._queue.popleft()
            future.cancel()

    async def close(self):
        """남은 요청 취소 후 워커 종료"""
        self._cancel_pending()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
