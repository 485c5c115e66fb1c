"""
Paginated Search
검색 페이지네이션 - since_id 체크포인트 / 7일 시간창 폴백 / 부분 결과 반환
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from actionbot.platforms.interface import Candidate, PlatformClient, SearchPage
from actionbot.platforms.twitter.errors import (
    ErrorKind,
    RequestTimedOut,
    classify_error,
    format_rate_limit_info,
)
from actionbot.platforms.twitter.request_queue import RequestQueue

logger = logging.getLogger("agent")

MAX_RESULTS_PER_CALL = 100
SEARCH_HORIZON = timedelta(days=7)
SEARCH_HORIZON_BUFFER = timedelta(minutes=5)
DEFAULT_SEARCH_TIMEOUT = 30.0


def search_start_time(now: Optional[datetime] = None) -> str:
    """검색 가능 범위(7일) 안쪽 시작 시각 (ISO-8601 UTC)"""
    now = now or datetime.now(timezone.utc)
    start = now - SEARCH_HORIZON + SEARCH_HORIZON_BUFFER
    return start.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


class SinceIdCheckpoint:
    """계정별 마지막으로 확인한 포스트 id (cache 저장)"""

    def __init__(self, cache, username: str):
        self.cache = cache
        self.key = f"twitter/{username}/latest_checked_tweet_id"

    def load(self) -> Optional[str]:
        value = self.cache.get(self.key)
        return str(value) if value else None

    def save(self, candidate_id: str) -> str:
        """숫자 기준 더 큰 id만 저장"""
        current = self.load()
        if current and _as_number(current) >= _as_number(candidate_id):
            return current
        self.cache.set(self.key, str(candidate_id))
        return str(candidate_id)

    def clear(self):
        self.cache.delete(self.key)


def _as_number(candidate_id: str) -> int:
    try:
        return int(candidate_id)
    except (TypeError, ValueError):
        return 0


def resumable_since_id(recorded: List[str], pending: List[str]) -> Optional[str]:
    """
    다음 검색에 쓸 since_id

    기록된 id 중 가장 큰 것. 단 아직 기록 안 된 포스트가 있으면
    그 중 가장 오래된 것보다 작은 id까지만 (since_id는 exclusive)
    """
    ceiling = min((_as_number(i) for i in pending), default=None)
    eligible = [i for i in recorded if ceiling is None or _as_number(i) < ceiling]
    return max(eligible, key=_as_number) if eligible else None


class PaginatedSearchFetcher:
    def __init__(self, client: PlatformClient, queue: RequestQueue,
                 checkpoint: Optional[SinceIdCheckpoint] = None,
                 timeout: float = DEFAULT_SEARCH_TIMEOUT):
        self.client = client
        self.queue = queue
        self.checkpoint = checkpoint
        self.timeout = timeout

    async def _fetch_page(self, query: str, max_results: int, page_token: Optional[str],
                          since_id: Optional[str], start_time: Optional[str]) -> SearchPage:
        """큐를 거쳐 1페이지 요청. 타임아웃은 큐에서 실제 실행될 때부터 계산"""
        async def _do():
            try:
                return await asyncio.wait_for(
                    self.client.search_candidates(
                        query,
                        max_results,
                        page_token=page_token,
                        since_id=since_id,
                        start_time=start_time,
                    ),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError as e:
                raise RequestTimedOut(f"Search timed out after {self.timeout}s") from e

        return await self.queue.add(_do)

    async def search(self, query: str, max_total: int, since_id: Optional[str] = None) -> List[Candidate]:
        """
        검색 결과를 max_total 개까지 모은다.

        Returns:
            모은 후보 리스트 (에러 발생 시 그때까지 모은 것)
        """
        results: List[Candidate] = []
        start_time = None if since_id else search_start_time()
        page_token: Optional[str] = None

        while len(results) < max_total:
            remaining = max_total - len(results)
            max_results = min(remaining, MAX_RESULTS_PER_CALL)

            try:
                page = await self._fetch_page(query, max_results, page_token, since_id, start_time)
            except Exception as e:
                kind = classify_error(e)

                if kind == ErrorKind.RATE_LIMITED:
                    logger.warning(
                        f"[SEARCH] Rate limited: {query} "
                        f"({format_rate_limit_info(e) or 'no rate limit info'})"
                    )
                    page = SearchPage(candidates=[])

                elif kind == ErrorKind.INVALID_CURSOR and since_id:
                    logger.warning(f"[SEARCH] since_id {since_id} rejected, falling back to start_time")
                    if self.checkpoint is not None:
                        self.checkpoint.clear()
                    since_id = None
                    start_time = search_start_time()
                    try:
                        page = await self._fetch_page(query, max_results, page_token, None, start_time)
                    except Exception as retry_error:
                        logger.error(f"[SEARCH] Fallback search failed: {retry_error}")
                        return results

                else:
                    logger.error(f"[SEARCH] Search failed ({kind.value}): {e}")
                    return results

            if not page.candidates:
                break

            results.extend(page.candidates[:remaining])

            if not page.next_token:
                break
            page_token = page.next_token

        logger.info(f"[SEARCH] {query} → {len(results)} results")
        return results
