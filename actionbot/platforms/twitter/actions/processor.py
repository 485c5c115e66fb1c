"""
Action Processor
타임라인 액션 루프 - 수집 → 판단 → 정렬/상한 → 실행 → 기록

고정 간격 타이머로 틱을 띄우고, 이전 틱이 아직 돌고 있으면 이번 틱은 건너뛴다.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from actionbot.memory.database import generate_record_id
from actionbot.persona.persona_loader import PersonaConfig
from actionbot.platforms.interface import Candidate, PlatformClient
from actionbot.platforms.twitter.errors import ErrorKind, classify_error, format_rate_limit_info
from actionbot.platforms.twitter.request_queue import RequestQueue
from actionbot.platforms.twitter.search import PaginatedSearchFetcher, SinceIdCheckpoint, resumable_since_id
from actionbot.platforms.twitter.actions.content import ActionContentGenerator
from actionbot.platforms.twitter.actions.decision import ActionDecisionEngine
from actionbot.platforms.twitter.actions.executor import ActionExecutor, ExecutionResult
from actionbot.platforms.twitter.actions.scheduler import schedule

logger = logging.getLogger("agent")


@dataclass
class ActionConfig:
    enabled: bool = True
    interval_minutes: float = 5
    max_actions: int = 1
    timeline_fetch_count: int = 15
    max_tweet_length: int = 280
    quoted_content_max_chars: int = 500
    thread_max_depth: int = 10
    search_timeout: float = 30.0
    target_users: List[str] = field(default_factory=list)
    tweets_per_user: int = 3

    @classmethod
    def from_settings(cls, settings) -> "ActionConfig":
        return cls(
            enabled=settings.ENABLE_ACTION_PROCESSING,
            interval_minutes=settings.ACTION_INTERVAL,
            max_actions=settings.MAX_ACTIONS_PROCESSING,
            timeline_fetch_count=settings.MAX_TIMELINES_TO_FETCH,
            max_tweet_length=settings.MAX_TWEET_LENGTH,
            quoted_content_max_chars=settings.QUOTED_CONTENT_MAX_CHARS,
            thread_max_depth=settings.THREAD_MAX_DEPTH,
            search_timeout=settings.SEARCH_TIMEOUT,
            target_users=list(settings.TWITTER_TARGET_USERS),
            tweets_per_user=settings.TARGET_USER_TWEETS_PER_USER,
        )


@dataclass
class CycleReport:
    """한 사이클 처리 결과"""
    fetched: int = 0
    decided: int = 0
    scheduled: int = 0
    results: List[ExecutionResult] = field(default_factory=list)

    @property
    def executed_actions(self) -> int:
        return sum(len(r.executed) for r in self.results)


def target_users_query(users: List[str]) -> str:
    return " OR ".join(f"from:{user.lstrip('@')}" for user in users)


class ActionProcessor:
    def __init__(
        self,
        client: PlatformClient,
        memory_db,
        llm,
        persona: PersonaConfig,
        agent_id: str,
        config: Optional[ActionConfig] = None,
        vision=None,
        queue: Optional[RequestQueue] = None
    ):
        self.client = client
        self.memory_db = memory_db
        self.persona = persona
        self.agent_id = agent_id
        self.config = config or ActionConfig()

        self.queue = queue or getattr(client, 'queue', None) or RequestQueue()
        self.generator = ActionContentGenerator(
            client, llm, memory_db, persona,
            vision=vision,
            max_tweet_length=self.config.max_tweet_length,
            quoted_max_chars=self.config.quoted_content_max_chars,
            thread_max_depth=self.config.thread_max_depth,
        )
        self.engine = ActionDecisionEngine(llm, memory_db, persona, agent_id)
        self.executor = ActionExecutor(client, memory_db, self.generator, agent_id)

        self.is_processing = False
        self.stop_requested = False
        self._timer: Optional[asyncio.Task] = None
        self._ticks: Set[asyncio.Task] = set()

        self._log_config()

    def _log_config(self):
        logger.info("Twitter Action Processor Configuration:")
        logger.info(f"- Action Processing: {'enabled' if self.config.enabled else 'disabled'}")
        logger.info(f"- Action Interval: {self.config.interval_minutes} minutes")
        if self.config.target_users:
            logger.info(f"- Target Users: {', '.join(self.config.target_users)}")

    @property
    def username(self) -> str:
        profile = getattr(self.client, 'profile', None)
        return profile.username if profile else self.persona.id

    # ==================== 루프 제어 ====================

    async def start(self):
        if not self.config.enabled:
            logger.info("[ACTIONS] Action processing disabled")
            return
        if self._timer is not None and not self._timer.done():
            return

        if getattr(self.client, 'profile', None) is None:
            await self.client.init()

        self.stop_requested = False
        self._timer = asyncio.create_task(self._run_timer())
        logger.info(f"[ACTIONS] Started (every {self.config.interval_minutes}m)")

    async def _run_timer(self):
        interval = self.config.interval_minutes * 60
        while not self.stop_requested:
            await asyncio.sleep(interval)
            if self.stop_requested:
                break
            # 이전 틱을 기다리지 않음 (겹치면 process_tick이 스킵)
            tick = asyncio.create_task(self.process_tick())
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)

    async def stop(self):
        self.stop_requested = True
        if self._timer is not None:
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
            self._timer = None

        if self._ticks:
            await asyncio.gather(*list(self._ticks), return_exceptions=True)
        logger.info("[ACTIONS] Stopped")

    async def process_tick(self) -> Optional[CycleReport]:
        """틱 1회. 예외는 여기서 모두 잡는다"""
        if self.stop_requested:
            return None
        if self.is_processing:
            logger.warning("[ACTIONS] Already processing tweet actions, skipping")
            return None

        self.is_processing = True
        try:
            report = await self.process_tweet_actions()
            logger.info(f"[ACTIONS] Next action processing scheduled in {self.config.interval_minutes} minutes")
            return report
        except Exception as e:
            logger.error(f"[ACTIONS] Error in action processing loop: {e}", exc_info=True)
            return None
        finally:
            self.is_processing = False

    # ==================== 사이클 ====================

    async def _fetch_target_user_candidates(self, checkpoint: SinceIdCheckpoint) -> List[Candidate]:
        users = self.config.target_users
        if not users:
            return []

        fetcher = PaginatedSearchFetcher(
            self.client, self.queue,
            checkpoint=checkpoint,
            timeout=self.config.search_timeout
        )
        return await fetcher.search(
            target_users_query(users),
            len(users) * self.config.tweets_per_user,
            since_id=checkpoint.load()
        )

    async def _fetch_timeline_candidates(self) -> List[Candidate]:
        """타임라인 조회. rate limit이면 빈 타임라인으로 계속 (검색은 진행)"""
        try:
            return await self.client.fetch_timeline(self.config.timeline_fetch_count)
        except Exception as e:
            if classify_error(e) != ErrorKind.RATE_LIMITED:
                raise
            logger.warning(
                f"[ACTIONS] Timeline rate limited, continuing without it "
                f"({format_rate_limit_info(e) or 'no rate limit info'})"
            )
            return []

    async def fetch_candidates(self, checkpoint: SinceIdCheckpoint):
        timeline = await self._fetch_timeline_candidates()
        targeted = await self._fetch_target_user_candidates(checkpoint)

        candidates: List[Candidate] = []
        seen = set()
        for candidate in list(timeline) + list(targeted):
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            candidates.append(candidate)
            self.generator.cache_candidate(candidate)
        return candidates, targeted

    def _advance_checkpoint(self, checkpoint: SinceIdCheckpoint, targeted: List[Candidate]):
        """기록 안 된 검색 결과는 다음 검색에 다시 나오도록 그 앞까지만 전진"""
        recorded, pending = [], []
        for candidate in targeted:
            record_id = generate_record_id(candidate.id, self.agent_id)
            if self.memory_db.has_execution_record(record_id):
                recorded.append(candidate.id)
            else:
                pending.append(candidate.id)

        since_id = resumable_since_id(recorded, pending)
        if since_id:
            checkpoint.save(since_id)
        if pending:
            logger.info(f"[ACTIONS] {len(pending)} target user tweets left for next cycle")

    async def process_tweet_actions(self) -> CycleReport:
        self.engine.twitter_username = self.username
        purged = self.memory_db.purge_expired()
        if purged:
            logger.debug(f"[ACTIONS] Purged {purged} expired cache entries")
        checkpoint = SinceIdCheckpoint(self.memory_db, self.username)
        candidates, targeted = await self.fetch_candidates(checkpoint)
        report = CycleReport(fetched=len(candidates))
        logger.info(f"[ACTIONS] Fetched {len(candidates)} candidates ({len(targeted)} from target users)")

        decided = await self.engine.decide_all(candidates)
        report.decided = len(decided)

        scheduled = schedule(decided, self.config.max_actions)
        report.scheduled = len(scheduled)

        results = await asyncio.gather(
            *(self.executor.execute(d) for d in scheduled),
            return_exceptions=True
        )
        for item, result in zip(scheduled, results):
            if isinstance(result, Exception):
                logger.error(f"[ACTIONS] Error processing tweet {item.candidate.id}: {result}")
                continue
            report.results.append(result)

        if targeted:
            self._advance_checkpoint(checkpoint, targeted)

        logger.info(
            f"[ACTIONS] Processed {len(report.results)} tweets "
            f"(decided={report.decided}, actions={report.executed_actions})"
        )
        return report
