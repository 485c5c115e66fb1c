"""
Action Executor
판단된 액션 실행 + 실행 기록 저장

액션마다 개별 try/except: reply가 실패해도 like/retweet/quote는 시도한다.
실행한 포스트마다 ExecutionRecord 1개 (실행한 액션이 없어도 기록).
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from actionbot.memory.database import ExecutionRecord, generate_record_id
from actionbot.platforms.interface import Candidate, PlatformClient
from actionbot.platforms.twitter.actions.base import ActionResult, BaseAction
from actionbot.platforms.twitter.actions.content import ActionContentGenerator
from actionbot.platforms.twitter.actions.decision import ACTION_NAMES, DecidedCandidate
from actionbot.platforms.twitter.actions.like import LikeAction, RetweetAction
from actionbot.platforms.twitter.actions.reply import QuoteAction, ReplyAction

logger = logging.getLogger("agent")

RECORD_SOURCE = "twitter"


@dataclass
class ExecutionResult:
    candidate: Candidate
    executed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    record: Optional[ExecutionRecord] = None
    results: List[ActionResult] = field(default_factory=list)


class ActionExecutor:
    def __init__(self, client: PlatformClient, memory_db, generator: ActionContentGenerator, agent_id: str):
        self.client = client
        self.memory_db = memory_db
        self.agent_id = agent_id
        self.actions: Dict[str, BaseAction] = {
            'like': LikeAction(client),
            'retweet': RetweetAction(client),
            'quote': QuoteAction(client, generator),
            'reply': ReplyAction(client, generator),
        }

    async def execute(self, decided: DecidedCandidate) -> ExecutionResult:
        candidate = decided.candidate
        result = ExecutionResult(candidate=candidate)

        for name in ACTION_NAMES:
            if not getattr(decided.decision, name):
                continue
            try:
                action_result = await self.actions[name].execute(candidate)
                result.executed.append(name)
                result.results.append(action_result)
            except Exception as e:
                logger.error(f"[EXECUTE] {name} failed for {candidate.id}: {e}", exc_info=True)
                result.failed.append(name)
                result.results.append(ActionResult(
                    success=False, action_type=name, target_id=candidate.id, error=str(e)
                ))

        result.record = self.record_execution(candidate, result.executed)
        logger.info(
            f"[EXECUTE] {candidate.id} executed=[{','.join(result.executed)}] "
            f"failed=[{','.join(result.failed)}]"
        )
        return result

    def record_execution(self, candidate: Candidate, executed: List[str]) -> ExecutionRecord:
        """실행 기록 저장 (같은 id가 이미 있으면 기존 것 유지)"""
        record = ExecutionRecord(
            id=generate_record_id(candidate.id, self.agent_id),
            agent_id=self.agent_id,
            candidate_id=candidate.id,
            user_id=candidate.author_id or None,
            text=candidate.text,
            url=candidate.permalink,
            source=RECORD_SOURCE,
            actions=",".join(executed),
            created_at=candidate.created_at,
        )
        if not self.memory_db.create_execution_record(record):
            logger.debug(f"[EXECUTE] Record {record.id} already exists")
        return record
