"""
Action Decision Engine
LLM 기반 타임라인 액션 판단 (like/retweet/quote/reply - 독립적, 여러 개 가능)

포스트 하나당: 중복 체크 → LLM 판단 → 결과. 중복 체크는 LLM 호출 전에 한다.
"""
import json
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from actionbot.memory.database import generate_record_id
from actionbot.persona.persona_loader import PersonaConfig
from actionbot.platforms.interface import Candidate
from actionbot.platforms.twitter.actions.templates import TWITTER_ACTION_TEMPLATE

logger = logging.getLogger("agent")

ACTION_NAMES = ('like', 'retweet', 'quote', 'reply')


class DecisionFormatError(ValueError):
    """LLM 응답이 판단 스키마와 맞지 않음"""


@dataclass(frozen=True)
class ActionDecision:
    """판단 결과 - 각 액션은 독립적"""
    like: bool = False
    retweet: bool = False
    quote: bool = False
    reply: bool = False
    rationale: str = ""

    @property
    def true_count(self) -> int:
        return sum(1 for name in ACTION_NAMES if getattr(self, name))

    @property
    def actions(self) -> List[str]:
        return [name for name in ACTION_NAMES if getattr(self, name)]

    def __str__(self) -> str:
        flags = ", ".join(f"{name}={getattr(self, name)}" for name in ACTION_NAMES)
        return f"ActionDecision({flags})"


@dataclass(frozen=True)
class DecidedCandidate:
    candidate: Candidate
    decision: ActionDecision


def parse_decision(response: str) -> ActionDecision:
    """
    LLM 응답 → ActionDecision

    네 필드 모두 JSON boolean 이어야 한다. 아니면 DecisionFormatError.
    """
    if not response:
        raise DecisionFormatError("Empty model response")

    start = response.find('{')
    end = response.rfind('}') + 1
    if start < 0 or end <= start:
        raise DecisionFormatError(f"No JSON object in response: {response[:80]}")

    try:
        data = json.loads(response[start:end])
    except json.JSONDecodeError as e:
        raise DecisionFormatError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecisionFormatError("Decision must be a JSON object")

    flags = {}
    for name in ACTION_NAMES:
        value = data.get(name)
        if not isinstance(value, bool):
            raise DecisionFormatError(f"'{name}' must be a boolean, got {value!r}")
        flags[name] = value

    rationale = data.get('analysis') or data.get('rationale') or data.get('reason') or ""
    return ActionDecision(rationale=str(rationale), **flags)


class ActionDecisionEngine:
    """
    포스트별 액션 판단

    입력: Candidate (id, 작성자, 본문만 사용)
    출력: DecidedCandidate 또는 None (스킵)
    """

    MAX_FORMAT_RETRIES = 1

    def __init__(self, llm, memory_db, persona: PersonaConfig, agent_id: str, twitter_username: str = ""):
        self.llm = llm
        self.memory_db = memory_db
        self.persona = persona
        self.agent_id = agent_id
        self.twitter_username = twitter_username or persona.id

    def is_already_processed(self, candidate: Candidate) -> bool:
        record_id = generate_record_id(candidate.id, self.agent_id)
        if self.memory_db.has_execution_record(record_id):
            logger.info(f"[DECIDE] Already processed tweet ID: {candidate.id}")
            return True
        return False

    def build_prompt(self, candidate: Candidate) -> str:
        current_tweet = f"ID: {candidate.id}\nFrom: {candidate.display_author}\nText: {candidate.text}"
        template = self.persona.templates.get('twitter_action') or TWITTER_ACTION_TEMPLATE
        return template.format(
            agent_name=self.persona.name,
            twitter_username=self.twitter_username,
            bio=self.persona.bio,
            post_directions=self.persona.directions_text,
            current_tweet=current_tweet,
        )

    async def _ask(self, prompt: str) -> ActionDecision:
        """형식 오류는 한 번만 다시 묻는다"""
        attempt = 0
        while True:
            response = await asyncio.to_thread(self.llm.generate, prompt)
            try:
                return parse_decision(response)
            except DecisionFormatError as e:
                if attempt >= self.MAX_FORMAT_RETRIES:
                    raise
                attempt += 1
                logger.warning(f"[DECIDE] Malformed decision, retrying: {e}")

    async def decide(self, candidate: Candidate) -> Optional[DecidedCandidate]:
        try:
            if self.is_already_processed(candidate):
                return None

            decision = await self._ask(self.build_prompt(candidate))
            logger.info(f"[DECIDE] {candidate.id} → {decision} ({decision.rationale[:60]})")
            return DecidedCandidate(candidate=candidate, decision=decision)
        except Exception as e:
            logger.error(f"[DECIDE] Error processing tweet {candidate.id}: {e}", exc_info=True)
            return None

    async def decide_all(self, candidates: List[Candidate]) -> List[DecidedCandidate]:
        """병렬 판단, 스킵된 것은 제외 (입력 순서 유지)"""
        results = await asyncio.gather(*(self.decide(c) for c in candidates))
        return [r for r in results if r is not None]
