"""
Quote / Reply Actions
LLM으로 텍스트 생성 후 인용·답글 게시
"""
import logging
from abc import abstractmethod

from .base import BaseAction, ActionResult
from .content import ActionContentGenerator
from actionbot.platforms.interface import Candidate, PlatformClient

logger = logging.getLogger("agent")


class _GeneratedPostAction(BaseAction):
    label = ""

    def __init__(self, client: PlatformClient, generator: ActionContentGenerator):
        super().__init__(client)
        self.generator = generator

    @abstractmethod
    async def _post(self, text: str, candidate: Candidate):
        """생성된 텍스트 게시, 새 포스트 id 반환"""
        pass

    async def execute(self, candidate: Candidate) -> ActionResult:
        if not self.can_execute(candidate):
            raise ValueError(f"Cannot {self.action_type}: missing candidate id")

        text = await self.generator.generate(candidate, self.label)
        posted_id = await self._post(text, candidate)
        logger.info(f"[{self.label}] {candidate.id} → {posted_id}")
        return ActionResult(
            success=True,
            action_type=self.action_type,
            target_id=posted_id or candidate.id,
            content=text
        )


class QuoteAction(_GeneratedPostAction):
    """인용 트윗 액션"""
    action_type = 'quote'
    label = 'QUOTE'

    async def _post(self, text: str, candidate: Candidate):
        return await self.client.quote(text, candidate.id)


class ReplyAction(_GeneratedPostAction):
    """답글 액션"""
    action_type = 'reply'
    label = 'REPLY'

    async def _post(self, text: str, candidate: Candidate):
        return await self.client.reply(text, candidate.id)
