"""
Like / Retweet Actions
좋아요, 리트윗 실행
"""
import logging

from .base import BaseAction, ActionResult
from actionbot.platforms.interface import Candidate

logger = logging.getLogger("agent")


class LikeAction(BaseAction):
    """좋아요 액션"""
    action_type = 'like'

    async def execute(self, candidate: Candidate) -> ActionResult:
        if not self.can_execute(candidate):
            raise ValueError("Cannot like: missing candidate id")

        await self.client.like(candidate.id)
        logger.info(f"[LIKE] {candidate.id}")
        return ActionResult(success=True, action_type=self.action_type, target_id=candidate.id)


class RetweetAction(BaseAction):
    """리트윗 액션"""
    action_type = 'retweet'

    async def execute(self, candidate: Candidate) -> ActionResult:
        if not self.can_execute(candidate):
            raise ValueError("Cannot retweet: missing candidate id")

        await self.client.retweet(candidate.id)
        logger.info(f"[RETWEET] {candidate.id}")
        return ActionResult(success=True, action_type=self.action_type, target_id=candidate.id)
