"""
Action Content Generator
답글/인용 텍스트 생성 - 대화 스레드, 인용 원문, 이미지 설명을 컨텍스트로 사용
"""
import asyncio
import logging
import time
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from actionbot.persona.persona_loader import PersonaConfig
from actionbot.platforms.interface import Candidate, PlatformClient
from actionbot.platforms.twitter.formatter import clean_generated_text, trim_tweet_length
from actionbot.platforms.twitter.actions.templates import (
    ACTION_LABELS,
    TWITTER_MESSAGE_HANDLER_TEMPLATE,
)

logger = logging.getLogger("agent")

# 검색 가능 범위(7일)와 같게
CANDIDATE_CACHE_TTL = 7 * 24 * 60 * 60


class ContentGenerationError(Exception):
    """LLM이 쓸 수 있는 텍스트를 만들지 못함"""


def candidate_to_cache(candidate: Candidate) -> Dict[str, Any]:
    data = asdict(candidate)
    data['created_at'] = candidate.created_at.isoformat()
    data['photos'] = list(candidate.photos)
    return data


def candidate_from_cache(data: Dict[str, Any]) -> Candidate:
    data = dict(data)
    data['created_at'] = datetime.fromisoformat(data['created_at'])
    data['photos'] = tuple(data.get('photos') or ())
    return Candidate(**data)


class ActionContentGenerator:
    def __init__(
        self,
        client: PlatformClient,
        llm,
        cache,
        persona: PersonaConfig,
        vision=None,
        max_tweet_length: int = 280,
        quoted_max_chars: int = 500,
        thread_max_depth: int = 10,
        cache_ttl: float = CANDIDATE_CACHE_TTL
    ):
        self.client = client
        self.llm = llm
        self.cache = cache
        self.persona = persona
        self.vision = vision
        self.max_tweet_length = max_tweet_length
        self.quoted_max_chars = quoted_max_chars
        self.thread_max_depth = thread_max_depth
        self.cache_ttl = cache_ttl

    @property
    def username(self) -> str:
        profile = getattr(self.client, 'profile', None)
        return profile.username if profile else self.persona.id

    # ==================== 포스트 조회 (캐시) ====================

    def cache_candidate(self, candidate: Candidate):
        self.cache.set(
            f"twitter/tweets/{candidate.id}",
            candidate_to_cache(candidate),
            expires=time.time() + self.cache_ttl
        )

    async def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        """캐시 → API 순서로 포스트 조회"""
        cached = self.cache.get(f"twitter/tweets/{candidate_id}")
        if cached:
            try:
                return candidate_from_cache(cached)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"[CONTENT] Broken cache entry for {candidate_id}: {e}")

        candidate = await self.client.get_candidate(candidate_id)
        if candidate is not None:
            self.cache_candidate(candidate)
        return candidate

    # ==================== 컨텍스트 구성 ====================

    async def build_thread(self, candidate: Candidate) -> List[Candidate]:
        """답글 체인을 위로 따라가며 스레드 구성 (오래된 것 → 최신 순)"""
        thread: List[Candidate] = []
        visited = set()
        current: Optional[Candidate] = candidate

        while current is not None and len(thread) < self.thread_max_depth:
            if current.id in visited:
                break
            visited.add(current.id)
            thread.append(current)

            if not current.in_reply_to_id:
                break
            try:
                current = await self.get_candidate(current.in_reply_to_id)
            except Exception as e:
                logger.warning(f"[CONTENT] Parent {current.in_reply_to_id} unavailable: {e}")
                break

        thread.reverse()
        return thread

    async def format_thread(self, candidate: Candidate) -> str:
        thread = await self.build_thread(candidate)
        return "\n\n".join(
            f"@{t.author_handle} ({t.created_at.strftime('%Y-%m-%d %H:%M')}): {t.text}"
            for t in thread
        )

    async def quoted_content(self, candidate: Candidate) -> str:
        if not candidate.quoted_id:
            return ""
        try:
            quoted = await self.get_candidate(candidate.quoted_id)
        except Exception as e:
            logger.error(f"[CONTENT] Error fetching quoted tweet {candidate.quoted_id}: {e}")
            return ""
        if quoted is None:
            return ""
        return f"\nQuoted Tweet from @{quoted.author_handle}:\n{quoted.text[:self.quoted_max_chars]}"

    async def describe_images(self, candidate: Candidate) -> List[Dict[str, str]]:
        if not candidate.photos or self.vision is None:
            return []

        logger.info(f"[CONTENT] Describing {len(candidate.photos)} image(s) in {candidate.id}")
        results = await asyncio.gather(
            *(self.vision.describe(url) for url in candidate.photos),
            return_exceptions=True
        )

        descriptions = []
        for url, result in zip(candidate.photos, results):
            if isinstance(result, Exception):
                logger.warning(f"[CONTENT] Image description failed for {url}: {result}")
                continue
            descriptions.append(result)
        return descriptions

    @staticmethod
    def format_image_descriptions(descriptions: List[Dict[str, str]]) -> str:
        if not descriptions:
            return ""
        lines = []
        for i, desc in enumerate(descriptions, 1):
            title = desc.get('title', '')
            text = desc.get('description', '')
            lines.append(f"Image {i}: {title} - {text}" if title else f"Image {i}: {text}")
        return "\nImages in Tweet:\n" + "\n".join(lines)

    async def compose_context(self, candidate: Candidate, action: str) -> Dict[str, str]:
        formatted_conversation = await self.format_thread(candidate)
        quoted = await self.quoted_content(candidate)
        images = self.format_image_descriptions(await self.describe_images(candidate))

        return {
            'agent_name': self.persona.name,
            'twitter_username': self.username,
            'bio': self.persona.bio,
            'topics': ", ".join(self.persona.topics),
            'post_directions': self.persona.directions_text,
            'formatted_conversation': formatted_conversation,
            'quoted_content': quoted,
            'image_context': images,
            'current_post': f"From @{candidate.author_handle}: {candidate.text}",
            'action_label': ACTION_LABELS.get(action, action.lower()),
            'max_tweet_length': str(self.max_tweet_length),
        }

    # ==================== 생성 ====================

    def _template(self) -> str:
        return self.persona.templates.get('twitter_message_handler') or TWITTER_MESSAGE_HANDLER_TEMPLATE

    async def generate(self, candidate: Candidate, action: str) -> str:
        """
        답글/인용 텍스트 생성

        Args:
            candidate: 대상 포스트
            action: 'QUOTE' | 'REPLY'

        Returns:
            정리 + 길이 제한이 적용된 텍스트
        """
        context = await self.compose_context(candidate, action)
        prompt = self._template().format(**context)
        logger.debug(f"[CONTENT] {action} prompt:\n{prompt}")

        response = await asyncio.to_thread(self.llm.generate, prompt)
        text = trim_tweet_length(clean_generated_text(response), self.max_tweet_length)
        if not text:
            raise ContentGenerationError(f"Failed to generate valid {action.lower()} content for {candidate.id}")

        self.cache.set(
            f"twitter/{action.lower()}_generation_{candidate.id}.txt",
            {"context": prompt, "text": text}
        )
        logger.info(f"[CONTENT] Generated {action.lower()}: {text[:80]}")
        return text
