from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple
from datetime import datetime


@dataclass(frozen=True)
class Candidate:
    """타임라인/검색으로 가져온 포스트 (fetch 이후 불변)"""
    id: str
    text: str
    author_id: str
    author_handle: str
    created_at: datetime
    author_name: str = ""
    conversation_id: str = ""
    in_reply_to_id: Optional[str] = None
    quoted_id: Optional[str] = None
    photos: Tuple[str, ...] = ()
    metrics: Dict[str, int] = field(default_factory=dict, hash=False, compare=False)
    permalink: str = ""
    is_reply: bool = False
    is_retweet: bool = False

    @property
    def timestamp(self) -> float:
        """epoch seconds"""
        return self.created_at.timestamp()

    @property
    def display_author(self) -> str:
        if self.author_name:
            return f"{self.author_name} (@{self.author_handle})"
        return f"@{self.author_handle}"


@dataclass
class SearchPage:
    candidates: List[Candidate]
    next_token: Optional[str] = None


@dataclass
class PlatformProfile:
    id: str
    username: str
    name: str = ""
    bio: str = ""


class PlatformClient(ABC):
    """
    Social platform client used by the action pipeline.

    Every method may raise; callers classify failures with
    actionbot.platforms.twitter.errors.classify_error. No retries here.
    """

    profile: Optional[PlatformProfile] = None

    @abstractmethod
    async def init(self) -> PlatformProfile:
        """Authenticate and load the agent's own profile"""
        pass

    @abstractmethod
    async def fetch_timeline(self, count: int) -> List[Candidate]:
        """Home/following timeline without the agent's own posts"""
        pass

    @abstractmethod
    async def search_candidates(
        self,
        query: str,
        max_results: int,
        page_token: Optional[str] = None,
        since_id: Optional[str] = None,
        start_time: Optional[str] = None
    ) -> SearchPage:
        """One page of search results"""
        pass

    @abstractmethod
    async def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        pass

    @abstractmethod
    async def like(self, candidate_id: str) -> None:
        pass

    @abstractmethod
    async def retweet(self, candidate_id: str) -> None:
        pass

    @abstractmethod
    async def quote(self, text: str, candidate_id: str) -> Optional[str]:
        """Returns the id of the new post"""
        pass

    @abstractmethod
    async def reply(self, text: str, candidate_id: str) -> Optional[str]:
        """Returns the id of the new post"""
        pass

    async def close(self) -> None:
        return None
