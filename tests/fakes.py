"""
테스트용 가짜 플랫폼 클라이언트 / LLM
"""
import os
import shutil
import tempfile
from datetime import datetime, timezone
from typing import Dict, List, Optional

from actionbot.memory.database import MemoryDatabase
from actionbot.persona.persona_loader import PersonaConfig
from actionbot.platforms.interface import Candidate, PlatformClient, PlatformProfile, SearchPage


def make_candidate(candidate_id: str, text: str = "hello world", **kwargs) -> Candidate:
    kwargs.setdefault('author_id', f"user_{candidate_id}")
    kwargs.setdefault('author_handle', "alice")
    kwargs.setdefault('author_name', "Alice")
    kwargs.setdefault('created_at', datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
    kwargs.setdefault('conversation_id', candidate_id)
    kwargs.setdefault('permalink', f"https://x.com/{kwargs['author_handle']}/status/{candidate_id}")
    return Candidate(id=candidate_id, text=text, **kwargs)


def make_persona(**kwargs) -> PersonaConfig:
    kwargs.setdefault('id', "example")
    kwargs.setdefault('name', "Ada")
    kwargs.setdefault('bio', "Runtime engineer.")
    kwargs.setdefault('topics', ["python"])
    kwargs.setdefault('post_directions', ["keep it short"])
    return PersonaConfig(**kwargs)


class FakePlatformClient(PlatformClient):
    def __init__(self, timeline: Optional[List[Candidate]] = None, posts: Optional[Dict[str, Candidate]] = None):
        self.profile = PlatformProfile(id="agent_user", username="ada_bot", name="Ada")
        self.timeline = list(timeline or [])
        self.posts = dict(posts or {})
        self.search_responses = []
        self.search_calls = []
        self.calls = []
        self.errors: Dict[str, Exception] = {}
        self.init_calls = 0

    async def init(self):
        self.init_calls += 1
        if self.profile is None:
            self.profile = PlatformProfile(id="agent_user", username="ada_bot", name="Ada")
        return self.profile

    def _maybe_fail(self, name: str):
        if name in self.errors:
            raise self.errors[name]

    async def fetch_timeline(self, count: int) -> List[Candidate]:
        self.calls.append(('fetch_timeline', count))
        self._maybe_fail('fetch_timeline')
        return self.timeline[:count]

    async def search_candidates(self, query, max_results, page_token=None, since_id=None, start_time=None):
        self.search_calls.append({
            'query': query,
            'max_results': max_results,
            'page_token': page_token,
            'since_id': since_id,
            'start_time': start_time,
        })
        response = self.search_responses.pop(0) if self.search_responses else SearchPage(candidates=[])
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return await response()
        return response

    async def get_candidate(self, candidate_id: str):
        self.calls.append(('get_candidate', candidate_id))
        self._maybe_fail('get_candidate')
        return self.posts.get(candidate_id)

    async def like(self, candidate_id: str):
        self.calls.append(('like', candidate_id))
        self._maybe_fail('like')

    async def retweet(self, candidate_id: str):
        self.calls.append(('retweet', candidate_id))
        self._maybe_fail('retweet')

    async def quote(self, text: str, candidate_id: str):
        self.calls.append(('quote', candidate_id, text))
        self._maybe_fail('quote')
        return f"q_{candidate_id}"

    async def reply(self, text: str, candidate_id: str):
        self.calls.append(('reply', candidate_id, text))
        self._maybe_fail('reply')
        return f"r_{candidate_id}"

    def side_effects(self, name: Optional[str] = None):
        names = ('like', 'retweet', 'quote', 'reply')
        return [c for c in self.calls if c[0] in names and (name is None or c[0] == name)]


class FakeLLM:
    """generate(prompt) 호출 기록. responses 가 함수면 prompt로 호출"""
    provider_name = "fake"

    def __init__(self, responses=None):
        self.responses = responses
        self.prompts = []

    def generate(self, prompt: str, system_prompt: str = "", model: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if callable(self.responses):
            return self.responses(prompt)
        if isinstance(self.responses, list):
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return self.responses or ""


class TempDatabaseMixin:
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.db = MemoryDatabase(os.path.join(self.tmpdir, "memory.db"))

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)
