"""
Twitter Client via Twikit
트위터 클라이언트 - 로그인, 타임라인, 검색, 좋아요/리트윗/인용/답글

Agent 하나당 클라이언트 하나. 같은 클라이언트의 모든 API 호출은
RequestQueue를 통해 직렬화된다 (검색 페이지네이션은 search.py에서 큐 사용).
"""
import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from twikit import Client

from config.settings import settings
from actionbot.core.logger import log_api_call
from actionbot.platforms.interface import Candidate, PlatformClient, PlatformProfile, SearchPage
from actionbot.platforms.twitter.errors import MissingCredentialsError, format_rate_limit_info, to_platform_error
from actionbot.platforms.twitter.request_queue import RequestQueue

logger = logging.getLogger("agent")

SEARCH_PRODUCT = "Latest"
TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"
SEARCH_SINCE_FORMAT = "%Y-%m-%d_%H:%M:%S_UTC"


def _parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            # Twitter "Wed Oct 10 20:19:24 +0000 2018"
            return datetime.strptime(value, TWITTER_DATE_FORMAT)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
                return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
            except ValueError:
                pass
    return datetime.now(timezone.utc)


def _extract_engagement(tweet) -> Dict[str, int]:
    """twikit Tweet 객체에서 engagement 추출"""
    return {
        'favorite_count': getattr(tweet, 'favorite_count', 0) or 0,
        'retweet_count': getattr(tweet, 'retweet_count', 0) or 0,
        'reply_count': getattr(tweet, 'reply_count', 0) or 0,
        'quote_count': getattr(tweet, 'quote_count', 0) or 0,
        'view_count': int(getattr(tweet, 'view_count', 0) or 0),
        'bookmark_count': getattr(tweet, 'bookmark_count', 0) or 0,
    }


def _extract_photos(tweet) -> tuple:
    photos = []
    for media in getattr(tweet, 'media', None) or []:
        if isinstance(media, dict):
            media_type = media.get('type')
            url = media.get('media_url_https') or media.get('media_url')
        else:
            media_type = getattr(media, 'type', None)
            url = getattr(media, 'media_url', None) or getattr(media, 'media_url_https', None)
        if url and media_type in (None, 'photo'):
            photos.append(url)
    return tuple(photos)


def to_candidate(tweet) -> Candidate:
    """twikit Tweet → Candidate"""
    user = getattr(tweet, 'user', None)
    handle = getattr(user, 'screen_name', '') or ''
    tweet_id = str(tweet.id)
    legacy = getattr(tweet, '_legacy', None) or {}
    quote = getattr(tweet, 'quote', None)
    in_reply_to = getattr(tweet, 'in_reply_to', None)

    created = getattr(tweet, 'created_at_datetime', None)
    if created is None:
        created = getattr(tweet, 'created_at', None)

    text = getattr(tweet, 'full_text', None) or getattr(tweet, 'text', '') or ''

    return Candidate(
        id=tweet_id,
        text=text,
        author_id=str(getattr(user, 'id', '') or ''),
        author_handle=handle,
        author_name=getattr(user, 'name', '') or '',
        created_at=_parse_date(created),
        conversation_id=str(legacy.get('conversation_id_str') or tweet_id),
        in_reply_to_id=str(in_reply_to) if in_reply_to else None,
        quoted_id=str(quote.id) if quote is not None else None,
        photos=_extract_photos(tweet),
        metrics=_extract_engagement(tweet),
        permalink=f"https://x.com/{handle}/status/{tweet_id}",
        is_reply=bool(in_reply_to),
        is_retweet=getattr(tweet, 'retweeted_tweet', None) is not None or text.startswith("RT @"),
    )


def build_search_query(query: str, since_id: Optional[str] = None, start_time: Optional[str] = None) -> str:
    """since_id / start_time 을 검색 연산자로 변환 (둘 중 하나만)"""
    if since_id:
        return f"{query} since_id:{since_id}"
    if start_time:
        started = _parse_date(start_time).astimezone(timezone.utc)
        return f"{query} since:{started.strftime(SEARCH_SINCE_FORMAT)}"
    return query


class TwitterPlatformClient(PlatformClient):
    """twikit 기반 PlatformClient"""

    def __init__(self, username: Optional[str] = None, cookies_path: Optional[str] = None,
                 queue: Optional[RequestQueue] = None, client: Optional[Client] = None):
        self.username = username or settings.TWITTER_USERNAME
        self.cookies_path = cookies_path or settings.TWITTER_COOKIES_PATH
        self.queue = queue or RequestQueue()
        self.client = client or Client('en-US')
        self.profile: Optional[PlatformProfile] = None

    async def _call(self, endpoint: str, func, *args, **kwargs):
        """큐를 거쳐 twikit 호출 + 결과 로깅"""
        async def _do():
            return await func(*args, **kwargs)

        try:
            result = await self.queue.add(_do)
        except Exception as e:
            log_api_call("twikit", endpoint, False, error=e, rate_limit=format_rate_limit_info(e))
            raise to_platform_error(e, endpoint) from e
        log_api_call("twikit", endpoint, True)
        return result

    async def _login(self):
        """쿠키 파일 → 환경변수 쿠키 → 계정 로그인 순서"""
        if os.path.exists(self.cookies_path):
            self.client.load_cookies(self.cookies_path)
            logger.info(f"[TWITTER] Cookies loaded: {os.path.basename(self.cookies_path)}")
            return

        if settings.TWITTER_AUTH_TOKEN and settings.TWITTER_CT0:
            self.client.set_cookies({
                "auth_token": settings.TWITTER_AUTH_TOKEN,
                "ct0": settings.TWITTER_CT0
            })
            logger.info("[TWITTER] Using cookies from environment")
            return

        if not (self.username and settings.TWITTER_PASSWORD):
            raise MissingCredentialsError(
                "Twitter credentials missing: set TWITTER_USERNAME/TWITTER_PASSWORD "
                "or TWITTER_AUTH_TOKEN/TWITTER_CT0"
            )

        await self._call(
            "login",
            self.client.login,
            auth_info_1=self.username,
            auth_info_2=settings.TWITTER_EMAIL,
            password=settings.TWITTER_PASSWORD,
            totp_secret=settings.TWITTER_TOTP_SECRET,
        )
        os.makedirs(os.path.dirname(self.cookies_path) or ".", exist_ok=True)
        self.client.save_cookies(self.cookies_path)
        logger.info(f"[TWITTER] Logged in, cookies saved: {self.cookies_path}")

    async def init(self) -> PlatformProfile:
        await self._login()

        if self.username:
            user = await self._call("get_user_by_screen_name", self.client.get_user_by_screen_name, self.username)
        else:
            user = await self._call("user", self.client.user)

        self.profile = PlatformProfile(
            id=str(user.id),
            username=user.screen_name,
            name=getattr(user, 'name', '') or '',
            bio=getattr(user, 'description', '') or '',
        )
        logger.info(f"[TWITTER] Ready as @{self.profile.username} ({self.profile.id})")
        return self.profile

    def _is_own(self, candidate: Candidate) -> bool:
        return self.profile is not None and candidate.author_id == self.profile.id

    async def fetch_timeline(self, count: int) -> List[Candidate]:
        if settings.ACTION_TIMELINE_TYPE == 'following':
            tweets = await self._call("get_latest_timeline", self.client.get_latest_timeline, count=count)
        else:
            tweets = await self._call("get_timeline", self.client.get_timeline, count=count)

        candidates = [to_candidate(t) for t in list(tweets)[:count]]
        return [c for c in candidates if not self._is_own(c)]

    async def search_candidates(
        self,
        query: str,
        max_results: int,
        page_token: Optional[str] = None,
        since_id: Optional[str] = None,
        start_time: Optional[str] = None
    ) -> SearchPage:
        """
        검색 1페이지. 큐는 호출자(PaginatedSearchFetcher)가 관리하므로
        여기서는 twikit을 직접 호출하고 원본 예외를 그대로 올린다.
        """
        try:
            result = await self.client.search_tweet(
                build_search_query(query, since_id, start_time),
                SEARCH_PRODUCT,
                count=max_results,
                cursor=page_token,
            )
        except Exception as e:
            log_api_call("twikit", "search_tweet", False, error=e, rate_limit=format_rate_limit_info(e))
            raise
        candidates = [to_candidate(t) for t in list(result)[:max_results]]
        log_api_call("twikit", "search_tweet", True, results=len(candidates))
        next_token = getattr(result, 'next_cursor', None) if candidates else None
        return SearchPage(candidates=candidates, next_token=next_token)

    async def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        tweet = await self._call("get_tweet_by_id", self.client.get_tweet_by_id, candidate_id)
        return to_candidate(tweet) if tweet is not None else None

    async def like(self, candidate_id: str) -> None:
        await self._call("favorite_tweet", self.client.favorite_tweet, candidate_id)

    async def retweet(self, candidate_id: str) -> None:
        await self._call("retweet", self.client.retweet, candidate_id)

    async def quote(self, text: str, candidate_id: str) -> Optional[str]:
        original = await self.get_candidate(candidate_id)
        attachment = original.permalink if original else f"https://x.com/i/status/{candidate_id}"
        tweet = await self._call("create_tweet", self.client.create_tweet, text=text, attachment_url=attachment)
        return str(tweet.id) if tweet is not None else None

    async def reply(self, text: str, candidate_id: str) -> Optional[str]:
        tweet = await self._call("create_tweet", self.client.create_tweet, text=text, reply_to=candidate_id)
        return str(tweet.id) if tweet is not None else None

    async def close(self) -> None:
        await self.queue.close()


class ClientRegistry:
    """
    agent_id → PlatformClient 레지스트리

    main에서 하나 만들어 넘긴다. 같은 agent에 대해 init은 한 번만.
    """

    def __init__(self, factory=None):
        self._factory = factory or (lambda agent_id: TwitterPlatformClient())
        self._clients: Dict[str, PlatformClient] = {}

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._clients

    def get(self, agent_id: str) -> Optional[PlatformClient]:
        return self._clients.get(agent_id)

    def register(self, agent_id: str, client: PlatformClient) -> PlatformClient:
        self._clients[agent_id] = client
        return client

    async def get_or_create(self, agent_id: str) -> PlatformClient:
        client = self._clients.get(agent_id)
        if client is None:
            client = self._factory(agent_id)
            await client.init()
            self._clients[agent_id] = client
        return client

    async def remove(self, agent_id: str) -> None:
        client = self._clients.pop(agent_id, None)
        if client is not None:
            await client.close()

    async def close_all(self) -> None:
        for agent_id in list(self._clients):
            await self.remove(agent_id)
