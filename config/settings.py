import os
import yaml
from dotenv import load_dotenv

load_dotenv()

def _load_actions_config():
    """actions.yaml 로드"""
    config_path = os.getenv(
        "ACTIONS_CONFIG_PATH",
        os.path.join(os.path.dirname(__file__), "actions.yaml")
    )
    if os.path.exists(config_path):
        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    return {}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default=None):
    value = os.getenv(name)
    if value is None:
        return list(default or [])
    return [item.strip().lstrip('@') for item in value.split(',') if item.strip()]


_actions = _load_actions_config()

class Settings:
    # ===========================================
    # 인증 정보 (.env에서 로드)
    # ===========================================
    TWITTER_USERNAME = os.getenv("TWITTER_USERNAME")
    TWITTER_PASSWORD = os.getenv("TWITTER_PASSWORD")
    TWITTER_EMAIL = os.getenv("TWITTER_EMAIL")
    TWITTER_TOTP_SECRET = os.getenv("TWITTER_TOTP_SECRET")
    TWITTER_AUTH_TOKEN = os.getenv("TWITTER_AUTH_TOKEN")
    TWITTER_CT0 = os.getenv("TWITTER_CT0")

    # LLM 설정
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini")  # gemini | openai | anthropic

    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_VISION_MODEL = os.getenv("GEMINI_VISION_MODEL", os.getenv("GEMINI_MODEL", "gemini-2.5-flash"))

    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
    ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")

    USE_VERTEX_AI = os.getenv("USE_VERTEX_AI", "false").lower() == "true"
    GCP_PROJECT_ID = os.getenv("GCP_PROJECT_ID")
    GCP_LOCATION = os.getenv("GCP_LOCATION", "us-central1")
    GOOGLE_APPLICATION_CREDENTIALS = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "gcp-key.json")

    # 에이전트 식별
    PERSONA_NAME = os.getenv("PERSONA_NAME", "example")
    AGENT_ID = os.getenv("AGENT_ID") or PERSONA_NAME

    # 데이터 저장 경로
    DATA_DIR = os.getenv("DATA_DIR", "data")
    MEMORY_DB_PATH = os.getenv("MEMORY_DB_PATH", os.path.join(DATA_DIR, "memory.db"))
    TWITTER_COOKIES_PATH = os.getenv(
        "TWITTER_COOKIES_PATH",
        os.path.join(DATA_DIR, "cookies", f"{PERSONA_NAME}_cookies.json")
    )
    LOG_DIR = os.getenv("LOG_DIR", "logs")

    # ===========================================
    # 액션 설정 (actions.yaml → 환경변수 오버라이드)
    # ===========================================
    _processing = _actions.get('action_processing', {})
    ENABLE_ACTION_PROCESSING = _env_bool("ENABLE_ACTION_PROCESSING", _processing.get('enabled', True))
    ACTION_INTERVAL = float(os.getenv("ACTION_INTERVAL", _processing.get('interval_minutes', 5)))
    MAX_ACTIONS_PROCESSING = int(os.getenv("MAX_ACTIONS_PROCESSING", _processing.get('max_actions', 1)))
    ACTION_TIMELINE_TYPE = os.getenv("ACTION_TIMELINE_TYPE", _processing.get('timeline_type', 'foryou'))
    MAX_TIMELINES_TO_FETCH = int(os.getenv("MAX_TIMELINES_TO_FETCH", _processing.get('timeline_fetch_count', 15)))

    _content = _actions.get('content', {})
    MAX_TWEET_LENGTH = int(os.getenv("MAX_TWEET_LENGTH", _content.get('max_tweet_length', 280)))
    QUOTED_CONTENT_MAX_CHARS = int(os.getenv("QUOTED_CONTENT_MAX_CHARS", _content.get('quoted_content_max_chars', 500)))
    THREAD_MAX_DEPTH = int(os.getenv("THREAD_MAX_DEPTH", _content.get('thread_max_depth', 10)))

    _search = _actions.get('search', {})
    SEARCH_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT", _search.get('timeout_seconds', 30)))
    TWITTER_TARGET_USERS = _env_list("TWITTER_TARGET_USERS", _search.get('target_users', []))
    TARGET_USER_TWEETS_PER_USER = int(_search.get('tweets_per_user', 3))

settings = Settings()
