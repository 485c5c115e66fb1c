"""
Twitter API Errors
에러 분류 - rate limit / since_id 무효 / timeout / 인증

The raw error shape (mappings, attribute objects, twikit exceptions) is
only inspected in this module. Everything downstream works with
ErrorKind or the PlatformError subclasses.
"""
import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from twikit.errors import (
    BadRequest,
    Forbidden,
    NotFound,
    RequestTimeout,
    ServerError,
    TooManyRequests,
    TwitterException,
    Unauthorized,
)

RATE_LIMIT_CODE = 429
INVALID_CURSOR_PARAM = "since_id"

_TWIKIT_STATUS = (
    (TooManyRequests, 429),
    (BadRequest, 400),
    (Unauthorized, 401),
    (Forbidden, 403),
    (NotFound, 404),
    (RequestTimeout, 408),
    (ServerError, 500),
)


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    INVALID_CURSOR = "invalid_cursor"
    TIMEOUT = "timeout"
    AUTH = "auth"
    OTHER = "other"


@dataclass
class RateLimitInfo:
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[Union[int, str]] = None

    def is_empty(self) -> bool:
        return self.limit is None and self.remaining is None and self.reset is None


class PlatformError(Exception):
    """분류된 플랫폼 에러"""
    kind = ErrorKind.OTHER

    def __init__(self, message: str = "", code: Optional[int] = None,
                 rate_limit: Optional[RateLimitInfo] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.code = code
        self.rate_limit = rate_limit
        self.cause = cause


class RateLimitExceeded(PlatformError):
    kind = ErrorKind.RATE_LIMITED


class InvalidPaginationCursor(PlatformError):
    kind = ErrorKind.INVALID_CURSOR


class RequestTimedOut(PlatformError):
    kind = ErrorKind.TIMEOUT


class AuthenticationError(PlatformError):
    kind = ErrorKind.AUTH


class MissingCredentialsError(AuthenticationError):
    """시작 시 인증 정보 없음 (치명적, 재시도 없음)"""


_KIND_TO_ERROR = {
    ErrorKind.RATE_LIMITED: RateLimitExceeded,
    ErrorKind.INVALID_CURSOR: InvalidPaginationCursor,
    ErrorKind.TIMEOUT: RequestTimedOut,
    ErrorKind.AUTH: AuthenticationError,
    ErrorKind.OTHER: PlatformError,
}


def _field(error: Any, *names: str) -> Any:
    """mapping 키 또는 속성으로 값 읽기"""
    for name in names:
        if isinstance(error, Mapping):
            if name in error:
                return error[name]
        elif hasattr(error, name):
            return getattr(error, name)
    return None


def _headers(error: Any) -> Dict[str, str]:
    headers = getattr(error, "headers", None) if isinstance(error, TwitterException) else None
    if not headers:
        return {}
    try:
        return {str(k).lower(): v for k, v in dict(headers).items()}
    except (TypeError, ValueError):
        return {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def error_code(error: Any) -> Optional[int]:
    """숫자 에러 코드 추출. 형태가 맞지 않으면 None (예외 없음)"""
    if error is None:
        return None
    if isinstance(error, PlatformError):
        return error.code
    if isinstance(error, TwitterException):
        for exc_type, status in _TWIKIT_STATUS:
            if isinstance(error, exc_type):
                return status
        return None

    code = _field(error, "code")
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return None


def get_rate_limit_info(error: Any) -> Optional[RateLimitInfo]:
    if error is None:
        return None
    if isinstance(error, PlatformError):
        return error.rate_limit

    headers = _headers(error)
    if headers:
        info = RateLimitInfo(
            limit=_as_int(headers.get("x-rate-limit-limit")),
            remaining=_as_int(headers.get("x-rate-limit-remaining")),
            reset=_as_int(headers.get("x-rate-limit-reset")),
        )
        return None if info.is_empty() else info

    rate_limit = _field(error, "rateLimit", "rate_limit")
    if isinstance(rate_limit, RateLimitInfo):
        return rate_limit
    if not isinstance(rate_limit, Mapping):
        return None
    return RateLimitInfo(
        limit=rate_limit.get("limit"),
        remaining=rate_limit.get("remaining"),
        reset=rate_limit.get("reset"),
    )


def format_rate_limit_info(error: Any) -> Optional[str]:
    """'limit=X, remaining=Y, reset=Z' (없는 필드 생략, 전부 없으면 None)"""
    info = get_rate_limit_info(error)
    if not info:
        return None

    parts = []
    if info.limit is not None:
        parts.append(f"limit={info.limit}")
    if info.remaining is not None:
        parts.append(f"remaining={info.remaining}")
    if info.reset is not None:
        parts.append(f"reset={info.reset}")

    return ", ".join(parts) if parts else None


rate_limit_summary = format_rate_limit_info


def _embedded_json(text: str) -> Optional[Dict]:
    start = text.find('{')
    end = text.rfind('}') + 1
    if start < 0 or end <= start:
        return None
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _error_details(error: Any) -> Optional[List[Any]]:
    if isinstance(error, TwitterException):
        # twikit: 'status: 400, message: "{...response body...}"'
        body = _embedded_json(str(error))
        return body.get("errors") if body else None

    data = _field(error, "data")
    if isinstance(data, Mapping):
        return data.get("errors")
    if data is not None and hasattr(data, "errors"):
        return getattr(data, "errors")
    return None


def has_invalid_since_id(error: Any) -> bool:
    """since_id(페이지 커서)가 거부된 에러인지 확인"""
    if isinstance(error, InvalidPaginationCursor):
        return True
    try:
        details = _error_details(error)
    except Exception:
        return False
    if not isinstance(details, (list, tuple)):
        return False

    for detail in details:
        if not isinstance(detail, Mapping):
            continue
        parameters = detail.get("parameters")
        if isinstance(parameters, Mapping) and INVALID_CURSOR_PARAM in parameters:
            return True
        message = detail.get("message")
        if isinstance(message, str) and INVALID_CURSOR_PARAM in message:
            return True
    return False


is_invalid_pagination_token = has_invalid_since_id


def classify_error(error: Any) -> ErrorKind:
    if isinstance(error, PlatformError):
        return error.kind
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, RequestTimeout)):
        return ErrorKind.TIMEOUT

    code = error_code(error)
    if code == RATE_LIMIT_CODE:
        return ErrorKind.RATE_LIMITED
    if has_invalid_since_id(error):
        return ErrorKind.INVALID_CURSOR
    if code in (401, 403):
        return ErrorKind.AUTH
    return ErrorKind.OTHER


def to_platform_error(error: BaseException, context: str = "") -> PlatformError:
    """원본 예외 → PlatformError 하위 클래스"""
    if isinstance(error, PlatformError):
        return error
    kind = classify_error(error)
    message = f"{context}: {error}" if context else str(error)
    return _KIND_TO_ERROR[kind](
        message,
        code=error_code(error),
        rate_limit=get_rate_limit_info(error),
        cause=error,
    )
