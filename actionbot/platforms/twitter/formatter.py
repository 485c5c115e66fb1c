"""
Twitter Platform Formatter
트위터 특화 텍스트 포맷팅 로직
"""
import re

MAX_TWEET_LENGTH = 280


def trim_tweet_length(text: str, max_length: int = MAX_TWEET_LENGTH) -> str:
    """
    길이 제한 자르기

    1. 제한 안의 마지막 마침표에서 끊기
    2. 없으면 마지막 공백에서 끊고 "..."
    3. 공백도 없으면 강제로 자르고 "..."
    """
    if len(text) <= max_length:
        return text

    last_period = text[:max_length].rfind(".")
    if last_period > 0:
        return text[:last_period + 1].strip()

    last_space = text.rfind(" ", 0, max_length - 3)
    if last_space > 0:
        return text[:last_space].strip() + "..."

    return text[:max_length - 3] + "..."


def clean_generated_text(text: str) -> str:
    """LLM 출력 정리 (감싼 따옴표 제거, 리터럴 \\n → 빈 줄)"""
    if not text:
        return ""
    cleaned = text.strip()
    cleaned = re.sub(r'^["\'](.*)["\']$', r'\1', cleaned, flags=re.DOTALL)
    cleaned = cleaned.replace('\\n', '\n\n')
    return cleaned.strip()
