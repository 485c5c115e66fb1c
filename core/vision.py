"""
Image Description Service
트윗 이미지 설명 생성 (Gemini 멀티모달)
Fetches an image and asks Gemini for a short title + description.
"""
import asyncio
import json
import logging
from typing import Dict, Optional

from curl_cffi.requests import AsyncSession

from config.settings import settings

logger = logging.getLogger("agent")

# 브라우저 impersonate 옵션
BROWSER_IMPERSONATE = "chrome120"

DESCRIBE_PROMPT = """Describe this image for someone who cannot see it.
Respond ONLY with JSON: {"title": "short title", "description": "one or two sentences"}"""


class ImageDescriptionService:
    """이미지 URL → {title, description}"""

    def __init__(self, genai_client=None, model: Optional[str] = None, timeout: float = 20.0):
        self.client = genai_client
        self.model = model or getattr(settings, 'GEMINI_VISION_MODEL', 'gemini-2.5-flash')
        self.timeout = timeout

        if self.client is None and getattr(settings, 'GEMINI_API_KEY', None):
            from google import genai
            self.client = genai.Client(api_key=settings.GEMINI_API_KEY)

    async def _fetch_image(self, image_url: str):
        async with AsyncSession(impersonate=BROWSER_IMPERSONATE) as session:
            response = await session.get(image_url, timeout=self.timeout)
            response.raise_for_status()
            mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
            return response.content, mime_type

    async def describe(self, image_url: str) -> Dict[str, str]:
        if not self.client:
            raise RuntimeError("Image description requires a Gemini client")

        from google.genai import types

        data, mime_type = await self._fetch_image(image_url)
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=[types.Part.from_bytes(data=data, mime_type=mime_type), DESCRIBE_PROMPT]
        )
        return parse_description(response.text or "")


def parse_description(text: str) -> Dict[str, str]:
    """LLM 응답 파싱 (JSON 실패 시 전체 텍스트를 설명으로)"""
    start = text.find('{')
    end = text.rfind('}') + 1
    if start >= 0 and end > start:
        try:
            data = json.loads(text[start:end])
            return {
                "title": str(data.get("title", "")).strip(),
                "description": str(data.get("description", "")).strip(),
            }
        except json.JSONDecodeError:
            logger.debug(f"[VISION] Non-JSON description: {text[:80]}")
    return {"title": "", "description": text.strip()}
