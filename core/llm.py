"""
LLM Client
멀티 프로바이더 LLM 클라이언트 (Gemini, OpenAI, Anthropic)
Multi-provider LLM client with unified interface
"""
import os
import logging
from abc import ABC, abstractmethod
from typing import Optional
from config.settings import settings

logger = logging.getLogger("agent")


class LLMNotInitializedError(RuntimeError):
    """API 키 또는 SDK가 없어 호출할 수 없음"""


class BaseLLMClient(ABC):
    """LLM 클라이언트 추상 클래스"""

    @abstractmethod
    def generate(self, prompt: str, system_prompt: str = "", model: Optional[str] = None) -> str:
        """텍스트 생성"""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """프로바이더 이름"""
        pass


class GeminiClient(BaseLLMClient):
    """Google Gemini (API or Vertex AI)"""

    def __init__(self):
        from google import genai

        self.client = None
        self.model_name = getattr(settings, 'GEMINI_MODEL', 'gemini-2.5-flash')
        self.backend = None

        if getattr(settings, 'USE_VERTEX_AI', False):
            self._init_vertex_ai(genai)
        elif getattr(settings, 'GEMINI_API_KEY', None):
            self._init_gemini_api(genai)
        else:
            logger.warning("[GEMINI] No API key or Vertex AI config!")

    def _init_gemini_api(self, genai):
        self.client = genai.Client(api_key=settings.GEMINI_API_KEY)
        self.backend = "gemini_api"
        logger.info("[GEMINI API] initialized")

    def _init_vertex_ai(self, genai):
        if getattr(settings, 'GOOGLE_APPLICATION_CREDENTIALS', None):
            os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.GOOGLE_APPLICATION_CREDENTIALS

        self.client = genai.Client(
            vertexai=True,
            project=settings.GCP_PROJECT_ID,
            location=settings.GCP_LOCATION
        )
        self.backend = "vertex_ai"
        logger.info(f"[VERTEX AI] initialized (project={settings.GCP_PROJECT_ID})")

    def generate(self, prompt: str, system_prompt: str = "", model: Optional[str] = None) -> str:
        if not self.client:
            raise LLMNotInitializedError("Gemini client not initialized")

        # 시스템 프롬프트와 사용자 프롬프트를 명확하게 구분하여 전달
        if system_prompt:
            full_prompt = f"[System]\n{system_prompt}\n\n[Request]\n{prompt}"
        else:
            full_prompt = prompt

        response = self.client.models.generate_content(
            model=model or self.model_name,
            contents=full_prompt
        )
        return response.text or ""

    @property
    def provider_name(self) -> str:
        return f"gemini ({self.backend})"


class OpenAIClient(BaseLLMClient):
    """OpenAI GPT"""

    def __init__(self):
        self.client = None
        self.model_name = getattr(settings, 'OPENAI_MODEL', 'gpt-4o-mini')
        try:
            from openai import OpenAI
        except ImportError:
            logger.error("[OPENAI] openai package not installed (pip install '.[openai]')")
            return

        api_key = getattr(settings, 'OPENAI_API_KEY', None)
        if not api_key:
            logger.warning("[OPENAI] No API key!")
            return
        self.client = OpenAI(api_key=api_key)
        logger.info(f"[OPENAI] initialized (model={self.model_name})")

    def generate(self, prompt: str, system_prompt: str = "", model: Optional[str] = None) -> str:
        if not self.client:
            raise LLMNotInitializedError("OpenAI client not initialized")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self.client.chat.completions.create(
            model=model or self.model_name,
            messages=messages
        )
        return response.choices[0].message.content or ""

    @property
    def provider_name(self) -> str:
        return "openai"


class AnthropicClient(BaseLLMClient):
    """Anthropic Claude"""

    def __init__(self):
        self.client = None
        self.model_name = getattr(settings, 'ANTHROPIC_MODEL', 'claude-sonnet-4-20250514')
        try:
            from anthropic import Anthropic
        except ImportError:
            logger.error("[ANTHROPIC] anthropic package not installed (pip install '.[anthropic]')")
            return

        api_key = getattr(settings, 'ANTHROPIC_API_KEY', None)
        if not api_key:
            logger.warning("[ANTHROPIC] No API key!")
            return
        self.client = Anthropic(api_key=api_key)
        logger.info(f"[ANTHROPIC] initialized (model={self.model_name})")

    def generate(self, prompt: str, system_prompt: str = "", model: Optional[str] = None) -> str:
        if not self.client:
            raise LLMNotInitializedError("Anthropic client not initialized")

        response = self.client.messages.create(
            model=model or self.model_name,
            max_tokens=1024,
            system=system_prompt if system_prompt else "",
            messages=[{"role": "user", "content": prompt}]
        )
        return response.content[0].text

    @property
    def provider_name(self) -> str:
        return "anthropic"


def create_llm_client(provider: Optional[str] = None) -> BaseLLMClient:
    """설정에 따라 LLM 클라이언트 생성"""
    provider = provider or getattr(settings, 'LLM_PROVIDER', 'gemini')

    clients = {
        'gemini': GeminiClient,
        'openai': OpenAIClient,
        'anthropic': AnthropicClient,
    }

    if provider not in clients:
        logger.warning(f"[LLM] Unknown provider: {provider}, falling back to gemini")
        provider = 'gemini'

    return clients[provider]()
