"""
Base Action
액션의 공통 인터페이스 정의
"""
from abc import ABC, abstractmethod
from typing import Optional
from dataclasses import dataclass

from actionbot.platforms.interface import Candidate, PlatformClient


@dataclass
class ActionResult:
    """액션 실행 결과"""
    success: bool
    action_type: str
    target_id: Optional[str] = None
    content: Optional[str] = None
    error: Optional[str] = None


class BaseAction(ABC):
    """액션 베이스 클래스"""
    action_type = ""

    def __init__(self, client: PlatformClient):
        self.client = client

    @abstractmethod
    async def execute(self, candidate: Candidate) -> ActionResult:
        """
        액션 실행. 실패는 예외로 올린다 (호출자가 액션 단위로 잡음)
        """
        pass

    def can_execute(self, candidate: Optional[Candidate] = None) -> bool:
        """실행 가능 여부"""
        return bool(candidate and candidate.id)
