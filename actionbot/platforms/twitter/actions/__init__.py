"""
Actions - 타임라인 액션 파이프라인
"""
from .base import BaseAction, ActionResult
from .like import LikeAction, RetweetAction
from .reply import QuoteAction, ReplyAction
from .content import ActionContentGenerator, ContentGenerationError
from .decision import ActionDecision, ActionDecisionEngine, DecidedCandidate, DecisionFormatError, parse_decision
from .scheduler import schedule
from .executor import ActionExecutor, ExecutionResult
from .processor import ActionConfig, ActionProcessor, CycleReport

__all__ = [
    'BaseAction', 'ActionResult',
    'LikeAction', 'RetweetAction', 'QuoteAction', 'ReplyAction',
    'ActionContentGenerator', 'ContentGenerationError',
    'ActionDecision', 'ActionDecisionEngine', 'DecidedCandidate', 'DecisionFormatError', 'parse_decision',
    'schedule',
    'ActionExecutor', 'ExecutionResult',
    'ActionConfig', 'ActionProcessor', 'CycleReport',
]
