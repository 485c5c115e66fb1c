"""
Action Scheduler
판단 결과 정렬 + 상한 적용

정렬: true 개수 내림차순 → like=True 우선 → 입력 순서 (stable)
"""
from typing import List

from actionbot.platforms.twitter.actions.decision import DecidedCandidate


def _priority(item: DecidedCandidate):
    decision = item.decision
    return (-decision.true_count, 0 if decision.like else 1)


def sort_decided(decided: List[DecidedCandidate]) -> List[DecidedCandidate]:
    return sorted(decided, key=_priority)


def schedule(decided: List[DecidedCandidate], max_actions: int) -> List[DecidedCandidate]:
    """정렬 후 앞에서 max_actions 개. 나머지는 이번 사이클에서 버림"""
    if max_actions <= 0:
        return []
    return sort_decided(decided)[:max_actions]
