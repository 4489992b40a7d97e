"""First-match permission evaluation.

Rules are scanned in declaration order and the first pattern matching the
whole candidate action decides. A pattern without ``*`` is compared by string
equality; ``*`` stands for any run of characters. An empty rule list denies.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

from agent_dispatch.constants import WILDCARD
from agent_dispatch.permissions.models import (
    CapabilityPermission,
    Decision,
    ModePermission,
)


@dataclass(frozen=True)
class PermissionCheck:
    decision: Decision
    reason: str
    pattern: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {
            "decision": self.decision.value,
            "reason": self.reason,
            "pattern": self.pattern,
        }


@functools.lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str]:
    parts = [re.escape(part) for part in pattern.split(WILDCARD)]
    return re.compile(".*".join(parts), re.DOTALL)


def pattern_matches(pattern: str, action: str) -> bool:
    if pattern == WILDCARD:
        return True
    if WILDCARD not in pattern:
        return pattern == action
    return _compile(pattern).fullmatch(action) is not None


def explain_policy(entry: CapabilityPermission, action: str) -> PermissionCheck:
    if isinstance(entry, ModePermission):
        return PermissionCheck(decision=entry.decision, reason="mode")
    if not entry.rules:
        return PermissionCheck(decision=Decision.DENY, reason="empty rule list")
    for pattern, decision in entry.rules:
        if pattern_matches(pattern, action):
            reason = "fallback" if pattern == WILDCARD else "rule"
            return PermissionCheck(decision=decision, reason=reason, pattern=pattern)
    # Only reachable for policies built without load-time validation.
    return PermissionCheck(decision=Decision.DENY, reason="no matching rule")


def evaluate_policy(entry: CapabilityPermission, action: str) -> Decision:
    return explain_policy(entry, action).decision
