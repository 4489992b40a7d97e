from agent_dispatch.permissions.evaluator import (
    PermissionCheck,
    evaluate_policy,
    explain_policy,
    pattern_matches,
)
from agent_dispatch.permissions.models import (
    Decision,
    ModePermission,
    PatternPermission,
    PermissionPolicy,
)
from agent_dispatch.permissions.parser import parse_permission_policy

__all__ = [
    "Decision",
    "ModePermission",
    "PatternPermission",
    "PermissionCheck",
    "PermissionPolicy",
    "evaluate_policy",
    "explain_policy",
    "parse_permission_policy",
    "pattern_matches",
]
