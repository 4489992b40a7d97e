"""Tests for first-match permission evaluation."""

import pytest

from agent_dispatch.permissions.evaluator import (
    evaluate_policy,
    explain_policy,
    pattern_matches,
)
from agent_dispatch.permissions.models import (
    Decision,
    ModePermission,
    PatternPermission,
)


RUST_DEV_BASH = PatternPermission(
    rules=(
        ("git status", Decision.ALLOW),
        ("git diff", Decision.ALLOW),
        ("git log*", Decision.ALLOW),
        ("*", Decision.ASK),
    )
)


@pytest.mark.parametrize(
    "pattern, action, expected",
    [
        ("git status", "git status", True),
        ("git status", "git status --short", False),
        ("git status", "git statu", False),
        ("git log*", "git log", True),
        ("git log*", "git log --oneline -5", True),
        ("git log*", "git show", False),
        ("*", "", True),
        ("*", "rm -rf /", True),
        ("npm run *", "npm run test", True),
        ("*.py", "main.py", True),
        ("git [ab]*", "git a", False),
        ("git [ab]*", "git [ab] x", True),
        ("a.c", "abc", False),
    ],
)
def test_pattern_matches(pattern: str, action: str, expected: bool) -> None:
    assert pattern_matches(pattern, action) is expected


@pytest.mark.parametrize(
    "action, expected",
    [
        ("git status", Decision.ALLOW),
        ("git diff", Decision.ALLOW),
        ("git log --stat", Decision.ALLOW),
        ("cargo publish", Decision.ASK),
        ("", Decision.ASK),
    ],
)
def test_first_match_with_fallback(action: str, expected: Decision) -> None:
    assert evaluate_policy(RUST_DEV_BASH, action) == expected


def test_declaration_order_wins_over_specificity() -> None:
    policy = PatternPermission(
        rules=(
            ("git *", Decision.DENY),
            ("git status", Decision.ALLOW),
            ("*", Decision.ASK),
        )
    )
    check = explain_policy(policy, "git status")
    assert check.decision == Decision.DENY
    assert check.pattern == "git *"
    assert check.reason == "rule"


def test_fallback_reason() -> None:
    check = explain_policy(RUST_DEV_BASH, "make")
    assert check.reason == "fallback"
    assert check.pattern == "*"


def test_empty_rule_list_fails_closed() -> None:
    policy = PatternPermission(rules=())
    for action in ("git status", "", "*"):
        assert evaluate_policy(policy, action) == Decision.DENY


def test_mode_permission_ignores_action() -> None:
    policy = ModePermission(Decision.ASK)
    assert evaluate_policy(policy, "anything") == Decision.ASK
    assert explain_policy(policy, "").reason == "mode"


def test_evaluation_is_idempotent() -> None:
    first = explain_policy(RUST_DEV_BASH, "cargo build")
    second = explain_policy(RUST_DEV_BASH, "cargo build")
    assert first == second
