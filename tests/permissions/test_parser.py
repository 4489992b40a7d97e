"""Tests for permission policy parsing."""

import logging

import pytest

from agent_dispatch.errors import InvalidDefinitionError, NonTotalPolicyError
from agent_dispatch.permissions.models import (
    Decision,
    ModePermission,
    PatternPermission,
)
from agent_dispatch.permissions.parser import parse_permission_policy


def test_none_gives_empty_policy() -> None:
    policy = parse_permission_policy(None, agent="a")
    assert dict(policy.entries) == {}


def test_order_is_preserved() -> None:
    raw = {"bash": {"z*": "deny", "a*": "allow", "*": "ask"}}
    policy = parse_permission_policy(raw, agent="a")
    bash = policy.get("bash")
    assert isinstance(bash, PatternPermission)
    assert [pattern for pattern, _ in bash.rules] == ["z*", "a*", "*"]


def test_scalar_entries_become_mode_permissions() -> None:
    policy = parse_permission_policy({"edit": "deny", "webfetch": "ALLOW"}, agent="a")
    assert policy.get("edit") == ModePermission(Decision.DENY)
    assert policy.get("webfetch") == ModePermission(Decision.ALLOW)


def test_pattern_list_without_fallback_is_non_total() -> None:
    with pytest.raises(NonTotalPolicyError, match="bash"):
        parse_permission_policy(
            {"bash": {"git status": "allow"}}, agent="rust-dev"
        )


def test_empty_pattern_mapping_is_allowed() -> None:
    policy = parse_permission_policy({"bash": {}}, agent="a")
    assert policy.get("bash") == PatternPermission(rules=())


def test_unknown_decision() -> None:
    with pytest.raises(InvalidDefinitionError, match="unknown permission decision"):
        parse_permission_policy({"edit": "maybe"}, agent="a")


def test_non_mapping_policy() -> None:
    with pytest.raises(InvalidDefinitionError, match="must be a mapping"):
        parse_permission_policy(["edit"], agent="a")


def test_rules_after_fallback_warn(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="agent_dispatch.permissions.parser"):
        policy = parse_permission_policy(
            {"bash": {"*": "ask", "git status": "allow"}}, agent="a"
        )
    assert "can never match" in caplog.text
    bash = policy.get("bash")
    assert isinstance(bash, PatternPermission)
    assert bash.unreachable_rules() == (("git status", Decision.ALLOW),)


def test_as_dict_round_trips_shape() -> None:
    raw = {"edit": "allow", "bash": {"git *": "allow", "*": "deny"}}
    assert parse_permission_policy(raw, agent="a").as_dict() == raw
