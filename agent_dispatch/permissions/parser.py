"""Build permission policies from raw frontmatter/config mappings."""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any

from agent_dispatch.errors import InvalidDefinitionError, NonTotalPolicyError
from agent_dispatch.permissions.models import (
    CapabilityPermission,
    Decision,
    ModePermission,
    PatternPermission,
    PermissionPolicy,
)

logger = logging.getLogger(__name__)

_DECISIONS = {decision.value: decision for decision in Decision}


def _parse_decision(value: Any, *, path: Path | None, owner: str) -> Decision:
    if isinstance(value, str) and value.lower() in _DECISIONS:
        return _DECISIONS[value.lower()]
    raise InvalidDefinitionError(
        path, owner, f"unknown permission decision {value!r}"
    )


def _parse_patterns(
    raw: dict[Any, Any], *, path: Path | None, owner: str
) -> PatternPermission:
    rules: list[tuple[str, Decision]] = []
    for pattern, value in raw.items():
        if not isinstance(pattern, str) or not pattern:
            raise InvalidDefinitionError(
                path, owner, f"permission pattern must be a non-empty string, got {pattern!r}"
            )
        rules.append((pattern, _parse_decision(value, path=path, owner=owner)))
    return PatternPermission(rules=tuple(rules))


def parse_permission_policy(
    raw: Any, *, agent: str, path: Path | None = None
) -> PermissionPolicy:
    if raw is None:
        return PermissionPolicy()
    owner = f"agent '{agent}'"
    if not isinstance(raw, dict):
        raise InvalidDefinitionError(path, owner, "permission must be a mapping")

    entries: dict[str, CapabilityPermission] = {}
    for capability, value in raw.items():
        capability = str(capability)
        if isinstance(value, dict):
            entry = _parse_patterns(value, path=path, owner=owner)
            if entry.rules and not entry.has_fallback:
                raise NonTotalPolicyError(path, agent, capability)
            unreachable = entry.unreachable_rules()
            if unreachable:
                logger.warning(
                    "Agent %s: %d %s rule(s) after '*' can never match: %s",
                    agent,
                    len(unreachable),
                    capability,
                    ", ".join(pattern for pattern, _ in unreachable),
                )
            entries[capability] = entry
        elif isinstance(value, list) and not value:
            entries[capability] = PatternPermission()
        else:
            entries[capability] = ModePermission(
                decision=_parse_decision(value, path=path, owner=owner)
            )
    return PermissionPolicy(entries=MappingProxyType(entries))
