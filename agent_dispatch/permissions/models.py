"""Permission policy data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

from agent_dispatch.constants import WILDCARD


class Decision(str, Enum):
    ALLOW = "allow"
    ASK = "ask"
    DENY = "deny"


@dataclass(frozen=True)
class ModePermission:
    """Single decision for every action of a capability."""

    decision: Decision


@dataclass(frozen=True)
class PatternPermission:
    """Ordered (pattern, decision) rules; first match wins."""

    rules: tuple[tuple[str, Decision], ...] = ()

    @property
    def has_fallback(self) -> bool:
        return any(pattern == WILDCARD for pattern, _ in self.rules)

    def unreachable_rules(self) -> tuple[tuple[str, Decision], ...]:
        for index, (pattern, _) in enumerate(self.rules):
            if pattern == WILDCARD:
                return self.rules[index + 1 :]
        return ()


CapabilityPermission = Union[ModePermission, PatternPermission]


@dataclass(frozen=True)
class PermissionPolicy:
    entries: Mapping[str, CapabilityPermission] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def get(self, capability: str) -> CapabilityPermission | None:
        return self.entries.get(capability)

    def as_dict(self) -> dict[str, object]:
        out: dict[str, object] = {}
        for capability, entry in self.entries.items():
            if isinstance(entry, ModePermission):
                out[capability] = entry.decision.value
            else:
                out[capability] = {
                    pattern: decision.value for pattern, decision in entry.rules
                }
        return out
