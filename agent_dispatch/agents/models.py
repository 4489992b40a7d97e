"""Agent profile data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from agent_dispatch.permissions.models import PermissionPolicy


class AgentMode(str, Enum):
    PRIMARY = "primary"
    SUBAGENT = "subagent"


@dataclass(frozen=True)
class ToolCapabilities:
    flags: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))

    def is_enabled(self, tool: str) -> bool:
        return self.flags.get(tool, True)

    def disabled(self) -> list[str]:
        return [tool for tool, enabled in self.flags.items() if not enabled]

    def as_dict(self) -> dict[str, bool]:
        return dict(self.flags)


@dataclass(frozen=True)
class AgentProfile:
    name: str
    mode: AgentMode
    prompt: str
    temperature: float | None = None
    max_steps: int | None = None
    tools: ToolCapabilities = field(default_factory=ToolCapabilities)
    permission: PermissionPolicy = field(default_factory=PermissionPolicy)
    description: str = ""
    model: str = ""
    disabled: bool = False
    source_path: Path | None = None

    @property
    def selectable(self) -> bool:
        return self.mode == AgentMode.PRIMARY and not self.disabled

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "mode": self.mode.value,
            "description": self.description,
            "model": self.model,
            "temperature": self.temperature,
            "maxSteps": self.max_steps,
            "disabled": self.disabled,
            "tools": self.tools.as_dict(),
            "permission": self.permission.as_dict(),
            "source": str(self.source_path) if self.source_path else None,
        }
