from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from agent_dispatch.constants import DEFAULT_PROVIDER_TIMEOUT_MS


class Transport(str, Enum):
    REMOTE = "remote"
    LOCAL_PROCESS = "local-process"


class ProviderState(str, Enum):
    UNSTARTED = "unstarted"
    LAUNCHING = "launching"
    READY = "ready"
    FAILED = "failed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    transport: Transport
    command: tuple[str, ...] = ()
    environment: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    url: str | None = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    enabled: bool = True
    timeout_ms: int = DEFAULT_PROVIDER_TIMEOUT_MS

    @property
    def executable(self) -> str | None:
        return self.command[0] if self.command else None

    @property
    def args(self) -> tuple[str, ...]:
        return self.command[1:]

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def as_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "name": self.name,
            "transport": self.transport.value,
            "enabled": self.enabled,
            "timeout": self.timeout_ms,
        }
        if self.transport == Transport.LOCAL_PROCESS:
            out["command"] = list(self.command)
            if self.environment:
                out["environment"] = dict(self.environment)
        else:
            out["url"] = self.url
            if self.headers:
                out["headers"] = dict(self.headers)
        return out
