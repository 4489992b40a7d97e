"""Agent registry and dispatcher.

Definitions are loaded once and frozen. Lookups and permission checks read
that frozen state only; the provider manager holds the one piece of mutable
session state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from agent_dispatch.agents.models import AgentMode, AgentProfile
from agent_dispatch.agents.parser import parse_agent_file, parse_agent_mapping
from agent_dispatch.errors import (
    ConfigurationError,
    DuplicateDefinitionError,
    NotFoundError,
)
from agent_dispatch.permissions.evaluator import PermissionCheck, explain_policy
from agent_dispatch.permissions.models import Decision
from agent_dispatch.providers.handles import ProviderHandle
from agent_dispatch.providers.launcher import IProviderLauncher
from agent_dispatch.providers.manager import ToolProviderManager
from agent_dispatch.providers.models import ProviderDescriptor, ProviderState
from agent_dispatch.providers.parser import parse_providers, validate_config_document
from agent_dispatch.sources import DefinitionSources, read_config_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Definitions:
    agents: Mapping[str, AgentProfile] = field(
        default_factory=lambda: MappingProxyType({})
    )
    providers: Mapping[str, ProviderDescriptor] = field(
        default_factory=lambda: MappingProxyType({})
    )


def _add_agent(
    agents: dict[str, AgentProfile], profile: AgentProfile, path: Path | None
) -> None:
    if profile.name in agents:
        raise DuplicateDefinitionError(path, "agent", profile.name)
    agents[profile.name] = profile


def build_definitions(sources: DefinitionSources) -> Definitions:
    agents: dict[str, AgentProfile] = {}
    for agent_path in sources.agent_files:
        _add_agent(agents, parse_agent_file(agent_path), agent_path)

    providers: dict[str, ProviderDescriptor] = {}
    payload = sources.config_payload
    if payload is None and sources.config_path is not None:
        payload = read_config_document(sources.config_path)
    if payload is not None:
        path = sources.config_path
        validate_config_document(payload, path=path)
        for name, raw in (payload.get("agent") or {}).items():
            _add_agent(agents, parse_agent_mapping(str(name), raw, path=path), path)
        providers = parse_providers(payload.get("mcp") or {}, path=path)

    return Definitions(
        agents=MappingProxyType(agents), providers=MappingProxyType(providers)
    )


class AgentRegistry:
    def __init__(self, launcher: IProviderLauncher | None = None) -> None:
        self._launcher = launcher
        self._definitions: Definitions | None = None
        self._providers: ToolProviderManager | None = None

    def __enter__(self) -> "AgentRegistry":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    @property
    def loaded(self) -> bool:
        return self._definitions is not None

    def load_definitions(self, sources: DefinitionSources) -> Definitions:
        if self._definitions is not None:
            raise ConfigurationError(None, "Definitions are already loaded")
        definitions = build_definitions(sources)
        self._definitions = definitions
        self._providers = ToolProviderManager(
            definitions.providers, launcher=self._launcher
        )
        logger.info(
            "Loaded %d agent(s) and %d provider(s)",
            len(definitions.agents),
            len(definitions.providers),
        )
        return definitions

    @property
    def definitions(self) -> Definitions:
        if self._definitions is None:
            raise ConfigurationError(None, "Definitions have not been loaded")
        return self._definitions

    @property
    def providers(self) -> ToolProviderManager:
        if self._providers is None:
            raise ConfigurationError(None, "Definitions have not been loaded")
        return self._providers

    def list_agents(
        self, include_subagents: bool = True, include_disabled: bool = False
    ) -> list[AgentProfile]:
        out: list[AgentProfile] = []
        for name in sorted(self.definitions.agents):
            profile = self.definitions.agents[name]
            if profile.disabled and not include_disabled:
                continue
            if profile.mode == AgentMode.SUBAGENT and not include_subagents:
                continue
            out.append(profile)
        return out

    def resolve_agent(self, name: str) -> AgentProfile:
        profile = self.definitions.agents.get(name)
        if profile is None:
            raise NotFoundError("agent", name)
        return profile

    def explain_permission(
        self, agent_name: str, capability: str, action: str
    ) -> PermissionCheck:
        profile = self.resolve_agent(agent_name)
        if not profile.tools.is_enabled(capability):
            return PermissionCheck(decision=Decision.DENY, reason="tool disabled")
        entry = profile.permission.get(capability)
        if entry is None:
            return PermissionCheck(decision=Decision.ASK, reason="no policy")
        return explain_policy(entry, action)

    def evaluate_permission(
        self, agent_name: str, capability: str, action: str
    ) -> Decision:
        return self.explain_permission(agent_name, capability, action).decision

    def list_providers(self) -> list[ProviderDescriptor]:
        return [
            self.definitions.providers[name]
            for name in sorted(self.definitions.providers)
        ]

    def resolve_provider(self, name: str) -> ProviderDescriptor:
        descriptor = self.definitions.providers.get(name)
        if descriptor is None:
            raise NotFoundError("provider", name)
        return descriptor

    def acquire_tool_provider(self, name: str) -> ProviderHandle:
        return self.providers.acquire(name)

    def stop_tool_provider(self, name: str) -> bool:
        return self.providers.stop(name)

    def provider_state(self, name: str) -> ProviderState:
        return self.providers.state(name)

    def shutdown(self) -> None:
        if self._providers is not None:
            self._providers.shutdown()


def load_registry(
    sources: DefinitionSources, launcher: IProviderLauncher | None = None
) -> AgentRegistry:
    registry = AgentRegistry(launcher=launcher)
    registry.load_definitions(sources)
    return registry
