from __future__ import annotations

from abc import ABC, abstractmethod

from agent_dispatch.constants import APP_NAME, MCP_PROTOCOL_VERSION
from agent_dispatch.providers.handles import LocalProcessHandle


class IHandshake(ABC):
    @abstractmethod
    def perform(self, handle: LocalProcessHandle, timeout: float) -> None:
        """Bring a freshly spawned provider to a ready state or raise."""


class NoHandshake(IHandshake):
    def perform(self, handle: LocalProcessHandle, timeout: float) -> None:
        return None


class MCPInitializeHandshake(IHandshake):
    def __init__(self, client_version: str = "0.1.0") -> None:
        self.client_version = client_version

    def perform(self, handle: LocalProcessHandle, timeout: float) -> None:
        result = handle.request(
            "initialize",
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": APP_NAME, "version": self.client_version},
            },
            timeout=timeout,
        )
        if isinstance(result, dict):
            handle.server_info = result
        handle.notify("notifications/initialized")
