from agent_dispatch.providers.handles import (
    LocalProcessHandle,
    ProviderHandle,
    ProviderRequestError,
    RemoteProviderHandle,
)
from agent_dispatch.providers.handshake import (
    IHandshake,
    MCPInitializeHandshake,
    NoHandshake,
)
from agent_dispatch.providers.launcher import IProviderLauncher, ProcessLauncher
from agent_dispatch.providers.manager import ToolProviderManager
from agent_dispatch.providers.models import ProviderDescriptor, ProviderState, Transport
from agent_dispatch.providers.parser import (
    parse_provider,
    parse_providers,
    validate_config_document,
)

__all__ = [
    "IHandshake",
    "IProviderLauncher",
    "LocalProcessHandle",
    "MCPInitializeHandshake",
    "NoHandshake",
    "ProcessLauncher",
    "ProviderDescriptor",
    "ProviderHandle",
    "ProviderRequestError",
    "ProviderState",
    "RemoteProviderHandle",
    "ToolProviderManager",
    "Transport",
    "parse_provider",
    "parse_providers",
    "validate_config_document",
]
