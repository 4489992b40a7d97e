"""Map the ``mcp`` section of a config document to provider descriptors."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any

from jsonschema import Draft202012Validator

from agent_dispatch.constants import DEFAULT_PROVIDER_TIMEOUT_MS
from agent_dispatch.errors import (
    InvalidConfigSchemaError,
    InvalidDefinitionError,
    MissingFieldError,
)
from agent_dispatch.providers.models import ProviderDescriptor, Transport
from agent_dispatch.providers.schema import JsonSchemaRepository, format_schema_error

_TRANSPORTS = {
    "local": Transport.LOCAL_PROCESS,
    "local-process": Transport.LOCAL_PROCESS,
    "remote": Transport.REMOTE,
}


def validate_config_document(
    payload: Any,
    *,
    path: Path | None = None,
    schema_repository: JsonSchemaRepository | None = None,
) -> None:
    repository = schema_repository or JsonSchemaRepository()
    validator = Draft202012Validator(repository.load_schema())
    error = next(iter(validator.iter_errors(payload)), None)
    if error is not None:
        raise InvalidConfigSchemaError(path, format_schema_error(error))


def _as_str_map(value: Any) -> MappingProxyType:
    if not isinstance(value, dict):
        return MappingProxyType({})
    return MappingProxyType({str(k): str(v) for k, v in value.items()})


def parse_provider(
    name: str, server: Any, *, path: Path | None = None
) -> ProviderDescriptor:
    owner = f"provider '{name}'"
    if not isinstance(server, dict):
        raise InvalidDefinitionError(path, owner, "entry must be an object")

    server_type = server.get("type")
    if server_type is None:
        raise MissingFieldError(path, owner, "type")
    transport = _TRANSPORTS.get(str(server_type))
    if transport is None:
        raise InvalidDefinitionError(path, owner, f"unknown transport {server_type!r}")

    enabled = server.get("enabled", True)
    timeout = server.get("timeout", DEFAULT_PROVIDER_TIMEOUT_MS)

    if transport == Transport.LOCAL_PROCESS:
        command = server.get("command")
        if not command:
            raise MissingFieldError(path, owner, "command")
        return ProviderDescriptor(
            name=name,
            transport=transport,
            command=tuple(str(part) for part in command),
            environment=_as_str_map(server.get("environment")),
            enabled=bool(enabled),
            timeout_ms=int(timeout),
        )

    url = server.get("url")
    if not isinstance(url, str) or not url:
        raise MissingFieldError(path, owner, "url")
    return ProviderDescriptor(
        name=name,
        transport=transport,
        url=url,
        headers=_as_str_map(server.get("headers")),
        enabled=bool(enabled),
        timeout_ms=int(timeout),
    )


def parse_providers(
    payload: dict[str, Any], *, path: Path | None = None
) -> dict[str, ProviderDescriptor]:
    return {
        str(name): parse_provider(str(name), server, path=path)
        for name, server in payload.items()
    }
