"""Parse agent profiles from YAML frontmatter files and config mappings."""

from __future__ import annotations

import re
from collections.abc import Hashable
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from agent_dispatch.agents.models import AgentMode, AgentProfile, ToolCapabilities
from agent_dispatch.constants import TEMPERATURE_RANGE
from agent_dispatch.errors import (
    DuplicateDefinitionError,
    InvalidDefinitionError,
    MissingFieldError,
)
from agent_dispatch.permissions.parser import parse_permission_policy

_FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n---[ \t]*(?:\n|$)", re.DOTALL)

_MODES = {mode.value: mode for mode in AgentMode}


class _DuplicateKey(ValueError):
    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"duplicate key {key!r}")


class _FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that refuses a key repeated within one mapping."""


def _construct_unique_mapping(
    loader: _FrontmatterLoader, node: yaml.MappingNode, deep: bool = False
) -> dict[Any, Any]:
    seen: set[Any] = set()
    for key_node, _ in node.value:
        if key_node.tag == "tag:yaml.org,2002:merge":
            continue
        key = loader.construct_object(key_node, deep=deep)
        if not isinstance(key, Hashable):
            continue
        if key in seen:
            raise _DuplicateKey(key)
        seen.add(key)
    return loader.construct_mapping(node, deep=deep)


_FrontmatterLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_unique_mapping
)


def _parse_mode(raw: dict[str, Any], *, owner: str, path: Path | None) -> AgentMode:
    value = raw.get("mode")
    if value is None:
        raise MissingFieldError(path, owner, "mode")
    if not isinstance(value, str) or value not in _MODES:
        raise InvalidDefinitionError(path, owner, f"unknown mode {value!r}")
    return _MODES[value]


def _parse_temperature(
    raw: dict[str, Any], *, owner: str, path: Path | None
) -> float | None:
    value = raw.get("temperature")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDefinitionError(path, owner, "temperature must be a number")
    low, high = TEMPERATURE_RANGE
    if not low <= value <= high:
        raise InvalidDefinitionError(
            path, owner, f"temperature {value} outside [{low:g}, {high:g}]"
        )
    return float(value)


def _parse_max_steps(
    raw: dict[str, Any], *, owner: str, path: Path | None
) -> int | None:
    value = raw.get("maxSteps")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidDefinitionError(path, owner, "maxSteps must be an integer")
    if value <= 0:
        raise InvalidDefinitionError(path, owner, f"maxSteps must be > 0, got {value}")
    return value


def _parse_tools(
    raw: dict[str, Any], *, owner: str, path: Path | None
) -> ToolCapabilities:
    tools_raw = raw.get("tools")
    if tools_raw is None:
        return ToolCapabilities()
    if not isinstance(tools_raw, dict):
        raise InvalidDefinitionError(path, owner, "tools must be a mapping")
    flags: dict[str, bool] = {}
    for tool, enabled in tools_raw.items():
        if not isinstance(enabled, bool):
            raise InvalidDefinitionError(
                path, owner, f"tools.{tool} must be true or false"
            )
        flags[str(tool)] = enabled
    return ToolCapabilities(flags=MappingProxyType(flags))


def parse_agent_mapping(
    name: str,
    raw: dict[str, Any],
    *,
    prompt: str | None = None,
    path: Path | None = None,
) -> AgentProfile:
    owner = f"agent '{name}'"
    if not isinstance(raw, dict):
        raise InvalidDefinitionError(path, owner, "definition must be a mapping")

    body = prompt if prompt is not None else raw.get("prompt", "")
    if not isinstance(body, str):
        raise InvalidDefinitionError(path, owner, "prompt must be a string")

    return AgentProfile(
        name=name,
        mode=_parse_mode(raw, owner=owner, path=path),
        prompt=body,
        temperature=_parse_temperature(raw, owner=owner, path=path),
        max_steps=_parse_max_steps(raw, owner=owner, path=path),
        tools=_parse_tools(raw, owner=owner, path=path),
        permission=parse_permission_policy(
            raw.get("permission"), agent=name, path=path
        ),
        description=str(raw.get("description") or ""),
        model=str(raw.get("model") or ""),
        disabled=bool(raw.get("disable", False)),
        source_path=path,
    )


def parse_agent_file(path: Path) -> AgentProfile:
    owner = f"agent '{path.stem}'"
    try:
        text = path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as exc:
        raise InvalidDefinitionError(path, owner, f"unreadable file: {exc}") from exc

    match = _FRONTMATTER_RE.match(text)
    if match:
        try:
            raw = yaml.load(match.group(1), Loader=_FrontmatterLoader) or {}
        except _DuplicateKey as exc:
            raise DuplicateDefinitionError(path, "key", str(exc.key)) from exc
        except yaml.YAMLError as exc:
            raise InvalidDefinitionError(
                path, owner, f"malformed frontmatter: {exc}"
            ) from exc
        content = text[match.end() :]
    else:
        raw = {}
        content = text

    if not isinstance(raw, dict):
        raise InvalidDefinitionError(path, owner, "frontmatter must be a mapping")

    name = str(raw.get("name") or path.stem)
    return parse_agent_mapping(name, raw, prompt=content, path=path)
