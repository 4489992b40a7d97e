"""Locate and read definition sources on disk."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from agent_dispatch.config import default_config_root
from agent_dispatch.constants import (
    AGENT_FILE_SUFFIX,
    AGENTS_DIRNAME,
    CONFIG_FILENAME,
    LEGACY_AGENTS_DIRNAME,
)
from agent_dispatch.errors import (
    DuplicateDefinitionError,
    InvalidConfigSchemaError,
    MissingConfigFileError,
)


@dataclass(frozen=True)
class DefinitionSources:
    agent_files: tuple[Path, ...] = ()
    config_path: Path | None = None
    config_payload: dict[str, Any] | None = field(default=None, compare=False)


class _DuplicateKey(ValueError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"duplicate key '{key}'")


def _reject_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in pairs:
        if key in out:
            raise _DuplicateKey(key)
        out[key] = value
    return out


def read_config_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise MissingConfigFileError(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as exc:
        raise InvalidConfigSchemaError(path, f"unreadable file: {exc}") from exc
    if not text.strip():
        return {}
    try:
        payload = json.loads(text, object_pairs_hook=_reject_duplicates)
    except _DuplicateKey as exc:
        raise DuplicateDefinitionError(path, "key", exc.key) from exc
    except ValueError as exc:
        raise InvalidConfigSchemaError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise InvalidConfigSchemaError(path, "must be a JSON object")
    return payload


class SourceRepository:
    def __init__(self, root: Path | None = None) -> None:
        self._root = root or default_config_root()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def agents_dir(self) -> Path:
        plural = self.root / AGENTS_DIRNAME
        singular = self.root / LEGACY_AGENTS_DIRNAME
        if plural.exists():
            return plural
        if singular.exists():
            return singular
        return plural

    @staticmethod
    def list_agent_files(directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.iterdir()
            if path.is_file() and path.suffix == AGENT_FILE_SUFFIX
        )

    def collect(self, extra_agent_dirs: Iterable[Path] = ()) -> DefinitionSources:
        agent_files = self.list_agent_files(self.agents_dir)
        for directory in extra_agent_dirs:
            agent_files.extend(self.list_agent_files(directory))
        config_path = self.config_path if self.config_path.exists() else None
        return DefinitionSources(
            agent_files=tuple(agent_files), config_path=config_path
        )
