import os
from pathlib import Path

from agent_dispatch.constants import CONFIG_DIR_ENV


def default_config_root() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "opencode"


def resolve_config_root(explicit: Path | None = None) -> Path:
    if explicit is not None:
        return explicit.expanduser()
    return default_config_root()
