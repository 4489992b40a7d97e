from typing import Final


APP_NAME: Final[str] = "agent-dispatch"
CONFIG_DIR_ENV: Final[str] = "AGENT_DISPATCH_CONFIG_DIR"

CONFIG_FILENAME: Final[str] = "opencode.json"
AGENTS_DIRNAME: Final[str] = "agents"
LEGACY_AGENTS_DIRNAME: Final[str] = "agent"
AGENT_FILE_SUFFIX: Final[str] = ".md"

WILDCARD: Final[str] = "*"

TEMPERATURE_RANGE: Final[tuple[float, float]] = (0.0, 2.0)

DEFAULT_PROVIDER_TIMEOUT_MS: Final[int] = 5000
PROVIDER_STOP_GRACE_SECONDS: Final[float] = 3.0

MCP_PROTOCOL_VERSION: Final[str] = "2024-11-05"
