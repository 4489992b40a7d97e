from pathlib import Path


class DispatchError(Exception):
    """Base user-facing dispatcher error."""


class ConfigurationError(DispatchError):
    def __init__(self, path: Path | None, detail: str) -> None:
        self.path = path
        self.detail = detail
        if path is None:
            super().__init__(detail)
        else:
            super().__init__(f"{detail}: {path}")


class MissingFieldError(ConfigurationError):
    def __init__(self, path: Path | None, owner: str, field_name: str) -> None:
        self.owner = owner
        self.field_name = field_name
        super().__init__(path, f"Missing required field '{field_name}' in {owner}")


class InvalidDefinitionError(ConfigurationError):
    def __init__(self, path: Path | None, owner: str, detail: str) -> None:
        self.owner = owner
        super().__init__(path, f"Invalid definition {owner} ({detail})")


class DuplicateDefinitionError(ConfigurationError):
    def __init__(self, path: Path | None, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(path, f"Duplicate {kind} definition '{name}'")


class NonTotalPolicyError(ConfigurationError):
    def __init__(self, path: Path | None, agent: str, capability: str) -> None:
        self.agent = agent
        self.capability = capability
        super().__init__(
            path,
            f"Permission policy '{capability}' of agent '{agent}' has no '*' fallback",
        )


class InvalidConfigSchemaError(ConfigurationError):
    def __init__(self, path: Path | None, detail: str) -> None:
        super().__init__(path, f"Invalid config schema ({detail})")


class NotFoundError(DispatchError):
    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind}: {name}")


class ProviderLaunchError(DispatchError):
    def __init__(self, name: str, detail: str) -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Failed to launch provider '{name}' ({detail})")


class ProviderTimeoutError(ProviderLaunchError):
    def __init__(self, name: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(name, f"no handshake within {timeout:g}s")


class MissingConfigFileError(ConfigurationError):
    def __init__(self, path: Path) -> None:
        super().__init__(path, "Missing required config file")
