from enum import IntEnum

from agent_dispatch.errors import (
    ConfigurationError,
    DispatchError,
    NotFoundError,
    ProviderLaunchError,
)


class ExitCode(IntEnum):
    SUCCESS = 0
    USAGE = 2
    NOT_FOUND = 3
    CONFIG_ERROR = 4
    LAUNCH_ERROR = 5
    PERMISSION_DENIED = 6


_ERROR_CODES: tuple[tuple[type[DispatchError], str, ExitCode], ...] = (
    (NotFoundError, "not-found", ExitCode.NOT_FOUND),
    (ConfigurationError, "config-error", ExitCode.CONFIG_ERROR),
    (ProviderLaunchError, "launch-error", ExitCode.LAUNCH_ERROR),
)


def classify_error(error: DispatchError) -> tuple[str, ExitCode]:
    for error_type, label, code in _ERROR_CODES:
        if isinstance(error, error_type):
            return label, code
    return "error", ExitCode.USAGE
