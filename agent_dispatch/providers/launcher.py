"""Spawn local-process providers."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod

from agent_dispatch.errors import ProviderLaunchError
from agent_dispatch.providers.handles import (
    LocalProcessHandle,
    ProviderHandle,
    ProviderRequestError,
    RemoteProviderHandle,
)
from agent_dispatch.providers.handshake import IHandshake, MCPInitializeHandshake
from agent_dispatch.providers.models import ProviderDescriptor, Transport

logger = logging.getLogger(__name__)


class IProviderLauncher(ABC):
    @abstractmethod
    def launch(self, descriptor: ProviderDescriptor) -> ProviderHandle:
        raise NotImplementedError


class ProcessLauncher(IProviderLauncher):
    def __init__(self, handshake: IHandshake | None = None) -> None:
        self._handshake = handshake or MCPInitializeHandshake()

    def launch(self, descriptor: ProviderDescriptor) -> ProviderHandle:
        if descriptor.transport == Transport.REMOTE:
            return RemoteProviderHandle(
                descriptor.name, descriptor.url or "", descriptor.headers
            )

        executable = descriptor.executable
        if executable is None:
            raise ProviderLaunchError(descriptor.name, "empty launch command")

        env = {**os.environ, **descriptor.environment}
        resolved = shutil.which(executable, path=env.get("PATH"))
        if resolved is None:
            raise ProviderLaunchError(
                descriptor.name, f"executable not found on PATH: {executable}"
            )

        logger.debug("Spawning provider %s: %s", descriptor.name, descriptor.command)
        try:
            process = subprocess.Popen(
                [resolved, *descriptor.args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env=env,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise ProviderLaunchError(descriptor.name, str(exc)) from exc

        handle = LocalProcessHandle(descriptor.name, process)
        try:
            self._handshake.perform(handle, timeout=descriptor.timeout_seconds)
        except TimeoutError:
            handle.close()
            raise
        except ProviderRequestError as exc:
            handle.close()
            raise ProviderLaunchError(descriptor.name, exc.detail) from exc
        return handle
