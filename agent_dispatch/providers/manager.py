"""Session-scoped lifecycle of tool providers.

Each descriptor owns one slot guarded by its own lock. The first acquire of a
provider that is not ready starts a launch on a worker thread and publishes a
future in the slot; every concurrent acquire of the same name waits on that
future, so one launch serves all callers. Slots never share a lock, so a slow
launch only blocks callers of the same name.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Mapping

from agent_dispatch.errors import (
    NotFoundError,
    ProviderLaunchError,
    ProviderTimeoutError,
)
from agent_dispatch.providers.handles import ProviderHandle
from agent_dispatch.providers.launcher import IProviderLauncher, ProcessLauncher
from agent_dispatch.providers.models import ProviderDescriptor, ProviderState

logger = logging.getLogger(__name__)

LAUNCH_WAIT_MARGIN_SECONDS = 0.5


@dataclass
class _ProviderSlot:
    descriptor: ProviderDescriptor
    lock: threading.Lock = field(default_factory=threading.Lock)
    state: ProviderState = ProviderState.UNSTARTED
    handle: ProviderHandle | None = None
    inflight: Future | None = None
    last_error: str | None = None
    launches: int = 0


class ToolProviderManager:
    def __init__(
        self,
        descriptors: Mapping[str, ProviderDescriptor],
        launcher: IProviderLauncher | None = None,
    ) -> None:
        self._launcher = launcher or ProcessLauncher()
        self._slots = {
            name: _ProviderSlot(descriptor=descriptor)
            for name, descriptor in descriptors.items()
        }

    def _slot(self, name: str) -> _ProviderSlot:
        slot = self._slots.get(name)
        if slot is None:
            raise NotFoundError("provider", name)
        return slot

    @staticmethod
    def _transition(slot: _ProviderSlot, state: ProviderState) -> None:
        if slot.state != state:
            logger.info(
                "Provider %s: %s -> %s",
                slot.descriptor.name,
                slot.state.value,
                state.value,
            )
        slot.state = state

    def _refresh(self, slot: _ProviderSlot) -> None:
        """Caller holds ``slot.lock``."""
        if slot.state == ProviderState.READY and slot.handle is not None:
            if not slot.handle.alive:
                logger.warning("Provider %s exited", slot.descriptor.name)
                slot.handle.close()
                slot.handle = None
                self._transition(slot, ProviderState.STOPPED)

    def state(self, name: str) -> ProviderState:
        slot = self._slot(name)
        with slot.lock:
            self._refresh(slot)
            return slot.state

    def last_error(self, name: str) -> str | None:
        return self._slot(name).last_error

    def launch_count(self, name: str) -> int:
        return self._slot(name).launches

    def handle(self, name: str) -> ProviderHandle | None:
        slot = self._slot(name)
        with slot.lock:
            self._refresh(slot)
            return slot.handle

    def acquire(self, name: str) -> ProviderHandle:
        slot = self._slot(name)
        if not slot.descriptor.enabled:
            raise ProviderLaunchError(name, "provider is disabled")

        with slot.lock:
            self._refresh(slot)
            if slot.state == ProviderState.READY and slot.handle is not None:
                return slot.handle
            future = slot.inflight
            if future is None:
                future = Future()
                slot.inflight = future
                slot.launches += 1
                self._transition(slot, ProviderState.LAUNCHING)
                worker = threading.Thread(
                    target=self._launch_worker,
                    args=(slot, future),
                    name=f"provider-{name}-launch",
                    daemon=True,
                )
                worker.start()

        return self._await_launch(slot, future)

    def _launch_worker(self, slot: _ProviderSlot, future: Future) -> None:
        name = slot.descriptor.name
        handle: ProviderHandle | None = None
        error: ProviderLaunchError | None = None
        try:
            handle = self._launcher.launch(slot.descriptor)
        except TimeoutError:
            error = ProviderTimeoutError(name, slot.descriptor.timeout_seconds)
        except ProviderLaunchError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Unexpected error launching provider %s", name)
            error = ProviderLaunchError(name, str(exc))

        with slot.lock:
            if slot.inflight is not future:
                # Abandoned by a timed-out or stopped waiter.
                if handle is not None:
                    handle.close()
                return
            slot.inflight = None
            if error is not None:
                slot.last_error = error.detail
                self._transition(slot, ProviderState.FAILED)
                logger.error("%s", error)
                future.set_exception(error)
                return
            slot.handle = handle
            slot.last_error = None
            self._transition(slot, ProviderState.READY)
            future.set_result(handle)

    def _await_launch(self, slot: _ProviderSlot, future: Future) -> ProviderHandle:
        timeout = slot.descriptor.timeout_seconds + LAUNCH_WAIT_MARGIN_SECONDS
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            pass

        with slot.lock:
            if slot.inflight is future:
                slot.inflight = None
                error = ProviderTimeoutError(
                    slot.descriptor.name, slot.descriptor.timeout_seconds
                )
                slot.last_error = error.detail
                self._transition(slot, ProviderState.FAILED)
                logger.error("%s", error)
                future.set_exception(error)
        return future.result()

    def stop(self, name: str) -> bool:
        slot = self._slot(name)
        with slot.lock:
            if slot.inflight is not None:
                future = slot.inflight
                slot.inflight = None
                self._transition(slot, ProviderState.STOPPED)
                future.set_exception(ProviderLaunchError(name, "stopped during launch"))
                return True
            handle = slot.handle
            if handle is None:
                return False
            slot.handle = None
            was_alive = handle.alive
            handle.close()
            self._transition(slot, ProviderState.STOPPED)
            return was_alive

    def shutdown(self) -> None:
        for name in self._slots:
            self.stop(name)
