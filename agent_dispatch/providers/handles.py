"""Live handles to tool providers.

A local-process handle owns one child process speaking newline-delimited
JSON-RPC over stdin/stdout. A single reader thread drains stdout into a queue
so that every wait on the child is bounded by a timeout.
"""

from __future__ import annotations

import itertools
import json
import logging
import queue
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Mapping

from agent_dispatch.constants import PROVIDER_STOP_GRACE_SECONDS

logger = logging.getLogger(__name__)

_EOF = object()


class ProviderRequestError(RuntimeError):
    def __init__(self, provider: str, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"Provider '{provider}' request failed ({detail})")


class ProviderHandle(ABC):
    def __init__(self, name: str) -> None:
        self.name = name

    @property
    @abstractmethod
    def alive(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def request(
        self, method: str, params: Mapping[str, Any] | None = None, timeout: float = 30.0
    ) -> Any:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "alive": self.alive}


class RemoteProviderHandle(ProviderHandle):
    def __init__(self, name: str, url: str, headers: Mapping[str, str]) -> None:
        super().__init__(name)
        self.url = url
        self.headers = dict(headers)
        self._closed = False

    @property
    def alive(self) -> bool:
        return not self._closed

    def request(
        self, method: str, params: Mapping[str, Any] | None = None, timeout: float = 30.0
    ) -> Any:
        raise ProviderRequestError(
            self.name, "remote transport is served by the host"
        )

    def close(self) -> None:
        self._closed = True

    def describe(self) -> dict[str, Any]:
        return {**super().describe(), "url": self.url}


class LocalProcessHandle(ProviderHandle):
    def __init__(self, name: str, process: subprocess.Popen) -> None:
        super().__init__(name)
        self.process = process
        self.server_info: dict[str, Any] = {}
        self._ids = itertools.count(1)
        self._lines: queue.Queue[Any] = queue.Queue()
        self._write_lock = threading.Lock()
        self._request_lock = threading.Lock()
        self._output_closed = False
        self._reader = threading.Thread(
            target=self._read_stdout, name=f"provider-{name}-reader", daemon=True
        )
        self._reader.start()

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def alive(self) -> bool:
        return self.process.poll() is None and not self._output_closed

    def _read_stdout(self) -> None:
        stream = self.process.stdout
        try:
            if stream is None:
                return
            for line in stream:
                self._lines.put(line)
            logger.debug("Provider %s closed its stdout", self.name)
        except (OSError, ValueError) as exc:
            logger.warning("Provider %s stdout reader stopped: %s", self.name, exc)
        finally:
            self._output_closed = True
            self._lines.put(_EOF)

    def _send(self, message: dict[str, Any]) -> None:
        stream = self.process.stdin
        if stream is None or stream.closed or not self.alive:
            raise ProviderRequestError(self.name, "process is not running")
        data = json.dumps(message, separators=(",", ":")) + "\n"
        with self._write_lock:
            try:
                stream.write(data)
                stream.flush()
            except OSError as exc:
                raise ProviderRequestError(self.name, str(exc)) from exc

    def notify(self, method: str, params: Mapping[str, Any] | None = None) -> None:
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = dict(params)
        self._send(message)

    def request(
        self, method: str, params: Mapping[str, Any] | None = None, timeout: float = 30.0
    ) -> Any:
        with self._request_lock:
            request_id = next(self._ids)
            message: dict[str, Any] = {
                "jsonrpc": "2.0",
                "id": request_id,
                "method": method,
            }
            if params is not None:
                message["params"] = dict(params)
            self._send(message)
            return self._await_response(request_id, timeout)

    def _timeout_error(self, timeout: float) -> TimeoutError:
        return TimeoutError(
            f"Provider '{self.name}' did not answer within {timeout:g}s"
        )

    def _await_response(self, request_id: int, timeout: float) -> Any:
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise self._timeout_error(timeout)
            try:
                line = self._lines.get(timeout=remaining)
            except queue.Empty:
                raise self._timeout_error(timeout) from None
            if line is _EOF:
                self._lines.put(_EOF)
                raise ProviderRequestError(self.name, "output closed")
            try:
                payload = json.loads(line)
            except ValueError:
                logger.debug("Provider %s wrote non-JSON line: %r", self.name, line)
                continue
            if not isinstance(payload, dict) or payload.get("id") != request_id:
                continue
            if "error" in payload:
                error = payload["error"]
                detail = error.get("message") if isinstance(error, dict) else error
                raise ProviderRequestError(self.name, str(detail))
            return payload.get("result")

    def close(self) -> None:
        if self.process.stdin is not None and not self.process.stdin.closed:
            try:
                self.process.stdin.close()
            except OSError:
                logger.debug("Provider %s stdin already closed", self.name)
        if self.process.poll() is not None:
            return
        self.process.terminate()
        try:
            self.process.wait(timeout=PROVIDER_STOP_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("Provider %s ignored SIGTERM, killing", self.name)
            self.process.kill()
            self.process.wait()

    def describe(self) -> dict[str, Any]:
        return {**super().describe(), "pid": self.pid}
