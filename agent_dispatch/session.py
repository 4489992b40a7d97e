"""Line-oriented host session.

The embedding host writes one command per line and reads one JSON object per
line back. Providers started during the session stay up until they are
stopped, the host sends ``quit``, or stdin closes.
"""

from __future__ import annotations

import json
import logging
import shlex
from typing import Any, Callable, TextIO

from agent_dispatch.errors import DispatchError
from agent_dispatch.exit_codes import classify_error
from agent_dispatch.registry import AgentRegistry

logger = logging.getLogger(__name__)


class SessionUsageError(ValueError):
    pass


class HostSession:
    def __init__(self, registry: AgentRegistry, stdin: TextIO, stdout: TextIO) -> None:
        self._registry = registry
        self._stdin = stdin
        self._stdout = stdout
        self._commands: dict[str, Callable[[list[str]], Any]] = {
            "list-agents": self._list_agents,
            "describe-agent": self._describe_agent,
            "check-permission": self._check_permission,
            "list-providers": self._list_providers,
            "start-provider": self._start_provider,
            "stop-provider": self._stop_provider,
            "provider-state": self._provider_state,
        }

    def run(self) -> None:
        try:
            for line in self._stdin:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if line == "quit":
                    break
                self._write(self.execute(line))
        finally:
            self._registry.shutdown()

    def execute(self, line: str) -> dict[str, Any]:
        try:
            argv = shlex.split(line)
        except ValueError as exc:
            return {"ok": False, "error": "usage", "message": str(exc)}
        if not argv:
            return {"ok": False, "error": "usage", "message": "Empty command"}
        verb, args = argv[0], argv[1:]
        handler = self._commands.get(verb)
        if handler is None:
            return {"ok": False, "error": "usage", "message": f"Unknown command: {verb}"}
        try:
            return {"ok": True, "result": handler(args)}
        except SessionUsageError as exc:
            return {"ok": False, "error": "usage", "message": str(exc)}
        except DispatchError as exc:
            label, _ = classify_error(exc)
            logger.debug("Session command %r failed: %s", verb, exc)
            return {"ok": False, "error": label, "message": str(exc)}

    def _write(self, payload: dict[str, Any]) -> None:
        self._stdout.write(json.dumps(payload) + "\n")
        self._stdout.flush()

    @staticmethod
    def _expect(args: list[str], count: int, usage: str) -> None:
        if len(args) != count:
            raise SessionUsageError(f"Usage: {usage}")

    def _list_agents(self, args: list[str]) -> list[dict[str, Any]]:
        self._expect(args, 0, "list-agents")
        return [
            {
                "name": profile.name,
                "mode": profile.mode.value,
                "description": profile.description,
            }
            for profile in self._registry.list_agents()
        ]

    def _describe_agent(self, args: list[str]) -> dict[str, Any]:
        self._expect(args, 1, "describe-agent NAME")
        profile = self._registry.resolve_agent(args[0])
        return {**profile.as_dict(), "prompt": profile.prompt}

    def _check_permission(self, args: list[str]) -> dict[str, Any]:
        if len(args) < 3:
            raise SessionUsageError("Usage: check-permission AGENT CAPABILITY ACTION")
        agent, capability = args[0], args[1]
        action = " ".join(args[2:])
        return self._registry.explain_permission(agent, capability, action).as_dict()

    def _list_providers(self, args: list[str]) -> list[dict[str, Any]]:
        self._expect(args, 0, "list-providers")
        return [
            {**descriptor.as_dict(), "state": self._registry.provider_state(descriptor.name).value}
            for descriptor in self._registry.list_providers()
        ]

    def _start_provider(self, args: list[str]) -> dict[str, Any]:
        self._expect(args, 1, "start-provider NAME")
        handle = self._registry.acquire_tool_provider(args[0])
        return {**handle.describe(), "state": self._registry.provider_state(args[0]).value}

    def _stop_provider(self, args: list[str]) -> dict[str, Any]:
        self._expect(args, 1, "stop-provider NAME")
        stopped = self._registry.stop_tool_provider(args[0])
        return {"name": args[0], "stopped": stopped}

    def _provider_state(self, args: list[str]) -> dict[str, Any]:
        self._expect(args, 1, "provider-state NAME")
        name = args[0]
        return {
            "name": name,
            "state": self._registry.provider_state(name).value,
            "error": self._registry.providers.last_error(name),
        }
