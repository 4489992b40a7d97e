import json
import sys
import threading
from pathlib import Path
from typing import Any, Mapping

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from agent_dispatch.errors import ProviderLaunchError  # noqa: E402
from agent_dispatch.providers.handles import ProviderHandle  # noqa: E402
from agent_dispatch.providers.launcher import IProviderLauncher  # noqa: E402
from agent_dispatch.providers.models import ProviderDescriptor  # noqa: E402


FAKE_MCP_SERVER = '''
import json
import os
import sys
import time

mode = os.environ.get("FAKE_MCP_MODE", "ok")
if mode == "exit":
    sys.exit(3)

for line in sys.stdin:
    message = json.loads(line)
    if "id" not in message:
        continue
    method = message.get("method")
    if mode == "silent":
        continue
    if method == "initialize" and mode == "chatty":
        while True:
            sys.stdout.write("not json\\n")
            sys.stdout.flush()
            time.sleep(0.1)
    if method == "initialize" and mode == "garbage":
        sys.stdout.buffer.write(b"\\xff\\n")
        sys.stdout.buffer.flush()
    if method == "initialize" and mode == "error":
        reply = {"jsonrpc": "2.0", "id": message["id"],
                 "error": {"code": -32603, "message": "boom"}}
    elif method == "initialize":
        reply = {"jsonrpc": "2.0", "id": message["id"], "result": {
            "protocolVersion": message["params"]["protocolVersion"],
            "capabilities": {},
            "serverInfo": {"name": "fake", "version": "1.0"},
        }}
    elif method == "quit":
        sys.exit(0)
    else:
        reply = {"jsonrpc": "2.0", "id": message["id"],
                 "result": {"method": method, "params": message.get("params")}}
    sys.stdout.write(json.dumps(reply) + "\\n")
    sys.stdout.flush()
'''


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".config"))
    monkeypatch.delenv("AGENT_DISPATCH_CONFIG_DIR", raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def write_json():
    def _write(path: Path, payload: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")

    return _write


@pytest.fixture
def config_root(tmp_path: Path) -> Path:
    return tmp_path / ".config" / "opencode"


@pytest.fixture
def write_agent(config_root: Path):
    def _write(name: str, frontmatter: str, body: str = "Agent body.\n") -> Path:
        path = config_root / "agents" / f"{name}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"---\n{frontmatter.strip()}\n---\n\n{body}", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_mcp_server(tmp_path: Path) -> list[str]:
    script = tmp_path / "fake_mcp_server.py"
    script.write_text(FAKE_MCP_SERVER, encoding="utf-8")
    return [sys.executable, str(script)]


@pytest.fixture
def sample_config(config_root: Path, write_agent, write_json, fake_mcp_server) -> Path:
    write_agent(
        "rust-dev",
        """
description: Rust development agent
mode: primary
temperature: 0.1
maxSteps: 40
tools:
  write: true
  edit: true
  bash: true
permission:
  edit: allow
  bash:
    "git status": allow
    "git diff": allow
    "git log*": allow
    "*": ask
""",
        body="# Rust agent\n\nWrite idiomatic Rust.\n",
    )
    write_agent(
        "sag_review",
        """
description: Read-only reviewer
mode: subagent
temperature: 0.2
tools:
  write: false
  edit: false
  bash: false
""",
        body="Review the diff.\n",
    )
    write_json(
        config_root / "opencode.json",
        {
            "$schema": "https://opencode.ai/config.json",
            "mcp": {
                "docs-rs": {"type": "local", "command": fake_mcp_server},
                "context7": {"type": "remote", "url": "https://mcp.context7.com/mcp"},
                "missing-runtime": {
                    "type": "local",
                    "command": ["definitely-not-installed-binary-xyz"],
                },
            },
        },
    )
    return config_root


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            env.setdefault("XDG_CONFIG_HOME", str(tmp_path / ".config"))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()


class FakeHandle(ProviderHandle):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.closed = False
        self.exited = False

    @property
    def alive(self) -> bool:
        return not (self.closed or self.exited)

    def request(
        self, method: str, params: Mapping[str, Any] | None = None, timeout: float = 30.0
    ) -> Any:
        return {"method": method}

    def close(self) -> None:
        self.closed = True


class FakeLauncher(IProviderLauncher):
    def __init__(self, fail_names: set[str] | None = None) -> None:
        self.fail_names = set(fail_names or ())
        self.gates: dict[str, threading.Event] = {}
        self.started: dict[str, threading.Event] = {}
        self.calls: dict[str, int] = {}
        self.handles: list[FakeHandle] = []
        self._lock = threading.Lock()

    def gate(self, name: str) -> threading.Event:
        event = threading.Event()
        self.gates[name] = event
        return event

    def started_event(self, name: str) -> threading.Event:
        return self.started.setdefault(name, threading.Event())

    def launch(self, descriptor: ProviderDescriptor) -> ProviderHandle:
        with self._lock:
            self.calls[descriptor.name] = self.calls.get(descriptor.name, 0) + 1
        self.started_event(descriptor.name).set()
        gate = self.gates.get(descriptor.name)
        if gate is not None:
            gate.wait(timeout=10)
        if descriptor.name in self.fail_names:
            raise ProviderLaunchError(descriptor.name, "runtime missing")
        handle = FakeHandle(descriptor.name)
        self.handles.append(handle)
        return handle


@pytest.fixture
def fake_launcher() -> FakeLauncher:
    return FakeLauncher()
