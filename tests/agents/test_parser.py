"""Tests for agent parser."""

from pathlib import Path

import pytest

from agent_dispatch.agents.models import AgentMode
from agent_dispatch.agents.parser import parse_agent_file, parse_agent_mapping
from agent_dispatch.errors import (
    ConfigurationError,
    DuplicateDefinitionError,
    InvalidDefinitionError,
    MissingFieldError,
)
from agent_dispatch.permissions.models import (
    Decision,
    ModePermission,
    PatternPermission,
)


def test_parse_full_frontmatter(tmp_path: Path) -> None:
    (tmp_path / "go-dev.md").write_text(
        "---\n"
        "description: Go development agent\n"
        "mode: primary\n"
        "model: anthropic/claude-sonnet-4-20250514\n"
        "temperature: 0.3\n"
        "maxSteps: 25\n"
        "tools:\n"
        "  write: true\n"
        "  edit: true\n"
        "  bash: true\n"
        "permission:\n"
        "  edit: ask\n"
        "  bash:\n"
        "    \"go test*\": allow\n"
        "    \"*\": ask\n"
        "---\n"
        "\n"
        "# Go Agent\n\n"
        "You write idiomatic Go.\n",
        encoding="utf-8",
    )
    agent = parse_agent_file(tmp_path / "go-dev.md")
    assert agent.name == "go-dev"
    assert agent.mode == AgentMode.PRIMARY
    assert agent.description == "Go development agent"
    assert agent.model == "anthropic/claude-sonnet-4-20250514"
    assert agent.temperature == 0.3
    assert agent.max_steps == 25
    assert agent.tools.is_enabled("bash") is True
    assert agent.permission.get("edit") == ModePermission(Decision.ASK)
    bash = agent.permission.get("bash")
    assert isinstance(bash, PatternPermission)
    assert bash.rules == (("go test*", Decision.ALLOW), ("*", Decision.ASK))
    assert agent.prompt.lstrip().startswith("# Go Agent")
    assert agent.source_path == tmp_path / "go-dev.md"


def test_frontmatter_name_overrides_stem(tmp_path: Path) -> None:
    (tmp_path / "file.md").write_text(
        "---\nname: reviewer\nmode: subagent\n---\nBody\n", encoding="utf-8"
    )
    agent = parse_agent_file(tmp_path / "file.md")
    assert agent.name == "reviewer"
    assert agent.mode == AgentMode.SUBAGENT
    assert agent.selectable is False


def test_missing_mode_is_configuration_error(tmp_path: Path) -> None:
    (tmp_path / "nomode.md").write_text(
        "---\ndescription: no mode\n---\nBody\n", encoding="utf-8"
    )
    with pytest.raises(MissingFieldError, match="mode"):
        parse_agent_file(tmp_path / "nomode.md")


def test_no_frontmatter_means_missing_mode(tmp_path: Path) -> None:
    (tmp_path / "plain.md").write_text("# Just prose\n", encoding="utf-8")
    with pytest.raises(MissingFieldError):
        parse_agent_file(tmp_path / "plain.md")


def test_malformed_yaml(tmp_path: Path) -> None:
    (tmp_path / "bad.md").write_text(
        "---\nmode: [primary\n---\nBody\n", encoding="utf-8"
    )
    with pytest.raises(InvalidDefinitionError, match="malformed frontmatter"):
        parse_agent_file(tmp_path / "bad.md")


def test_non_utf8_file_is_configuration_error(tmp_path: Path) -> None:
    (tmp_path / "latin.md").write_bytes(b"---\nmode: primary\n---\n\xff\xfe caf\xe9\n")
    with pytest.raises(InvalidDefinitionError, match="unreadable file"):
        parse_agent_file(tmp_path / "latin.md")


def test_duplicate_frontmatter_key_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "twice.md").write_text(
        "---\n"
        "mode: primary\n"
        "permission:\n"
        "  bash:\n"
        "    \"git push\": deny\n"
        "    \"*\": ask\n"
        "    \"git push\": allow\n"
        "---\nBody\n",
        encoding="utf-8",
    )
    with pytest.raises(DuplicateDefinitionError, match="git push") as excinfo:
        parse_agent_file(tmp_path / "twice.md")
    assert isinstance(excinfo.value, ConfigurationError)


def test_duplicate_top_level_key_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "twice.md").write_text(
        "---\nmode: primary\nmode: subagent\n---\nBody\n", encoding="utf-8"
    )
    with pytest.raises(DuplicateDefinitionError, match="'mode'"):
        parse_agent_file(tmp_path / "twice.md")


def test_yaml_merge_keys_still_load(tmp_path: Path) -> None:
    (tmp_path / "merged.md").write_text(
        "---\n"
        "mode: primary\n"
        "defaults: &defaults\n"
        "  write: false\n"
        "  edit: false\n"
        "tools:\n"
        "  <<: *defaults\n"
        "  edit: true\n"
        "---\nBody\n",
        encoding="utf-8",
    )
    profile = parse_agent_file(tmp_path / "merged.md")
    assert profile.tools.is_enabled("write") is False
    assert profile.tools.is_enabled("edit") is True


@pytest.mark.parametrize(
    "field, value, message",
    [
        ("mode", "'all'", "unknown mode"),
        ("temperature", "2.5", "outside"),
        ("temperature", "-0.1", "outside"),
        ("temperature", "hot", "must be a number"),
        ("maxSteps", "0", "must be > 0"),
        ("maxSteps", "1.5", "must be an integer"),
        ("maxSteps", "true", "must be an integer"),
    ],
)
def test_out_of_range_values_are_rejected(
    tmp_path: Path, field: str, value: str, message: str
) -> None:
    lines = {"mode": "primary", field: value}
    frontmatter = "\n".join(f"{key}: {val}" for key, val in lines.items())
    (tmp_path / "agent.md").write_text(
        f"---\n{frontmatter}\n---\nBody\n", encoding="utf-8"
    )
    with pytest.raises(InvalidDefinitionError, match=message):
        parse_agent_file(tmp_path / "agent.md")


def test_tool_flags_must_be_boolean() -> None:
    with pytest.raises(InvalidDefinitionError, match="tools.bash"):
        parse_agent_mapping("x", {"mode": "primary", "tools": {"bash": "no"}})


def test_mapping_agent_uses_prompt_key() -> None:
    agent = parse_agent_mapping(
        "build",
        {"mode": "primary", "prompt": "Build things.", "disable": True},
    )
    assert agent.prompt == "Build things."
    assert agent.disabled is True
    assert agent.selectable is False
    assert agent.source_path is None


def test_profile_is_immutable() -> None:
    agent = parse_agent_mapping("build", {"mode": "primary", "tools": {"bash": False}})
    with pytest.raises(AttributeError):
        agent.mode = AgentMode.SUBAGENT  # type: ignore[misc]
    with pytest.raises(TypeError):
        agent.tools.flags["bash"] = True  # type: ignore[index]
