from rich.markdown import Markdown
from rich.table import Column, Table
from rich.text import Text

from agent_dispatch.agents.models import AgentMode, AgentProfile
from agent_dispatch.permissions.evaluator import PermissionCheck
from agent_dispatch.permissions.models import ModePermission, PermissionPolicy
from agent_dispatch.providers.models import ProviderDescriptor, ProviderState, Transport
from agent_dispatch.tui.enums import DECISION_STYLE, PROVIDER_STATE_STYLE, UIStyle
from agent_dispatch.utils import compact_home_path


def _styled(value: str, style: str) -> Text:
    return Text(value, style=style)


def _plain(value: object) -> Text:
    return Text(str(value))


class AgentsTable:
    @staticmethod
    def agents_table(items: list[AgentProfile]) -> Table:
        table = Table(
            Column(header="Agent", width=20),
            Column(header="Mode", width=10),
            Column(header="Model", overflow="ellipsis", max_width=32),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            style = (
                UIStyle.CYAN.value
                if item.mode == AgentMode.PRIMARY
                else UIStyle.MAGENTA.value
            )
            name = item.name if not item.disabled else f"{item.name} (disabled)"
            table.add_row(
                _plain(name),
                _styled(item.mode.value, style),
                _plain(item.model),
                _plain(item.description),
            )
        return table

    @staticmethod
    def summary_block(profile: AgentProfile) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Mode", profile.mode.value)
        if profile.description:
            table.add_row("Description", _plain(profile.description))
        if profile.model:
            table.add_row("Model", _plain(profile.model))
        if profile.temperature is not None:
            table.add_row("Temperature", f"{profile.temperature:g}")
        if profile.max_steps is not None:
            table.add_row("Max steps", str(profile.max_steps))
        disabled = profile.tools.disabled()
        table.add_row(
            "Disabled tools", _plain(", ".join(disabled) if disabled else "none")
        )
        if profile.source_path is not None:
            table.add_row("Source", _plain(compact_home_path(profile.source_path)))
        return table

    @staticmethod
    def permission_table(policy: PermissionPolicy) -> Table:
        table = Table(
            Column(header="Capability", width=12),
            Column(header="#", width=3, justify="right"),
            Column(header="Pattern", overflow="fold"),
            Column(header="Decision", width=10),
            expand=True,
            header_style="bold",
        )
        for capability, entry in policy.entries.items():
            if isinstance(entry, ModePermission):
                style = DECISION_STYLE[entry.decision]
                table.add_row(
                    _plain(capability), "", "(any)", _styled(entry.decision.value, style)
                )
                continue
            if not entry.rules:
                table.add_row(
                    _plain(capability),
                    "",
                    "(no rules)",
                    _styled("deny", UIStyle.RED.value),
                )
                continue
            for index, (pattern, decision) in enumerate(entry.rules, start=1):
                style = DECISION_STYLE[decision]
                table.add_row(
                    _plain(capability if index == 1 else ""),
                    str(index),
                    _plain(pattern),
                    _styled(decision.value, style),
                )
        return table

    @staticmethod
    def prompt_body(profile: AgentProfile) -> Markdown:
        return Markdown(profile.prompt.strip() or "_(empty)_")


class PermissionTable:
    @staticmethod
    def verdict_block(
        agent: str, capability: str, action: str, check: PermissionCheck
    ) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Agent", _plain(agent))
        table.add_row("Capability", _plain(capability))
        table.add_row("Action", _plain(action))
        style = DECISION_STYLE[check.decision]
        table.add_row("Decision", _styled(check.decision.value, style))
        reason = check.reason
        if check.pattern is not None:
            reason = f"{reason} ({check.pattern})"
        table.add_row("Reason", _plain(reason))
        return table


class ProvidersTable:
    @staticmethod
    def providers_table(
        items: list[tuple[ProviderDescriptor, ProviderState]],
    ) -> Table:
        table = Table(
            Column(header="Provider", width=20),
            Column(header="Transport", width=14),
            Column(header="State", width=10),
            Column(header="Target", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for descriptor, state in items:
            target = (
                " ".join(descriptor.command)
                if descriptor.transport == Transport.LOCAL_PROCESS
                else descriptor.url or ""
            )
            state_label = state.value if descriptor.enabled else "disabled"
            style = (
                PROVIDER_STATE_STYLE[state]
                if descriptor.enabled
                else UIStyle.DIM.value
            )
            table.add_row(
                _plain(descriptor.name),
                descriptor.transport.value,
                _styled(state_label, style),
                _plain(target),
            )
        return table
