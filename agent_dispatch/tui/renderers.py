from rich.console import Console
from rich.text import Text

from agent_dispatch.agents.models import AgentProfile
from agent_dispatch.permissions.evaluator import PermissionCheck
from agent_dispatch.providers.handles import ProviderHandle
from agent_dispatch.providers.models import ProviderDescriptor, ProviderState
from agent_dispatch.tui.enums import UIStyle
from agent_dispatch.tui.sections import UISection
from agent_dispatch.tui.tables import AgentsTable, PermissionTable, ProvidersTable
from agent_dispatch.utils import compact_home_paths_in_text


class DispatchConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_agents(self, items: list[AgentProfile]) -> None:
        if not items:
            self.console.print(
                UISection.note("agents", "No agents defined.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "agents", AgentsTable.agents_table(items), style=UIStyle.BLUE.value
            )
        )

    def render_agent(self, profile: AgentProfile, show_prompt: bool = True) -> None:
        self.console.print(
            UISection.wrap(
                f"agent: {profile.name}",
                AgentsTable.summary_block(profile),
                style=UIStyle.BLUE.value,
            )
        )
        if profile.permission.entries:
            self.console.print(
                UISection.wrap(
                    "permissions",
                    AgentsTable.permission_table(profile.permission),
                    style=UIStyle.CYAN.value,
                    subtitle="first match wins",
                )
            )
        if show_prompt:
            self.console.print(
                UISection.wrap(
                    "prompt",
                    AgentsTable.prompt_body(profile),
                    style=UIStyle.DIM.value,
                )
            )

    def render_permission(
        self, agent: str, capability: str, action: str, check: PermissionCheck
    ) -> None:
        self.console.print(
            UISection.wrap(
                "permission",
                PermissionTable.verdict_block(agent, capability, action, check),
                style=UIStyle.BLUE.value,
            )
        )

    def render_providers(
        self, items: list[tuple[ProviderDescriptor, ProviderState]]
    ) -> None:
        if not items:
            self.console.print(
                UISection.note(
                    "providers", "No tool providers configured.", style=UIStyle.YELLOW.value
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "providers",
                ProvidersTable.providers_table(items),
                style=UIStyle.BLUE.value,
            )
        )

    def render_provider_started(self, handle: ProviderHandle) -> None:
        details = handle.describe()
        body = Text.assemble("Provider ready: ", (handle.name, "bold"))
        if "pid" in details:
            body.append(f"\npid {details['pid']}")
        if "url" in details:
            body.append(f"\n{details['url']}")
        self.console.print(UISection.note("provider", body, style=UIStyle.GREEN.value))

    def render_provider_stopped(self, name: str, stopped: bool) -> None:
        if stopped:
            body = Text.assemble("Provider stopped: ", (name, "bold"))
            style = UIStyle.YELLOW.value
        else:
            body = Text.assemble("Provider not running: ", (name, "bold"))
            style = UIStyle.DIM.value
        self.console.print(UISection.note("provider", body, style=style))

    def render_error(self, title: str, error: Exception) -> None:
        self.console.print(
            UISection.note(
                title,
                compact_home_paths_in_text(str(error)),
                style=UIStyle.RED.value,
            )
        )
