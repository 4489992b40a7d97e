from typing import Optional

from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

from agent_dispatch.tui.enums import UIStyle


class UISection:
    """Panels whose titles and plain-text bodies are never parsed as markup."""

    @staticmethod
    def wrap(
        title: str,
        body: RenderableType,
        style: str = UIStyle.BLUE.value,
        subtitle: Optional[str] = None,
    ) -> Panel:
        return Panel(
            body,
            title=Text(title),
            subtitle=Text(subtitle) if subtitle else None,
            border_style=style,
            padding=(0, 1),
        )

    @staticmethod
    def note(title: str, body: str | Text, style: str) -> Panel:
        content = body if isinstance(body, Text) else Text(body)
        return Panel(content, title=Text(title), border_style=style, padding=(0, 1))
