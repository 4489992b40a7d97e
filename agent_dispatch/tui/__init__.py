from agent_dispatch.tui.renderers import DispatchConsoleUI

__all__ = ["DispatchConsoleUI"]
