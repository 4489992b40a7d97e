from agent_dispatch.agents.models import AgentMode, AgentProfile, ToolCapabilities
from agent_dispatch.agents.parser import parse_agent_file, parse_agent_mapping

__all__ = [
    "AgentMode",
    "AgentProfile",
    "ToolCapabilities",
    "parse_agent_file",
    "parse_agent_mapping",
]
