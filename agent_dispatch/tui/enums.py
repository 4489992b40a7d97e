from enum import Enum

from agent_dispatch.permissions.models import Decision
from agent_dispatch.providers.models import ProviderState


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


DECISION_STYLE = {
    Decision.ALLOW: UIStyle.GREEN.value,
    Decision.ASK: UIStyle.YELLOW.value,
    Decision.DENY: UIStyle.RED.value,
}

PROVIDER_STATE_STYLE = {
    ProviderState.UNSTARTED: UIStyle.DIM.value,
    ProviderState.LAUNCHING: UIStyle.CYAN.value,
    ProviderState.READY: UIStyle.GREEN.value,
    ProviderState.FAILED: UIStyle.RED.value,
    ProviderState.STOPPED: UIStyle.YELLOW.value,
}
