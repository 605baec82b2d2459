from enum import Enum

from oh_my_skills.mcp.models import Transport


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


TRANSPORT_STYLE = {
    Transport.STDIO: UIStyle.CYAN.value,
    Transport.HTTP: UIStyle.MAGENTA.value,
}
