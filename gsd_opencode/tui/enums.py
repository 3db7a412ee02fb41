from enum import Enum

from gsd_opencode.ir.models import GapCategory
from gsd_opencode.reporting.models import EntityStatus


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


ENTITY_STATUS_STYLE = {
    EntityStatus.SUCCESSFUL: UIStyle.GREEN.value,
    EntityStatus.PARTIAL: UIStyle.YELLOW.value,
    EntityStatus.FAILED: UIStyle.RED.value,
}

GAP_CATEGORY_STYLE = {
    GapCategory.UNSUPPORTED: UIStyle.RED.value,
    GapCategory.PLATFORM_DIFFERENCE: UIStyle.YELLOW.value,
    GapCategory.MISSING_DEPENDENCY: UIStyle.MAGENTA.value,
}
