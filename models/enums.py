from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Account role. Assigned at creation, never changes."""

    super_admin = "super_admin"
    admin = "admin"
    staff = "staff"


# -----------------------------------------------------
# MODULE KIND
# -----------------------------------------------------
class ModuleKind(BaseStrEnum):
    """Shape of a catalog entry in the sidebar / candidate page."""

    menu = "menu"
    submenu = "submenu"
    tab = "tab"


# -----------------------------------------------------
# MODULE CATEGORY
# -----------------------------------------------------
class ModuleCategory(BaseStrEnum):
    """Grouping used by the permission editor and the staff denylist."""

    core = "core"
    management = "management"
    tracking = "tracking"
    delegation = "delegation"


# -----------------------------------------------------
# OVERRIDE STATE
# -----------------------------------------------------
class OverrideState(BaseStrEnum):
    """
    Stored per-user override for one coarse key.

    inherit = follow the global ceiling
    allow / deny = explicit value (only honoured while the ceiling is open)
    """

    inherit = "inherit"
    allow = "allow"
    deny = "deny"

    @classmethod
    def from_value(cls, value):
        """Map a stored/requested value (None, bool or name) onto the enum."""
        if value is None:
            return cls.inherit
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.allow if value else cls.deny
        return cls(str(value))


# -----------------------------------------------------
# CHECK MODE
# -----------------------------------------------------
class CheckMode(BaseStrEnum):
    """How /permissions/check combines several keys."""

    one = "one"
    any = "any"
    all = "all"
