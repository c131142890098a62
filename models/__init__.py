# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    ModuleKind,
    ModuleCategory,
    OverrideState,
    CheckMode,
)

# -------------------------
# Permission Models
# -------------------------
from .permissions import (
    ModuleDefinition,
    GlobalFlagSet,
    OverrideSet,
    GranularTabSet,
    EffectivePermissionSet,
    MenuNode,
    TabNode,
    CandidateTabList,
    RouteDecision,
    PermissionSnapshot,
)

# -------------------------
# Editor / request models
# -------------------------
from .permissions import (
    OverrideUpdateRequest,
    TabUpdateRequest,
    FlagToggleRequest,
    GrantControl,
    UserPermissionsView,
)

__all__ = [
    # enums
    "Role",
    "ModuleKind",
    "ModuleCategory",
    "OverrideState",
    "CheckMode",

    # permissions
    "ModuleDefinition",
    "GlobalFlagSet",
    "OverrideSet",
    "GranularTabSet",
    "EffectivePermissionSet",
    "MenuNode",
    "TabNode",
    "CandidateTabList",
    "RouteDecision",
    "PermissionSnapshot",

    # editor
    "OverrideUpdateRequest",
    "TabUpdateRequest",
    "FlagToggleRequest",
    "GrantControl",
    "UserPermissionsView",
]
