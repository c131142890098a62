# models/permissions.py

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from models.enums import ModuleCategory, ModuleKind, OverrideState, Role


# ===============================================================
# CATALOG
# ===============================================================

class ModuleDefinition(BaseModel):
    """
    One static catalog entry. Defines an assignable permission and where it
    shows up (sidebar menu, submenu, or candidate-detail tab).
    """
    key: str
    display_name: str
    kind: ModuleKind
    parent_key: Optional[str] = None
    route: Optional[str] = None
    icon: Optional[str] = None

    category: ModuleCategory = ModuleCategory.core
    min_role: Role = Role.staff
    default_enabled: bool = True

    class Config:
        frozen = True

    @property
    def is_tab(self) -> bool:
        return self.kind == ModuleKind.tab


# ===============================================================
# STORED SETS (snapshots handed to the resolver)
# ===============================================================

class GlobalFlagSet(BaseModel):
    """Process-wide ceiling, as fetched. `generation` is the global stamp."""
    flags: Dict[str, bool] = Field(default_factory=dict)
    generation: int = 0

    def is_enabled(self, key: str) -> bool:
        # Unknown keys are closed
        return self.flags.get(key) is True


class OverrideSet(BaseModel):
    """Per-user coarse overrides. Keys never stored resolve as inherit."""
    user_id: str
    overrides: Dict[str, OverrideState] = Field(default_factory=dict)

    def state(self, key: str) -> OverrideState:
        return self.overrides.get(key, OverrideState.inherit)


class GranularTabSet(BaseModel):
    """Per-user tab assignments. Deny by default."""
    user_id: str
    tabs: Dict[str, bool] = Field(default_factory=dict)


# ===============================================================
# DERIVED (never persisted)
# ===============================================================

class EffectivePermissionSet(BaseModel):
    modules: Dict[str, bool] = Field(default_factory=dict)
    tabs: Dict[str, bool] = Field(default_factory=dict)

    def module_enabled(self, key: str) -> bool:
        return self.modules.get(key) is True

    def tab_enabled(self, key: str) -> bool:
        return self.tabs.get(key) is True

    def allows(self, key: str) -> bool:
        """Either namespace. Unknown keys are denied."""
        return self.module_enabled(key) or self.tab_enabled(key)


class MenuNode(BaseModel):
    key: str
    display_name: str
    route: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool = False
    is_expanded: bool = False
    submenus: List["MenuNode"] = Field(default_factory=list)


class TabNode(BaseModel):
    key: str
    display_name: str
    icon: Optional[str] = None


class CandidateTabList(BaseModel):
    tabs: List[TabNode] = Field(default_factory=list)
    active_key: Optional[str] = None
    is_empty: bool = True


class RouteDecision(BaseModel):
    route: str
    allowed: bool
    redirect_to: Optional[str] = None
    message: Optional[str] = None


# ===============================================================
# API PAYLOADS
# ===============================================================

class PermissionSnapshot(BaseModel):
    """Response of GET /permissions/me."""
    user_id: str
    role: Role
    effective: EffectivePermissionSet
    generation: List[int]
    warnings: List[str] = Field(default_factory=list)


class OverrideUpdateRequest(BaseModel):
    """
    Body of PUT /users/{id}/permissions.
    true / false = explicit value, null = inherit the ceiling.
    """
    overrides: Dict[str, Optional[bool]]


class TabUpdateRequest(BaseModel):
    tabs: Dict[str, bool]


class FlagToggleRequest(BaseModel):
    enabled: bool


class GrantControl(BaseModel):
    """One row of the permission editor."""
    key: str
    display_name: str
    category: ModuleCategory
    value: Optional[bool] = None


class UserPermissionsView(BaseModel):
    user_id: str
    role: Role
    controls: List[GrantControl] = Field(default_factory=list)
