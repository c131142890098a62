# ============================================
# CENTRALIZED MODULE CATALOG
# ============================================
# Catalog order is display priority: menus, submenus and tabs render in
# the order listed here. Never rename a key silently, stored overrides and
# flags reference it.
# ============================================
from typing import Dict, Iterable, List

from core.errors import CatalogError
from core.roles import at_least
from models.enums import ModuleCategory, ModuleKind, Role
from models.permissions import ModuleDefinition


def _menu(key, name, icon, route=None, **extra):
    return ModuleDefinition(
        key=key, display_name=name, kind=ModuleKind.menu, route=route, icon=icon, **extra
    )


def _submenu(parent, key, name, icon, route, **extra):
    return ModuleDefinition(
        key=key,
        display_name=name,
        kind=ModuleKind.submenu,
        parent_key=parent,
        route=route,
        icon=icon,
        **extra,
    )


def _tab(key, name, icon):
    return ModuleDefinition(
        key=key,
        display_name=name,
        kind=ModuleKind.tab,
        icon=icon,
        category=ModuleCategory.tracking,
    )


MODULE_CATALOG: List[ModuleDefinition] = [

    # =====================================================
    # DASHBOARD
    # =====================================================
    _menu("dashboard", "Dashboard", "FiHome", route="/"),

    # =====================================================
    # CANDIDATES
    # =====================================================
    _menu("candidates", "Candidates", "FiUsers"),
    _submenu("candidates", "candidate_search", "Candidate Search", "FiSearch", "/search"),
    _submenu("candidates", "add_new_candidate", "Add New Candidate", "FiUserPlus", "/add"),
    _submenu("candidates", "bulk_import", "Bulk Import", "FiUpload", "/import"),

    # =====================================================
    # MANAGEMENT
    # =====================================================
    _menu("management", "Management", "FiBriefcase", category=ModuleCategory.management),
    _submenu("management", "employers", "Employers", "FiBriefcase", "/employers",
             category=ModuleCategory.management),
    _submenu("management", "job_orders", "Job Orders", "FiClipboard", "/jobs",
             category=ModuleCategory.management),
    _submenu("management", "visa_board", "Visa Board", "FiGlobe", "/visa-board",
             category=ModuleCategory.management),

    # =====================================================
    # REPORTS
    # =====================================================
    _menu("reports", "Reports", "FiBarChart2", category=ModuleCategory.delegation),
    _submenu("reports", "advanced_reports", "Advanced Reports", "FiBarChart2", "/reports",
             category=ModuleCategory.delegation),
    _submenu("reports", "analytics_reports", "Analytics Reports", "FiActivity",
             "/reports/analytics", category=ModuleCategory.delegation),

    # =====================================================
    # SYSTEM SETTINGS
    # =====================================================
    _menu("system_settings", "System Settings", "FiSettings",
          category=ModuleCategory.delegation, min_role=Role.admin),
    _submenu("system_settings", "audit_log", "Audit Log", "FiActivity", "/system-audit",
             category=ModuleCategory.delegation, min_role=Role.admin),
    _submenu("system_settings", "modules", "Modules", "FiGrid", "/system-modules",
             category=ModuleCategory.delegation, min_role=Role.super_admin),
    _submenu("system_settings", "settings", "Settings", "FiSettings", "/settings",
             category=ModuleCategory.delegation, min_role=Role.admin),
    _submenu("system_settings", "recycle_bin", "Recycle Bin", "FiTrash2", "/recycle-bin",
             category=ModuleCategory.delegation, min_role=Role.admin),

    # =====================================================
    # CANDIDATE DETAIL TABS (granular namespace)
    # =====================================================
    _tab("tab_profile", "Profile", "FiUser"),
    _tab("tab_passport", "Passport", "FiClipboard"),
    _tab("tab_documents", "Documents", "FiInbox"),
    _tab("tab_job_placements", "Jobs", "FiBriefcase"),
    _tab("tab_visa_tracking", "Visa", "FiGlobe"),
    _tab("tab_financial", "Finance", "FiDollarSign"),
    _tab("tab_medical", "Medical", "FiActivity"),
    _tab("tab_interview", "Interview", "FiCalendar"),
    _tab("tab_travel", "Travel", "FiTruck"),
    _tab("tab_offer_letter", "Offer", "FiMail"),
    _tab("tab_history", "History", "FiClock"),
    _tab("tab_comms_log", "Communications", "FiMessageSquare"),
]


# =====================================================
# STAFF DENYLIST
# Never offered to a staff target, whatever the grantor holds.
# =====================================================
STAFF_DENIED_CATEGORIES = {ModuleCategory.delegation}
STAFF_DENIED_KEYS = {"bulk_import"}


def validate_catalog(catalog: Iterable[ModuleDefinition]) -> List[ModuleDefinition]:
    """
    Check the catalog shape and return it as a list.
    Raises CatalogError listing every problem found.
    """
    entries = list(catalog)
    problems = []
    by_key: Dict[str, ModuleDefinition] = {}

    for entry in entries:
        if entry.key in by_key:
            problems.append(f"duplicate key '{entry.key}'")
        by_key[entry.key] = entry

    for entry in entries:
        if entry.kind == ModuleKind.submenu:
            parent = by_key.get(entry.parent_key or "")
            if parent is None or parent.kind != ModuleKind.menu:
                problems.append(f"submenu '{entry.key}' has no menu parent")
        elif entry.parent_key is not None:
            problems.append(f"'{entry.key}' is not a submenu but has a parent")

        if entry.kind == ModuleKind.tab and entry.route is not None:
            problems.append(f"tab '{entry.key}' must not carry a route")

    if problems:
        raise CatalogError("Invalid module catalog: " + "; ".join(problems))

    return entries


def coarse_keys(catalog: Iterable[ModuleDefinition]) -> List[str]:
    return [m.key for m in catalog if not m.is_tab]


def tab_keys(catalog: Iterable[ModuleDefinition]) -> List[str]:
    return [m.key for m in catalog if m.is_tab]


def catalog_by_key(catalog: Iterable[ModuleDefinition]) -> Dict[str, ModuleDefinition]:
    return {m.key: m for m in catalog}


def catalog_for_role(role: Role, catalog: Iterable[ModuleDefinition] = None) -> List[ModuleDefinition]:
    """Entries the role may ever see, catalog order kept."""
    source = MODULE_CATALOG if catalog is None else catalog
    return [m for m in source if at_least(role, m.min_role)]


def default_flags(catalog: Iterable[ModuleDefinition] = None) -> Dict[str, bool]:
    """Ceiling used for coarse keys that have no stored flag row."""
    source = MODULE_CATALOG if catalog is None else catalog
    return {m.key: m.default_enabled for m in source if not m.is_tab}


def is_staff_denied(definition: ModuleDefinition) -> bool:
    return (
        definition.key in STAFF_DENIED_KEYS
        or definition.category in STAFF_DENIED_CATEGORIES
    )


validate_catalog(MODULE_CATALOG)
