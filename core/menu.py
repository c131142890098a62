# core/menu.py

"""
Menu and candidate-tab assembly.

Both views are rebuilt from the catalog and the resolved permission set;
catalog order is kept everywhere (it is the priority order, never sorted).
"""

from typing import Dict, Iterable, List, Optional, Set

from models.enums import ModuleKind
from models.permissions import (
    CandidateTabList,
    EffectivePermissionSet,
    MenuNode,
    ModuleDefinition,
    TabNode,
)


# -----------------------------------------------------
# Menu tree
# -----------------------------------------------------
def build_menu(
    catalog: Iterable[ModuleDefinition],
    effective: EffectivePermissionSet,
    current_route: Optional[str] = None,
    expanded: Optional[Set[str]] = None,
) -> List[MenuNode]:
    """
    Visible menu entries with their visible submenus.

    A menu left with no visible submenus and no route of its own is dropped.
    `expanded` is the caller's expansion state; when None, only the active
    top-level entry is expanded.
    """
    entries = list(catalog)

    children: Dict[str, List[ModuleDefinition]] = {}
    for entry in entries:
        if entry.kind == ModuleKind.submenu and effective.module_enabled(entry.key):
            children.setdefault(entry.parent_key, []).append(entry)

    nodes = []
    for entry in entries:
        if entry.kind != ModuleKind.menu or not effective.module_enabled(entry.key):
            continue

        subs = children.get(entry.key, [])
        if not subs and not entry.route:
            continue

        sub_nodes = [
            MenuNode(
                key=sub.key,
                display_name=sub.display_name,
                route=sub.route,
                icon=sub.icon,
                is_active=current_route is not None and sub.route == current_route,
            )
            for sub in subs
        ]

        is_active = current_route is not None and (
            entry.route == current_route or any(s.is_active for s in sub_nodes)
        )

        nodes.append(
            MenuNode(
                key=entry.key,
                display_name=entry.display_name,
                route=entry.route,
                icon=entry.icon,
                is_active=is_active,
                submenus=sub_nodes,
            )
        )

    state = initial_expansion(nodes) if expanded is None else expanded
    for node in nodes:
        node.is_expanded = node.key in state

    return nodes


def initial_expansion(nodes: List[MenuNode]) -> Set[str]:
    """Exactly the first active top-level entry, or nothing."""
    for node in nodes:
        if node.is_active:
            return {node.key}
    return set()


class MenuState:
    """
    Per-session expansion state. Toggling one entry never touches siblings.
    """

    def __init__(self):
        self.expanded: Set[str] = set()
        self.initialized = False

    def apply(self, nodes: List[MenuNode]) -> List[MenuNode]:
        if not self.initialized:
            self.expanded = initial_expansion(nodes)
            self.initialized = True
        for node in nodes:
            node.is_expanded = node.key in self.expanded
        return nodes

    def toggle(self, key: str) -> bool:
        """Flip one entry. Returns the new state."""
        self.initialized = True
        if key in self.expanded:
            self.expanded.discard(key)
            return False
        self.expanded.add(key)
        return True

    def reset(self):
        self.expanded = set()
        self.initialized = False


# -----------------------------------------------------
# Candidate tabs
# -----------------------------------------------------
def build_candidate_tabs(
    catalog: Iterable[ModuleDefinition],
    effective: EffectivePermissionSet,
    active_key: Optional[str] = None,
) -> CandidateTabList:
    tabs = [
        TabNode(key=entry.key, display_name=entry.display_name, icon=entry.icon)
        for entry in catalog
        if entry.kind == ModuleKind.tab and effective.tab_enabled(entry.key)
    ]

    if not tabs:
        return CandidateTabList(tabs=[], active_key=None, is_empty=True)

    visible = {tab.key for tab in tabs}
    selected = active_key if active_key in visible else tabs[0].key

    return CandidateTabList(tabs=tabs, active_key=selected, is_empty=False)
