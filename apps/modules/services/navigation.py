"""
Navigation builder: grouped, ordered workspace links from an effective set.

The builder never decides access. It renders exactly the module ids it is
given, plus the pinned team settings link for tenant admins, and stamps the
active tenant id onto every link so navigation works even when the tenant
is not implicit from session state.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from django.conf import settings

from apps.core.exceptions import store_errors_as_failure
from apps.modules.models import DEFAULT_CATEGORY, Module
from apps.modules.registry import ModuleIcon, WorkspaceRoute
from apps.rbac.models import TenantRole

logger = logging.getLogger(__name__)

STATE_READY = 'ready'
STATE_LOADING = 'loading'

TEAM_LINK_ID = 'team'
TEAM_LINK_LABEL = 'Team'
TEAM_LINK_ROUTE = '/workspace/settings/users'
TEAM_LINK_ORDER = 1000


@dataclass(frozen=True)
class NavLink:
    module_id: str
    label: str
    href: str
    icon: str
    active: bool = False
    pinned: bool = False

    def to_dict(self):
        return {
            'module_id': self.module_id,
            'label': self.label,
            'href': self.href,
            'icon': self.icon,
            'active': self.active,
            'pinned': self.pinned,
        }


@dataclass(frozen=True)
class NavGroup:
    label: str
    links: List[NavLink] = field(default_factory=list)

    def to_dict(self):
        return {'label': self.label, 'links': [link.to_dict() for link in self.links]}


@dataclass(frozen=True)
class Navigation:
    """
    A rendered navigation.

    ``state`` is 'loading' while resolution is in flight (no groups, a fixed
    number of placeholder rows) and 'ready' afterwards. A ready navigation
    with no groups means the user resolved to no modules.
    """
    state: str
    groups: List[NavGroup] = field(default_factory=list)
    placeholder_rows: int = 0

    @property
    def is_loading(self) -> bool:
        return self.state == STATE_LOADING

    def module_ids(self) -> List[str]:
        return [link.module_id for group in self.groups for link in group.links if not link.pinned]

    def to_dict(self):
        return {
            'state': self.state,
            'placeholder_rows': self.placeholder_rows,
            'groups': [group.to_dict() for group in self.groups],
        }


class NavigationBuilder:
    """
    Builds Navigation payloads for the workspace sidebar.
    """

    @staticmethod
    def loading() -> Navigation:
        """The loading state emitted before the effective set is known."""
        rows = getattr(settings, 'NAVIGATION_PLACEHOLDER_ROWS', 8)
        return Navigation(state=STATE_LOADING, groups=[], placeholder_rows=rows)

    @classmethod
    @store_errors_as_failure
    def build(cls, module_ids: Iterable[str], tenant_id, role: Optional[str] = None,
              is_super_admin: bool = False, active_path: Optional[str] = None) -> Navigation:
        """
        Group and order the given modules into navigation links.

        Args:
            module_ids: Effective module ids (already resolved)
            tenant_id: Active tenant id, added to every href
            role: Caller's tenant role, used for the pinned team link
            is_super_admin: Whether the caller is a platform super-admin
            active_path: Current path; matching links are marked active

        Returns:
            Navigation in the ready state
        """
        modules = list(Module.objects.by_slugs(set(module_ids)))

        grouped = {}
        for module in modules:
            grouped.setdefault(module.category or DEFAULT_CATEGORY, []).append(
                (module.display_order, module.name, cls._link(module, tenant_id, active_path))
            )

        if is_super_admin or role in TenantRole.admin_roles():
            grouped.setdefault(DEFAULT_CATEGORY, []).append(
                (TEAM_LINK_ORDER, TEAM_LINK_LABEL, cls._team_link(tenant_id, active_path))
            )

        groups = []
        for label, entries in sorted(
            grouped.items(),
            key=lambda item: (min(order for order, _, _ in item[1]), item[0])
        ):
            entries.sort(key=lambda entry: (entry[0], entry[1]))
            groups.append(NavGroup(label=label, links=[link for _, _, link in entries]))

        logger.debug(
            f"Built navigation for tenant {tenant_id}: {len(modules)} modules in {len(groups)} groups",
            extra={'tenant_id': str(tenant_id)}
        )
        return Navigation(state=STATE_READY, groups=groups)

    @staticmethod
    def _link(module, tenant_id, active_path) -> NavLink:
        route = module.route
        return NavLink(
            module_id=module.slug,
            label=module.name,
            href=route.with_param('tenant_id', tenant_id),
            icon=module.icon,
            active=route.matches(active_path),
        )

    @staticmethod
    def _team_link(tenant_id, active_path) -> NavLink:
        route = WorkspaceRoute.parse(TEAM_LINK_ROUTE)
        return NavLink(
            module_id=TEAM_LINK_ID,
            label=TEAM_LINK_LABEL,
            href=route.with_param('tenant_id', tenant_id),
            icon=ModuleIcon.USERS.value,
            active=route.matches(active_path),
            pinned=True,
        )
