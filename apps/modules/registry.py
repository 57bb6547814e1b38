"""
Typed registries for module presentation data.

Icons and routes are validated once, when a module is registered, so the
navigation layer only ever handles known icons and workspace-rooted paths.

- ModuleIcon: the exhaustive icon enumeration; unknown keys fail loudly
- WorkspaceRoute: value object whose path is always under WORKSPACE_ROOT
"""
from dataclasses import dataclass
from urllib.parse import urlsplit, parse_qsl, urlencode, urlunsplit

from django.db import models

WORKSPACE_ROOT = '/workspace'


class UnknownModuleIcon(ValueError):
    """Raised when a module names an icon that is not in the registry."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Unknown module icon: {key!r}")


class InvalidModuleRoute(ValueError):
    """Raised when a module route cannot be normalised to a workspace path."""

    def __init__(self, raw, reason):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid module route {raw!r}: {reason}")


class ModuleIcon(models.TextChoices):
    """Every icon the navigation client can render."""
    LAYOUT_DASHBOARD = 'LayoutDashboard', 'Dashboard'
    USERS = 'Users', 'Users'
    TRENDING_UP = 'TrendingUp', 'Trending up'
    MEGAPHONE = 'Megaphone', 'Megaphone'
    FILE_TEXT = 'FileText', 'Document'
    CALENDAR = 'Calendar', 'Calendar'
    BUILDING = 'Building2', 'Building'
    BOOK_OPEN = 'BookOpen', 'Book'
    BOT = 'Bot', 'Bot'
    RECEIPT = 'Receipt', 'Receipt'
    SETTINGS = 'Settings', 'Settings'
    HAND_COINS = 'HandCoins', 'Hand with coins'
    TARGET = 'Target', 'Target'
    BAR_CHART = 'BarChart3', 'Bar chart'
    MESSAGE_SQUARE = 'MessageSquare', 'Message'
    ZAP = 'Zap', 'Lightning'
    PIE_CHART = 'PieChart', 'Pie chart'
    BRIEFCASE = 'Briefcase', 'Briefcase'
    SHARE = 'Share2', 'Share'
    MOUSE_POINTER = 'MousePointer', 'Pointer'
    MAIL = 'Mail', 'Mail'
    EYE = 'Eye', 'Eye'
    CPU = 'Cpu', 'Processor'
    PACKAGE = 'Package', 'Package'
    BOX = 'Box', 'Box'
    DATABASE = 'Database', 'Database'
    CODE = 'Code', 'Code'
    LAYOUT = 'Layout', 'Layout'
    INFO = 'Info', 'Info'
    HAMMER = 'Hammer', 'Hammer'
    DOLLAR_SIGN = 'DollarSign', 'Dollar'
    CREDIT_CARD = 'CreditCard', 'Credit card'
    TICKET = 'Ticket', 'Ticket'
    FOLDER_OPEN = 'FolderOpen', 'Folder'


def resolve_icon(key) -> ModuleIcon:
    """
    Return the registry member for ``key``.

    Raises:
        UnknownModuleIcon: if the key is not a registered icon
    """
    try:
        return ModuleIcon(key)
    except ValueError:
        raise UnknownModuleIcon(key) from None


@dataclass(frozen=True)
class WorkspaceRoute:
    """
    A module route that is always rooted at WORKSPACE_ROOT.

    Build instances with ``WorkspaceRoute.parse``. A path already under the
    workspace root is kept; a bare root-relative path is prefixed once. The
    prefix check is segment-aware, so ``/workspaces`` is not treated as
    already rooted.
    """
    path: str
    query: str = ''

    @classmethod
    def parse(cls, raw) -> 'WorkspaceRoute':
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidModuleRoute(raw, 'route is empty')

        raw = raw.strip()
        parts = urlsplit(raw)
        if parts.scheme or parts.netloc or raw.startswith('//'):
            raise InvalidModuleRoute(raw, 'route must be a path, not an absolute URL')
        if parts.fragment:
            raise InvalidModuleRoute(raw, 'route must not carry a fragment')
        if not parts.path.startswith('/'):
            raise InvalidModuleRoute(raw, 'route must be root-relative')

        path = parts.path
        if len(path) > 1:
            path = path.rstrip('/')

        if not cls.is_workspace_rooted(path):
            path = WORKSPACE_ROOT if path == '/' else WORKSPACE_ROOT + path

        return cls(path=path, query=parts.query)

    @staticmethod
    def is_workspace_rooted(path: str) -> bool:
        return path == WORKSPACE_ROOT or path.startswith(WORKSPACE_ROOT + '/')

    def __str__(self):
        return f"{self.path}?{self.query}" if self.query else self.path

    def with_param(self, key: str, value) -> str:
        """Render the route with ``key`` set to ``value`` in its query string."""
        return with_query_param(str(self), key, value)

    def matches(self, current_path) -> bool:
        """Whether ``current_path`` is this route or lies beneath it."""
        if not current_path:
            return False
        current = urlsplit(current_path).path
        if len(current) > 1:
            current = current.rstrip('/')
        return current == self.path or current.startswith(self.path + '/')


def with_query_param(url: str, key: str, value) -> str:
    """
    Return ``url`` with ``key`` set to ``value``.

    Existing parameters are kept in order; any prior value for ``key`` is
    replaced rather than duplicated.
    """
    parts = urlsplit(url)
    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    params.append((key, str(value)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))
