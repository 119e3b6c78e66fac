"""commitloupe data models — all Pydantic v2, all frozen (immutable)."""

from commitloupe.models.commits import CommitInfo, UserInfo
from commitloupe.models.dashboard import (
    DashboardConfiguration,
    SeriesBinding,
    load_dashboard_config,
)
from commitloupe.models.style import (
    DEFAULT_ROOT_SELECTOR,
    DEFAULT_STYLE_RULES,
    StyleRule,
)

__all__ = [
    # commits
    "CommitInfo",
    "UserInfo",
    # dashboard
    "DashboardConfiguration",
    "SeriesBinding",
    "load_dashboard_config",
    # style
    "StyleRule",
    "DEFAULT_STYLE_RULES",
    "DEFAULT_ROOT_SELECTOR",
]
