"""commitloupe: client-side harness for commit-linked benchmark dashboards.

v0.2.0:
  - Dotted-path query evaluation over per-commit JSON artifacts
  - Declarative series bindings and dashboard configuration (Pydantic v2, frozen)
  - Relocatable engine loading with a scoped asset base path override
  - Reactive style reconciliation over the engine's markup
  - GitHub commit history + static artifact data source (httpx)
"""

__version__ = "0.2.0"
__description__ = (
    "Commit-linked benchmark dashboard harness with relocatable engine loading"
)

from commitloupe.core.engine_loader import EngineLoader
from commitloupe.core.query import ABSENT, evaluate
from commitloupe.core.style_reconciler import StyleReconciler
from commitloupe.models.dashboard import DashboardConfiguration, SeriesBinding

__all__ = [
    "ABSENT",
    "DashboardConfiguration",
    "EngineLoader",
    "SeriesBinding",
    "StyleReconciler",
    "evaluate",
    "__version__",
]
