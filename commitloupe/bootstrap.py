"""Page bootstrap — load the engine relative to this script, then style it.

Say this module is served from ``https://xx.com/js/commitloupe/bootstrap.py``:
the engine and its assets are then looked up under
``https://xx.com/js/commitloupe/`` rather than under the hosting page's root.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from commitloupe.config import settings
from commitloupe.core.assets import resolve_asset_base
from commitloupe.core.dom import Document
from commitloupe.core.engine_loader import EngineLoader
from commitloupe.core.style_reconciler import StyleReconciler
from commitloupe.models.dashboard import DashboardConfiguration
from commitloupe.models.style import DEFAULT_STYLE_RULES, StyleRule

logger = logging.getLogger(__name__)


def current_script_url() -> str:
    """``file:`` URL of this bootstrap module."""
    return Path(__file__).resolve().as_uri()


async def ready(
    config: DashboardConfiguration,
    document: Document,
    *,
    script_url: str | None = None,
    entry_point: str | None = None,
) -> str:
    """Load the engine from next to ``script_url`` and render ``config``.

    Returns the asset base URL that was used.  Load failures propagate.
    """
    base_url = resolve_asset_base(script_url or current_script_url())
    loader = EngineLoader(document, entry_point or settings.engine_entry_point)
    await loader.load(base_url, config)
    return base_url


async def run_dashboard(
    config: DashboardConfiguration,
    document: Document,
    *,
    script_url: str | None = None,
    entry_point: str | None = None,
    root_selector: str | None = None,
    rules: Sequence[StyleRule] = DEFAULT_STYLE_RULES,
) -> StyleReconciler:
    """``ready()`` followed by a started ``StyleReconciler`` on the engine root."""
    await ready(config, document, script_url=script_url, entry_point=entry_point)
    reconciler = StyleReconciler(
        document, root_selector or settings.root_selector, rules
    )
    reconciler.start()
    return reconciler
