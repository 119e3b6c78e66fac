"""Engine loader — dynamically imports the rendering engine under a scoped asset base.

The engine is an opaque module exposing a ``create(config, document)``
callable.  It is referenced either by module name or by a file relative to
the asset base URL::

    commitloupe.engines.table:create     # imported by module name
    engine/loupe_engine.py:create        # file under the asset base (file: URL)

Loading sequence
----------------
1. Save the process-wide asset base path and point it at ``base_url``.
2. Await the import of the engine module (run off the event loop).
3. Hand the engine configuration to the entry callable; await it if it
   returns an awaitable.
4. Restore the asset base path, on success and on failure alike.

The override spans the whole asynchronous lifetime of the load: an engine
that resolves asset URLs eagerly at import time, or lazily inside ``create``,
sees the same base either way.
"""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING
from urllib.parse import unquote, urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, field_validator

from commitloupe.core.assets import asset_base_override

if TYPE_CHECKING:
    from commitloupe.core.dom import Document
    from commitloupe.models.dashboard import DashboardConfiguration

logger = logging.getLogger(__name__)


class EngineReference(BaseModel):
    """Parsed ``"<module-or-file>:<attribute>"`` engine entry point.

    Examples
    --------
    >>> ref = EngineReference.parse("commitloupe.engines.table:create")
    >>> ref.module, ref.attribute, ref.is_file
    ('commitloupe.engines.table', 'create', False)
    >>> EngineReference.parse("pkg/engine.py:create").is_file
    True
    """

    model_config = ConfigDict(frozen=True)

    module: str
    attribute: str = "create"

    @field_validator("module", "attribute")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("engine reference parts must not be empty")
        return v

    @classmethod
    def parse(cls, entry_point: str) -> EngineReference:
        module, sep, attribute = entry_point.rpartition(":")
        if not sep:
            return cls(module=entry_point)
        return cls(module=module, attribute=attribute)

    @property
    def is_file(self) -> bool:
        return self.module.endswith(".py")

    def __str__(self) -> str:
        return f"{self.module}:{self.attribute}"


class EngineLoader:
    """Loads the engine module and hands it a dashboard configuration.

    Parameters
    ----------
    document:
        The host document the engine renders into.
    entry_point:
        Engine reference, ``"package.module:attr"`` or ``"file.py:attr"``.

    Raises
    ------
    ValueError
        If ``entry_point`` is malformed.
    """

    def __init__(self, document: Document, entry_point: str) -> None:
        self._document = document
        self._ref = EngineReference.parse(entry_point)

    @property
    def reference(self) -> EngineReference:
        return self._ref

    async def load(self, base_url: str, config: DashboardConfiguration) -> None:
        """Import the engine under ``base_url`` and render ``config``.

        Any failure of the import or of the engine entry propagates to the
        caller unchanged.  The mount target is untouched when the import
        fails, since the engine is never invoked.
        """
        engine_config = config.to_engine_config()
        with asset_base_override(base_url):
            logger.info("Loading engine %s (asset base %s)", self._ref, base_url)
            try:
                module = await asyncio.to_thread(self._import, base_url)
                entry = getattr(module, self._ref.attribute)
                result = entry(engine_config, self._document)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.error("Engine %s failed to load", self._ref)
                raise
        logger.info(
            "Engine %s rendered %d series into %s",
            self._ref,
            len(config.series_bindings),
            config.mount_selector,
        )

    # -- Internal helpers ---------------------------------------------------

    def _import(self, base_url: str) -> ModuleType:
        if self._ref.is_file:
            return _import_file(urljoin(base_url, self._ref.module))
        return importlib.import_module(self._ref.module)


def _import_file(url: str) -> ModuleType:
    """Import a module from a ``file:`` URL under a name derived from its path."""
    parts = urlsplit(url)
    if parts.scheme != "file":
        raise ImportError(f"cannot import engine over {parts.scheme!r}: {url}")

    path = Path(unquote(parts.path))
    if not path.is_file():
        raise ModuleNotFoundError(f"engine module not found: {path}")

    name = f"_commitloupe_engine_{path.stem}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot build import spec for {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module

