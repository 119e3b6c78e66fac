"""Asset base path resolution and the process-wide asset override.

An engine module fetches its auxiliary files (stylesheets, data tables,
compiled helpers) relative to the *asset base path*: the directory the
bootstrap script was served from, not the hosting page's root.  This lets a
dashboard be deployed under any subpath or CDN prefix.

The base path lives in a single process-wide variable.  It is only meant to
hold a value for the duration of one engine load; ``asset_base_override()``
sets it and restores the prior value when the block exits, whichever way it
exits.

Examples
--------
>>> resolve_asset_base("https://x.com/js/app.js")
'https://x.com/js/'
>>> resolve_asset_base("https://x.com/app.js")
'https://x.com/'
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from urllib.parse import urljoin, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

# Read by engine modules while they load; ``None`` outside a load.
_asset_base_path: str | None = None
_active_overrides = 0


def resolve_asset_base(script_url: str) -> str:
    """Return the directory URL containing ``script_url``.

    The final path segment (the script's own file name) is replaced by an
    empty segment, so the result always ends with ``/``.  Query string and
    fragment are dropped.

    Raises
    ------
    ValueError
        If ``script_url`` is not an absolute URL.
    """
    parts = urlsplit(script_url)
    if not parts.scheme:
        raise ValueError(f"script URL must be absolute, got {script_url!r}")

    segments = parts.path.split("/")
    segments[-1] = ""
    path = "/".join(segments)
    if not path.startswith("/"):
        path = "/" + path

    base = urlunsplit((parts.scheme, parts.netloc, path, "", ""))
    logger.info("asset base path = %s", base)
    return base


def asset_base_path() -> str | None:
    """Current value of the process-wide asset base path."""
    return _asset_base_path


def asset_url(name: str) -> str:
    """Resolve an asset file name against the current asset base path.

    Engines call this while they load.  Outside a load there is no base, and
    ``name`` is returned unchanged.
    """
    if _asset_base_path is None:
        logger.debug("No asset base path set; using %r as-is", name)
        return name
    return urljoin(_asset_base_path, name)


@contextmanager
def asset_base_override(base_url: str) -> Iterator[str]:
    """Temporarily point the process-wide asset base path at ``base_url``.

    The previous value is restored on exit, including when the block raises.
    Overlapping overrides are not serialized; the second one is logged.
    """
    global _asset_base_path, _active_overrides

    saved = _asset_base_path
    if _active_overrides:
        logger.warning(
            "Asset base override to %s while another load is in flight (was %s)",
            base_url,
            saved,
        )
    _active_overrides += 1
    _asset_base_path = base_url
    try:
        yield base_url
    finally:
        _asset_base_path = saved
        _active_overrides -= 1
        logger.debug("asset base path restored to %s", saved)
