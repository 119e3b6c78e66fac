"""Reference table engine — renders the dashboard skeleton and commit tables.

The markup deliberately carries only ``loupe-*`` classes; host framework
classes are the Style Reconciler's job.  Chart drawing is out of scope, each
series gets an empty ``canvas`` placeholder.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from commitloupe.core.assets import asset_url

if TYPE_CHECKING:
    from commitloupe.core.dataset import SeriesData
    from commitloupe.core.dom import Document, Element

logger = logging.getLogger(__name__)

STYLESHEET = "commits-loupe-style.css"
TABLE_COLUMNS = ("Commit", "Author", "Timestamp", "Subject")
GAP = "-"


def create(config: dict[str, Any], document: Document) -> Element:
    """Render ``config`` into the element matching ``config["mount"]``.

    Raises
    ------
    LookupError
        If the mount target does not exist.
    """
    mount = document.query_selector(config["mount"])
    if mount is None:
        raise LookupError(f"mount target not found: {config['mount']!r}")

    visibility = config.get("componentVisibility", {})
    root = document.create_element(
        "div",
        classes=["loupe-root"],
        data_repository=config["repository"],
        data_branch=config["branch"],
    )
    root.append_child(
        document.create_element("link", rel="stylesheet", href=asset_url(STYLESHEET))
    )

    if visibility.get("showRange", True):
        controls = document.create_element("div", classes=["loupe-ctl-container"])
        controls.append_child(document.create_element(
            "button", classes=["loupe-button", "loupe-ctl-zoom-in"],
            type="button", text="+ Zoom In",
        ))
        controls.append_child(document.create_element(
            "button", classes=["loupe-button", "loupe-ctl-zoom-out"],
            type="button", text="- Zoom Out",
        ))
        root.append_child(controls)

    panels = root.append_child(document.create_element("div", classes=["loupe-panels"]))
    for index, series in enumerate(config.get("series", [])):
        panels.append_child(
            _series_container(document, index, series, visibility.get("showTable", True))
        )

    mount.append_child(root)
    logger.info(
        "Rendered %d series for %s@%s",
        len(config.get("series", [])),
        config["repository"],
        config["branch"],
    )
    return root


def _series_container(
    document: Document, index: int, series: dict[str, str], show_table: bool
) -> Element:
    container = document.create_element(
        "div",
        classes=["loupe-container"],
        data_series=str(index),
        data_artifact=series["artifactFile"],
        data_query=series["queryPath"],
    )
    container.append_child(
        document.create_element("h3", classes=["loupe-title"], text=series["title"])
    )
    container.append_child(document.create_element("canvas", classes=["loupe-chart"]))
    if show_table:
        table = container.append_child(
            document.create_element("table", classes=["loupe-commits-table"])
        )
        head_row = table.append_child(document.create_element("thead")).append_child(
            document.create_element("tr")
        )
        for column in (*TABLE_COLUMNS, series["title"]):
            head_row.append_child(document.create_element("th", text=column))
        table.append_child(document.create_element("tbody"))
    return container


def populate_series(document: Document, index: int, data: SeriesData) -> int:
    """Fill series ``index``'s commit table with ``data``; gaps show as ``-``.

    Returns the number of rows written, 0 when the table is hidden.
    """
    body = document.query_selector(
        f'.loupe-container[data-series="{index}"] .loupe-commits-table tbody'
    )
    if body is None:
        return 0

    with document.batch():
        body.clear_children()
        for point in data.points:
            commit = point.commit
            row = body.append_child(document.create_element("tr"))
            sha_cell = row.append_child(document.create_element("td"))
            sha_cell.append_child(document.create_element(
                "a", href=commit.view_url, title=commit.sha, text=commit.sha_short,
            ))
            row.append_child(document.create_element("td", text=commit.author.name))
            row.append_child(document.create_element("td", text=commit.author_date_str()))
            row.append_child(document.create_element("td", text=commit.message_headline))
            value = GAP if point.value is None else f"{point.value:g}"
            row.append_child(document.create_element("td", text=value))
    return len(data.points)
