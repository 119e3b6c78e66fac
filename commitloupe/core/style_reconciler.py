"""Style reconciler — keeps host CSS framework classes on engine markup.

The engine's markup does not carry the host page's framework classes and can
change at any time.  The reconciler applies a selector -> class-list table
once at start, then subscribes to every root element's subtree and reapplies
the whole table after each mutation batch.  Rule application is additive and
idempotent, so reapplying is always safe.

States
------
``idle`` -> ``observing``, once.  There is no way back: the observer lives for
the lifetime of the document.  Embedders that need to stop it disconnect the
exposed ``observer`` handle themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import Enum

from commitloupe.core.dom import Document, MutationObserver, MutationRecord
from commitloupe.models.style import DEFAULT_ROOT_SELECTOR, DEFAULT_STYLE_RULES, StyleRule

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    IDLE = "idle"
    OBSERVING = "observing"


def apply_rules(document: Document, rules: Iterable[StyleRule]) -> int:
    """Union every rule's classes onto the elements it currently matches.

    Rules run in order; none removes anything.  Returns the number of
    elements whose class list actually changed.
    """
    changed = 0
    for rule in rules:
        for element in document.query_selector_all(rule.selector):
            if element.class_list.add(*rule.class_list):
                changed += 1
    return changed


class StyleReconciler:
    """Continuously maps ``rules`` onto the subtrees under ``root_selector``.

    Parameters
    ----------
    document:
        The document the engine renders into.
    root_selector:
        Selector for the engine's root element(s) to observe.
    rules:
        Ordered style rules; defaults to the Pure.css table.

    Examples
    --------
    >>> from commitloupe.core.dom import Document
    >>> doc = Document()
    >>> root = doc.body.append_child(doc.create_element("div", classes=["loupe-root"]))
    >>> reconciler = StyleReconciler(doc)
    >>> reconciler.start()
    >>> btn = root.append_child(doc.create_element("button", classes=["loupe-button"]))
    >>> list(btn.class_list)
    ['loupe-button', 'pure-button']
    """

    def __init__(
        self,
        document: Document,
        root_selector: str = DEFAULT_ROOT_SELECTOR,
        rules: Sequence[StyleRule] = DEFAULT_STYLE_RULES,
    ) -> None:
        self._document = document
        self._root_selector = root_selector
        self._rules = tuple(rules)
        self._state = ReconcilerState.IDLE
        self._observer: MutationObserver | None = None
        self._passes = 0

    @property
    def state(self) -> ReconcilerState:
        return self._state

    @property
    def observer(self) -> MutationObserver | None:
        """The live observer handle, ``None`` until ``start()``."""
        return self._observer

    @property
    def passes(self) -> int:
        """Number of reclassification passes run so far."""
        return self._passes

    def start(self) -> None:
        """Apply the rules once and begin observing every matching root.

        Raises
        ------
        RuntimeError
            If the reconciler is already observing.
        """
        if self._state is ReconcilerState.OBSERVING:
            raise RuntimeError("style reconciler is already observing")

        self._observer = MutationObserver(self._on_mutations)
        roots = self._document.query_selector_all(self._root_selector)
        for root in roots:
            self._observer.observe(root, attributes=True, child_list=True, subtree=True)
        if not roots:
            logger.warning("No element matches %r; nothing to observe", self._root_selector)

        self._state = ReconcilerState.OBSERVING
        self.reconcile()
        logger.info(
            "Style reconciler observing %d root(s) with %d rule(s)",
            len(roots),
            len(self._rules),
        )

    def reconcile(self) -> int:
        """Run one full pass over all rules and return elements changed."""
        with self._document.batch():
            changed = apply_rules(self._document, self._rules)
            if self._observer is not None:
                # Drop the records this pass produced itself before the
                # batch delivers them.
                self._observer.take_records()
        self._passes += 1
        logger.debug("Remap pass %d changed %d element(s)", self._passes, changed)
        return changed

    def _on_mutations(
        self, records: list[MutationRecord], observer: MutationObserver
    ) -> None:
        logger.debug("Observed %d mutation(s); reapplying styles", len(records))
        self.reconcile()
