"""In-process markup tree with CSS selector queries and mutation observers.

This is the document the engine renders into and the Style Reconciler
watches.  It models the small part of a browser DOM the harness relies on:

* elements with attributes, a class list and ordered children;
* ``query_selector_all`` over simple CSS selectors;
* ``MutationObserver`` subscriptions on a subtree, receiving batched
  ``MutationRecord`` lists.

Delivery model
--------------
Records are queued per observer and delivered synchronously once the
outermost mutation (or ``Document.batch()`` block) completes.  Records
produced while a delivery is running are picked up by a further round of the
same delivery loop, so observer callbacks may themselves mutate the tree.

Supported selectors
-------------------
Type (``div``), universal (``*``), class (``.a``), id (``#a``), attribute
presence (``[a]``) and equality (``[a=b]``, ``[a="b"]``), any compound of
those, the descendant (whitespace) and child (``>``) combinators, and
``,``-separated groups.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class SelectorError(ValueError):
    """Raised when a selector uses syntax the matcher does not support."""


# Elements serialized without content or an end tag.
VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img",
    "input", "link", "meta", "source", "track", "wbr",
})


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

_SIMPLE_RE = re.compile(
    r"""
    (?P<tag>[A-Za-z][\w-]*|\*)
    | \.(?P<cls>-?[_A-Za-z][\w-]*)
    | \#(?P<id>-?[_A-Za-z][\w-]*)
    | \[\s*(?P<attr>[_A-Za-z][\w-]*)\s*
        (?:=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[\w-]+))\s*)?\]
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class _Compound:
    tag: str | None = None
    ids: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    attrs: tuple[tuple[str, str | None], ...] = ()

    def matches(self, element: Element) -> bool:
        if self.tag is not None and element.tag != self.tag:
            return False
        if any(element.get_attribute("id") != i for i in self.ids):
            return False
        if any(not element.class_list.contains(c) for c in self.classes):
            return False
        for name, value in self.attrs:
            actual = element.get_attribute(name)
            if actual is None or (value is not None and actual != value):
                return False
        return True


def _parse_compound(text: str, selector: str) -> _Compound:
    tag: str | None = None
    ids: list[str] = []
    classes: list[str] = []
    attrs: list[tuple[str, str | None]] = []
    pos = 0
    while pos < len(text):
        m = _SIMPLE_RE.match(text, pos)
        if m is None or m.end() == pos:
            raise SelectorError(f"unsupported selector syntax: {selector!r}")
        if m.group("tag"):
            if pos != 0:
                raise SelectorError(f"type selector must come first: {selector!r}")
            tag = None if m.group("tag") == "*" else m.group("tag").lower()
        elif m.group("cls"):
            classes.append(m.group("cls"))
        elif m.group("id"):
            ids.append(m.group("id"))
        else:
            value = next(
                (v for v in (m.group("dq"), m.group("sq"), m.group("bare")) if v is not None),
                None,
            )
            attrs.append((m.group("attr"), value))
        pos = m.end()
    return _Compound(tag, tuple(ids), tuple(classes), tuple(attrs))


# A complex selector, stored right-to-left: [(compound, combinator-to-left)].
_Complex = tuple[tuple[_Compound, str | None], ...]


def _tokenize(selector: str) -> list[list[str]]:
    """Split a selector group into per-group tokens, ``>`` kept as its own token.

    Commas, whitespace and ``>`` inside ``[...]`` (quoted or not) are part of
    the attribute selector, not separators.
    """
    groups: list[list[str]] = [[]]
    buf: list[str] = []
    in_brackets = False
    quote: str | None = None

    def flush() -> None:
        if buf:
            groups[-1].append("".join(buf))
            buf.clear()

    for ch in selector:
        if in_brackets:
            buf.append(ch)
            if quote:
                if ch == quote:
                    quote = None
            elif ch in "\"'":
                quote = ch
            elif ch == "]":
                in_brackets = False
        elif ch == "[":
            in_brackets = True
            buf.append(ch)
        elif ch == ",":
            flush()
            groups.append([])
        elif ch == ">":
            flush()
            groups[-1].append(">")
        elif ch.isspace():
            flush()
        else:
            buf.append(ch)

    if in_brackets:
        raise SelectorError(f"unterminated attribute selector: {selector!r}")
    flush()
    return groups


def parse_selector(selector: str) -> tuple[_Complex, ...]:
    """Parse a selector group into matchers.

    Raises
    ------
    SelectorError
        If ``selector`` is empty or uses unsupported syntax.
    """
    groups: list[_Complex] = []
    for tokens in _tokenize(selector):
        if not tokens or tokens[0] == ">" or tokens[-1] == ">":
            raise SelectorError(f"empty or dangling selector: {selector!r}")

        chain: list[tuple[_Compound, str | None]] = []
        pending: str | None = None
        for token in tokens:
            if token == ">":
                if pending == ">":
                    raise SelectorError(f"double combinator: {selector!r}")
                pending = ">"
                continue
            link = (pending or " ") if chain else None
            chain.append((_parse_compound(token, selector), link))
            pending = None
        groups.append(tuple(reversed(chain)))
    return tuple(groups)


def _matches_complex(element: Element, chain: _Complex) -> bool:
    compound, link = chain[0]
    if not compound.matches(element):
        return False
    if len(chain) == 1:
        return True
    rest = chain[1:]
    if link == ">":
        parent = element.parent
        return parent is not None and _matches_complex(parent, rest)
    ancestor = element.parent
    while ancestor is not None:
        if _matches_complex(ancestor, rest):
            return True
        ancestor = ancestor.parent
    return False


# ---------------------------------------------------------------------------
# Mutation records and observers
# ---------------------------------------------------------------------------

@dataclass
class MutationRecord:
    """One observed change: ``"attributes"`` or ``"childList"``."""

    type: str
    target: Element
    attribute_name: str | None = None
    old_value: str | None = None
    added_nodes: list[Element] = field(default_factory=list)
    removed_nodes: list[Element] = field(default_factory=list)


@dataclass(frozen=True)
class ObserveOptions:
    attributes: bool = False
    child_list: bool = False
    subtree: bool = False


MutationCallback = Callable[[list[MutationRecord], "MutationObserver"], None]


class MutationObserver:
    """Receives batches of mutation records for the nodes it observes.

    Parameters
    ----------
    callback:
        Called with ``(records, observer)`` for every delivered batch.
    """

    def __init__(self, callback: MutationCallback) -> None:
        self._callback = callback
        self._records: list[MutationRecord] = []
        self._targets: list[Element] = []

    def observe(
        self,
        target: Element,
        *,
        attributes: bool = False,
        child_list: bool = False,
        subtree: bool = False,
    ) -> None:
        """Start (or re-configure) observation of ``target``."""
        if not (attributes or child_list):
            raise ValueError("observe() needs attributes and/or child_list")
        options = ObserveOptions(attributes, child_list, subtree)
        target._registrations[self] = options
        if target not in self._targets:
            self._targets.append(target)

    def disconnect(self) -> None:
        """Stop observing everything and drop undelivered records."""
        for target in self._targets:
            target._registrations.pop(self, None)
        self._targets.clear()
        self._records.clear()

    def take_records(self) -> list[MutationRecord]:
        """Return and clear the records queued but not yet delivered."""
        records, self._records = self._records, []
        return records

    @property
    def observing(self) -> bool:
        return bool(self._targets)

    def _deliver(self) -> None:
        records = self.take_records()
        if records:
            self._callback(records, self)


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------

class ClassList:
    """Ordered view over an element's ``class`` attribute."""

    def __init__(self, element: Element) -> None:
        self._element = element

    def _tokens(self) -> list[str]:
        return (self._element.get_attribute("class") or "").split()

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens())

    def __len__(self) -> int:
        return len(self._tokens())

    def __repr__(self) -> str:
        return f"ClassList({self._tokens()!r})"

    def contains(self, name: str) -> bool:
        return name in self._tokens()

    def add(self, *names: str) -> bool:
        """Add missing class names; returns ``True`` if anything changed."""
        tokens = self._tokens()
        missing = [n for n in dict.fromkeys(names) if n not in tokens]
        if not missing:
            return False
        self._element.set_attribute("class", " ".join(tokens + missing))
        return True

    def remove(self, *names: str) -> bool:
        tokens = self._tokens()
        kept = [t for t in tokens if t not in names]
        if len(kept) == len(tokens):
            return False
        self._element.set_attribute("class", " ".join(kept))
        return True


class Element:
    """A markup element owned by a ``Document``."""

    def __init__(self, document: Document, tag: str) -> None:
        self.owner_document = document
        self.tag = tag.lower()
        self.parent: Element | None = None
        self.text = ""
        self._attributes: dict[str, str] = {}
        self._children: list[Element] = []
        self._registrations: dict[MutationObserver, ObserveOptions] = {}
        self.class_list = ClassList(self)

    def __repr__(self) -> str:
        classes = ".".join(self.class_list)
        return f"<Element {self.tag}{'.' + classes if classes else ''}>"

    # -- attributes ---------------------------------------------------------

    @property
    def attributes(self) -> dict[str, str]:
        return dict(self._attributes)

    def get_attribute(self, name: str) -> str | None:
        return self._attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        old = self._attributes.get(name)
        self._attributes[name] = value
        self.owner_document._queue(
            MutationRecord("attributes", self, attribute_name=name, old_value=old)
        )

    # -- children -----------------------------------------------------------

    @property
    def children(self) -> list[Element]:
        return list(self._children)

    def append_child(self, child: Element) -> Element:
        if child.owner_document is not self.owner_document:
            raise ValueError("cannot adopt an element from another document")
        if child is self or child in self.iter_ancestors():
            raise ValueError("cannot append an element into its own subtree")
        with self.owner_document.batch():
            if child.parent is not None:
                child.parent.remove_child(child)
            child.parent = self
            self._children.append(child)
            self.owner_document._queue(
                MutationRecord("childList", self, added_nodes=[child])
            )
        return child

    def remove_child(self, child: Element) -> Element:
        if child.parent is not self:
            raise ValueError("element is not a child of this node")
        self._children.remove(child)
        child.parent = None
        self.owner_document._queue(
            MutationRecord("childList", self, removed_nodes=[child])
        )
        return child

    def clear_children(self) -> None:
        with self.owner_document.batch():
            for child in list(self._children):
                self.remove_child(child)

    # -- traversal ----------------------------------------------------------

    def iter_ancestors(self) -> Iterator[Element]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator[Element]:
        for child in self._children:
            yield child
            yield from child.iter_descendants()

    def matches(self, selector: str) -> bool:
        return any(_matches_complex(self, chain) for chain in parse_selector(selector))

    def query_selector_all(self, selector: str) -> list[Element]:
        chains = parse_selector(selector)
        return [
            e for e in self.iter_descendants()
            if any(_matches_complex(e, chain) for chain in chains)
        ]

    def query_selector(self, selector: str) -> Element | None:
        found = self.query_selector_all(selector)
        return found[0] if found else None

    # -- serialization ------------------------------------------------------

    def to_html(self) -> str:
        attrs = "".join(
            f' {k}="{html.escape(v, quote=True)}"' for k, v in self._attributes.items()
        )
        if self.tag in VOID_TAGS:
            return f"<{self.tag}{attrs}>"
        inner = html.escape(self.text) + "".join(c.to_html() for c in self._children)
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


class Document:
    """A markup document: ``<html><head/><body/></html>`` plus observers."""

    def __init__(self) -> None:
        self._batch_depth = 0
        self._delivering = False
        self._pending: dict[MutationObserver, None] = {}
        self.document_element = Element(self, "html")
        self.head = self.document_element.append_child(Element(self, "head"))
        self.body = self.document_element.append_child(Element(self, "body"))

    def create_element(
        self,
        tag: str,
        *,
        classes: tuple[str, ...] | list[str] = (),
        text: str = "",
        **attributes: str,
    ) -> Element:
        """Create a detached element; keyword attributes use ``_`` for ``-``."""
        element = Element(self, tag)
        element.text = text
        for name, value in attributes.items():
            element._attributes[name.rstrip("_").replace("_", "-")] = value
        if classes:
            element._attributes["class"] = " ".join(classes)
        return element

    def query_selector_all(self, selector: str) -> list[Element]:
        chains = parse_selector(selector)
        root = self.document_element
        candidates = [root, *root.iter_descendants()]
        return [e for e in candidates if any(_matches_complex(e, c) for c in chains)]

    def query_selector(self, selector: str) -> Element | None:
        found = self.query_selector_all(selector)
        return found[0] if found else None

    def to_html(self) -> str:
        return "<!DOCTYPE html>" + self.document_element.to_html()

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Coalesce all mutations in the block into one delivery."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._deliver()

    # -- internals ----------------------------------------------------------

    def _queue(self, record: MutationRecord) -> None:
        notified: set[MutationObserver] = set()
        node: Element | None = record.target
        while node is not None:
            for observer, options in list(node._registrations.items()):
                if observer in notified:
                    continue
                if node is not record.target and not options.subtree:
                    continue
                if record.type == "attributes" and not options.attributes:
                    continue
                if record.type == "childList" and not options.child_list:
                    continue
                observer._records.append(record)
                self._pending[observer] = None
                notified.add(observer)
            node = node.parent
        if self._batch_depth == 0:
            self._deliver()

    def _deliver(self) -> None:
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending:
                observers = list(self._pending)
                self._pending.clear()
                for observer in observers:
                    observer._deliver()
        finally:
            self._delivering = False
