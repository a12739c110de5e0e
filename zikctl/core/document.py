"""Reply document model.

Request replies carry an XML document rooted at an ``answer`` element whose
``path`` attribute echoes the request, e.g.::

    <answer path="/api/system/battery/get">
      <system><battery state="charging" percent="42"/></system>
    </answer>

A rejected request answers with a single ``error`` child instead.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from zikctl.core.errors import ParseError

API_PREFIX = "/api"
ANSWER_TAG = "answer"
ERROR_TAG = "error"
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    name: str
    path: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    children: tuple[Node, ...] = ()

    def attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def child(self, name: str) -> Node | None:
        for child in self.children:
            if child.name == name:
                return child
        return None


@dataclass(frozen=True)
class Document:
    root: Node
    path: str

    @classmethod
    def empty(cls, path: str = "") -> Document:
        """Data document with no subtrees, standing in for a bare acknowledgement."""
        return cls(root=Node(name=ANSWER_TAG, path=""), path=path)

    def request(self) -> tuple[str, str]:
        """Split the echoed request path into (path, method)."""
        path, _, method = self.path.rpartition("/")
        return path, method


def _build_node(element: ET.Element, parent_path: str) -> Node:
    path = f"{parent_path}/{element.tag}"
    return Node(
        name=element.tag,
        path=path,
        attributes=MappingProxyType(dict(element.attrib)),
        children=tuple(_build_node(child, path) for child in element),
    )


def parse(payload: bytes) -> Document:
    """Build a reply document from a reply frame payload.

    Raises:
        ParseError: on malformed XML or an ``answer`` root without ``path``.
    """
    data = payload.rstrip(b"\x00")
    if not data.strip():
        raise ParseError("Empty reply document")
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ParseError(f"Invalid reply document: {exc}") from exc

    path = root.attrib.get("path")
    if root.tag == ANSWER_TAG and path is None:
        raise ParseError("Reply document root 'answer' lacks required attribute 'path'")

    document = Document(
        root=Node(
            name=root.tag,
            path="",
            attributes=MappingProxyType(dict(root.attrib)),
            children=tuple(_build_node(child, "") for child in root),
        ),
        path=path or "",
    )
    LOGGER.debug("Parsed reply document for '%s' with %d subtree(s)", document.path, len(document.root.children))
    return document


def has_error(document: Document) -> bool:
    root = document.root
    if root.name == ERROR_TAG:
        return True
    return len(root.children) == 1 and root.children[0].name == ERROR_TAG


def _segments(path: str) -> list[str]:
    if path == API_PREFIX or path.startswith(API_PREFIX + "/"):
        path = path[len(API_PREFIX):]
    return [segment for segment in path.split("/") if segment]


def find_subtree(document: Document, path: str) -> Node | None:
    """Locate the node whose accumulated path equals ``path``.

    A leading ``/api`` is ignored so request paths can be passed directly.
    """
    segments = _segments(path)
    if not segments:
        return None
    node: Node | None = document.root
    for segment in segments:
        node = node.child(segment)
        if node is None:
            return None
    return node
