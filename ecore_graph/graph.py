from __future__ import annotations

import enum
import itertools
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Tuple

IdFactory = Callable[[], str]


class NodeKind(str, enum.Enum):
    CLASS = "class"
    ENUM = "enum"


class EdgeKind(str, enum.Enum):
    REFERENCE = "reference"
    SUPERTYPE = "supertype"


ICONS = {
    NodeKind.CLASS: "\U0001F172",
    NodeKind.ENUM: "\U0001F174",
}


@dataclass
class Node:
    id: str
    kind: NodeKind
    label: str
    icon: str
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    kind: EdgeKind
    label: str | None = None
    containment: bool | None = None
    derived: bool | None = None


@dataclass(frozen=True)
class Fragment:
    """Partial extraction result.

    ``entries`` are attribute-map entries for the node of the enclosing
    classifier; the classifier handler folds them into its node.
    """

    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    entries: Tuple[Tuple[str, str], ...] = ()


EMPTY = Fragment()


def merge(a: Fragment, b: Fragment) -> Fragment:
    if b is EMPTY:
        return a
    if a is EMPTY:
        return b
    return Fragment(
        nodes=a.nodes + b.nodes,
        edges=a.edges + b.edges,
        entries=a.entries + b.entries,
    )


def merge_all(fragments: Iterable[Fragment]) -> Fragment:
    result = EMPTY
    for fragment in fragments:
        result = merge(result, fragment)
    return result


@dataclass
class Graph:
    nodes: List[Node]
    edges: List[Edge]

    def node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edges_from(self, node_id: str, kind: EdgeKind | None = None) -> List[Edge]:
        return [
            edge for edge in self.edges
            if edge.source == node_id and (kind is None or edge.kind == kind)
        ]

    def dangling_targets(self) -> List[str]:
        ids = {node.id for node in self.nodes}
        seen: List[str] = []
        for edge in self.edges:
            if edge.target not in ids and edge.target not in seen:
                seen.append(edge.target)
        return seen


def random_ids() -> IdFactory:
    return lambda: uuid.uuid4().hex


def sequential_ids(prefix: str = "e") -> IdFactory:
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"
