from __future__ import annotations

import logging
from typing import Iterable

from pyecore.ecore import EObject

from .errors import DuplicateIdError, MalformedModelError
from .graph import Fragment, Graph, IdFactory, merge_all, random_ids
from .handlers import ExtractionContext, handle_classifier
from .model import Kind, ModelObject, wrap

LOGGER = logging.getLogger(__name__)


def visit_package(ctx: ExtractionContext, package: ModelObject) -> Fragment:
    fragments = [handle_classifier(ctx, classifier) for classifier in package.children("eClassifiers")]
    for sub in package.children("eSubpackages"):
        fragments.append(visit_package(ctx, sub))
    return merge_all(fragments)


def visit_root(ctx: ExtractionContext, root: ModelObject) -> Fragment:
    if root.kind is Kind.PACKAGE:
        LOGGER.debug("Visiting package %s", root.name)
        return visit_package(ctx, root)
    return handle_classifier(ctx, root)


def finalize(fragment: Fragment) -> Graph:
    """Check global id uniqueness and freeze the merged fragment into a graph."""
    if fragment.entries:
        raise MalformedModelError(
            f"{len(fragment.entries)} attribute entries produced outside of any classifier"
        )
    node_ids: set[str] = set()
    for node in fragment.nodes:
        if not node.id:
            raise MalformedModelError("Node with an empty id")
        if node.id in node_ids:
            raise DuplicateIdError("node", node.id)
        node_ids.add(node.id)
    edge_ids: set[str] = set()
    for edge in fragment.edges:
        if edge.id in edge_ids:
            raise DuplicateIdError("edge", edge.id)
        edge_ids.add(edge.id)
    return Graph(nodes=list(fragment.nodes), edges=list(fragment.edges))


def extract(
    roots: Iterable[ModelObject | EObject] | ModelObject | EObject,
    id_factory: IdFactory | None = None,
    strict: bool = True,
) -> Graph:
    """Reduce one or more metamodel roots to a node/edge graph.

    In strict mode any :class:`~ecore_graph.errors.ExtractionError` aborts
    the run. With ``strict=False`` features whose type cannot be resolved
    are skipped and logged instead.
    """
    if isinstance(roots, (ModelObject, EObject)):
        roots = [roots]
    ctx = ExtractionContext(id_factory=id_factory or random_ids(), strict=strict)
    fragment = merge_all(visit_root(ctx, root) for root in wrap(roots))
    graph = finalize(fragment)
    LOGGER.info("Extracted graph: nodes=%s edges=%s", len(graph.nodes), len(graph.edges))
    if ctx.skipped:
        LOGGER.warning("Skipped %s features with unresolved types", len(ctx.skipped))
    dangling = graph.dangling_targets()
    if dangling:
        LOGGER.debug("Edge targets outside the extracted nodes: %s", ", ".join(dangling))
    return graph
