"""Feature and classifier handlers.

Feature handlers never create nodes: they return edges and attribute
entries for the node of the classifier that owns them. Classifier
handlers build that node from the collected entries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Tuple

from .errors import MalformedModelError, TypeResolutionError
from .graph import EMPTY, ICONS, Edge, EdgeKind, Fragment, IdFactory, Node, NodeKind, merge_all
from .model import Kind, ModelObject, to_bool, to_int
from .resolve import cardinality_prefix, feature_bounds, resolve_type

LOGGER = logging.getLogger(__name__)


@dataclass
class ExtractionContext:
    id_factory: IdFactory
    strict: bool = True
    skipped: List[str] = field(default_factory=list)

    def edge_id(self) -> str:
        return self.id_factory()


FeatureHandler = Callable[[ExtractionContext, str, ModelObject], Fragment]


def _required_name(obj: ModelObject, owner: str) -> str:
    name = obj.name
    if not name:
        raise MalformedModelError(f"{obj.type_name} without a name in '{owner}'")
    return name


def handle_attribute(ctx: ExtractionContext, owner: str, feature: ModelObject) -> Fragment:
    name = _required_name(feature, owner)
    return Fragment(entries=((name, resolve_type(feature, name, owner)),))


def handle_reference(ctx: ExtractionContext, owner: str, feature: ModelObject) -> Fragment:
    name = _required_name(feature, owner)
    target = resolve_type(feature, name, owner)
    lower, upper = feature_bounds(feature)
    described = feature.describe()
    edge = Edge(
        id=ctx.edge_id(),
        source=owner,
        target=target,
        kind=EdgeKind.REFERENCE,
        label=f"{cardinality_prefix(lower, upper)}{name}",
        containment=to_bool(feature.value("containment"), "containment", described),
        derived=to_bool(feature.value("derived"), "derived", described),
    )
    return Fragment(edges=(edge,))


def handle_supertype(ctx: ExtractionContext, owner: str, supertype: ModelObject) -> Fragment:
    target = supertype.name
    if not target:
        raise MalformedModelError(f"Supertype of '{owner}' has no name")
    edge = Edge(id=ctx.edge_id(), source=owner, target=target, kind=EdgeKind.SUPERTYPE)
    return Fragment(edges=(edge,))


def handle_operation(ctx: ExtractionContext, owner: str, operation: ModelObject) -> Fragment:
    name = _required_name(operation, owner)
    try:
        return_type = resolve_type(operation, name, owner)
    except TypeResolutionError:
        return_type = "void"
    params = []
    for param in operation.children("eParameters"):
        param_name = _required_name(param, f"{owner}.{name}")
        param_type = resolve_type(param, param_name, f"{owner}.{name}")
        params.append(f"{param_name} {param_type}")
    signature = f"{name}({', '.join(params)})"
    return Fragment(entries=((signature, f" {return_type}"),))


def handle_literal(ctx: ExtractionContext, owner: str, literal: ModelObject) -> Fragment:
    name = _required_name(literal, owner)
    value = to_int(literal.value("value"), "value", f"{owner}.{name}")
    return Fragment(entries=((name, "auto" if value is None else str(value)),))


STRUCTURAL_HANDLERS: Dict[Kind, FeatureHandler] = {
    Kind.ATTRIBUTE: handle_attribute,
    Kind.REFERENCE: handle_reference,
}


def run_feature(ctx: ExtractionContext, handler: FeatureHandler, owner: str, feature: ModelObject) -> Fragment:
    try:
        return handler(ctx, owner, feature)
    except TypeResolutionError as exc:
        if ctx.strict:
            raise
        LOGGER.warning("Skipping %s: %s", feature.describe(), exc)
        ctx.skipped.append(str(exc))
        return EMPTY


def _fold_entries(node_id: str, entries: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for key, value in entries:
        if key in attributes:
            LOGGER.warning(
                "Attribute key %r on %s declared twice; keeping %r over %r",
                key,
                node_id,
                value,
                attributes[key],
            )
        attributes[key] = value
    return attributes


def _classifier_id(classifier: ModelObject) -> str:
    name = classifier.name
    if not name:
        raise MalformedModelError(f"{classifier.type_name} without a name")
    return name


def _supertypes(cls: ModelObject) -> List[ModelObject]:
    supertypes = cls.children("eSuperTypes")
    if supertypes:
        return supertypes
    resolved = []
    for generic in cls.children("eGenericSuperTypes"):
        target = generic.child("eClassifier")
        if target is not None:
            resolved.append(target)
    return resolved


def handle_class(ctx: ExtractionContext, cls: ModelObject) -> Fragment:
    name = _classifier_id(cls)
    described = cls.describe()
    flags = []
    if to_bool(cls.value("abstract"), "abstract", described):
        flags.append(("abstract", "true"))
    if to_bool(cls.value("interface"), "interface", described):
        flags.append(("interface", "true"))

    fragments = [Fragment(entries=tuple(flags))]
    for feature in cls.children("eStructuralFeatures"):
        handler = STRUCTURAL_HANDLERS.get(feature.kind)
        if handler is None:
            LOGGER.debug("Ignoring %s in %s", feature.describe(), name)
            continue
        fragments.append(run_feature(ctx, handler, name, feature))
    for supertype in _supertypes(cls):
        fragments.append(run_feature(ctx, handle_supertype, name, supertype))
    for operation in cls.children("eOperations"):
        fragments.append(run_feature(ctx, handle_operation, name, operation))

    body = merge_all(fragments)
    node = Node(
        id=name,
        kind=NodeKind.CLASS,
        label=name,
        icon=ICONS[NodeKind.CLASS],
        attributes=_fold_entries(name, body.entries),
    )
    return Fragment(nodes=(node,), edges=body.edges)


def handle_enum(ctx: ExtractionContext, enum: ModelObject) -> Fragment:
    name = _classifier_id(enum)
    body = merge_all(run_feature(ctx, handle_literal, name, literal) for literal in enum.children("eLiterals"))
    node = Node(
        id=name,
        kind=NodeKind.ENUM,
        label=name,
        icon=ICONS[NodeKind.ENUM],
        attributes=_fold_entries(name, body.entries),
    )
    return Fragment(nodes=(node,), edges=body.edges)


CLASSIFIER_HANDLERS: Dict[Kind, Callable[[ExtractionContext, ModelObject], Fragment]] = {
    Kind.CLASS: handle_class,
    Kind.ENUM: handle_enum,
}


def handle_classifier(ctx: ExtractionContext, classifier: ModelObject) -> Fragment:
    handler = CLASSIFIER_HANDLERS.get(classifier.kind)
    if handler is None:
        LOGGER.debug("Ignoring %s", classifier.describe())
        return EMPTY
    return handler(ctx, classifier)
