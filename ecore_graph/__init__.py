"""Ecore metamodel to node/edge graph extraction."""

__version__ = "0.1.0"

from .errors import DuplicateIdError, ExtractionError, MalformedModelError, TypeResolutionError
from .extract import extract, finalize, visit_package
from .graph import EMPTY, Edge, EdgeKind, Fragment, Graph, Node, NodeKind, merge, merge_all, random_ids, sequential_ids
from .loader import load_metamodel, load_model, metamodel_stats, summarize_metamodel
from .model import EcoreObject, Kind, ModelObject, NameRef
from .resolve import cardinality_prefix, resolve_type
from .export import export_edges, export_gml, export_json, graph_to_dict
from .scan import scan_xmi
from .xml_model import parse_xml_model

__all__ = [
    "extract",
    "finalize",
    "visit_package",
    "merge",
    "merge_all",
    "EMPTY",
    "Fragment",
    "Graph",
    "Node",
    "NodeKind",
    "Edge",
    "EdgeKind",
    "random_ids",
    "sequential_ids",
    "resolve_type",
    "cardinality_prefix",
    "Kind",
    "ModelObject",
    "EcoreObject",
    "NameRef",
    "parse_xml_model",
    "load_metamodel",
    "load_model",
    "metamodel_stats",
    "summarize_metamodel",
    "graph_to_dict",
    "export_json",
    "export_edges",
    "export_gml",
    "scan_xmi",
    "ExtractionError",
    "TypeResolutionError",
    "MalformedModelError",
    "DuplicateIdError",
]
