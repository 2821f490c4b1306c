from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Tuple

from pyecore.ecore import EPackage
from pyecore.resources import ResourceSet, URI
from pyecore.resources.xmi import XMIResource

from .model import Kind, ModelObject, wrap
from .xml_model import load_xml_model

LOGGER = logging.getLogger(__name__)

BACKENDS = ("pyecore", "xml")


def _configure_resource_set() -> ResourceSet:
    rset = ResourceSet()
    rset.resource_factory["ecore"] = XMIResource
    rset.resource_factory["xmi"] = XMIResource
    rset.resource_factory["xml"] = XMIResource
    rset.resource_factory[None] = XMIResource
    return rset


def _iter_packages(pkgs: Iterable[ModelObject]) -> Iterable[ModelObject]:
    for pkg in pkgs:
        if pkg.kind is not Kind.PACKAGE:
            continue
        yield pkg
        yield from _iter_packages(pkg.children("eSubpackages"))


def load_metamodel(ecore_path: str, rset: ResourceSet | None = None) -> Tuple[ResourceSet, List[EPackage]]:
    if rset is None:
        rset = _configure_resource_set()
    LOGGER.info("Loading metamodel: %s", ecore_path)
    resource = rset.get_resource(URI(ecore_path))
    packages = [obj for obj in resource.contents if isinstance(obj, EPackage)]
    if not packages:
        raise ValueError(f"No EPackage found in metamodel: {ecore_path}")
    for pkg in packages:
        if pkg.nsURI:
            rset.metamodel_registry[pkg.nsURI] = pkg
    return rset, packages


def load_model(path: str, backend: str = "pyecore") -> List[ModelObject]:
    """Load a metamodel document and return its root objects."""
    if not Path(path).exists():
        raise ValueError(f"Metamodel not found: {path}")
    if backend == "pyecore":
        _, packages = load_metamodel(path)
        return wrap(packages)
    if backend == "xml":
        roots = load_xml_model(path)
        if not any(root.kind is Kind.PACKAGE for root in roots):
            raise ValueError(f"No EPackage found in metamodel: {path}")
        return roots
    raise ValueError(f"Unknown backend: {backend!r} (expected one of {', '.join(BACKENDS)})")


def metamodel_stats(roots: Iterable[ModelObject]) -> dict[str, int]:
    stats = {
        "packages": 0,
        "classes": 0,
        "enums": 0,
        "attributes": 0,
        "references": 0,
        "operations": 0,
    }
    for pkg in _iter_packages(roots):
        stats["packages"] += 1
        for cls in pkg.children("eClassifiers"):
            if cls.kind is Kind.ENUM:
                stats["enums"] += 1
                continue
            if cls.kind is not Kind.CLASS:
                continue
            stats["classes"] += 1
            for feature in cls.children("eStructuralFeatures"):
                if feature.kind is Kind.ATTRIBUTE:
                    stats["attributes"] += 1
                elif feature.kind is Kind.REFERENCE:
                    stats["references"] += 1
            stats["operations"] += len(cls.children("eOperations"))
    return stats


def summarize_metamodel(roots: Iterable[ModelObject]) -> str:
    lines: List[str] = []
    total_classes = 0
    for pkg in _iter_packages(roots):
        lines.append(f"Package: {pkg.name} nsURI={pkg.value('nsURI')}")
        for cls in pkg.children("eClassifiers"):
            if cls.kind is Kind.ENUM:
                literals = [lit.name or "" for lit in cls.children("eLiterals")]
                lines.append(f"  Enum: {cls.name} literals={', '.join(literals)}")
                continue
            if cls.kind is not Kind.CLASS:
                continue
            total_classes += 1
            features = cls.children("eStructuralFeatures")
            attrs = [f.name or "" for f in features if f.kind is Kind.ATTRIBUTE]
            refs = [f.name or "" for f in features if f.kind is Kind.REFERENCE]
            lines.append(f"  Class: {cls.name} attrs={len(attrs)} refs={len(refs)}")
            if attrs:
                lines.append(f"    Attributes: {', '.join(attrs)}")
            if refs:
                lines.append(f"    References: {', '.join(refs)}")
    lines.append(f"Total classes: {total_classes}")
    return "\n".join(lines)
