"""Type-blind id/idref scan of an XMI document.

Every element carrying ``xmi:id`` or ``id`` becomes a node; attribute
values naming another id, and ``xmi:idref``/``href``/``ref`` links on
descendants, become edges. Unlike :func:`ecore_graph.extract.extract` this
knows nothing about Ecore and works on any XMI dialect.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List

from lxml import etree

from .xml_model import XMI_NS, XSI_NS

LOGGER = logging.getLogger(__name__)

_ID_ATTRS = (f"{{{XMI_NS}}}id", "id")
_LINK_ATTRS = (f"{{{XMI_NS}}}idref", "href", "ref")
_SPLIT = re.compile(r"[\s,;]+")


def _prefixed(element: etree._Element, attr: str) -> str:
    qname = etree.QName(attr)
    if qname.namespace is None:
        return attr
    for prefix, uri in element.nsmap.items():
        if uri == qname.namespace and prefix:
            return f"{prefix}:{qname.localname}"
    return qname.localname


def _element_id(element: etree._Element) -> str | None:
    for attr in _ID_ATTRS:
        value = element.get(attr)
        if value:
            return value
    return None


def scan_xmi(text: str | bytes) -> Dict[str, List[Dict[str, object]]]:
    if isinstance(text, str):
        text = text.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    root = etree.fromstring(text, parser)

    elements: Dict[str, etree._Element] = {}
    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        ident = _element_id(element)
        if ident and ident not in elements:
            elements[ident] = element

    nodes: List[Dict[str, object]] = []
    for ident, element in elements.items():
        xsi_type = element.get(f"{{{XSI_NS}}}type")
        kind = xsi_type or _prefixed(element, element.tag)
        name = element.get("name") or element.get("label") or element.get("simpleName") or kind
        nodes.append({"id": ident, "data": {"label": f"{name} ({kind})"}})

    edges: List[Dict[str, object]] = []
    seen: set[str] = set()

    def add(edge_id: str, source: str, target: str, label: str | None) -> None:
        if edge_id in seen:
            return
        seen.add(edge_id)
        edge: Dict[str, object] = {"id": edge_id, "source": source, "target": target}
        if label is not None:
            edge["label"] = label
        edges.append(edge)

    for ident, element in elements.items():
        for attr, value in element.attrib.items():
            if attr in _ID_ATTRS:
                continue
            attr_name = _prefixed(element, attr)
            for token in _SPLIT.split(value):
                if token and token in elements:
                    add(f"{ident}-{token}-{attr_name}", ident, token, attr_name)
        for child in element.iterdescendants():
            if not isinstance(child.tag, str):
                continue
            for attr in _LINK_ATTRS:
                ref = child.get(attr)
                if ref:
                    break
            if ref and ref in elements:
                add(f"{ident}-{ref}-child", ident, ref, None)

    LOGGER.info("Scanned XMI: nodes=%s edges=%s", len(nodes), len(edges))
    return {"nodes": nodes, "edges": edges}
