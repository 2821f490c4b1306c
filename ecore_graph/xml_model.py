"""lxml backend for the typed model access layer.

Reads ``.ecore``/XMI text without a metamodel registry. Containment
features are child elements; cross references are attributes holding
``#//Path`` fragments, ``ecore:EDataType uri#//Name`` pairs or plain
``xmi:id`` values, and are resolved to the referenced element when it lives
in the same document, or to a name-only :class:`NameRef` otherwise.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from lxml import etree

from .model import ModelObject, NameRef, uri_name

LOGGER = logging.getLogger(__name__)

XMI_NS = "http://www.omg.org/XMI"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

_XSI_TYPE = f"{{{XSI_NS}}}type"
_XMI_ID = f"{{{XMI_NS}}}id"

# containment features whose elements carry no xsi:type
_DEFAULT_TYPES = {
    "eSubpackages": "EPackage",
    "eOperations": "EOperation",
    "eParameters": "EParameter",
    "eLiterals": "EEnumLiteral",
    "eGenericType": "EGenericType",
    "eGenericSuperTypes": "EGenericType",
    "eGenericExceptions": "EGenericType",
    "eTypeArguments": "EGenericType",
    "eUpperBound": "EGenericType",
    "eLowerBound": "EGenericType",
    "eTypeParameters": "ETypeParameter",
    "eBounds": "EGenericType",
    "eAnnotations": "EAnnotation",
    "details": "EStringToStringMapEntry",
}

_REFERENCE_FEATURES = {
    "eType",
    "eSuperTypes",
    "eClassifier",
    "eTypeParameter",
    "eOpposite",
    "eKeys",
    "eExceptions",
    "references",
}


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


class XmlDocument:
    def __init__(self, root: etree._Element) -> None:
        self.root = root
        if root.tag == f"{{{XMI_NS}}}XMI":
            self.roots = [child for child in root if isinstance(child.tag, str)]
        else:
            self.roots = [root]
        self._ids: Dict[str, etree._Element] | None = None

    def objects(self) -> List[ModelObject]:
        return [XmlObject(element, self) for element in self.roots]

    def by_id(self, ident: str) -> etree._Element | None:
        if self._ids is None:
            self._ids = {}
            for element in self.root.iter():
                if not isinstance(element.tag, str):
                    continue
                value = element.get(_XMI_ID) or element.get("id")
                if value:
                    self._ids[value] = element
        return self._ids.get(ident)

    def resolve_fragment(self, fragment: str) -> etree._Element | None:
        segments = fragment.split("/")
        if len(segments) < 2 or segments[0] != "":
            return None
        segments = segments[1:]
        head = segments.pop(0)
        if head == "":
            index = 0
        elif head.isdigit():
            index = int(head)
        else:
            return None
        if index >= len(self.roots):
            return None
        current = self.roots[index]
        for segment in segments:
            if not segment:
                continue
            current = _step(current, segment)
            if current is None:
                return None
        return current


def _step(element: etree._Element, segment: str) -> etree._Element | None:
    if segment.startswith("@"):
        feature, _, position = segment[1:].partition(".")
        candidates = element.findall(feature)
        if not position:
            return candidates[0] if candidates else None
        try:
            return candidates[int(position)]
        except (ValueError, IndexError):
            return None
    for child in element:
        if isinstance(child.tag, str) and child.get("name") == segment:
            return child
    return None


class XmlObject(ModelObject):
    def __init__(self, element: etree._Element, document: XmlDocument) -> None:
        self.element = element
        self.document = document

    @property
    def type_name(self) -> str:
        xsi_type = self.element.get(_XSI_TYPE)
        if xsi_type:
            return xsi_type.split(":")[-1]
        tag = _local_name(self.element.tag)
        return _DEFAULT_TYPES.get(tag, tag)

    def _lookup(self, feature: str) -> Any:
        elements = [child for child in self.element if isinstance(child.tag, str) and _local_name(child.tag) == feature]
        if elements:
            return [self._wrap_element(child) for child in elements]
        value = self.element.get(feature)
        if value is None:
            return None
        if feature in _REFERENCE_FEATURES:
            return self._resolve_refs(value)
        return value

    def _wrap_element(self, element: etree._Element) -> ModelObject:
        href = element.get("href")
        if href is not None and len(element) == 0:
            type_name = (element.get(_XSI_TYPE) or "*").split(":")[-1]
            return self._resolve_uri(href, type_name)
        return XmlObject(element, self.document)

    def _resolve_refs(self, value: str) -> List[ModelObject]:
        refs: List[ModelObject] = []
        pending_type = "*"
        for token in value.split():
            if "#" in token:
                refs.append(self._resolve_uri(token, pending_type))
                pending_type = "*"
            elif ":" in token and self.document.by_id(token) is None:
                # "ecore:EDataType" prefix of the following uri
                pending_type = token.split(":")[-1]
            else:
                target = self.document.by_id(token)
                if target is None:
                    LOGGER.debug("Unresolved id reference %r on %s", token, self.describe())
                    refs.append(NameRef(token, pending_type))
                else:
                    refs.append(XmlObject(target, self.document))
                pending_type = "*"
        return refs

    def _resolve_uri(self, uri: str, type_name: str) -> ModelObject:
        location, _, fragment = uri.partition("#")
        if not location:
            target = self.document.resolve_fragment(fragment)
            if target is None:
                target = self.document.by_id(fragment)
            if target is not None:
                return XmlObject(target, self.document)
        return NameRef(uri_name(uri), type_name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, XmlObject) and other.element is self.element

    def __hash__(self) -> int:
        return hash(self.element)


def parse_xml_model(text: str | bytes) -> List[ModelObject]:
    if isinstance(text, str):
        text = text.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    root = etree.fromstring(text, parser)
    return XmlDocument(root).objects()


def load_xml_model(path: str) -> List[ModelObject]:
    LOGGER.info("Loading metamodel (xml): %s", path)
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    tree = etree.parse(path, parser)
    return XmlDocument(tree.getroot()).objects()
