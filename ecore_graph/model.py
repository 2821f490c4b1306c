"""Typed model access layer.

The extraction engine never touches pyecore or lxml objects directly; it
sees :class:`ModelObject` wrappers that report a closed :class:`Kind` and
expose features through three shape-checked accessors.
"""
from __future__ import annotations

import enum
import logging
from typing import Any, List

from pyecore.ecore import EObject, EProxy

from .errors import MalformedModelError

LOGGER = logging.getLogger(__name__)


class Kind(enum.Enum):
    PACKAGE = "EPackage"
    CLASS = "EClass"
    ENUM = "EEnum"
    ATTRIBUTE = "EAttribute"
    REFERENCE = "EReference"
    OPERATION = "EOperation"
    PARAMETER = "EParameter"
    ENUM_LITERAL = "EEnumLiteral"
    GENERIC_TYPE = "EGenericType"
    TYPE_PARAMETER = "ETypeParameter"
    IGNORED = "*"

    @classmethod
    def from_type_name(cls, type_name: str | None) -> "Kind":
        if not type_name or type_name == cls.IGNORED.value:
            return cls.IGNORED
        try:
            return cls(type_name)
        except ValueError:
            return cls.IGNORED


class ModelObject:
    """Read-only view of one object of a metamodel document.

    Subclasses implement ``type_name`` and ``_lookup``; ``_lookup`` returns
    None, a scalar, a ModelObject, or a list of ModelObjects.
    """

    @property
    def type_name(self) -> str:
        raise NotImplementedError

    def _lookup(self, feature: str) -> Any:
        raise NotImplementedError

    @property
    def kind(self) -> Kind:
        return Kind.from_type_name(self.type_name)

    @property
    def name(self) -> str | None:
        value = self.value("name")
        if value is None:
            return None
        return str(value)

    def describe(self) -> str:
        name = self._lookup("name")
        return f"{self.type_name} {name if isinstance(name, str) and name else '<unnamed>'}"

    def value(self, feature: str) -> Any:
        raw = self._lookup(feature)
        if isinstance(raw, (ModelObject, list)):
            raise MalformedModelError(f"{self.describe()}: feature '{feature}' is not a scalar")
        return raw

    def child(self, feature: str) -> "ModelObject | None":
        raw = self._lookup(feature)
        if raw is None:
            return None
        if isinstance(raw, list):
            if len(raw) > 1:
                raise MalformedModelError(
                    f"{self.describe()}: feature '{feature}' holds {len(raw)} objects, expected one"
                )
            raw = raw[0] if raw else None
            if raw is None:
                return None
        if not isinstance(raw, ModelObject):
            raise MalformedModelError(f"{self.describe()}: feature '{feature}' is not an object")
        return raw

    def children(self, feature: str) -> List["ModelObject"]:
        raw = self._lookup(feature)
        if raw is None:
            return []
        if isinstance(raw, ModelObject):
            return [raw]
        if not isinstance(raw, list):
            raise MalformedModelError(f"{self.describe()}: feature '{feature}' is not an object sequence")
        for item in raw:
            if not isinstance(item, ModelObject):
                raise MalformedModelError(
                    f"{self.describe()}: feature '{feature}' contains a non-object value"
                )
        return raw

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


class EcoreObject(ModelObject):
    """Wrapper around a pyecore ``EObject``."""

    def __init__(self, obj: EObject) -> None:
        self.obj = obj

    @property
    def type_name(self) -> str:
        return self.obj.eClass.name

    def _lookup(self, feature: str) -> Any:
        value = getattr(self.obj, feature, None)
        if isinstance(value, EObject):
            return _wrap_eobject(value)
        # bound methods such as eAllSuperTypes are not features
        if value is None or callable(value):
            return None
        if isinstance(value, (str, bytes, int, float, bool)):
            return value
        if hasattr(value, "__iter__"):
            return [_wrap_eobject(v) if isinstance(v, EObject) else v for v in value]
        return value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, EcoreObject) and other.obj is self.obj

    def __hash__(self) -> int:
        return id(self.obj)


class NameRef(ModelObject):
    """Name-only stand-in for an object outside the loaded document."""

    def __init__(self, name: str, type_name: str = "*") -> None:
        self._name = name
        self._type_name = type_name

    @property
    def type_name(self) -> str:
        return self._type_name

    def _lookup(self, feature: str) -> Any:
        if feature == "name":
            return self._name
        return None


def uri_name(uri: str) -> str:
    """Last path segment of an ``[type ]location#fragment`` reference."""
    tokens = uri.split()
    location, _, fragment = (tokens[-1] if tokens else "").partition("#")
    if fragment:
        return fragment.rstrip("/").split("/")[-1]
    return location


def _wrap_eobject(value: EObject) -> ModelObject:
    if isinstance(value, EProxy) and not value.resolved:
        try:
            value.force_resolve()
        except Exception as exc:  # noqa: BLE001
            # target lives in a resource that cannot be loaded
            path = str(value._proxy_path)
            LOGGER.debug("Unresolved proxy %s: %s", path, exc)
            return NameRef(uri_name(path))
    return EcoreObject(value)


def wrap(objects) -> List[ModelObject]:
    return [obj if isinstance(obj, ModelObject) else EcoreObject(obj) for obj in objects]


def to_int(value: Any, feature: str, owner: str = "") -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedModelError(f"{owner}: feature '{feature}' is a boolean, expected an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            raise MalformedModelError(f"{owner}: feature '{feature}' is not an integer: {value!r}") from None
    raise MalformedModelError(f"{owner}: feature '{feature}' is not an integer: {value!r}")


def to_bool(value: Any, feature: str, owner: str = "", default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "true":
            return True
        if text in {"false", ""}:
            return False
    raise MalformedModelError(f"{owner}: feature '{feature}' is not a boolean: {value!r}")
