from __future__ import annotations

from .errors import TypeResolutionError
from .model import ModelObject, to_int


def resolve_type(feature: ModelObject, human_name: str, owner: str | None = None) -> str:
    """Return the effective type name of a typed element.

    The direct ``eType`` link wins; otherwise the ``eGenericType`` wrapper
    is followed to its classifier, or to its type parameter for generic
    signatures.
    """
    direct = feature.child("eType")
    if direct is not None and direct.name:
        return direct.name
    generic = feature.child("eGenericType")
    if generic is not None:
        for link in ("eClassifier", "eTypeParameter"):
            target = generic.child(link)
            if target is not None and target.name:
                return target.name
    raise TypeResolutionError(human_name, owner)


def format_bound(value: int) -> str:
    return "*" if value == -1 else str(value)


def cardinality_prefix(lower: int | None, upper: int | None) -> str:
    if lower is None and upper is None:
        return ""
    if lower is None:
        lower = 0
    if upper is None:
        upper = lower
    return f"[{format_bound(lower)}..{format_bound(upper)}] "


def feature_bounds(feature: ModelObject) -> tuple[int | None, int | None]:
    owner = feature.describe()
    return (
        to_int(feature.value("lowerBound"), "lowerBound", owner),
        to_int(feature.value("upperBound"), "upperBound", owner),
    )
