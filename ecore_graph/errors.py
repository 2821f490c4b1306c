from __future__ import annotations


class ExtractionError(Exception):
    """Base class for failures raised while turning a metamodel into a graph."""


class TypeResolutionError(ExtractionError):
    def __init__(self, feature_name: str, owner: str | None = None) -> None:
        self.feature_name = feature_name
        self.owner = owner
        if owner:
            message = f"Cannot resolve type of '{feature_name}' in '{owner}'"
        else:
            message = f"Cannot resolve type of '{feature_name}'"
        super().__init__(message)


class MalformedModelError(ExtractionError):
    """A feature value is present but has the wrong shape."""


class DuplicateIdError(ExtractionError):
    def __init__(self, kind: str, ident: str) -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(f"Duplicate {kind} id: {ident!r}")
