"""Path-addressed access to a submodel's element tree.

A path is a non-empty sequence of short names from the submodel root to the
target, given either as a list or as a "/"-joined string. Every segment but
the last must name an existing SubmodelElementCollection, otherwise
PathNotResolvableError is raised. A missing final segment raises
ElementNotFoundError for read, delete and value update; insertion only
needs the parent collection to exist.

These functions mutate the in-memory document only. Persisting the result is
the caller's job (see SubmodelAPI).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from shellstore.models import (
    Operation,
    Property,
    Submodel,
    SubmodelElement,
    SubmodelElementCollection,
)
from shellstore.storage.errors import (
    ElementNotFoundError,
    PathNotResolvableError,
    UnsupportedOperationError,
)

ElementPath = str | Sequence[str]


def split_path(path: ElementPath) -> list[str]:
    """Split a path into short names.

    Leading and trailing slashes are ignored.

    Raises:
        PathNotResolvableError: If the path is empty or has an empty segment.
    """
    if isinstance(path, str):
        stripped = path.strip("/")
        segments = stripped.split("/") if stripped else []
    else:
        segments = list(path)

    if not segments or any(not segment for segment in segments):
        raise PathNotResolvableError(
            "Element path must be a non-empty sequence of short names",
            path=path if isinstance(path, str) else "/".join(path),
        )
    return segments


def join_path(segments: Sequence[str]) -> str:
    return "/".join(segments)


def _index_of(children: list[SubmodelElement], id_short: str) -> int | None:
    for index, child in enumerate(children):
        if child.id_short == id_short:
            return index
    return None


def _parent_children(submodel: Submodel, segments: list[str]) -> list[SubmodelElement]:
    """Walk every segment but the last and return the child list holding the target."""
    children = submodel.submodel_elements
    for segment in segments[:-1]:
        index = _index_of(children, segment)
        node = children[index] if index is not None else None
        if not isinstance(node, SubmodelElementCollection):
            raise PathNotResolvableError(
                f"'{segment}' in the element path is not a collection element",
                path=join_path(segments),
                key=submodel.identifier,
            )
        children = node.value
    return children


def read_element(submodel: Submodel, path: ElementPath) -> SubmodelElement:
    """Return the element at ``path``."""
    segments = split_path(path)
    children = _parent_children(submodel, segments)
    index = _index_of(children, segments[-1])
    if index is None:
        raise ElementNotFoundError(
            f"'{segments[-1]}' could not be found",
            path=join_path(segments),
            key=submodel.identifier,
        )
    return children[index]


def write_element(
    submodel: Submodel,
    path: ElementPath,
    element: SubmodelElement,
) -> SubmodelElement:
    """Insert ``element`` at ``path``, replacing a sibling with the same short name.

    The stored element takes the last path segment as its short name.

    Returns:
        The element as stored in the tree.
    """
    segments = split_path(path)
    children = _parent_children(submodel, segments)
    stored = element
    if element.id_short != segments[-1]:
        stored = element.model_copy(update={"id_short": segments[-1]})

    index = _index_of(children, segments[-1])
    if index is None:
        children.append(stored)
    else:
        children[index] = stored
    return stored


def delete_element(submodel: Submodel, path: ElementPath) -> SubmodelElement:
    """Remove and return the element at ``path``."""
    segments = split_path(path)
    children = _parent_children(submodel, segments)
    index = _index_of(children, segments[-1])
    if index is None:
        raise ElementNotFoundError(
            f"'{segments[-1]}' could not be found",
            path=join_path(segments),
            key=submodel.identifier,
        )
    return children.pop(index)


def element_value(element: SubmodelElement) -> Any:
    """Return the value of an element.

    Collections yield a mapping of child short name to child value; operation
    children are skipped.

    Raises:
        UnsupportedOperationError: For operations, which carry no value.
    """
    if isinstance(element, Property):
        return element.value
    if isinstance(element, SubmodelElementCollection):
        return {
            child.id_short: element_value(child)
            for child in element.value
            if not isinstance(child, Operation)
        }
    raise UnsupportedOperationError(f"Element '{element.id_short}' has no value")


def read_value(submodel: Submodel, path: ElementPath) -> Any:
    """Return the value of the element at ``path``."""
    return element_value(read_element(submodel, path))


def unwrap_value(value: Any) -> Any:
    """Unwrap a ``{"valueType": ..., "value": ...}`` payload to its value.

    Anything else is returned unchanged, so typed and raw payloads can be
    passed interchangeably. A null ``valueType`` does not count as wrapped.
    """
    if isinstance(value, Mapping) and value.get("valueType") is not None and "value" in value:
        return value["value"]
    return value


def write_value(submodel: Submodel, path: ElementPath, value: Any) -> Property:
    """Set the value of the Property at ``path``.

    Raises:
        UnsupportedOperationError: If the target is not a Property.
    """
    element = read_element(submodel, path)
    if not isinstance(element, Property):
        raise UnsupportedOperationError(
            f"Only property values can be written; '{element.id_short}' is a "
            f"{element.model_type}",
            key=submodel.identifier,
        )
    element.value = unwrap_value(value)
    return element
