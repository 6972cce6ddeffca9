"""Store-backed access to a single submodel.

There is no element-level persistence. Every mutation rereads the whole
submodel from the bucket, changes the tree, and writes the whole object back
under the submodel identifier. Mutations on the same identifier run inside an
IdentifierLocks section so concurrent writers in this process do not lose
updates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from shellstore.documents import elements
from shellstore.documents.codec import deserialize_submodel, encode, extract_metadata
from shellstore.documents.invocation import DelegatedInvoker
from shellstore.documents.routing import IdentifierLocks
from shellstore.models import Operation, Submodel, SubmodelElement
from shellstore.storage.errors import ObjectNotFoundError, UnsupportedOperationError
from shellstore.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def upload_submodel(store: ObjectStore, bucket: str, submodel: Submodel) -> str | None:
    """Write a submodel under its identifier, replacing any previous object."""
    version_id = store.put(
        bucket,
        submodel.identifier,
        encode(submodel),
        metadata=extract_metadata(submodel),
    )
    logger.debug("Uploaded submodel '%s' to bucket '%s'", submodel.identifier, bucket)
    return version_id


class SubmodelAPI:
    """Path-addressed view over one stored submodel.

    Args:
        store: Object store gateway.
        bucket: Submodel bucket.
        identifier: Submodel identifier (the object key).
        locks: Write sections shared with the owning repository.
        invoker: Executes delegating operations.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        identifier: str,
        *,
        locks: IdentifierLocks | None = None,
        invoker: DelegatedInvoker | None = None,
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._identifier = identifier
        self._locks = locks or IdentifierLocks()
        self._invoker = invoker or DelegatedInvoker()

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def bucket(self) -> str:
        return self._bucket

    def get_submodel(self) -> Submodel:
        """Load the submodel from the bucket.

        Raises:
            ObjectNotFoundError: If the submodel is not stored.
        """
        try:
            stored = self._store.get(self._bucket, self._identifier)
        except ObjectNotFoundError as e:
            raise ObjectNotFoundError(
                f"The submodel {self._identifier} could not be found in the store",
                bucket=self._bucket,
                key=self._identifier,
            ) from e
        return deserialize_submodel(stored.body, key=self._identifier)

    def set_submodel(self, submodel: Submodel) -> None:
        """Replace the stored submodel.

        Raises:
            UnsupportedOperationError: If ``submodel`` carries another identifier.
        """
        if submodel.identifier != self._identifier:
            raise UnsupportedOperationError(
                f"Cannot replace submodel {self._identifier} with {submodel.identifier}; "
                "identifiers are fixed",
                bucket=self._bucket,
                key=self._identifier,
            )
        with self._locks.hold(self._identifier):
            upload_submodel(self._store, self._bucket, submodel)

    def get_submodel_elements(self) -> list[SubmodelElement]:
        return self.get_submodel().submodel_elements

    def get_operations(self) -> list[Operation]:
        return self.get_submodel().get_operations()

    def get_submodel_element(self, path: elements.ElementPath) -> SubmodelElement:
        return elements.read_element(self.get_submodel(), path)

    def get_submodel_element_value(self, path: elements.ElementPath) -> Any:
        return elements.read_value(self.get_submodel(), path)

    def add_submodel_element(
        self,
        element: SubmodelElement,
        path: elements.ElementPath | None = None,
    ) -> SubmodelElement:
        """Insert ``element`` at ``path`` (top level when no path is given)."""
        target = path if path is not None else [element.id_short]
        return self._mutate(
            "add_submodel_element",
            lambda submodel: elements.write_element(submodel, target, element),
        )

    def delete_submodel_element(self, path: elements.ElementPath) -> SubmodelElement:
        return self._mutate(
            "delete_submodel_element",
            lambda submodel: elements.delete_element(submodel, path),
        )

    def update_submodel_element(self, path: elements.ElementPath, value: Any) -> SubmodelElement:
        """Set a property value; ``{"valueType", "value"}`` payloads are unwrapped."""
        return self._mutate(
            "update_submodel_element",
            lambda submodel: elements.write_value(submodel, path, value),
        )

    def invoke_operation(self, path: elements.ElementPath, *params: Any) -> Any:
        """Invoke the delegating operation at ``path``.

        Raises:
            UnsupportedOperationError: If the element is not a delegating operation.
        """
        element = self.get_submodel_element(path)
        if not isinstance(element, Operation):
            raise UnsupportedOperationError(
                f"Element '{element.id_short}' is not an operation",
                bucket=self._bucket,
                key=self._identifier,
            )
        return self._invoker.invoke(element, *params)

    def invoke_async(self, path: elements.ElementPath, *params: Any) -> Any:
        raise UnsupportedOperationError(
            "Asynchronous invocation is not supported by this backend",
            key=self._identifier,
        )

    def get_operation_result(self, path: elements.ElementPath, request_id: str) -> Any:
        raise UnsupportedOperationError(
            "Asynchronous invocation is not supported by this backend",
            key=self._identifier,
        )

    def _mutate(self, operation: str, change: Callable[[Submodel], T]) -> T:
        with self._locks.hold(self._identifier):
            submodel = self.get_submodel()
            result = change(submodel)
            upload_submodel(self._store, self._bucket, submodel)
        logger.info(
            "Uploaded submodel '%s' to bucket '%s' (%s)",
            self._identifier,
            self._bucket,
            operation,
        )
        return result
