"""Store-backed access to a single shell document."""

from __future__ import annotations

import logging

from shellstore.documents.codec import deserialize_shell, encode, extract_metadata
from shellstore.documents.routing import IdentifierLocks
from shellstore.models import AssetAdministrationShell, Reference
from shellstore.storage.errors import ObjectNotFoundError, UnsupportedOperationError
from shellstore.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def upload_shell(store: ObjectStore, bucket: str, shell: AssetAdministrationShell) -> str | None:
    """Write a shell under its identifier, replacing any previous object."""
    version_id = store.put(
        bucket,
        shell.identifier,
        encode(shell),
        metadata=extract_metadata(shell),
    )
    logger.debug("Uploaded shell '%s' to bucket '%s'", shell.identifier, bucket)
    return version_id


class ShellAPI:
    """Reads and rewrites one stored shell."""

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        identifier: str,
        *,
        locks: IdentifierLocks | None = None,
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._identifier = identifier
        self._locks = locks or IdentifierLocks()

    @property
    def identifier(self) -> str:
        return self._identifier

    def get_shell(self) -> AssetAdministrationShell:
        """Load the shell from the bucket.

        Raises:
            ObjectNotFoundError: If the shell is not stored.
        """
        try:
            stored = self._store.get(self._bucket, self._identifier)
        except ObjectNotFoundError as e:
            raise ObjectNotFoundError(
                f"The shell {self._identifier} could not be found in the store",
                bucket=self._bucket,
                key=self._identifier,
            ) from e
        return deserialize_shell(stored.body, key=self._identifier)

    def set_shell(self, shell: AssetAdministrationShell) -> None:
        """Replace the stored shell.

        Raises:
            UnsupportedOperationError: If ``shell`` carries another identifier.
        """
        if shell.identifier != self._identifier:
            raise UnsupportedOperationError(
                f"Cannot replace shell {self._identifier} with {shell.identifier}; "
                "identifiers are fixed",
                bucket=self._bucket,
                key=self._identifier,
            )
        with self._locks.hold(self._identifier):
            upload_shell(self._store, self._bucket, shell)

    def add_submodel_reference(self, reference: Reference) -> None:
        """Append a reference unless one with the same target is present."""
        with self._locks.hold(self._identifier):
            shell = self.get_shell()
            target = reference.last_key.value
            if any(ref.last_key.value == target for ref in shell.submodels):
                return
            shell.submodels.append(reference)
            upload_shell(self._store, self._bucket, shell)

    def remove_submodel_reference(self, *targets: str) -> bool:
        """Drop the first reference whose last key value is one of ``targets``.

        Pass both identifier and short name to match references of either kind.

        Returns:
            True if a reference was removed.
        """
        with self._locks.hold(self._identifier):
            shell = self.get_shell()
            for index, ref in enumerate(shell.submodels):
                if ref.last_key.value in targets:
                    del shell.submodels[index]
                    upload_shell(self._store, self._bucket, shell)
                    return True
        return False
