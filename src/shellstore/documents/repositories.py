"""Shell and submodel repositories over the object store.

Each repository owns a RoutingTable that maps identifiers to composed views.
The table is rebuilt from the bucket by load() at startup and kept in step
with every create, update and delete made through the repository. Documents
written to the bucket by other processes after load() are not routed until
the next load().

Submodels must be loaded before shells: shell references that name a
submodel by short name are resolved against the submodel bucket.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from shellstore.documents.codec import deserialize_shell, deserialize_submodel
from shellstore.documents.deleter import delete_document, wipe_bucket
from shellstore.documents.index import IdShortIndex
from shellstore.documents.invocation import DelegatedInvoker
from shellstore.documents.routing import IdentifierLocks, RoutingTable
from shellstore.documents.shell_api import ShellAPI, upload_shell
from shellstore.documents.submodel_api import SubmodelAPI, upload_submodel
from shellstore.models import AssetAdministrationShell, Reference, Submodel
from shellstore.storage.errors import DocumentDecodeError, ObjectNotFoundError
from shellstore.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


class SubmodelRepository:
    """Submodel-level repository.

    Args:
        store: Object store gateway.
        bucket: Submodel bucket.
        routing: Routing table to populate (a fresh one when omitted).
        locks: Per-identifier write sections shared with every SubmodelAPI.
        invoker: Delegated invoker shared with every SubmodelAPI.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        *,
        routing: RoutingTable[SubmodelAPI] | None = None,
        locks: IdentifierLocks | None = None,
        invoker: DelegatedInvoker | None = None,
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._routing: RoutingTable[SubmodelAPI] = routing if routing is not None else RoutingTable()
        self._locks = locks or IdentifierLocks()
        self._invoker = invoker or DelegatedInvoker()
        self._index = IdShortIndex(store, bucket)
        self._delete_listeners: list[Callable[[str], None]] = []

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def store(self) -> ObjectStore:
        return self._store

    def add_delete_listener(self, listener: Callable[[str], None]) -> None:
        """Call ``listener`` with the identifier of every deleted submodel."""
        self._delete_listeners.append(listener)

    def _notify_deleted(self, identifier: str) -> None:
        for listener in self._delete_listeners:
            listener(identifier)

    def _new_api(self, identifier: str) -> SubmodelAPI:
        return SubmodelAPI(
            self._store,
            self._bucket,
            identifier,
            locks=self._locks,
            invoker=self._invoker,
        )

    def load(self) -> int:
        """Rebuild the routing table and short name index from the bucket.

        Objects that cannot be decoded are logged and skipped. Store failures
        propagate and leave the previous routes and index in place.

        Returns:
            Number of submodels routed.
        """
        entries: dict[str, SubmodelAPI] = {}
        id_shorts: list[tuple[str, str]] = []
        for key in self._store.list_keys(self._bucket):
            try:
                stored = self._store.get(self._bucket, key)
                submodel = deserialize_submodel(stored.body, key=key)
            except ObjectNotFoundError:
                logger.warning("Submodel '%s' vanished from bucket '%s' during load", key, self._bucket)
                continue
            except DocumentDecodeError as e:
                logger.error("Skipping undecodable submodel object: %s", e)
                continue
            if submodel.identifier != key:
                logger.warning(
                    "Submodel object '%s' carries identifier '%s'; routing by object key",
                    key,
                    submodel.identifier,
                )
            entries[key] = self._new_api(key)
            id_shorts.append((submodel.id_short, key))

        self._index.clear()
        for id_short, key in id_shorts:
            self._index.register(id_short, key)
        self._routing.replace_all(entries)
        logger.info("Loaded %d submodel(s) from bucket '%s'", len(entries), self._bucket)
        return len(entries)

    def create(self, submodel: Submodel) -> SubmodelAPI:
        """Store a submodel and route it. An existing object is overwritten."""
        identifier = submodel.identifier
        with self._locks.hold(identifier):
            upload_submodel(self._store, self._bucket, submodel)
            api = self._routing.get(identifier)
            if api is None:
                api = self._new_api(identifier)
                self._routing.put(identifier, api)
            self._index.register(submodel.id_short, identifier)
        logger.info("Created submodel '%s' in bucket '%s'", identifier, self._bucket)
        return api

    def update(self, submodel: Submodel) -> SubmodelAPI:
        """Overwrite a routed submodel under the same key.

        Raises:
            ObjectNotFoundError: If the submodel is not routed.
        """
        api = self.get_api(submodel.identifier)
        with self._locks.hold(submodel.identifier):
            upload_submodel(self._store, self._bucket, submodel)
            self._index.register(submodel.id_short, submodel.identifier)
        logger.info("Updated submodel '%s' in bucket '%s'", submodel.identifier, self._bucket)
        return api

    def get_api(self, identifier: str) -> SubmodelAPI:
        """Return the routed view for ``identifier``.

        Raises:
            ObjectNotFoundError: If no submodel is routed under ``identifier``.
        """
        api = self._routing.get(identifier)
        if api is None:
            raise ObjectNotFoundError(
                f"No submodel with identifier {identifier} exists",
                bucket=self._bucket,
                key=identifier,
            )
        return api

    def get(self, identifier: str) -> Submodel:
        return self.get_api(identifier).get_submodel()

    def get_by_id_short(self, id_short: str) -> Submodel:
        """Return the submodel carrying ``id_short``.

        Raises:
            ObjectNotFoundError: If no stored submodel has that short name.
        """
        identifier = self.resolve_id_short(id_short)
        if identifier is None:
            raise ObjectNotFoundError(
                f"No submodel with idShort {id_short} exists",
                bucket=self._bucket,
            )
        return self.get(identifier)

    def get_all(self) -> list[Submodel]:
        return [api.get_submodel() for api in self._routing.values()]

    def identifiers(self) -> list[str]:
        return self._routing.identifiers()

    def resolve_id_short(self, id_short: str) -> str | None:
        """Resolve a short name via the index, scanning the bucket on a miss."""
        return self._index.resolve(id_short)

    def delete(self, identifier: str) -> int:
        """Delete a submodel and its stored history.

        Returns:
            Number of objects or versions removed.

        Raises:
            ObjectNotFoundError: If the submodel is not routed or not stored.
        """
        self.get_api(identifier)
        with self._locks.hold(identifier):
            removed = delete_document(self._store, self._bucket, identifier)
            self._routing.remove(identifier)
            self._index.discard(identifier)
        self._notify_deleted(identifier)
        logger.info("Deleted submodel '%s' from bucket '%s'", identifier, self._bucket)
        return removed

    def delete_by_id_short(self, id_short: str) -> int:
        identifier = self.resolve_id_short(id_short)
        if identifier is None:
            raise ObjectNotFoundError(
                f"No submodel with idShort {id_short} exists",
                bucket=self._bucket,
            )
        return self.delete(identifier)

    def reset(self) -> None:
        """Wipe the submodel bucket and forget every route."""
        wipe_bucket(self._store, self._bucket)
        identifiers = self._routing.identifiers()
        self._routing.clear()
        self._index.clear()
        for identifier in identifiers:
            self._notify_deleted(identifier)


@dataclass
class ShellView:
    """A shell together with the submodels it references.

    ``submodels`` is keyed by submodel identifier. The invoker is kept across
    updates of the shell.
    """

    shell_api: ShellAPI
    invoker: DelegatedInvoker
    submodels: RoutingTable[SubmodelAPI] = field(default_factory=RoutingTable)

    @property
    def identifier(self) -> str:
        return self.shell_api.identifier

    def get_shell(self) -> AssetAdministrationShell:
        return self.shell_api.get_shell()

    def submodel_ids(self) -> list[str]:
        return self.submodels.identifiers()


class ShellRepository:
    """Shell-level repository composing shells with their submodels.

    Args:
        store: Object store gateway.
        bucket: Shell bucket.
        submodels: Repository of the submodel bucket.
        routing: Routing table to populate (a fresh one when omitted).
        invoker: Delegated invoker for newly composed views.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        submodels: SubmodelRepository,
        *,
        routing: RoutingTable[ShellView] | None = None,
        locks: IdentifierLocks | None = None,
        invoker: DelegatedInvoker | None = None,
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._submodels = submodels
        self._routing: RoutingTable[ShellView] = routing if routing is not None else RoutingTable()
        self._locks = locks or IdentifierLocks()
        self._invoker = invoker or DelegatedInvoker()
        submodels.add_delete_listener(self.detach_submodel)

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def submodels(self) -> SubmodelRepository:
        return self._submodels

    def detach_submodel(self, identifier: str) -> list[str]:
        """Drop ``identifier`` from every composed view.

        Stored shell references are left as they are; on the next load they
        no longer resolve and are logged.

        Returns:
            Identifiers of the shells the submodel was detached from.
        """
        detached = [
            view.identifier
            for view in self._routing.values()
            if view.submodels.remove(identifier) is not None
        ]
        if detached:
            logger.info("Detached submodel '%s' from shell(s) %s", identifier, detached)
        return detached

    def _resolve_references(self, shell: AssetAdministrationShell) -> list[str]:
        """Turn the shell's submodel references into submodel identifiers.

        Identifier references come first, then short name references in
        order. Short names that match no stored submodel are logged and
        skipped.
        """
        identifiers: list[str] = []
        id_shorts: list[str] = []
        for reference in shell.submodels:
            last = reference.last_key
            if last.is_id_short:
                id_shorts.append(last.value)
            else:
                identifiers.append(last.value)

        for id_short in id_shorts:
            identifier = self._submodels.resolve_id_short(id_short)
            if identifier is None:
                logger.warning(
                    "Shell '%s' references unknown submodel idShort '%s'",
                    shell.identifier,
                    id_short,
                )
                continue
            identifiers.append(identifier)
        return identifiers

    def _compose(self, shell: AssetAdministrationShell, key: str) -> ShellView:
        view = ShellView(
            shell_api=ShellAPI(self._store, self._bucket, key, locks=self._locks),
            invoker=self._invoker,
        )
        for identifier in self._resolve_references(shell):
            try:
                view.submodels.put(identifier, self._submodels.get_api(identifier))
            except ObjectNotFoundError:
                logger.warning(
                    "Shell '%s' references missing submodel '%s'",
                    shell.identifier,
                    identifier,
                )
        return view

    def load(self) -> int:
        """Rebuild the routing table from the shell bucket.

        The submodel repository must already be loaded.

        Returns:
            Number of shells routed.
        """
        entries: dict[str, ShellView] = {}
        for key in self._store.list_keys(self._bucket):
            try:
                stored = self._store.get(self._bucket, key)
                shell = deserialize_shell(stored.body, key=key)
            except ObjectNotFoundError:
                logger.warning("Shell '%s' vanished from bucket '%s' during load", key, self._bucket)
                continue
            except DocumentDecodeError as e:
                logger.error("Skipping undecodable shell object: %s", e)
                continue
            entries[key] = self._compose(shell, key)

        self._routing.replace_all(entries)
        logger.info("Loaded %d shell(s) from bucket '%s'", len(entries), self._bucket)
        return len(entries)

    def create(self, shell: AssetAdministrationShell) -> ShellView:
        """Store a shell and compose its view from the referenced submodels."""
        identifier = shell.identifier
        with self._locks.hold(identifier):
            upload_shell(self._store, self._bucket, shell)
            view = self._compose(shell, identifier)
            self._routing.put(identifier, view)
        logger.info("Created shell '%s' in bucket '%s'", identifier, self._bucket)
        return view

    def update(self, shell: AssetAdministrationShell) -> ShellView:
        """Overwrite a shell, keeping the attached submodels and invoker.

        Raises:
            ObjectNotFoundError: If the shell is not routed.
        """
        identifier = shell.identifier
        previous = self.get_view(identifier)
        with self._locks.hold(identifier):
            upload_shell(self._store, self._bucket, shell)
            view = ShellView(
                shell_api=ShellAPI(self._store, self._bucket, identifier, locks=self._locks),
                invoker=previous.invoker,
                submodels=previous.submodels,
            )
            self._routing.put(identifier, view)
        logger.info("Updated shell '%s' in bucket '%s'", identifier, self._bucket)
        return view

    def get_view(self, identifier: str) -> ShellView:
        """Return the routed view for ``identifier``.

        Raises:
            ObjectNotFoundError: If no shell is routed under ``identifier``.
        """
        view = self._routing.get(identifier)
        if view is None:
            raise ObjectNotFoundError(
                f"No shell with identifier {identifier} exists",
                bucket=self._bucket,
                key=identifier,
            )
        return view

    def get(self, identifier: str) -> AssetAdministrationShell:
        return self.get_view(identifier).get_shell()

    def get_all(self) -> list[AssetAdministrationShell]:
        return [view.get_shell() for view in self._routing.values()]

    def identifiers(self) -> list[str]:
        return self._routing.identifiers()

    def delete(self, identifier: str) -> int:
        """Delete a shell and its stored history. Its submodels are kept.

        Raises:
            ObjectNotFoundError: If the shell is not routed or not stored.
        """
        self.get_view(identifier)
        with self._locks.hold(identifier):
            removed = delete_document(self._store, self._bucket, identifier)
            self._routing.remove(identifier)
        logger.info("Deleted shell '%s' from bucket '%s'", identifier, self._bucket)
        return removed

    def add_submodel(self, shell_id: str, submodel: Submodel) -> SubmodelAPI:
        """Store ``submodel``, attach it to the shell and reference it."""
        view = self.get_view(shell_id)
        api = self._submodels.create(submodel)
        view.submodels.put(submodel.identifier, api)
        view.shell_api.add_submodel_reference(Reference.to_submodel(submodel.identification))
        return api

    def get_submodel_api(self, shell_id: str, identifier: str) -> SubmodelAPI:
        view = self.get_view(shell_id)
        api = view.submodels.get(identifier)
        if api is None:
            raise ObjectNotFoundError(
                f"Shell {shell_id} has no submodel {identifier}",
                bucket=self._submodels.bucket,
                key=identifier,
            )
        return api

    def get_submodel(self, shell_id: str, id_short: str) -> Submodel:
        """Return the attached submodel whose short name is ``id_short``.

        Attachments whose object is no longer stored are logged and skipped.

        Raises:
            ObjectNotFoundError: If no attached submodel has that short name.
        """
        view = self.get_view(shell_id)
        for api in view.submodels.values():
            try:
                submodel = api.get_submodel()
            except ObjectNotFoundError:
                logger.warning(
                    "Shell '%s' has attached submodel '%s' that is no longer stored",
                    shell_id,
                    api.identifier,
                )
                continue
            if submodel.id_short == id_short:
                return submodel
        raise ObjectNotFoundError(
            f"Shell {shell_id} has no submodel with idShort {id_short}",
            bucket=self._submodels.bucket,
        )

    def remove_submodel(self, shell_id: str, identifier: str) -> None:
        """Detach a submodel, drop the shell's reference and delete the submodel."""
        api = self.get_submodel_api(shell_id, identifier)
        view = self.get_view(shell_id)
        id_short = api.get_submodel().id_short
        view.shell_api.remove_submodel_reference(identifier, id_short)
        view.submodels.remove(identifier)
        self._submodels.delete(identifier)

    def reset(self) -> None:
        """Wipe the shell and submodel buckets and forget every route."""
        wipe_bucket(self._store, self._bucket)
        self._routing.clear()
        self._submodels.reset()
