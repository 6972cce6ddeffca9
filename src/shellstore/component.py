"""Wiring for the S3-backed shell and submodel repositories.

create_repositories() builds the gateway from settings (unless a store is
injected), makes sure both buckets exist, and loads the submodel repository
before the shell repository so short name references can be resolved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shellstore.config import S3Settings
from shellstore.documents.deleter import create_bucket_if_not_exists
from shellstore.documents.invocation import DelegatedInvoker
from shellstore.documents.repositories import ShellRepository, SubmodelRepository
from shellstore.storage.object_store import ObjectStore
from shellstore.storage.s3_store import S3ObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repositories:
    """Loaded repositories sharing one object store."""

    store: ObjectStore
    shells: ShellRepository
    submodels: SubmodelRepository


def ensure_buckets(store: ObjectStore, settings: S3Settings) -> dict[str, bool]:
    """Create the shell and submodel buckets when missing.

    Returns:
        Mapping of bucket name to whether it was created.
    """
    return {
        bucket: create_bucket_if_not_exists(store, bucket)
        for bucket in (settings.shell_bucket, settings.submodel_bucket)
    }


def create_repositories(
    settings: S3Settings,
    store: ObjectStore | None = None,
    *,
    invoker: DelegatedInvoker | None = None,
) -> Repositories:
    """Build and load both repositories.

    Args:
        settings: S3 connection and bucket settings.
        store: Gateway to use instead of an S3 client built from settings.
        invoker: Delegated invoker shared by both repositories.
    """
    if store is None:
        store = S3ObjectStore.from_settings(settings)
    ensure_buckets(store, settings)

    shared_invoker = invoker or DelegatedInvoker()
    submodels = SubmodelRepository(store, settings.submodel_bucket, invoker=shared_invoker)
    shells = ShellRepository(store, settings.shell_bucket, submodels, invoker=shared_invoker)

    submodel_count = submodels.load()
    shell_count = shells.load()
    logger.info(
        "Repositories ready on %s backend: %d shell(s), %d submodel(s)",
        store.backend_name,
        shell_count,
        submodel_count,
    )
    return Repositories(store=store, shells=shells, submodels=submodels)
