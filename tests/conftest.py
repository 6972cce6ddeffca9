"""Pytest configuration and fixtures for shellstore tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import pytest

from shellstore.config import (
    SHELLSTORE_S3_ENDPOINT_HOST_ENV,
    SHELLSTORE_S3_SHELL_BUCKET_ENV,
    SHELLSTORE_S3_SUBMODEL_BUCKET_ENV,
)
from shellstore.documents.invocation import DelegatedInvoker
from shellstore.documents.repositories import ShellRepository, SubmodelRepository
from shellstore.storage.memory_store import InMemoryObjectStore
from shellstore.storage.tracing import SHELLSTORE_OTEL_ENABLED_ENV
from tests.fixtures.synthetic.documents_fixture import SHELL_BUCKET, SUBMODEL_BUCKET


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear shellstore variables so tests never pick up a developer's setup."""
    for var in (
        SHELLSTORE_S3_ENDPOINT_HOST_ENV,
        SHELLSTORE_S3_SHELL_BUCKET_ENV,
        SHELLSTORE_S3_SUBMODEL_BUCKET_ENV,
        SHELLSTORE_OTEL_ENABLED_ENV,
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def store() -> InMemoryObjectStore:
    """Versioned in-memory store with the shell and submodel buckets created."""
    memory_store = InMemoryObjectStore()
    memory_store.create_bucket(SHELL_BUCKET)
    memory_store.create_bucket(SUBMODEL_BUCKET)
    return memory_store


@pytest.fixture
def unversioned_store() -> InMemoryObjectStore:
    """In-memory store whose buckets ignore versioning."""
    memory_store = InMemoryObjectStore(enable_versioning=False)
    memory_store.create_bucket(SHELL_BUCKET)
    memory_store.create_bucket(SUBMODEL_BUCKET)
    return memory_store


@pytest.fixture
def invoker() -> DelegatedInvoker:
    """Invoker without a client; tests that invoke inject their own."""
    return DelegatedInvoker()


@pytest.fixture
def submodel_repository(
    store: InMemoryObjectStore, invoker: DelegatedInvoker
) -> SubmodelRepository:
    """Loaded submodel repository over the versioned store."""
    repository = SubmodelRepository(store, SUBMODEL_BUCKET, invoker=invoker)
    repository.load()
    return repository


@pytest.fixture
def shell_repository(
    store: InMemoryObjectStore,
    submodel_repository: SubmodelRepository,
    invoker: DelegatedInvoker,
) -> ShellRepository:
    """Loaded shell repository sharing the submodel repository."""
    repository = ShellRepository(store, SHELL_BUCKET, submodel_repository, invoker=invoker)
    repository.load()
    return repository
