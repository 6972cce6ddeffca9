"""Tests for the shellstore CLI.

Tests cover:
1. buckets ensure / wipe with deterministic JSON output
2. shells list and submodels list against a populated store
3. submodels resolve: exit 0 on a hit, exit 2 on a miss
4. Missing configuration exits with code 2
"""

from __future__ import annotations

import json

import pytest

from shellstore import cli
from shellstore.config import (
    SHELLSTORE_S3_ENDPOINT_HOST_ENV,
    SHELLSTORE_S3_SHELL_BUCKET_ENV,
    SHELLSTORE_S3_SUBMODEL_BUCKET_ENV,
)
from shellstore.documents.repositories import ShellRepository
from shellstore.models import Reference
from shellstore.storage.memory_store import InMemoryObjectStore
from tests.fixtures.synthetic.documents_fixture import (
    SHELL_BUCKET,
    SUBMODEL_BUCKET,
    build_shell,
    build_submodel,
)


@pytest.fixture
def configured(monkeypatch: pytest.MonkeyPatch, store: InMemoryObjectStore) -> InMemoryObjectStore:
    """Point the CLI at the in-memory store through the environment."""
    monkeypatch.setenv(SHELLSTORE_S3_ENDPOINT_HOST_ENV, "localhost")
    monkeypatch.setenv(SHELLSTORE_S3_SHELL_BUCKET_ENV, SHELL_BUCKET)
    monkeypatch.setenv(SHELLSTORE_S3_SUBMODEL_BUCKET_ENV, SUBMODEL_BUCKET)
    monkeypatch.setattr(cli, "_open_store", lambda settings: store)
    return store


@pytest.fixture
def populated(configured: InMemoryObjectStore, shell_repository: ShellRepository) -> None:
    shell_repository.submodels.create(build_submodel("SM-001", "sm1"))
    shell_repository.create(build_shell("S1", "shell1", [Reference.to_submodel_id_short("sm1")]))


class TestBuckets:
    """Tests for bucket commands."""

    def test_ensure_reports_existing(
        self, configured: InMemoryObjectStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = cli.main(["buckets", "ensure"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert output["buckets"] == {SHELL_BUCKET: "existing", SUBMODEL_BUCKET: "existing"}

    def test_ensure_creates_missing(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        empty = InMemoryObjectStore()
        monkeypatch.setenv(SHELLSTORE_S3_ENDPOINT_HOST_ENV, "localhost")
        monkeypatch.setenv(SHELLSTORE_S3_SHELL_BUCKET_ENV, SHELL_BUCKET)
        monkeypatch.setenv(SHELLSTORE_S3_SUBMODEL_BUCKET_ENV, SUBMODEL_BUCKET)
        monkeypatch.setattr(cli, "_open_store", lambda settings: empty)

        exit_code = cli.main(["buckets", "ensure"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert set(output["buckets"].values()) == {"created"}
        assert empty.is_versioned(SHELL_BUCKET) is True

    def test_wipe(
        self,
        populated: None,
        configured: InMemoryObjectStore,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = cli.main(["buckets", "wipe"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert output["buckets"] == {SHELL_BUCKET: 1, SUBMODEL_BUCKET: 1}
        assert configured.list_keys(SUBMODEL_BUCKET) == []

    def test_wipe_and_delete(
        self,
        populated: None,
        configured: InMemoryObjectStore,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = cli.main(["buckets", "wipe", "--delete"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert output["buckets"] == {SHELL_BUCKET: "deleted", SUBMODEL_BUCKET: "deleted"}
        assert configured.list_buckets() == []


class TestListing:
    """Tests for listing commands."""

    def test_shells_list(self, populated: None, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = cli.main(["shells", "list"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert output["shells"] == [
            {"identifier": "S1", "idShort": "shell1", "submodels": ["SM-001"]}
        ]

    def test_submodels_list(self, populated: None, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = cli.main(["submodels", "list"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert output["submodels"] == [{"identifier": "SM-001", "idShort": "sm1"}]


class TestResolve:
    """Tests for submodels resolve."""

    def test_hit(self, populated: None, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = cli.main(["submodels", "resolve", "--id-short", "sm1"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert output["identifier"] == "SM-001"
        assert output["pass"] is True

    def test_miss(self, populated: None, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = cli.main(["submodels", "resolve", "--id-short", "ghost"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 2
        assert output["identifier"] is None
        assert output["pass"] is False


class TestErrors:
    """Tests for configuration and usage errors."""

    def test_missing_endpoint_is_config_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = cli.main(["shells", "list"])
        output = json.loads(capsys.readouterr().out)

        assert exit_code == 2
        assert output["error"]["code"] == "CONFIG_ERROR"

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main([]) == 0
        assert "shellstore" in capsys.readouterr().out
