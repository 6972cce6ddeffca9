"""Synthetic deterministic fixtures for shellstore tests.

These fixtures provide reproducible shells and submodels for storage and
repository testing. All identifiers are fixed constants.
"""

from tests.fixtures.synthetic.documents_fixture import (
    SHELL_BUCKET,
    SHELL_ID,
    SUBMODEL_BUCKET,
    SUBMODEL_ID,
    SUBMODEL_ID_SHORT,
    build_nested_submodel,
    build_shell,
    build_submodel,
)

__all__ = [
    "SHELL_BUCKET",
    "SHELL_ID",
    "SUBMODEL_BUCKET",
    "SUBMODEL_ID",
    "SUBMODEL_ID_SHORT",
    "build_nested_submodel",
    "build_shell",
    "build_submodel",
]
