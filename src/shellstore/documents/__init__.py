"""shellstore document layer.

Codec, nested element access, short name resolution, version-aware deletion
and the shell and submodel repositories built on the object store gateway.
"""

from shellstore.documents.codec import (
    deserialize_shell,
    deserialize_submodel,
    extract_metadata,
    serialize,
)
from shellstore.documents.deleter import (
    create_bucket_if_not_exists,
    delete_bucket_if_exists,
    delete_document,
    wipe_bucket,
)
from shellstore.documents.index import IdShortIndex, resolve_id_short
from shellstore.documents.invocation import DelegatedInvocationError, DelegatedInvoker
from shellstore.documents.repositories import ShellRepository, ShellView, SubmodelRepository
from shellstore.documents.routing import IdentifierLocks, RoutingTable
from shellstore.documents.shell_api import ShellAPI
from shellstore.documents.submodel_api import SubmodelAPI

__all__ = [
    "DelegatedInvocationError",
    "DelegatedInvoker",
    "IdShortIndex",
    "IdentifierLocks",
    "RoutingTable",
    "ShellAPI",
    "ShellRepository",
    "ShellView",
    "SubmodelAPI",
    "SubmodelRepository",
    "create_bucket_if_not_exists",
    "delete_bucket_if_exists",
    "delete_document",
    "deserialize_shell",
    "deserialize_submodel",
    "extract_metadata",
    "resolve_id_short",
    "serialize",
    "wipe_bucket",
]
