"""JSON codec and object metadata for shell and submodel documents.

Every stored object carries user metadata sufficient to resolve it by short
name without reading its body:

    identifier  durable identifier (also the object key)
    idShort     short name
    timestamp   write time, yyyyMMddHHmmssSSS (UTC)
    semanticId  submodels only, when present; one
                ``type:<t>;value:<v>;idType:<i>`` segment per key, joined by "/"
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import ValidationError

from shellstore.models import AssetAdministrationShell, Reference, Submodel
from shellstore.storage.errors import DocumentDecodeError

METADATA_IDENTIFIER = "identifier"
METADATA_ID_SHORT = "idShort"
METADATA_TIMESTAMP = "timestamp"
METADATA_SEMANTIC_ID = "semanticId"

Document = Submodel | AssetAdministrationShell


def timestamp_now() -> str:
    """Return the current UTC time as yyyyMMddHHmmssSSS."""
    return datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")[:-3]


def serialize(document: Document) -> str:
    """Serialize a document to its JSON wire form."""
    return document.model_dump_json(by_alias=True, exclude_none=True)


def encode(document: Document) -> bytes:
    """Serialize a document to UTF-8 bytes for the object store."""
    return serialize(document).encode("utf-8")


def deserialize_submodel(text: str | bytes, *, key: str | None = None) -> Submodel:
    """Parse a submodel from JSON.

    Raises:
        DocumentDecodeError: If the text is not a valid submodel document.
    """
    try:
        return Submodel.model_validate_json(text)
    except ValidationError as e:
        raise DocumentDecodeError(f"Invalid submodel document: {e}", key=key) from e


def deserialize_shell(text: str | bytes, *, key: str | None = None) -> AssetAdministrationShell:
    """Parse a shell from JSON.

    Raises:
        DocumentDecodeError: If the text is not a valid shell document.
    """
    try:
        return AssetAdministrationShell.model_validate_json(text)
    except ValidationError as e:
        raise DocumentDecodeError(f"Invalid shell document: {e}", key=key) from e


def serialize_semantic_id(reference: Reference) -> str:
    """Flatten a semantic id reference into a metadata string."""
    return "/".join(
        f"type:{key.type};value:{key.value};idType:{key.id_type.value}" for key in reference.keys
    )


def extract_metadata(document: Document, *, timestamp: str | None = None) -> dict[str, str]:
    """Derive the user metadata tag set for a document.

    Never fails on absent optional fields; they are left out of the mapping.
    """
    metadata = {
        METADATA_TIMESTAMP: timestamp or timestamp_now(),
        METADATA_IDENTIFIER: document.identification.id,
        METADATA_ID_SHORT: document.id_short,
    }
    if isinstance(document, Submodel) and document.semantic_id is not None:
        metadata[METADATA_SEMANTIC_ID] = serialize_semantic_id(document.semantic_id)
    return metadata
