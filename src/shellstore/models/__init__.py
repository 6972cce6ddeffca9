"""shellstore document models: shells, submodels, elements and references."""

from shellstore.models.reference import (
    Identifier,
    IdentifierType,
    Key,
    KeyType,
    LangString,
    Reference,
)
from shellstore.models.shell import AssetAdministrationShell
from shellstore.models.submodel import (
    Operation,
    Property,
    Submodel,
    SubmodelElement,
    SubmodelElementCollection,
)

__all__ = [
    "AssetAdministrationShell",
    "Identifier",
    "IdentifierType",
    "Key",
    "KeyType",
    "LangString",
    "Operation",
    "Property",
    "Reference",
    "Submodel",
    "SubmodelElement",
    "SubmodelElementCollection",
]
