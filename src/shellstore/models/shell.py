"""Shell document: top-level entity referencing submodels."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

from shellstore.models.reference import Identifier, LangString, ModelBase, Reference


class AssetAdministrationShell(ModelBase):
    """Shell document with an ordered list of submodel references."""

    model_type: Literal["AssetAdministrationShell"] = "AssetAdministrationShell"
    identification: Identifier
    id_short: Annotated[str, Field(min_length=1)]
    description: list[LangString] = Field(default_factory=list)
    submodels: list[Reference] = Field(default_factory=list)

    @property
    def identifier(self) -> str:
        return self.identification.id
