"""Submodel document and its element tree.

Elements are discriminated by ``modelType``:
- Property: leaf holding a typed value
- Operation: leaf without a value; may carry a delegation target URL
- SubmodelElementCollection: ordered, named children (recursive)
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field

from shellstore.models.reference import Identifier, LangString, ModelBase, Reference


class ElementBase(ModelBase):
    """Fields shared by every submodel element."""

    id_short: Annotated[str, Field(min_length=1, description="Short name within the parent")]
    semantic_id: Reference | None = None
    description: list[LangString] = Field(default_factory=list)


class Property(ElementBase):
    """Leaf element holding a single typed value."""

    model_type: Literal["Property"] = "Property"
    value_type: str = "string"
    value: Any = None


class Operation(ElementBase):
    """Callable element.

    Store-backed documents cannot execute operations themselves; only
    operations with a ``delegatedInvocationUrl`` can be invoked.
    """

    model_type: Literal["Operation"] = "Operation"
    input_variables: list[str] = Field(default_factory=list)
    output_variables: list[str] = Field(default_factory=list)
    delegated_invocation_url: str | None = None

    @property
    def is_delegating(self) -> bool:
        return bool(self.delegated_invocation_url)


class SubmodelElementCollection(ElementBase):
    """Composite element holding ordered, named children."""

    model_type: Literal["SubmodelElementCollection"] = "SubmodelElementCollection"
    value: list[SubmodelElement] = Field(default_factory=list)
    ordered: bool = True
    allow_duplicates: bool = False


SubmodelElement = Annotated[
    Property | Operation | SubmodelElementCollection,
    Field(discriminator="model_type"),
]

SubmodelElementCollection.model_rebuild()


class Submodel(ModelBase):
    """A tree of elements under one identifier."""

    model_type: Literal["Submodel"] = "Submodel"
    identification: Identifier
    id_short: Annotated[str, Field(min_length=1)]
    semantic_id: Reference | None = None
    description: list[LangString] = Field(default_factory=list)
    submodel_elements: list[SubmodelElement] = Field(default_factory=list)

    @property
    def identifier(self) -> str:
        return self.identification.id

    def get_operations(self) -> list[Operation]:
        """Return the top-level operations."""
        return [e for e in self.submodel_elements if isinstance(e, Operation)]
