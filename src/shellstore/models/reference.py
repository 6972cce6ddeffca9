"""Identification and reference models.

A Reference is an ordered sequence of Keys; its last Key designates the
target either by durable identifier or, when ``idType`` is ``IdShort``, by
short name.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ModelBase(BaseModel):
    """Base for all document models: camelCase wire names, strict fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
        protected_namespaces=(),
        # NaN and Infinity are written as JSON constants instead of null.
        ser_json_inf_nan="constants",
    )


class IdentifierType(str, Enum):
    """Kinds of durable identifiers."""

    IRI = "IRI"
    IRDI = "IRDI"
    CUSTOM = "Custom"


class KeyType(str, Enum):
    """Kinds of key values; ``IdShort`` marks a short-name key."""

    IRI = "IRI"
    IRDI = "IRDI"
    CUSTOM = "Custom"
    ID_SHORT = "IdShort"
    FRAGMENT_ID = "FragmentId"


class Identifier(ModelBase):
    """Durable identifier of a shell or submodel."""

    id_type: Annotated[IdentifierType, Field(default=IdentifierType.CUSTOM)]
    id: Annotated[str, Field(min_length=1, description="Identifier, used as the object key")]


class Key(ModelBase):
    """One step of a reference."""

    type: Annotated[str, Field(min_length=1, description="Referenced element kind")]
    value: Annotated[str, Field(min_length=1)]
    id_type: Annotated[KeyType, Field(default=KeyType.CUSTOM)]

    @property
    def is_id_short(self) -> bool:
        return self.id_type == KeyType.ID_SHORT


class Reference(ModelBase):
    """Ordered sequence of keys."""

    keys: Annotated[list[Key], Field(min_length=1)]

    @property
    def last_key(self) -> Key:
        return self.keys[-1]

    @classmethod
    def to_submodel(cls, identifier: Identifier) -> Reference:
        """Reference a submodel by its durable identifier."""
        return cls(
            keys=[
                Key(
                    type="Submodel",
                    value=identifier.id,
                    id_type=KeyType(identifier.id_type.value),
                )
            ]
        )

    @classmethod
    def to_submodel_id_short(cls, id_short: str) -> Reference:
        """Reference a submodel by short name."""
        return cls(keys=[Key(type="Submodel", value=id_short, id_type=KeyType.ID_SHORT)])


class LangString(ModelBase):
    """Text in one language."""

    language: str
    text: str
