"""Tests for the document codec and object metadata.

Tests cover:
1. Roundtrip: deserialize(serialize(d)) == d for shells and submodels
2. Wire form uses camelCase names and omits null fields
3. Metadata tags: identifier, idShort, timestamp, semanticId
4. Malformed bodies raise DocumentDecodeError
"""

from __future__ import annotations

import json
import math
import re

import pytest

from shellstore.documents.codec import (
    METADATA_ID_SHORT,
    METADATA_IDENTIFIER,
    METADATA_SEMANTIC_ID,
    METADATA_TIMESTAMP,
    deserialize_shell,
    deserialize_submodel,
    encode,
    extract_metadata,
    serialize,
    serialize_semantic_id,
    timestamp_now,
)
from shellstore.models import Key, KeyType, Property, Reference, Submodel
from shellstore.storage.errors import DocumentDecodeError
from tests.fixtures.synthetic.documents_fixture import (
    FIXED_TIMESTAMP,
    SEMANTIC_ID,
    SUBMODEL_ID,
    SUBMODEL_WIRE_FORM,
    build_nested_submodel,
    build_shell,
    build_submodel,
)


class TestRoundtrip:
    """Tests for serialize/deserialize roundtrips."""

    def test_nested_submodel_roundtrip(self) -> None:
        submodel = build_nested_submodel()

        assert deserialize_submodel(serialize(submodel)) == submodel

    def test_shell_roundtrip(self) -> None:
        shell = build_shell(
            references=[
                Reference.to_submodel(build_submodel().identification),
                Reference.to_submodel_id_short("sm2"),
            ]
        )

        assert deserialize_shell(encode(shell)) == shell

    @pytest.mark.parametrize("value", [math.inf, -math.inf])
    def test_infinite_property_value_survives(self, value: float) -> None:
        submodel = build_submodel(elements=[Property(id_short="limit", value=value)])

        decoded = deserialize_submodel(serialize(submodel))

        assert decoded.submodel_elements[0].value == value

    def test_nan_property_value_survives(self) -> None:
        """NaN is not written as null."""
        submodel = build_submodel(elements=[Property(id_short="reading", value=math.nan)])

        text = serialize(submodel)
        decoded = deserialize_submodel(text)

        assert "NaN" in text
        assert math.isnan(decoded.submodel_elements[0].value)

    def test_wire_form_is_accepted(self) -> None:
        """Documents written by other clients in camelCase decode cleanly."""
        submodel = deserialize_submodel(json.dumps(SUBMODEL_WIRE_FORM))

        assert submodel.identifier == SUBMODEL_ID
        assert submodel.submodel_elements[0].id_short == "temperature"


class TestWireForm:
    """Tests for the JSON representation."""

    def test_camel_case_names(self) -> None:
        data = json.loads(serialize(build_nested_submodel()))

        assert data["idShort"] == "sm1"
        assert data["modelType"] == "Submodel"
        assert data["semanticId"]["keys"][0]["idType"] == "IRDI"
        assert data["submodelElements"][0]["modelType"] == "SubmodelElementCollection"

    def test_null_fields_are_omitted(self) -> None:
        data = json.loads(serialize(build_submodel()))

        assert "semanticId" not in data

    def test_encode_is_utf8(self) -> None:
        submodel = build_submodel(id_short="größe")

        assert "größe".encode() in encode(submodel)


class TestMetadata:
    """Tests for extract_metadata()."""

    def test_submodel_tags(self) -> None:
        metadata = extract_metadata(build_nested_submodel(), timestamp=FIXED_TIMESTAMP)

        assert metadata == {
            METADATA_IDENTIFIER: SUBMODEL_ID,
            METADATA_ID_SHORT: "sm1",
            METADATA_TIMESTAMP: FIXED_TIMESTAMP,
            METADATA_SEMANTIC_ID: "type:GlobalReference;value:0173-1#01-AFZ615#016;idType:IRDI",
        }

    def test_semantic_id_omitted_when_absent(self) -> None:
        metadata = extract_metadata(build_submodel())

        assert METADATA_SEMANTIC_ID not in metadata

    def test_shell_has_no_semantic_id(self) -> None:
        metadata = extract_metadata(build_shell(), timestamp=FIXED_TIMESTAMP)

        assert set(metadata) == {METADATA_IDENTIFIER, METADATA_ID_SHORT, METADATA_TIMESTAMP}

    def test_timestamp_format(self) -> None:
        assert re.fullmatch(r"\d{17}", timestamp_now())

    def test_multi_key_semantic_id_joined_by_slash(self) -> None:
        reference = Reference(
            keys=[
                *SEMANTIC_ID.keys,
                Key(type="ConceptDescription", value="urn:cd:1", id_type=KeyType.IRI),
            ]
        )

        assert serialize_semantic_id(reference) == (
            "type:GlobalReference;value:0173-1#01-AFZ615#016;idType:IRDI"
            "/type:ConceptDescription;value:urn:cd:1;idType:IRI"
        )


class TestDecodeErrors:
    """Tests for malformed bodies."""

    def test_invalid_json(self) -> None:
        with pytest.raises(DocumentDecodeError) as exc_info:
            deserialize_submodel("{not json", key="SM-001")

        assert exc_info.value.key == "SM-001"

    def test_shell_body_is_not_a_submodel(self) -> None:
        with pytest.raises(DocumentDecodeError):
            deserialize_submodel(serialize(build_shell()))

    def test_unknown_element_type(self) -> None:
        data = dict(SUBMODEL_WIRE_FORM)
        data["submodelElements"] = [{"modelType": "Blob", "idShort": "x"}]

        with pytest.raises(DocumentDecodeError):
            deserialize_submodel(json.dumps(data))

    def test_result_type(self) -> None:
        assert isinstance(deserialize_submodel(json.dumps(SUBMODEL_WIRE_FORM)), Submodel)
