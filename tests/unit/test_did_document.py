"""Tests for opendid_registry.did.document."""
from __future__ import annotations

from collections.abc import Callable

import pytest
from pydantic import ValidationError

from opendid_registry.did import DEFAULT_CONTEXT, DidDocument, VerificationMethod


class TestDidDocumentParsing:
    def test_parses_wire_payload(self, did_document: dict[str, object]) -> None:
        doc = DidDocument.model_validate(did_document)
        assert doc.id == "did:omn:tas"
        assert doc.version_id == "1"
        assert doc.verification_method[0].auth_type == 1
        assert doc.service[0].service_endpoint == ["https://example.org"]

    def test_wire_round_trip_keeps_camel_case(self, did_document: dict[str, object]) -> None:
        wire = DidDocument.model_validate(did_document).to_wire()
        assert wire["@context"] == did_document["@context"]
        assert wire["versionId"] == "1"
        assert "verificationMethod" in wire
        assert wire["verificationMethod"][0]["publicKeyMultibase"] == (  # type: ignore[index]
            did_document["verificationMethod"][0]["publicKeyMultibase"]  # type: ignore[index]
        )

    def test_minimal_document_gets_defaults(self) -> None:
        doc = DidDocument(id="did:omn:min", controller="did:omn:min")
        assert doc.context == DEFAULT_CONTEXT
        assert doc.deactivated is False
        assert doc.verification_method == []

    def test_integer_version_becomes_text(self) -> None:
        doc = DidDocument.model_validate({"id": "did:omn:a", "controller": "c", "versionId": 2})
        assert doc.version_id == "2"

    def test_unknown_fields_are_kept(self) -> None:
        doc = DidDocument.model_validate(
            {"id": "did:omn:a", "controller": "c", "proof": {"type": "sig"}}
        )
        assert doc.to_wire()["proof"] == {"type": "sig"}


class TestDidDocumentValidation:
    def test_blank_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DidDocument(id="  ", controller="did:omn:a")

    def test_missing_controller_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DidDocument.model_validate({"id": "did:omn:a"})

    def test_duplicate_key_ids_rejected(self, did_document: dict[str, object]) -> None:
        methods = did_document["verificationMethod"]
        did_document["verificationMethod"] = [*methods, *methods]  # type: ignore[misc]
        with pytest.raises(ValidationError, match="duplicate"):
            DidDocument.model_validate(did_document)

    def test_verification_method_requires_key(self) -> None:
        with pytest.raises(ValidationError):
            VerificationMethod(
                id="k", type="Secp256r1VerificationKey2018", controller="c", public_key_multibase=""
            )


class TestFindVerificationMethod:
    def test_by_full_id_and_fragment(
        self, make_did_document: Callable[..., dict[str, object]]
    ) -> None:
        doc = DidDocument.model_validate(make_did_document(did="did:omn:issuer"))
        assert doc.find_verification_method("did:omn:issuer#assert") is not None
        assert doc.find_verification_method("assert") is not None
        assert doc.find_verification_method("missing") is None
