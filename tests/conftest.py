"""Shared fixtures: identities, real key material and record payloads."""
from __future__ import annotations

from collections.abc import Callable

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from opendid_registry.access import RoleType
from opendid_registry.codec import MultibaseCodec
from opendid_registry.orchestrator import OpenDID

ADMIN = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
TAS = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
ISSUER = "0x4B20993Bc481177ec7E8f571ceCaE8A9e22C02db"
OUTSIDER = "0x78731D3Ca6b7E34aC0F824c42a7cC18A495cabaB"


@pytest.fixture()
def codec() -> MultibaseCodec:
    return MultibaseCodec()


@pytest.fixture()
def p256_public_bytes() -> bytes:
    """A compressed SEC1 point for a fresh P-256 key."""
    key = ec.generate_private_key(ec.SECP256R1())
    return key.public_key().public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
    )


@pytest.fixture()
def p256_key_multibase(codec: MultibaseCodec, p256_public_bytes: bytes) -> str:
    return codec.encode(p256_public_bytes, "base58")


@pytest.fixture()
def p256_key_base64(codec: MultibaseCodec, p256_public_bytes: bytes) -> str:
    return codec.encode(p256_public_bytes, "base64")


@pytest.fixture()
def ed25519_public_bytes() -> bytes:
    key = ed25519.Ed25519PrivateKey.generate()
    return key.public_key().public_bytes(
        serialization.Encoding.Raw, serialization.PublicFormat.Raw
    )


@pytest.fixture()
def make_did_document(p256_key_multibase: str) -> Callable[..., dict[str, object]]:
    """Return a factory for DID document payloads in wire (camelCase) form."""

    def _make(
        did: str = "did:omn:tas",
        version_id: str = "1",
        key: str | None = None,
        key_type: str = "Secp256r1VerificationKey2018",
    ) -> dict[str, object]:
        return {
            "@context": ["https://www.w3.org/ns/did/v1"],
            "id": did,
            "controller": "did:omn:tas",
            "created": "2024-01-01T00:00:00Z",
            "updated": "2024-01-01T00:00:00Z",
            "versionId": version_id,
            "deactivated": False,
            "verificationMethod": [
                {
                    "id": f"{did}#assert",
                    "type": key_type,
                    "controller": did,
                    "publicKeyMultibase": key or p256_key_multibase,
                    "authType": 1,
                }
            ],
            "assertionMethod": ["assert"],
            "authentication": ["auth"],
            "keyAgreement": [],
            "capabilityInvocation": [],
            "capabilityDelegation": [],
            "service": [
                {
                    "id": f"{did}#homepage",
                    "type": "LinkedDomains",
                    "serviceEndpoint": ["https://example.org"],
                }
            ],
        }

    return _make


@pytest.fixture()
def did_document(make_did_document: Callable[..., dict[str, object]]) -> dict[str, object]:
    return make_did_document()


@pytest.fixture()
def vc_meta() -> dict[str, object]:
    return {
        "id": "vc-0001",
        "issuer": {"did": "did:omn:issuer", "name": "Issuer"},
        "issuanceDate": "2024-01-01T00:00:00Z",
        "expirationDate": "2025-01-01T00:00:00Z",
        "credentialSchema": {
            "url": "https://example.org/schemas/mdl.json",
            "type": "OsdSchemaCredential",
        },
        "status": "ACTIVE",
    }


@pytest.fixture()
def vc_schema() -> dict[str, object]:
    return {
        "id": "https://example.org/schemas/mdl.json",
        "schema": {"title": "Mobile driver licence", "properties": {"name": "string"}},
    }


@pytest.fixture()
def zkp_schema() -> dict[str, object]:
    return {
        "id": "did:omn:issuer:zkp-schema:mdl:1.0",
        "name": "mdl",
        "version": "1.0",
        "attrNames": ["name", "birthdate"],
        "tag": "default",
    }


@pytest.fixture()
def zkp_definition() -> dict[str, object]:
    return {
        "id": "did:omn:issuer:zkp-cred-def:mdl:1",
        "schemaId": "did:omn:issuer:zkp-schema:mdl:1.0",
        "ver": "1.0",
        "type": "CL",
        "tag": "default",
        "value": {"primary": {"n": "123"}},
    }


@pytest.fixture()
def registry() -> OpenDID:
    """A fresh registry with one Tas and one Issuer granted by the Admin."""
    registry = OpenDID.create(ADMIN)
    registry.register_role(ADMIN, TAS, RoleType.TAS)
    registry.register_role(ADMIN, ISSUER, RoleType.ISSUER)
    return registry


@pytest.fixture()
def admin() -> str:
    return ADMIN


@pytest.fixture()
def tas() -> str:
    return TAS


@pytest.fixture()
def issuer() -> str:
    return ISSUER


@pytest.fixture()
def outsider() -> str:
    return OUTSIDER
