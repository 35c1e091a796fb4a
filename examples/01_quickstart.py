#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the minimal setup for opendid-registry: initialize a
registry, grant a Trusted Application Service (Tas) role, register a DID
document and walk it through its status lifecycle.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install opendid-registry
"""
from __future__ import annotations

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

import opendid_registry
from opendid_registry import MultibaseCodec, OpenDID, RoleType

ADMIN = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
TAS = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"


def _document(did: str) -> dict[str, object]:
    public_key = ec.generate_private_key(ec.SECP256R1()).public_key()
    raw = public_key.public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
    )
    return {
        "id": did,
        "controller": did,
        "versionId": "1",
        "verificationMethod": [
            {
                "id": f"{did}#assert",
                "type": "Secp256r1VerificationKey2018",
                "controller": did,
                "publicKeyMultibase": MultibaseCodec().encode(raw),
                "authType": 1,
            }
        ],
        "assertionMethod": ["assert"],
    }


def main() -> None:
    print(f"opendid-registry version: {opendid_registry.__version__}")

    # Step 1: Initialize the registry with an Admin
    registry = OpenDID.create(ADMIN)
    print(f"Initialized OpenDID {registry.version}")

    # Step 2: Grant the Tas role
    registry.register_role(ADMIN, TAS, RoleType.TAS)
    print(f"Tas granted: {registry.has_role(TAS, RoleType.TAS)}")

    # Step 3: Register a DID document
    registry.register_did_doc(TAS, _document("did:omn:quickstart"))
    result = registry.get_did_doc("did:omn:quickstart")
    print(f"Registered {result.diddoc.id}: status={result.status.status.name}")

    # Step 4: Deactivate, then terminate
    registry.update_did_doc_status_in_service(TAS, "did:omn:quickstart", "DEACTIVATED", "1")
    record = registry.update_did_doc_status_revocation(
        TAS, "did:omn:quickstart", "TERMINATED", "2025-04-08T00:00:00Z"
    )
    print(f"Final status: {record.status.name} at {record.terminated_time}")

    print(f"Events: {', '.join(registry.events.names())}")
    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
