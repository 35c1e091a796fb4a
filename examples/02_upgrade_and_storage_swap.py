#!/usr/bin/env python3
"""Example: Upgrade and Storage Swap

Shows the two Admin-only maintenance operations: replacing the OpenDID
implementation behind a RegistryProxy (records survive) and pointing a
store handle at a fresh store (records are left behind).

Usage:
    python examples/02_upgrade_and_storage_swap.py

Requirements:
    pip install opendid-registry
"""
from __future__ import annotations

from opendid_registry import (
    CredentialMetaStore,
    OpenDID,
    RegistryProxy,
    RoleType,
    UnauthorizedError,
)

ADMIN = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
ISSUER = "0x4B20993Bc481177ec7E8f571ceCaE8A9e22C02db"


class OpenDIDV2(OpenDID):
    VERSION = "2.0.0"


def main() -> None:
    proxy = RegistryProxy(OpenDID.create(ADMIN))
    proxy.register_role(ADMIN, ISSUER, RoleType.ISSUER)
    proxy.register_vc_schema(
        ISSUER, {"id": "https://example.org/schemas/mdl.json", "schema": {"title": "mDL"}}
    )

    # Step 1: Only an Admin may upgrade
    try:
        proxy.upgrade_to(ISSUER, OpenDIDV2)
    except UnauthorizedError as exc:
        print(f"Issuer upgrade rejected: {exc}")

    proxy.upgrade_to(ADMIN, OpenDIDV2)
    schema = proxy.get_vc_schema("https://example.org/schemas/mdl.json")
    print(f"Upgraded to {proxy.version}; schema still present: {schema.id}")

    # Step 2: Swap the VC store; existing records become unreachable
    proxy.set_vc_meta_storage(ADMIN, CredentialMetaStore(events=proxy.events))
    try:
        proxy.get_vc_schema("https://example.org/schemas/mdl.json")
    except KeyError as exc:
        print(f"After swap: {exc}")

    print("\nDone.")


if __name__ == "__main__":
    main()
