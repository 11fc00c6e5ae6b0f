"""
Request and Callback Signing

secp256k1 signing for the Constata API:
- keys: decrypting the password-protected customer key
- signer: signing payloads into SignedEnvelopes
- request_auth: the Authentication header on outbound requests
- callbacks: verifying web callbacks signed by the server
"""

from constata_client.signing.callbacks import (
    KIND_ATTESTATION_DONE,
    CallbackPayload,
    CallbackVerifier,
    verify_callback,
)
from constata_client.signing.envelope import SignedEnvelope
from constata_client.signing.keys import (
    PrivateKey,
    decrypt_key_text,
    encrypt_key_text,
    unwrap_key,
)
from constata_client.networks import MAINNET, REGTEST, TESTNET, Network
from constata_client.signing.request_auth import (
    AUTH_HEADER,
    RequestAuthenticator,
    build_request_metadata,
    serialize_request_metadata,
)
from constata_client.signing.signer import Signer

__all__ = [
    # Keys
    "PrivateKey",
    "decrypt_key_text",
    "encrypt_key_text",
    "unwrap_key",
    # Networks
    "Network",
    "MAINNET",
    "TESTNET",
    "REGTEST",
    # Signing
    "Signer",
    "SignedEnvelope",
    # Requests
    "AUTH_HEADER",
    "RequestAuthenticator",
    "build_request_metadata",
    "serialize_request_metadata",
    # Callbacks
    "KIND_ATTESTATION_DONE",
    "CallbackPayload",
    "CallbackVerifier",
    "verify_callback",
]
