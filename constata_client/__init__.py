"""
Constata API Client

Python client for the Constata attestation API:
- ApiClient: authenticated GraphQL calls (every request is signed)
- Signer: signs documents and request metadata with your decrypted key
- verify_callback: checks web callbacks were signed by the server

Your encrypted key and its password come from signature.json; the
password should only ever live in process memory.
"""

from constata_client.client import ApiClient
from constata_client.environments import (
    DEVELOPMENT,
    ENVIRONMENTS,
    PRODUCTION,
    STAGING,
    Environment,
    get_environment,
)
from constata_client.errors import (
    ApiError,
    CallbackError,
    ConstataError,
    CryptoError,
    DecryptionFailed,
    GraphQLError,
    InvalidPassword,
    MalformedCallback,
    MalformedKey,
    SigningFailed,
    TransportError,
    UnknownEnvironment,
    UntrustedCallback,
)
from constata_client.signing import (
    KIND_ATTESTATION_DONE,
    CallbackPayload,
    CallbackVerifier,
    SignedEnvelope,
    Signer,
    unwrap_key,
    verify_callback,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "ApiClient",
    # Environments
    "Environment",
    "ENVIRONMENTS",
    "DEVELOPMENT",
    "STAGING",
    "PRODUCTION",
    "get_environment",
    # Signing
    "Signer",
    "SignedEnvelope",
    "unwrap_key",
    # Callbacks
    "KIND_ATTESTATION_DONE",
    "CallbackPayload",
    "CallbackVerifier",
    "verify_callback",
    # Errors
    "ConstataError",
    "CryptoError",
    "InvalidPassword",
    "MalformedKey",
    "DecryptionFailed",
    "SigningFailed",
    "CallbackError",
    "MalformedCallback",
    "UntrustedCallback",
    "ApiError",
    "TransportError",
    "GraphQLError",
    "UnknownEnvironment",
]
