"""
Exception hierarchy for the Constata client.

Every error raised by this package derives from ConstataError so callers
can catch one type at the outer edge of their integration.
"""
from typing import Any, Dict, List, Optional


class ConstataError(Exception):
    """Base class for all client errors."""


# ============================================================================
# Key handling and signing
# ============================================================================

class CryptoError(ConstataError):
    """Raised when the signing key cannot be recovered or used."""


class InvalidPassword(CryptoError):
    """Password is longer than 32 bytes or not ASCII."""


class MalformedKey(CryptoError):
    """Encrypted key is not valid hex, is truncated, or decrypts to something that is not a key."""


class DecryptionFailed(CryptoError):
    """
    Authenticated decryption rejected the ciphertext.

    Almost always a wrong password. Corrupted ciphertext produces the same
    error, the two cases cannot be told apart.
    """


class SigningFailed(CryptoError):
    """The signing primitive failed. Indicates a corrupt key, never retried."""


# ============================================================================
# Web callbacks
# ============================================================================

class CallbackError(ConstataError):
    """Raised when an inbound web callback must be rejected."""


class MalformedCallback(CallbackError):
    """Callback body does not have the envelope or payload shape."""


class UntrustedCallback(CallbackError):
    """Callback signature does not belong to the trusted server address."""


# ============================================================================
# GraphQL transport
# ============================================================================

class ApiError(ConstataError):
    """Raised when a GraphQL call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class TransportError(ApiError):
    """The HTTP request failed or the server answered with an error status."""


class GraphQLError(ApiError):
    """The server answered with GraphQL errors, or with neither errors nor data."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class UnknownEnvironment(ValueError):
    """Environment name is not one of the known deployments."""
