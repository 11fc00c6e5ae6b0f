"""
Bitcoin Signed Message

Compact, recoverable secp256k1 signatures over the Bitcoin "signed
message" digest. The signature is 65 bytes, base64 encoded:

    header (1) || r (32) || s (32)

where header = 27 + recovery_id, plus 4 when the signer's public key is
compressed. Recovery means the verifier derives the signer's public key
from message and signature alone; no public key travels with the message.
"""
import base64
import hashlib
import struct

from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.util import sigdecode_string, sigencode_string_canonize

MESSAGE_MAGIC = b"\x18Bitcoin Signed Message:\n"
COMPACT_SIGNATURE_LENGTH = 65
HEADER_BASE = 27
COMPRESSED_FLAG = 4


class RecoveryError(ValueError):
    """No public key can be recovered from the signature."""


def _varint(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    return b"\xff" + struct.pack("<Q", n)


def message_digest(message: bytes) -> bytes:
    """Double SHA-256 of the magic-prefixed, length-prefixed message."""
    data = MESSAGE_MAGIC + _varint(len(message)) + message
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _recover_candidates(signature: bytes, digest: bytes):
    # ecdsa returns the candidate built from the even-y R point first,
    # which is recovery id 0.
    return VerifyingKey.from_public_key_recovery_with_digest(
        signature,
        digest,
        SECP256k1,
        hashfunc=hashlib.sha256,
        sigdecode=sigdecode_string,
    )


def sign_message(signing_key: SigningKey, message: bytes, compressed: bool = True) -> str:
    """
    Sign a message with a deterministic (RFC 6979), low-S signature.

    Args:
        signing_key: secp256k1 signing key
        message: Raw message bytes
        compressed: Whether the signer's address uses the compressed public key

    Returns:
        Base64-encoded 65-byte compact signature
    """
    digest = message_digest(message)
    signature = signing_key.sign_digest_deterministic(
        digest,
        hashfunc=hashlib.sha256,
        sigencode=sigencode_string_canonize,
    )

    own_key = signing_key.get_verifying_key().to_string()
    for recovery_id, candidate in enumerate(_recover_candidates(signature, digest)):
        if candidate.to_string() == own_key:
            break
    else:
        raise ValueError("Signature does not recover to the signing key")

    header = HEADER_BASE + recovery_id + (COMPRESSED_FLAG if compressed else 0)
    return base64.b64encode(bytes([header]) + signature).decode("ascii")


def recover_public_key(message: bytes, signature: str) -> bytes:
    """
    Recover the SEC1-encoded public key that produced a compact signature.

    The key is returned compressed or uncompressed according to the
    signature header.

    Raises:
        ValueError: If the signature is not a well-formed compact signature
        RecoveryError: If no public key can be recovered from it
    """
    raw = base64.b64decode(signature, validate=True)
    if len(raw) != COMPACT_SIGNATURE_LENGTH:
        raise ValueError(f"Invalid signature length: {len(raw)} bytes (expected {COMPACT_SIGNATURE_LENGTH})")

    header = raw[0] - HEADER_BASE
    if not 0 <= header < 8:
        raise ValueError(f"Invalid signature header byte: {raw[0]}")
    recovery_id = header & 3
    compressed = bool(header & COMPRESSED_FLAG)

    # Ids 2 and 3 only occur when r overflows the curve order
    if recovery_id > 1:
        raise RecoveryError(f"Unsupported recovery id: {recovery_id}")

    order = SECP256k1.order
    r = int.from_bytes(raw[1:33], "big")
    s = int.from_bytes(raw[33:], "big")
    if not (0 < r < order and 0 < s < order):
        raise RecoveryError("Signature values out of range")

    try:
        candidates = _recover_candidates(raw[1:], message_digest(message))
    except Exception as e:
        raise RecoveryError(f"Public key recovery failed: {e}") from e

    return candidates[recovery_id].to_string("compressed" if compressed else "uncompressed")
