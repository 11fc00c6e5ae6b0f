"""
Address Encodings

Two encodings of the same secp256k1 public key are in use and are kept
apart on purpose:

- p2pkh_address: legacy base58check address. This is how the client
  identifies itself in the "signer" field of every envelope it produces.
- p2wpkh_address: segwit v0 bech32 address. This is how the server's
  callback signing identity is published, so inbound callbacks are
  checked against it.
"""
import hashlib

import base58
import bech32
from Crypto.Hash import RIPEMD160

from constata_client.networks import Network

COMPRESSED_PUBKEY_LENGTH = 33
UNCOMPRESSED_PUBKEY_LENGTH = 65


def hash160(data: bytes) -> bytes:
    """RIPEMD-160 of SHA-256, the key hash used by both address types."""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def p2pkh_address(public_key: bytes, network: Network) -> str:
    """
    Encode a public key as a legacy pay-to-pubkey-hash address.

    Args:
        public_key: SEC1 encoded public key, compressed or uncompressed
        network: Network whose version byte prefixes the key hash

    Returns:
        Base58check address string
    """
    if len(public_key) not in (COMPRESSED_PUBKEY_LENGTH, UNCOMPRESSED_PUBKEY_LENGTH):
        raise ValueError(f"Invalid public key length: {len(public_key)} bytes")
    payload = bytes([network.p2pkh_version]) + hash160(public_key)
    return base58.b58encode_check(payload).decode("ascii")


def p2wpkh_address(public_key: bytes, network: Network) -> str:
    """
    Encode a compressed public key as a segwit v0 pay-to-witness-pubkey-hash address.

    Args:
        public_key: 33-byte compressed SEC1 public key
        network: Network whose bech32 prefix is used

    Returns:
        Bech32 address string
    """
    if len(public_key) != COMPRESSED_PUBKEY_LENGTH:
        raise ValueError(f"Segwit addresses require a compressed public key, got {len(public_key)} bytes")
    address = bech32.encode(network.bech32_hrp, 0, hash160(public_key))
    if address is None:
        raise ValueError("Failed to encode segwit address")
    return address
