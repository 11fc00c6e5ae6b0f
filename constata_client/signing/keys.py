"""
Encrypted Key Handling

The service hands each customer a private key encrypted under their
password. At rest the key is a hex string with this byte layout:

    nonce (16) || ciphertext length (8, little-endian) || SIV tag (16) || ciphertext

The ciphertext is the WIF text of a secp256k1 private key, sealed with
AES-SIV (RFC 5297, AES-128 with a 32-byte key) using an empty associated
data header followed by the nonce. The AEAD key is the ASCII password
zero-padded to 32 bytes.

Neither the password nor the decrypted key is ever logged.
"""
import logging
import struct
from typing import Optional

import base58
from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes
from ecdsa import SECP256k1, SigningKey

from constata_client.errors import DecryptionFailed, InvalidPassword, MalformedKey
from constata_client.signing.addresses import p2pkh_address, p2wpkh_address
from constata_client.signing.message import sign_message
from constata_client.networks import Network

logger = logging.getLogger(__name__)

AEAD_KEY_SIZE = 32
NONCE_SIZE = 16
LENGTH_PREFIX_SIZE = 8
TAG_SIZE = 16
HEADER_SIZE = NONCE_SIZE + LENGTH_PREFIX_SIZE
MIN_ENCRYPTED_KEY_SIZE = HEADER_SIZE + TAG_SIZE + 1

SECRET_SIZE = 32
WIF_COMPRESSED_SUFFIX = 0x01


class PrivateKey:
    """
    A secp256k1 private key bound to one network.

    Built from WIF text. The secret never leaves this object: there is no
    export method and repr() only shows the address.
    """

    __slots__ = ("_signing_key", "_compressed", "_network", "_public_key", "_address")

    def __init__(self, signing_key: SigningKey, network: Network, compressed: bool = True):
        self._signing_key = signing_key
        self._compressed = compressed
        self._network = network
        encoding = "compressed" if compressed else "uncompressed"
        self._public_key = signing_key.get_verifying_key().to_string(encoding)
        self._address = p2pkh_address(self._public_key, network)

    @classmethod
    def from_wif(cls, wif: str, network: Network) -> "PrivateKey":
        """
        Parse a Wallet Import Format private key.

        Raises:
            MalformedKey: If the text is not a valid WIF key for the network
        """
        try:
            payload = base58.b58decode_check(wif.strip())
        except ValueError as e:
            raise MalformedKey("Decrypted key is not valid WIF") from e

        if not payload or payload[0] != network.wif_version:
            raise MalformedKey(f"Decrypted key does not belong to network {network.name}")

        body = payload[1:]
        if len(body) == SECRET_SIZE + 1 and body[-1] == WIF_COMPRESSED_SUFFIX:
            compressed = True
        elif len(body) == SECRET_SIZE:
            compressed = False
        else:
            raise MalformedKey(f"Invalid WIF payload length: {len(body)} bytes")

        try:
            signing_key = SigningKey.from_string(body[:SECRET_SIZE], curve=SECP256k1)
        except Exception as e:
            raise MalformedKey("Decrypted key is out of range for secp256k1") from e
        return cls(signing_key, network, compressed)

    @property
    def network(self) -> Network:
        return self._network

    @property
    def compressed(self) -> bool:
        return self._compressed

    @property
    def public_key(self) -> bytes:
        """SEC1-encoded public key."""
        return self._public_key

    @property
    def address(self) -> str:
        """Legacy P2PKH address, the identity used when signing."""
        return self._address

    def segwit_address(self, network: Optional[Network] = None) -> str:
        """P2WPKH address of the same key, as the server publishes its own identity."""
        compressed_key = self._signing_key.get_verifying_key().to_string("compressed")
        return p2wpkh_address(compressed_key, network or self._network)

    def sign_message(self, message: bytes) -> str:
        """Base64 compact signature over the Bitcoin signed-message digest of message."""
        return sign_message(self._signing_key, message, compressed=self._compressed)

    def __repr__(self) -> str:
        return f"PrivateKey(address={self._address!r}, network={self._network.name!r})"


def derive_aead_key(password: str) -> bytes:
    """
    Turn a password into the 32-byte AES-SIV key.

    Raises:
        InvalidPassword: If the password is not ASCII or longer than 32 bytes
    """
    try:
        raw = password.encode("ascii")
    except UnicodeEncodeError as e:
        raise InvalidPassword("Password must be ASCII") from e
    if len(raw) > AEAD_KEY_SIZE:
        raise InvalidPassword(f"Invalid password length: {len(raw)} bytes (max {AEAD_KEY_SIZE})")
    return raw.ljust(AEAD_KEY_SIZE, b"\x00")


def _split_encrypted_key(encrypted_key_hex: str):
    try:
        raw = bytes.fromhex(encrypted_key_hex.strip())
    except ValueError as e:
        raise MalformedKey("Encrypted key is not valid hex") from e

    if len(raw) < MIN_ENCRYPTED_KEY_SIZE:
        raise MalformedKey(
            f"Encrypted key too short: {len(raw)} bytes (min {MIN_ENCRYPTED_KEY_SIZE})"
        )

    nonce = raw[:NONCE_SIZE]
    (declared_length,) = struct.unpack("<Q", raw[NONCE_SIZE:HEADER_SIZE])
    sealed = raw[HEADER_SIZE:]
    if declared_length != len(sealed):
        raise MalformedKey(
            f"Encrypted key length prefix says {declared_length} bytes, found {len(sealed)}"
        )
    return nonce, sealed


def decrypt_key_text(encrypted_key_hex: str, password: str) -> str:
    """
    Decrypt an encrypted key and return the plaintext key text (WIF).

    Args:
        encrypted_key_hex: Hex-encoded encrypted key
        password: Password the key was encrypted with

    Returns:
        Decrypted WIF string

    Raises:
        InvalidPassword: Password too long, checked before any decryption
        MalformedKey: Bad hex or truncated input
        DecryptionFailed: Wrong password or corrupted ciphertext
    """
    aead_key = derive_aead_key(password)
    nonce, sealed = _split_encrypted_key(encrypted_key_hex)

    cipher = AES.new(aead_key, AES.MODE_SIV, nonce=nonce)
    cipher.update(b"")
    try:
        plaintext = cipher.decrypt_and_verify(sealed[TAG_SIZE:], sealed[:TAG_SIZE])
    except ValueError as e:
        logger.warning("Encrypted key failed authentication (wrong password or corrupted key)")
        raise DecryptionFailed("Could not decrypt key, the password is most likely wrong") from e

    try:
        return plaintext.decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedKey("Decrypted key is not ASCII text") from e


def encrypt_key_text(key_text: str, password: str, nonce: Optional[bytes] = None) -> str:
    """
    Seal key text under a password, producing the hex layout decrypt_key_text reads.

    This wraps an existing key (e.g. to change its password); it does not
    generate keys.

    Args:
        key_text: Plaintext key, normally WIF
        password: Password to encrypt with
        nonce: 16-byte nonce, random when omitted

    Returns:
        Hex-encoded encrypted key
    """
    aead_key = derive_aead_key(password)
    nonce = nonce if nonce is not None else get_random_bytes(NONCE_SIZE)
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")

    cipher = AES.new(aead_key, AES.MODE_SIV, nonce=nonce)
    cipher.update(b"")
    ciphertext, tag = cipher.encrypt_and_digest(key_text.encode("ascii"))
    sealed = tag + ciphertext
    return (nonce + struct.pack("<Q", len(sealed)) + sealed).hex()


def unwrap_key(encrypted_key_hex: str, password: str, network: Network) -> PrivateKey:
    """
    Decrypt an encrypted key and parse it as a private key for network.

    Raises:
        CryptoError: InvalidPassword, MalformedKey or DecryptionFailed
    """
    return PrivateKey.from_wif(decrypt_key_text(encrypted_key_hex, password), network)
