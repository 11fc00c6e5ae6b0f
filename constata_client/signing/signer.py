"""
Envelope Signer

Holds an unwrapped private key for the lifetime of the process and signs
arbitrary byte payloads into SignedEnvelopes. Used for the authentication
header of every request and for documents submitted for attestation.
"""
import base64
import logging

from constata_client.errors import SigningFailed
from constata_client.signing.envelope import SignedEnvelope
from constata_client.signing.keys import PrivateKey, unwrap_key
from constata_client.networks import Network

logger = logging.getLogger(__name__)


class Signer:
    """
    Signs byte payloads with one private key.

    The key is never mutated after construction, so one Signer can be
    shared by concurrent requests.
    """

    def __init__(self, private_key: PrivateKey):
        self._key = private_key

    @classmethod
    def from_encrypted_key(cls, encrypted_key_hex: str, password: str, network: Network) -> "Signer":
        """
        Decrypt an encrypted key and build a Signer around it.

        Raises:
            CryptoError: If the key cannot be decrypted (see unwrap_key)
        """
        signer = cls(unwrap_key(encrypted_key_hex, password, network))
        logger.info(f"Signer ready for {signer.address} ({network.name})")
        return signer

    @property
    def address(self) -> str:
        return self._key.address

    @property
    def network(self) -> Network:
        return self._key.network

    def sign(self, data: bytes) -> SignedEnvelope:
        """
        Sign raw bytes.

        Args:
            data: Bytes to sign

        Returns:
            SignedEnvelope with base64 payload, this signer's address and the signature

        Raises:
            TypeError: If data is not bytes
            SigningFailed: If the signing primitive fails
        """
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(f"Signer.sign expects bytes, got {type(data).__name__}")

        try:
            signature = self._key.sign_message(data)
        except Exception as e:
            logger.error(f"Signing failed for {self.address}: {e}")
            raise SigningFailed(f"Failed to sign payload: {e}") from e

        return SignedEnvelope(
            payload=base64.b64encode(data).decode("ascii"),
            signer=self.address,
            signature=signature,
        )

    def __repr__(self) -> str:
        return f"Signer(address={self.address!r})"
