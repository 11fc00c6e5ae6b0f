"""
Signed envelope wire format.

Used in both directions: the client signs request metadata and documents
into envelopes, and the server delivers web callbacks as envelopes.
"""
import base64

from pydantic import BaseModel, ConfigDict, Field


class SignedEnvelope(BaseModel):
    """Payload bytes (base64), the signer's address, and a signature over the raw payload bytes."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    payload: str = Field(description="Signed bytes, base64 encoded")
    signer: str = Field(description="Address of the signing key")
    signature: str = Field(description="Base64 compact recoverable signature over the raw payload bytes")

    def payload_bytes(self) -> bytes:
        """Decode the payload. Raises binascii.Error (a ValueError) on invalid base64."""
        return base64.b64decode(self.payload, validate=True)
