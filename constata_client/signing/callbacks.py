"""
Web Callback Verification

The server POSTs web callbacks (for example when an attestation is done)
as a SignedEnvelope whose payload is a JSON document:

    {"kind": "AttestationDone", "resource": {...}}

A callback is trusted only when the public key recovered from its
signature hashes to the server's published segwit address for the
configured environment. The "signer" field of the envelope is ignored;
the recovered key is the only source of identity.

Nothing from the payload is parsed or returned before that check passes.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from pydantic import ValidationError

from constata_client.environments import Environment
from constata_client.errors import MalformedCallback, UntrustedCallback
from constata_client.signing.addresses import p2wpkh_address
from constata_client.signing.envelope import SignedEnvelope
from constata_client.signing.message import RecoveryError, recover_public_key

logger = logging.getLogger(__name__)

KIND_ATTESTATION_DONE = "AttestationDone"


@dataclass(frozen=True)
class CallbackPayload:
    """
    Verified callback content.

    Branch on kind before reading resource; new kinds may be added by the
    server at any time.
    """
    kind: str
    resource: Any


class CallbackVerifier:
    """Verifies callbacks against the trusted server address of one environment."""

    def __init__(self, environment: Environment):
        self.environment = environment

    def _recovered_address(self, envelope: SignedEnvelope, payload: bytes) -> str:
        try:
            public_key = recover_public_key(payload, envelope.signature)
        except RecoveryError as e:
            logger.warning(f"Rejected web callback: {e}")
            raise UntrustedCallback("Web callback signature does not recover to a public key") from e
        except ValueError as e:
            raise MalformedCallback(f"Web callback signature is malformed: {e}") from e

        try:
            return p2wpkh_address(public_key, self.environment.callback_network)
        except ValueError as e:
            logger.warning(f"Rejected web callback: {e}")
            raise UntrustedCallback("Web callback was not signed by a segwit key") from e

    def verify(self, raw_body: Union[bytes, str]) -> CallbackPayload:
        """
        Verify a raw callback body and return its content.

        Args:
            raw_body: HTTP request body exactly as received

        Returns:
            CallbackPayload with kind and resource

        Raises:
            MalformedCallback: Body is not an envelope, or the verified payload has no kind
            UntrustedCallback: Signature was not made by the environment's server key
        """
        try:
            envelope = SignedEnvelope.model_validate_json(raw_body)
        except ValidationError as e:
            raise MalformedCallback("Web callback body is not a signed envelope") from e

        try:
            payload = envelope.payload_bytes()
        except ValueError as e:
            raise MalformedCallback("Web callback payload is not valid base64") from e

        address = self._recovered_address(envelope, payload)
        if address != self.environment.callback_address:
            logger.warning(
                f"Rejected web callback signed by {address}, "
                f"expected {self.environment.callback_address} ({self.environment.name})"
            )
            raise UntrustedCallback("Unexpected web callback not signed by constata")

        try:
            document = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedCallback("Web callback payload is not JSON") from e

        if not isinstance(document, dict) or not isinstance(document.get("kind"), str):
            raise MalformedCallback("Web callback payload has no kind")

        return CallbackPayload(kind=document["kind"], resource=document.get("resource"))


def verify_callback(raw_body: Union[bytes, str], environment: Environment) -> CallbackPayload:
    """Shortcut for CallbackVerifier(environment).verify(raw_body)."""
    return CallbackVerifier(environment).verify(raw_body)
