"""
Unit tests for web callback verification.

The "server" key lives in conftest; test_environment trusts its segwit
address the same way the staging environment trusts the real server.
"""
import base64
import json

import pytest

from constata_client.environments import PRODUCTION, STAGING
from constata_client.errors import CallbackError, MalformedCallback, UntrustedCallback
from constata_client.signing.callbacks import (
    KIND_ATTESTATION_DONE,
    CallbackPayload,
    CallbackVerifier,
    verify_callback,
)

ATTESTATION_DONE = {
    "kind": KIND_ATTESTATION_DONE,
    "resource": {"id": 42, "admin_access_url": "https://api.constata.eu/safe/abc"},
}


def mutate(body: bytes, field: str, bit: int) -> bytes:
    """Flip one bit in the decoded bytes of an envelope field."""
    envelope = json.loads(body)
    raw = bytearray(base64.b64decode(envelope[field]))
    raw[bit // 8] ^= 1 << (bit % 8)
    envelope[field] = base64.b64encode(bytes(raw)).decode("ascii")
    return json.dumps(envelope).encode("utf-8")


class TestVerifyCallback:
    """Test the verification happy paths."""

    def test_attestation_done(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, ATTESTATION_DONE)

        payload = verify_callback(body, test_environment)

        assert payload == CallbackPayload(kind="AttestationDone", resource=ATTESTATION_DONE["resource"])
        assert payload.resource["id"] == 42

    def test_accepts_text_body(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, ATTESTATION_DONE).decode("utf-8")
        assert CallbackVerifier(test_environment).verify(body).kind == KIND_ATTESTATION_DONE

    def test_unknown_kind_is_returned(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, {"kind": "SomethingNew", "resource": [1, 2]})
        payload = verify_callback(body, test_environment)
        assert payload.kind == "SomethingNew"
        assert payload.resource == [1, 2]

    def test_missing_resource_is_none(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, {"kind": "Ping"})
        assert verify_callback(body, test_environment).resource is None

    def test_signer_field_is_not_trusted(self, server_signer, test_environment, make_callback):
        envelope = json.loads(make_callback(server_signer, ATTESTATION_DONE))
        envelope["signer"] = "anything"
        payload = verify_callback(json.dumps(envelope), test_environment)
        assert payload.kind == KIND_ATTESTATION_DONE


class TestUntrustedCallback:
    """Test rejection of callbacks not signed by the trusted key."""

    def test_same_body_rejected_by_other_environments(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, ATTESTATION_DONE)

        assert verify_callback(body, test_environment).kind == KIND_ATTESTATION_DONE
        with pytest.raises(UntrustedCallback):
            verify_callback(body, PRODUCTION)
        with pytest.raises(UntrustedCallback):
            verify_callback(body, STAGING)

    def test_signed_by_client_key(self, client_signer, test_environment, make_callback):
        body = make_callback(client_signer, ATTESTATION_DONE)
        with pytest.raises(UntrustedCallback):
            verify_callback(body, test_environment)

    def test_error_does_not_expose_payload(self, client_signer, test_environment, make_callback):
        body = make_callback(client_signer, ATTESTATION_DONE)
        with pytest.raises(UntrustedCallback) as exc_info:
            verify_callback(body, test_environment)
        assert "admin_access_url" not in str(exc_info.value)
        assert "42" not in str(exc_info.value)

    def test_unsigned_garbage_payload_not_parsed(self, client_signer, test_environment, make_callback):
        """A payload that is not even JSON is rejected as untrusted, not malformed."""
        envelope = client_signer.sign(b"not json").model_dump_json()
        with pytest.raises(UntrustedCallback):
            verify_callback(envelope, test_environment)

    @pytest.mark.parametrize("bit", [0, 7, 100, 200])
    def test_payload_bit_flip(self, server_signer, test_environment, make_callback, bit):
        body = mutate(make_callback(server_signer, ATTESTATION_DONE), "payload", bit)
        with pytest.raises(UntrustedCallback):
            verify_callback(body, test_environment)

    @pytest.mark.parametrize("bit", [0, 2, 8, 100, 300, 519])
    def test_signature_bit_flip(self, server_signer, test_environment, make_callback, bit):
        body = mutate(make_callback(server_signer, ATTESTATION_DONE), "signature", bit)
        with pytest.raises((UntrustedCallback, MalformedCallback)):
            verify_callback(body, test_environment)


class TestMalformedCallback:
    """Test rejection of bodies that are not signed envelopes."""

    @pytest.mark.parametrize("body", [
        b"",
        b"not json",
        b"[]",
        b'{"payload": "YQ==", "signer": "x"}',
        b'{"payload": 1, "signer": "x", "signature": "y"}',
        b'{"payload": "YQ==", "signer": "x", "signature": "y", "extra": true}',
    ])
    def test_not_an_envelope(self, test_environment, body):
        with pytest.raises(MalformedCallback):
            verify_callback(body, test_environment)

    def test_payload_not_base64(self, server_signer, test_environment, make_callback):
        envelope = json.loads(make_callback(server_signer, ATTESTATION_DONE))
        envelope["payload"] = "***"
        with pytest.raises(MalformedCallback):
            verify_callback(json.dumps(envelope), test_environment)

    def test_signature_wrong_length(self, server_signer, test_environment, make_callback):
        envelope = json.loads(make_callback(server_signer, ATTESTATION_DONE))
        envelope["signature"] = base64.b64encode(b"\x1f" * 64).decode("ascii")
        with pytest.raises(MalformedCallback):
            verify_callback(json.dumps(envelope), test_environment)

    def test_missing_kind(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, {"resource": {"id": 1}})
        with pytest.raises(MalformedCallback):
            verify_callback(body, test_environment)

    def test_kind_not_string(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, {"kind": 7, "resource": {}})
        with pytest.raises(MalformedCallback):
            verify_callback(body, test_environment)

    def test_payload_not_object(self, server_signer, test_environment, make_callback):
        body = make_callback(server_signer, ["AttestationDone"])
        with pytest.raises(MalformedCallback):
            verify_callback(body, test_environment)

    def test_all_rejections_are_callback_errors(self, test_environment):
        with pytest.raises(CallbackError):
            verify_callback(b"{}", test_environment)
