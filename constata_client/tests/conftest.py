"""
Shared fixtures: deterministic test keys, a test environment whose
trusted callback address belongs to a locally held "server" key, and
helpers to build callbacks.
"""
import json

import base58
import pytest

from constata_client.environments import Environment
from constata_client.networks import REGTEST, TESTNET
from constata_client.signing.keys import PrivateKey, encrypt_key_text
from constata_client.signing.signer import Signer

PASSWORD = "password"

CLIENT_SECRET = bytes.fromhex("0c28fca386c7a227600b2fe50b7cae11ec86d3bf1fbe471be89827e19d72aa1d")
SERVER_SECRET = bytes.fromhex("b71c71a67e1177ad4e901695e1b4b9ee17ae16c6668d313eac2f96dbcda3f291")


def make_wif(secret: bytes, network, compressed: bool = True) -> str:
    suffix = b"\x01" if compressed else b""
    return base58.b58encode_check(bytes([network.wif_version]) + secret + suffix).decode("ascii")


@pytest.fixture
def password():
    """Password the client test key is sealed with."""
    return PASSWORD


@pytest.fixture
def wif_factory():
    return make_wif


@pytest.fixture
def client_wif():
    """Compressed regtest WIF of the client test key."""
    return make_wif(CLIENT_SECRET, REGTEST)


@pytest.fixture
def client_key(client_wif):
    return PrivateKey.from_wif(client_wif, REGTEST)


@pytest.fixture
def client_signer(client_key):
    return Signer(client_key)


@pytest.fixture
def encrypted_client_key(client_wif, password):
    return encrypt_key_text(client_wif, password, nonce=bytes(range(16)))


@pytest.fixture
def server_key():
    return PrivateKey.from_wif(make_wif(SERVER_SECRET, TESTNET), TESTNET)


@pytest.fixture
def server_signer(server_key):
    return Signer(server_key)


@pytest.fixture
def test_environment(server_key):
    """Staging-like environment that trusts the server key's segwit address."""
    return Environment(
        name="test",
        graphql_url="https://api.test.invalid/graphql",
        signing_network=REGTEST,
        callback_address=server_key.segwit_address(TESTNET),
        callback_network=TESTNET,
    )


@pytest.fixture
def make_callback():
    """Build a raw callback body the way the server does: a signed JSON document."""
    def _make(signer: Signer, document) -> bytes:
        payload = json.dumps(document).encode("utf-8")
        return signer.sign(payload).model_dump_json().encode("utf-8")
    return _make
