"""
Bitcoin network parameter sets.

Only the three values the client needs are modelled: the base58 version
byte of P2PKH addresses, the WIF version byte of private keys, and the
bech32 human readable part of segwit addresses.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Network:
    """Address and key encoding parameters for one Bitcoin network."""
    name: str
    p2pkh_version: int
    wif_version: int
    bech32_hrp: str


MAINNET = Network(name="mainnet", p2pkh_version=0x00, wif_version=0x80, bech32_hrp="bc")
TESTNET = Network(name="testnet", p2pkh_version=0x6F, wif_version=0xEF, bech32_hrp="tb")
REGTEST = Network(name="regtest", p2pkh_version=0x6F, wif_version=0xEF, bech32_hrp="bcrt")

NETWORKS: Mapping[str, Network] = MappingProxyType({
    n.name: n for n in (MAINNET, TESTNET, REGTEST)
})
