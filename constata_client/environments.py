"""
Deployment Environments

Fixed table of the service deployments. Each entry binds the GraphQL
endpoint, the network the customer's signing key belongs to, and the
address the server signs web callbacks with. The table is read-only;
callers pick an entry by name and pass it explicitly to the components
that need it.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from constata_client.errors import UnknownEnvironment
from constata_client.networks import MAINNET, REGTEST, TESTNET, Network


@dataclass(frozen=True)
class Environment:
    """One deployment of the service."""
    name: str
    graphql_url: str
    signing_network: Network
    callback_address: str
    callback_network: Network


DEVELOPMENT = Environment(
    name="development",
    graphql_url="http://127.0.0.1:8000/graphql",
    signing_network=REGTEST,
    callback_address="bcrt1qsj2h8ernt4amc674l60vu925flvn57ff9lyry2",
    callback_network=REGTEST,
)

STAGING = Environment(
    name="staging",
    graphql_url="https://api-staging.constata.eu/graphql",
    signing_network=MAINNET,
    callback_address="tb1qurghvhp8g6he5hsv0en6n59rextfw8kw0wxyun",
    callback_network=TESTNET,
)

PRODUCTION = Environment(
    name="production",
    graphql_url="https://api.constata.eu/graphql",
    signing_network=MAINNET,
    callback_address="bc1qw3ca5pgepg6hqqle2eq8qakejl5wdafs7up0jd",
    callback_network=MAINNET,
)

ENVIRONMENTS: Mapping[str, Environment] = MappingProxyType({
    env.name: env for env in (DEVELOPMENT, STAGING, PRODUCTION)
})


def get_environment(name: str) -> Environment:
    """
    Look up a deployment by name.

    Raises:
        UnknownEnvironment: If name is not development, staging or production
    """
    try:
        return ENVIRONMENTS[name]
    except KeyError:
        raise UnknownEnvironment(
            f"Unknown environment '{name}' (expected one of: {', '.join(ENVIRONMENTS)})"
        ) from None
