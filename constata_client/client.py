"""
GraphQL API Client

Authenticated client for the Constata GraphQL API. Every request is
signed by RequestAuthenticator, so arbitrary queries and mutations can be
sent with query(); the most common operations have typed wrappers.

Usage:
    async with ApiClient(encrypted_key, password, "staging") as client:
        attestation = await client.create_attestation([pdf_bytes], ["me@example.com"])
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from constata_client.environments import Environment, get_environment
from constata_client.errors import GraphQLError, TransportError
from constata_client.models import (
    AccountState,
    Attestation,
    AttestationHtmlExport,
    WebCallback,
    WebCallbackAttempt,
)
from constata_client.signing.request_auth import RequestAuthenticator
from constata_client.signing.signer import Signer

logger = logging.getLogger(__name__)

PER_PAGE = 200

ATTESTATION_FIELDS = """
  id
  personId
  orgId
  markers
  openUntil
  state
  parkingReason
  doneDocuments
  parkedDocuments
  processingDocuments
  totalDocuments
  tokensCost
  tokensPaid
  tokensOwed
  buyTokensUrl
  acceptTycUrl
  lastDocDate
  emailAdminAccessUrlTo
  adminAccessUrl
  createdAt
  __typename
"""

CREATE_ATTESTATION = f"""
mutation createAttestation($input: AttestationInput!) {{
  createAttestation(input: $input) {{
    {ATTESTATION_FIELDS}
  }}
}}
"""

ALL_ATTESTATIONS = f"""
query myAttestationsQuery($page: Int) {{
  allAttestations(page: $page, perPage: {PER_PAGE}, sortField: "createdAt", sortOrder: "desc") {{
    {ATTESTATION_FIELDS}
  }}
}}
"""

ATTESTATION = f"""
query Attestation($id: Int!) {{
  Attestation(id: $id) {{
    {ATTESTATION_FIELDS}
  }}
}}
"""

ATTESTATION_HTML_EXPORT = """
query AttestationHtmlExport($id: Int!) {
  AttestationHtmlExport(id: $id) {
    id
    verifiableHtml
  }
}
"""

ACCOUNT_STATE = """
query AccountState($id: Int!) {
  AccountState(id: $id) {
    id
    missing
    tokenBalance
    webCallbacksUrl
  }
}
"""

UPDATE_WEB_CALLBACKS_URL = """
mutation updateWebCallbacksUrl($url: String) {
  updateWebCallbacksUrl(url: $url) {
    id
    webCallbacksUrl
    __typename
  }
}
"""

ALL_WEB_CALLBACKS = f"""
query allWebCallbacks($page: Int) {{
  allWebCallbacks(page: $page, perPage: {PER_PAGE}, sortField: "createdAt", sortOrder: "desc") {{
    id
    kind
    resourceId
    state
    lastAttemptId
    createdAt
    nextAttemptOn
    requestBody
  }}
}}
"""

ALL_WEB_CALLBACK_ATTEMPTS = f"""
query allWebCallbackAttempts($filter: WebCallbackAttemptFilter) {{
  allWebCallbackAttempts(page: 0, perPage: {PER_PAGE}, sortField: "attemptedAt", sortOrder: "desc", filter: $filter) {{
    id
    webCallbackId
    attemptedAt
    url
    resultCode
    resultText
  }}
}}
"""


class ApiClient:
    """
    Main entry point to the API.

    Decrypts the customer key once at construction (raises CryptoError on a
    wrong password) and signs every request with it.
    """

    def __init__(
        self,
        encrypted_key: str,
        password: str,
        environment: str = "production",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            encrypted_key: Hex encrypted key, as found in signature.json
            password: Password for the encrypted key
            environment: development, staging or production
            timeout: Request timeout in seconds
            transport: Custom httpx transport (used by tests)
        """
        self.environment: Environment = get_environment(environment)
        self.signer = Signer.from_encrypted_key(
            encrypted_key, password, self.environment.signing_network
        )
        self._http = httpx.AsyncClient(
            auth=RequestAuthenticator(self.signer),
            timeout=timeout,
            transport=transport,
        )
        logger.info(
            f"ApiClient initialized: {self.environment.graphql_url} "
            f"({self.environment.name}) as {self.signer.address}"
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def query(
        self,
        operation_name: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Run any GraphQL query or mutation.

        Args:
            operation_name: GraphQL operation name
            query: GraphQL document
            variables: Operation variables

        Returns:
            The response's "data" object

        Raises:
            TransportError: Connection failure or non-2xx status
            GraphQLError: Response carries errors, or no data
        """
        body = {
            "query": query,
            "operationName": operation_name,
            "variables": variables or {},
        }

        logger.debug(f"GraphQL {operation_name} -> {self.environment.graphql_url}")
        try:
            response = await self._http.post(self.environment.graphql_url, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"API error {e.response.status_code} on {operation_name}: {e.response.text}")
            raise TransportError(
                f"API error: {e.response.status_code}",
                status_code=e.response.status_code,
                details=e.response.text,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request error on {operation_name}: {e}")
            raise TransportError(f"Request failed: {e}", details=str(e)) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise GraphQLError("Invalid GraphQL response: body is not JSON") from e
        if not isinstance(payload, dict):
            raise GraphQLError("Invalid GraphQL response: body is not an object")

        errors = payload.get("errors")
        if errors:
            message = "\n".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            )
            logger.error(f"GraphQL {operation_name} failed: {message}")
            raise GraphQLError(message, errors=errors)

        data = payload.get("data")
        if data is None:
            raise GraphQLError("Invalid GraphQL response: no errors nor data")
        return data

    # ============================================================
    # Attestations
    # ============================================================

    async def create_attestation(
        self,
        files: Sequence[bytes],
        email_admin_access_url_to: Sequence[str] = (),
        markers: Optional[str] = None,
    ) -> Optional[Attestation]:
        """
        Submit documents for attestation.

        Each file is signed individually; the server only sees the signed
        envelopes.

        Args:
            files: Raw document contents
            email_admin_access_url_to: Addresses that receive the admin access URL
            markers: Free text to help you find the attestation later
        """
        attestation_input = {
            "documents": [self.signer.sign(f).model_dump() for f in files],
            "emailAdminAccessUrlTo": list(email_admin_access_url_to),
            "markers": markers,
        }
        data = await self.query("createAttestation", CREATE_ATTESTATION, {"input": attestation_input})
        return _optional(Attestation, data.get("createAttestation"))

    async def all_attestations(self, page: int = 0) -> List[Attestation]:
        """Up to 200 attestations, newest first. Pages are 0 based."""
        data = await self.query("myAttestationsQuery", ALL_ATTESTATIONS, {"page": page})
        return _validate_list(Attestation, data.get("allAttestations"))

    async def attestation(self, attestation_id: int) -> Optional[Attestation]:
        data = await self.query("Attestation", ATTESTATION, {"id": attestation_id})
        return _optional(Attestation, data.get("Attestation"))

    async def attestation_html_export(self, attestation_id: int) -> Optional[AttestationHtmlExport]:
        data = await self.query("AttestationHtmlExport", ATTESTATION_HTML_EXPORT, {"id": attestation_id})
        return _optional(AttestationHtmlExport, data.get("AttestationHtmlExport"))

    async def account_state(self, account_id: int) -> Optional[AccountState]:
        data = await self.query("AccountState", ACCOUNT_STATE, {"id": account_id})
        return _optional(AccountState, data.get("AccountState"))

    # ============================================================
    # Web callbacks
    # ============================================================

    async def update_web_callbacks_url(self, url: Optional[str]) -> Optional[str]:
        """
        Set the URL the server POSTs web callbacks to.

        Callbacks still pending are delivered to the new URL. Pass None to
        stop receiving callbacks.

        Returns:
            The URL now stored by the server
        """
        data = await self.query("updateWebCallbacksUrl", UPDATE_WEB_CALLBACKS_URL, {"url": url})
        state = _optional(AccountState, data.get("updateWebCallbacksUrl"))
        return state.web_callbacks_url if state else None

    async def all_web_callbacks(self, page: int = 0) -> List[WebCallback]:
        data = await self.query("allWebCallbacks", ALL_WEB_CALLBACKS, {"page": page})
        return _validate_list(WebCallback, data.get("allWebCallbacks"))

    async def all_web_callback_attempts(self, web_callback_id: int) -> List[WebCallbackAttempt]:
        variables = {"filter": {"webCallbackIdEq": web_callback_id}}
        data = await self.query("allWebCallbackAttempts", ALL_WEB_CALLBACK_ATTEMPTS, variables)
        return _validate_list(WebCallbackAttempt, data.get("allWebCallbackAttempts"))


def _validate(model, value):
    try:
        return model.model_validate(value)
    except ValidationError as e:
        logger.error(f"Invalid {model.__name__} in GraphQL response: {e}")
        raise GraphQLError(f"Invalid GraphQL response: unexpected {model.__name__} shape") from e


def _optional(model, value):
    return _validate(model, value) if value is not None else None


def _validate_list(model, values):
    return [_validate(model, value) for value in values or []]
