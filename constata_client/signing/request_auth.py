"""
Request Authentication

Every request to the API carries an "Authentication" header holding a
SignedEnvelope. The signed payload is not the request itself but a
compact JSON description of it:

    {"path": ..., "method": ..., "nonce": ..., "body_hash": ..., "query_hash": ...}

Where:
    - path: absolute request path, without host or query string
    - method: upper-case HTTP method
    - nonce: wall clock time in milliseconds since the Unix epoch
    - body_hash: upper-case hex SHA-256 of the request body, or null
    - query_hash: upper-case hex SHA-256 of the query string without the
      leading "?", or null when there is no query string

The nonce is not guaranteed to be unique; replay windows are enforced by
the server.
"""
import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Generator, Optional, Union

import httpx

from constata_client.signing.signer import Signer

logger = logging.getLogger(__name__)

AUTH_HEADER = "Authentication"


def hex_digest(data: bytes) -> str:
    """Upper-case hex SHA-256, the digest format the server expects."""
    return hashlib.sha256(data).hexdigest().upper()


def current_nonce(clock: Callable[[], float] = time.time) -> int:
    """Milliseconds since the Unix epoch."""
    return int(clock() * 1000)


def build_request_metadata(
    path: str,
    method: str,
    nonce: int,
    body: Optional[Union[str, bytes]] = None,
    query: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the request description that gets signed.

    Args:
        path: Absolute request path (no host, no query string)
        method: HTTP method, any case
        nonce: Millisecond timestamp
        body: Request body, None when the request has no body
        query: Raw query string, with or without the leading "?"

    Returns:
        Dict with keys in signing order
    """
    if isinstance(body, str):
        body = body.encode("utf-8")

    query = query or ""
    if query.startswith("?"):
        query = query[1:]

    return {
        "path": path,
        "method": method.upper(),
        "nonce": int(nonce),
        "body_hash": hex_digest(body) if body is not None else None,
        "query_hash": hex_digest(query.encode("utf-8")) if query else None,
    }


def serialize_request_metadata(metadata: Dict[str, Any]) -> bytes:
    """Compact JSON, keys in insertion order."""
    return json.dumps(metadata, separators=(",", ":")).encode("utf-8")


class RequestAuthenticator(httpx.Auth):
    """
    httpx auth flow that signs every outgoing request.

    The Authentication header is always replaced with a fresh signature;
    other headers are left alone. Signing errors propagate and abort the
    request.
    """

    requires_request_body = True

    def __init__(self, signer: Signer, clock: Callable[[], float] = time.time):
        self.signer = signer
        self._clock = clock

    def authentication_header(
        self,
        path: str,
        method: str,
        body: Optional[Union[str, bytes]] = None,
        query: Optional[str] = None,
    ) -> str:
        """Sign a request description and return the header value (JSON envelope)."""
        metadata = build_request_metadata(
            path=path,
            method=method,
            nonce=current_nonce(self._clock),
            body=body,
            query=query,
        )
        envelope = self.signer.sign(serialize_request_metadata(metadata))
        logger.debug(f"Signed {metadata['method']} {path} nonce={metadata['nonce']}")
        return envelope.model_dump_json()

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        path = request.url.raw_path.split(b"?", 1)[0].decode("ascii")
        query = request.url.query.decode("ascii")
        request.headers[AUTH_HEADER] = self.authentication_header(
            path=path,
            method=request.method,
            # httpx gives bodiless requests b"", which are signed as having no body
            body=request.content or None,
            query=query,
        )
        yield request
