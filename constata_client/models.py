"""
Pydantic models for API responses.

Field names are snake_case; the API's camelCase names are accepted as
aliases.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from constata_client.environments import Environment
from constata_client.errors import MalformedCallback
from constata_client.signing.callbacks import CallbackPayload, verify_callback


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Attestation(ApiModel):
    """A set of documents being certified together."""
    id: int
    person_id: int
    org_id: Optional[int] = None
    markers: Optional[str] = None
    open_until: Optional[datetime] = None
    state: Optional[str] = Field(None, description="processing, parked or done")
    parking_reason: Optional[str] = None
    done_documents: int = 0
    parked_documents: int = 0
    processing_documents: int = 0
    total_documents: int = 0
    tokens_cost: float = 0
    tokens_paid: float = 0
    tokens_owed: float = 0
    buy_tokens_url: Optional[str] = None
    accept_tyc_url: Optional[str] = None
    last_doc_date: Optional[datetime] = None
    email_admin_access_url_to: Optional[List[str]] = None
    admin_access_url: Optional[str] = None
    created_at: Optional[datetime] = None


class AttestationHtmlExport(ApiModel):
    """Self-contained HTML proof for an attestation."""
    id: int
    verifiable_html: str


class AccountState(ApiModel):
    id: int
    missing: Optional[int] = None
    token_balance: Optional[int] = None
    web_callbacks_url: Optional[str] = None


class WebCallback(ApiModel):
    """A callback the server sent (or is still trying to send) to the configured URL."""
    id: int
    kind: str
    resource_id: int
    state: Optional[str] = None
    last_attempt_id: Optional[int] = None
    created_at: datetime
    next_attempt_on: Optional[datetime] = None
    request_body: Optional[str] = None

    def parse(self, environment: Environment) -> CallbackPayload:
        """Verify the stored request body, exactly as a live callback handler would."""
        if self.request_body is None:
            raise MalformedCallback(f"Web callback {self.id} has no stored request body")
        return verify_callback(self.request_body, environment)


class WebCallbackAttempt(ApiModel):
    id: int
    web_callback_id: int
    attempted_at: datetime
    url: str
    result_code: Optional[str] = None
    result_text: Optional[str] = None
