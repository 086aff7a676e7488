"""Firestore REST storage for overview documents.

Documents live in one collection keyed by overview id, with the fields
overview_id, text, timestamp and chatHistory. Credentials are relayed as a
bearer token: either a static access token or a Firebase ID token obtained
by email/password sign-in.
"""

import re
import time
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

import httpx

from config import DEFAULT_COLLECTION, FIRESTORE_BASE_URL, IDENTITY_TOOLKIT_URL, REQUEST_TIMEOUT, TOKEN_EXPIRY_MARGIN
from services.errors import OverviewNotFoundError, StoreError, WriteConflictError
from services.models import ChatTurn, OverviewDocument, is_valid_overview_id
from services.overview_store import OverviewStore

_FRACTION = re.compile(r"\.(\d+)")


# =============================================================================
# Credentials
# =============================================================================

class StaticTokenCredentials:
    """A pre-issued OAuth access token."""

    def __init__(self, access_token: str):
        if not access_token:
            raise ValueError("An access token is required")
        self.access_token = access_token

    async def get_token(self, client: httpx.AsyncClient) -> str:
        return self.access_token


class FirebasePasswordCredentials:
    """Firebase Auth email/password sign-in producing an ID token."""

    def __init__(
        self,
        api_key: str,
        email: str,
        password: str,
        identity_url: str = IDENTITY_TOOLKIT_URL
    ):
        if not (api_key and email and password):
            raise ValueError("FIREBASE_API_KEY, WORKER_EMAIL and WORKER_PASSWORD are required")
        self.api_key = api_key
        self.email = email
        self.password = password
        self.identity_url = identity_url.rstrip("/")
        self._token: Optional[str] = None
        self._expires_at = 0.0

    async def get_token(self, client: httpx.AsyncClient) -> str:
        """Return a cached ID token, signing in again once it nears expiry."""
        if self._token and time.monotonic() < self._expires_at:
            return self._token

        try:
            response = await client.post(
                f"{self.identity_url}/accounts:signInWithPassword",
                params={"key": self.api_key},
                json={
                    "email": self.email,
                    "password": self.password,
                    "returnSecureToken": True,
                },
            )
        except httpx.HTTPError as e:
            raise StoreError(f"Firebase Auth failed: {e}")
        if not response.is_success:
            raise StoreError(f"Firebase Auth failed: {response.text}", status_code=response.status_code)

        try:
            data = response.json()
            self._token = data["idToken"]
            lifetime = int(data.get("expiresIn", 3600))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreError(f"Firebase Auth failed: unexpected sign-in response ({e})")
        self._expires_at = time.monotonic() + max(lifetime - TOKEN_EXPIRY_MARGIN, 0)
        return self._token


# =============================================================================
# Value encoding
# =============================================================================

def format_timestamp(value: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC timestamp."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, truncating nanoseconds to microseconds."""
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def encode_chat_history(turns: List[ChatTurn]) -> Dict[str, Any]:
    """Encode chat turns as a Firestore array of maps."""
    return {
        "arrayValue": {
            "values": [
                {
                    "mapValue": {
                        "fields": {
                            "user": {"stringValue": turn.user},
                            "text": {"stringValue": turn.text},
                        }
                    }
                }
                for turn in turns
            ]
        }
    }


def decode_chat_history(value: Optional[Dict[str, Any]]) -> List[ChatTurn]:
    """Decode a Firestore array of maps into chat turns."""
    if not value:
        return []
    turns = []
    # Firestore omits "values" for an empty array
    for item in value.get("arrayValue", {}).get("values", []):
        fields = item.get("mapValue", {}).get("fields", {})
        turns.append(ChatTurn(
            user=fields.get("user", {}).get("stringValue", ""),
            text=fields.get("text", {}).get("stringValue", ""),
        ))
    return turns


def encode_document(document: OverviewDocument) -> Dict[str, Any]:
    """Encode a new overview as a Firestore document body."""
    fields: Dict[str, Any] = {
        "overview_id": {"stringValue": document.overview_id},
        "text": {"stringValue": document.text},
        "timestamp": {"timestampValue": format_timestamp(document.timestamp)},
    }
    if document.chat_history:
        fields["chatHistory"] = encode_chat_history(document.chat_history)
    return {"fields": fields}


def decode_document(overview_id: str, body: Dict[str, Any]) -> OverviewDocument:
    """Decode a Firestore document resource."""
    fields = body.get("fields", {})
    timestamp = fields.get("timestamp", {}).get("timestampValue") or body.get("createTime")
    document = OverviewDocument(
        overview_id=fields.get("overview_id", {}).get("stringValue", overview_id),
        text=fields.get("text", {}).get("stringValue", ""),
        chat_history=decode_chat_history(fields.get("chatHistory")),
        version=body.get("updateTime"),
    )
    if timestamp:
        document.timestamp = parse_timestamp(timestamp)
    return document


def _json_body(response: httpx.Response) -> Dict[str, Any]:
    """Parse a successful Firestore response body."""
    try:
        body = response.json()
    except ValueError as e:
        raise StoreError(f"Firestore returned a non-JSON body: {e}", status_code=response.status_code)
    if not isinstance(body, dict):
        raise StoreError("Firestore returned an unexpected body", status_code=response.status_code)
    return body


def _error_status(response: httpx.Response) -> Optional[str]:
    """Extract the canonical error status (e.g. FAILED_PRECONDITION)."""
    try:
        return response.json().get("error", {}).get("status")
    except (ValueError, AttributeError):
        return None


# =============================================================================
# Store
# =============================================================================

class FirestoreOverviewStore(OverviewStore):
    """Overview storage backed by the Firestore REST API."""

    def __init__(
        self,
        project_id: str,
        credentials,
        collection: str = DEFAULT_COLLECTION,
        base_url: str = FIRESTORE_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        if not project_id:
            raise ValueError("GCP_PROJECT_ID environment variable is required")
        self.project_id = project_id
        self.collection = collection
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def collection_url(self) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}"
            f"/databases/(default)/documents/{self.collection}"
        )

    def document_url(self, overview_id: str) -> str:
        # A "/" in the id would address a subcollection instead
        if not is_valid_overview_id(overview_id):
            raise OverviewNotFoundError(overview_id)
        return f"{self.collection_url}/{overview_id}"

    async def initialize(self):
        """Create the shared HTTP client if none was injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Store not initialized. Call initialize() first.")
        return self._client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send an authorized request, wrapping transport errors."""
        token = await self.credentials.get_token(self.client)
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        try:
            return await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"Firestore request failed: {e}")

    async def create_overview(self, document: OverviewDocument) -> OverviewDocument:
        """Create a document under the overview's id."""
        response = await self._request(
            "POST",
            self.collection_url,
            params={"documentId": document.overview_id},
            json=encode_document(document),
        )
        if not response.is_success:
            print(f"[STORE] Firestore create failed: {response.text}")
            raise StoreError(
                f"Failed to write to Firestore. Status: {response.status_code}",
                status_code=response.status_code,
            )
        return decode_document(document.overview_id, _json_body(response))

    async def get_overview(self, overview_id: str) -> OverviewDocument:
        """Fetch a document by overview id."""
        response = await self._request("GET", self.document_url(overview_id))
        if response.status_code == 404:
            raise OverviewNotFoundError(overview_id)
        if not response.is_success:
            raise StoreError(
                f"Failed to fetch overview from Firestore: {response.text}",
                status_code=response.status_code,
            )
        body = _json_body(response)
        # Anything but a document resource means no document at this id
        if "name" not in body or "fields" not in body:
            raise OverviewNotFoundError(overview_id)
        return decode_document(overview_id, body)

    async def save_chat_history(
        self,
        overview_id: str,
        turns: List[ChatTurn],
        expected_version: Optional[str] = None
    ) -> None:
        """Patch only the chatHistory field of an existing document."""
        params = {"updateMask.fieldPaths": "chatHistory"}
        if expected_version:
            params["currentDocument.updateTime"] = expected_version
        else:
            params["currentDocument.exists"] = "true"

        response = await self._request(
            "PATCH",
            self.document_url(overview_id),
            params=params,
            json={"fields": {"chatHistory": encode_chat_history(turns)}},
        )
        if response.is_success:
            return

        status = _error_status(response)
        if response.status_code == 404 or status == "NOT_FOUND":
            raise OverviewNotFoundError(overview_id)
        if response.status_code == 409 or status in ("FAILED_PRECONDITION", "ABORTED"):
            raise WriteConflictError(overview_id)
        raise StoreError(
            f"Failed to save chat history: {response.text}",
            status_code=response.status_code,
        )
