"""Tests for the Firestore REST store, against a mocked transport."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from services.chat_service import ChatService
from services.errors import OverviewNotFoundError, StoreError, WriteConflictError
from services.firestore_store import (
    FirebasePasswordCredentials,
    FirestoreOverviewStore,
    StaticTokenCredentials,
    decode_chat_history,
    encode_chat_history,
    parse_timestamp,
)
from services.models import ChatTurn, OverviewDocument
from services.mock_llm import MockGenerator

BASE = "https://firestore.test/v1"
DOCS_PATH = "/v1/projects/proj/databases/(default)/documents/codeoverviews"


def firestore_doc(overview_id="abc", text="Overview", chat=None, update_time="2024-05-01T10:00:00.123456789Z"):
    fields = {
        "overview_id": {"stringValue": overview_id},
        "text": {"stringValue": text},
        "timestamp": {"timestampValue": "2024-05-01T09:59:59.500Z"},
    }
    if chat is not None:
        fields["chatHistory"] = chat
    return {
        "name": f"projects/proj/databases/(default)/documents/codeoverviews/{overview_id}",
        "fields": fields,
        "createTime": "2024-05-01T10:00:00Z",
        "updateTime": update_time,
    }


class Recorder:
    """Mock transport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def make_store(handler, credentials=None) -> FirestoreOverviewStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirestoreOverviewStore(
        project_id="proj",
        credentials=credentials or StaticTokenCredentials("tok"),
        base_url=BASE,
        http_client=client,
    )


class TestEncoding:
    """Firestore typed value encoding."""

    def test_chat_history_round_trip(self):
        turns = [ChatTurn(user="You", text="q"), ChatTurn(user="AI", text="a")]
        assert decode_chat_history(encode_chat_history(turns)) == turns

    def test_empty_array_without_values(self):
        assert decode_chat_history({"arrayValue": {}}) == []
        assert decode_chat_history(None) == []

    def test_parse_nanosecond_timestamp(self):
        parsed = parse_timestamp("2024-05-01T10:00:00.123456789Z")
        assert parsed == datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)


class TestFirestoreStore:
    """Test suite for FirestoreOverviewStore."""

    async def test_create_posts_typed_fields(self):
        handler = Recorder(httpx.Response(200, json=firestore_doc()))
        store = make_store(handler)
        document = OverviewDocument(
            overview_id="abc",
            text="Overview",
            timestamp=datetime(2024, 5, 1, 9, 59, 59, 500000, tzinfo=timezone.utc),
        )

        created = await store.create_overview(document)

        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == DOCS_PATH
        assert request.url.params["documentId"] == "abc"
        assert request.headers["authorization"] == "Bearer tok"
        body = json.loads(request.content)
        assert body == {"fields": {
            "overview_id": {"stringValue": "abc"},
            "text": {"stringValue": "Overview"},
            "timestamp": {"timestampValue": "2024-05-01T09:59:59.500000Z"},
        }}
        assert created.version == "2024-05-01T10:00:00.123456789Z"

    async def test_create_failure(self):
        store = make_store(Recorder(httpx.Response(403, text="denied")))

        with pytest.raises(StoreError) as excinfo:
            await store.create_overview(OverviewDocument(overview_id="abc", text="t"))
        assert excinfo.value.status_code == 403

    async def test_get_decodes_document(self):
        chat = encode_chat_history([ChatTurn(user="You", text="hi")])
        handler = Recorder(httpx.Response(200, json=firestore_doc(chat=chat)))
        store = make_store(handler)

        document = await store.get_overview("abc")

        assert handler.requests[0].url.path == f"{DOCS_PATH}/abc"
        assert document.text == "Overview"
        assert document.chat_history == [ChatTurn(user="You", text="hi")]
        assert document.timestamp == datetime(2024, 5, 1, 9, 59, 59, 500000, tzinfo=timezone.utc)

    async def test_get_missing(self):
        store = make_store(Recorder(httpx.Response(404, json={"error": {"status": "NOT_FOUND"}})))

        with pytest.raises(OverviewNotFoundError):
            await store.get_overview("abc")

    async def test_get_upstream_error(self):
        store = make_store(Recorder(httpx.Response(500, text="boom")))

        with pytest.raises(StoreError, match="boom"):
            await store.get_overview("abc")

    async def test_save_patches_only_chat_history(self):
        handler = Recorder(httpx.Response(200, json=firestore_doc()))
        store = make_store(handler)
        turns = [ChatTurn(user="You", text="q"), ChatTurn(user="AI", text="a")]

        await store.save_chat_history("abc", turns, expected_version="2024-05-01T10:00:00.1Z")

        request = handler.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["updateMask.fieldPaths"] == "chatHistory"
        assert request.url.params["currentDocument.updateTime"] == "2024-05-01T10:00:00.1Z"
        assert json.loads(request.content) == {"fields": {"chatHistory": encode_chat_history(turns)}}

    async def test_save_without_version_requires_existing(self):
        handler = Recorder(httpx.Response(200, json=firestore_doc()))
        store = make_store(handler)

        await store.save_chat_history("abc", [])

        assert handler.requests[0].url.params["currentDocument.exists"] == "true"

    async def test_save_precondition_failure_is_conflict(self):
        store = make_store(Recorder(httpx.Response(
            400, json={"error": {"code": 400, "status": "FAILED_PRECONDITION", "message": "stale"}}
        )))

        with pytest.raises(WriteConflictError):
            await store.save_chat_history("abc", [], expected_version="v1")

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)

        store = make_store(handler)

        with pytest.raises(StoreError, match="no route"):
            await store.get_overview("abc")

    @pytest.mark.parametrize("overview_id", ["nosuch/sub", "..", "a b", ""])
    async def test_unsafe_id_is_not_found_without_request(self, overview_id):
        handler = Recorder()
        store = make_store(handler)

        with pytest.raises(OverviewNotFoundError):
            await store.get_overview(overview_id)
        with pytest.raises(OverviewNotFoundError):
            await store.save_chat_history(overview_id, [])
        assert handler.requests == []

    async def test_non_document_body_is_not_found(self):
        store = make_store(Recorder(httpx.Response(200, json={})))

        with pytest.raises(OverviewNotFoundError):
            await store.get_overview("abc")

    async def test_non_json_body(self):
        store = make_store(Recorder(httpx.Response(200, text="<html>")))

        with pytest.raises(StoreError, match="non-JSON"):
            await store.get_overview("abc")

    async def test_chat_with_subcollection_id_never_calls_model(self):
        def handler(request: httpx.Request) -> httpx.Response:
            # Collection paths list documents; document paths are missing
            if request.url.path.count("/") % 2 == 1:
                return httpx.Response(200, json={})
            return httpx.Response(404, json={"error": {"status": "NOT_FOUND"}})

        generator = MockGenerator()
        service = ChatService(generator, make_store(handler))
        turns = [ChatTurn(user="You", text="hi")]

        for overview_id in ("nosuch", "nosuch/sub"):
            with pytest.raises(OverviewNotFoundError):
                await service.reply(overview_id, turns)
        assert generator.prompts == []


class TestFirebaseCredentials:
    """Email/password sign-in for the store's bearer token."""

    async def test_signs_in_once_and_caches(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if "signInWithPassword" in request.url.path:
                return httpx.Response(200, json={"idToken": "id-token", "expiresIn": "3600"})
            return httpx.Response(200, json=firestore_doc())

        credentials = FirebasePasswordCredentials(
            api_key="key", email="w@example.com", password="pw",
            identity_url="https://identity.test/v1",
        )
        store = make_store(handler, credentials=credentials)

        await store.get_overview("abc")
        await store.get_overview("abc")

        sign_ins = [r for r in calls if "signInWithPassword" in r.url.path]
        assert len(sign_ins) == 1
        assert sign_ins[0].url.params["key"] == "key"
        assert json.loads(sign_ins[0].content) == {
            "email": "w@example.com", "password": "pw", "returnSecureToken": True,
        }
        assert calls[-1].headers["authorization"] == "Bearer id-token"

    async def test_sign_in_failure(self):
        store = make_store(
            Recorder(httpx.Response(400, text="INVALID_PASSWORD")),
            credentials=FirebasePasswordCredentials("key", "e", "p", identity_url="https://identity.test/v1"),
        )

        with pytest.raises(StoreError, match="Firebase Auth failed"):
            await store.get_overview("abc")

    async def test_sign_in_reply_without_token(self):
        store = make_store(
            Recorder(httpx.Response(200, json={"expiresIn": "3600"})),
            credentials=FirebasePasswordCredentials("key", "e", "p", identity_url="https://identity.test/v1"),
        )

        with pytest.raises(StoreError, match="unexpected sign-in response"):
            await store.get_overview("abc")

    def test_requires_all_credentials(self):
        with pytest.raises(ValueError):
            FirebasePasswordCredentials("key", "", "p")
