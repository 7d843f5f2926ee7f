"""
Unit tests for the flashcard API client.
"""

import pytest
import pytest_asyncio
from httpx import ConnectError, Request, Response

from src.core.api_config import ApiConfig
from src.core.errors import ApiError
from src.core.models import (
    CollectionCreate,
    FlashCard,
    MindMapNodeUpdate,
    ScoreUpdate,
)
from src.core.platform_client import FlashdeckClient

BASE_URL = "http://flashdeck.test/api"


@pytest_asyncio.fixture
async def client():
    """Client with an open HTTP session."""
    client = FlashdeckClient(ApiConfig(base_url=BASE_URL, token="secret"))
    await client._ensure_client()
    yield client
    await client.close()


def mock_transport(monkeypatch, client, status=200, body=None, calls=None):
    """Replace the HTTP call with a canned response, recording each request."""

    async def mock_request(method, url, **kwargs):
        if calls is not None:
            calls.append((method, url, kwargs))
        request = Request(method, BASE_URL + url)
        if body is None:
            return Response(status, request=request)
        return Response(status, json=body, request=request)

    monkeypatch.setattr(client._client, "request", mock_request)


class TestClientSetup:
    """Tests for session and header handling."""

    @pytest.mark.asyncio
    async def test_bearer_header_from_config(self, client):
        assert client._client.headers["Authorization"] == "Bearer secret"
        assert client.is_authenticated is True

    @pytest.mark.asyncio
    async def test_no_token_no_header(self):
        async with FlashdeckClient(ApiConfig(base_url=BASE_URL)) as client:
            assert "Authorization" not in client._client.headers
            assert client.is_authenticated is False

    @pytest.mark.asyncio
    async def test_login_switches_token(self, client, monkeypatch):
        calls = []
        mock_transport(
            monkeypatch,
            client,
            body={"token": "fresh", "userId": 7, "username": "ana", "email": "ana@example.com"},
            calls=calls,
        )

        auth = await client.login("ana", "pw")

        assert auth.user_id == 7
        assert auth.to_user().id == 7
        assert client._client.headers["Authorization"] == "Bearer fresh"
        assert calls[0][:2] == ("POST", "/auth/login")
        assert calls[0][2]["json"] == {"username": "ana", "password": "pw"}

    @pytest.mark.asyncio
    async def test_refresh_switches_token(self, client, monkeypatch):
        calls = []
        mock_transport(
            monkeypatch, client, body={"token": "renewed", "userId": 7, "username": "ana"}, calls=calls
        )

        auth = await client.refresh_token()

        assert auth.token == "renewed"
        assert calls[0][:2] == ("POST", "/auth/refresh")
        assert client._client.headers["Authorization"] == "Bearer renewed"


class TestHealthCheck:
    """Tests for the reachability check."""

    @pytest.mark.asyncio
    async def test_healthy(self, client, monkeypatch):
        paths = []

        async def mock_get(url, **kwargs):
            paths.append(url)
            return Response(200, request=Request("GET", BASE_URL + url))

        monkeypatch.setattr(client._client, "get", mock_get)

        assert await client.health_check() is True
        assert paths == ["/health"]

    @pytest.mark.asyncio
    async def test_server_error_is_unhealthy(self, client, monkeypatch):
        async def mock_get(url, **kwargs):
            return Response(503, request=Request("GET", BASE_URL + url))

        monkeypatch.setattr(client._client, "get", mock_get)

        assert await client.health_check() is False

    @pytest.mark.asyncio
    async def test_connection_refused_is_unhealthy(self, client, monkeypatch):
        async def mock_get(url, **kwargs):
            raise ConnectError("connection refused", request=Request("GET", BASE_URL + url))

        monkeypatch.setattr(client._client, "get", mock_get)

        assert await client.health_check() is False


class TestErrors:
    """Tests for error translation."""

    @pytest.mark.asyncio
    async def test_server_message_used(self, client, monkeypatch):
        mock_transport(monkeypatch, client, status=404, body={"message": "Collection not found"})

        with pytest.raises(ApiError) as exc_info:
            await client.get_collection(99)

        assert exc_info.value.message == "Collection not found"
        assert exc_info.value.status == 404
        assert str(exc_info.value) == "Collection not found (HTTP 404)"

    @pytest.mark.asyncio
    async def test_fallback_when_body_empty(self, client, monkeypatch):
        mock_transport(monkeypatch, client, status=500)

        with pytest.raises(ApiError) as exc_info:
            await client.update_scores([])

        assert exc_info.value.message == "Failed to update scores"
        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_connection_error(self, client, monkeypatch):
        async def mock_request(method, url, **kwargs):
            raise ConnectError("connection refused", request=Request(method, BASE_URL + url))

        monkeypatch.setattr(client._client, "request", mock_request)

        with pytest.raises(ApiError) as exc_info:
            await client.get_learn_session(1, 10)

        assert exc_info.value.status is None
        assert exc_info.value.message.startswith("Failed to fetch learn session")

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, client, monkeypatch):
        async def mock_request(method, url, **kwargs):
            return Response(
                200,
                content=b"<html>proxy error</html>",
                headers={"Content-Type": "text/html"},
                request=Request(method, BASE_URL + url),
            )

        monkeypatch.setattr(client._client, "request", mock_request)

        with pytest.raises(ApiError) as exc_info:
            await client.get_learn_session(1, 10)

        assert exc_info.value.message.startswith("Failed to fetch learn session")
        assert exc_info.value.status == 200

    @pytest.mark.asyncio
    async def test_malformed_card_payload(self, client, monkeypatch):
        mock_transport(monkeypatch, client, body={"flashCards": [{"id": 1}]})

        with pytest.raises(ApiError) as exc_info:
            await client.get_learn_session(1, 10)

        assert "FlashCard" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unexpected_payload_shape(self, client, monkeypatch):
        mock_transport(monkeypatch, client, body="not a card list")

        with pytest.raises(ApiError):
            await client.get_learn_session(1, 10)

    @pytest.mark.asyncio
    async def test_malformed_collection(self, client, monkeypatch):
        mock_transport(monkeypatch, client, body={"id": "three"})

        with pytest.raises(ApiError):
            await client.get_collection(3)


class TestCollections:
    """Tests for collection endpoints."""

    @pytest.mark.asyncio
    async def test_get_collections(self, client, monkeypatch):
        calls = []
        mock_transport(
            monkeypatch,
            client,
            body=[
                {"id": 1, "parentId": None, "title": "Networking", "flashCardCount": 4},
                {"id": 2, "parentId": 1, "title": "Routing", "childrenCount": 0},
            ],
            calls=calls,
        )

        collections = await client.get_collections(5)

        assert calls[0][:2] == ("GET", "/FlashCardCollection/user/5")
        assert [c.title for c in collections] == ["Networking", "Routing"]
        assert collections[0].flash_card_count == 4
        assert collections[1].parent_id == 1

    @pytest.mark.asyncio
    async def test_create_collection_payload(self, client, monkeypatch):
        calls = []
        mock_transport(monkeypatch, client, body={"id": 3, "title": "OSPF"}, calls=calls)

        created = await client.create_collection(CollectionCreate(user_id=5, title="OSPF"))

        assert created.id == 3
        assert calls[0][2]["json"] == {"userId": 5, "parentId": 0, "title": "OSPF", "description": ""}

    @pytest.mark.asyncio
    async def test_delete_returns_none_on_empty_body(self, client, monkeypatch):
        mock_transport(monkeypatch, client, status=204)

        assert await client.delete_collection(3) is None


class TestFlashcards:
    """Tests for flashcard and learn session endpoints."""

    @pytest.mark.asyncio
    async def test_get_flashcards_paging_params(self, client, monkeypatch):
        calls = []
        mock_transport(
            monkeypatch,
            client,
            body={
                "flashCards": [{"id": 1, "term": "a", "definition": "b", "score": 2}],
                "totalCount": 11,
                "totalPages": 2,
                "pageNumber": 2,
                "pageSize": 10,
            },
            calls=calls,
        )

        page = await client.get_flashcards(4, page_number=2, search_text="ospf")

        assert calls[0][1] == "/FlashCard/collection/4"
        assert calls[0][2]["params"] == {"pageNumber": 2, "pageSize": 10, "searchText": "ospf"}
        assert page.total_pages == 2
        assert page.flash_cards[0].score == 2

    @pytest.mark.asyncio
    async def test_learn_session_wrapped_response(self, client, monkeypatch):
        calls = []
        mock_transport(
            monkeypatch,
            client,
            body={"flashCards": [{"id": 1, "term": "a", "definition": "b", "collectionId": 4}]},
            calls=calls,
        )

        cards = await client.get_learn_session(4, 15)

        assert calls[0][1] == "/FlashCard/LearnSession/4"
        assert calls[0][2]["params"] == {"count": 15}
        assert cards[0].flash_card_collection_id == 4

    @pytest.mark.asyncio
    async def test_learn_session_bare_list(self, client, monkeypatch):
        mock_transport(monkeypatch, client, body=[{"id": 1, "term": "a", "definition": "b"}])

        cards = await client.get_learn_session(4, 10)

        assert [c.id for c in cards] == [1]

    @pytest.mark.asyncio
    async def test_update_scores_payload(self, client, monkeypatch):
        calls = []
        mock_transport(monkeypatch, client, status=204, calls=calls)

        await client.update_scores(
            [ScoreUpdate(flash_card_id=1, score_modification=-2, times_learned=3)]
        )

        method, url, kwargs = calls[0]
        assert (method, url) == ("POST", "/FlashCard/UpdateScores")
        assert kwargs["json"] == {
            "scoreUpdates": [{"flashCardId": 1, "scoreModification": -2, "TimesLearned": 3}]
        }

    @pytest.mark.asyncio
    async def test_bulk_update_and_delete(self, client, monkeypatch):
        calls = []
        mock_transport(monkeypatch, client, status=204, calls=calls)

        await client.bulk_update_flashcards(
            4, [FlashCard(id=0, term="new", definition="card", flash_card_collection_id=4)]
        )
        await client.bulk_delete_flashcards([1, 2])

        update, delete = calls
        assert update[:2] == ("POST", "/FlashCard/Bulk")
        assert update[2]["json"]["flashCardCollectionId"] == 4
        assert update[2]["json"]["flashCards"][0]["id"] == 0
        assert delete[:2] == ("DELETE", "/FlashCard/Bulk")
        assert delete[2]["json"] == {"flashCardIds": [1, 2]}


class TestMindMaps:
    """Tests for mind map endpoints."""

    @pytest.mark.asyncio
    async def test_full_mindmap(self, client, monkeypatch):
        mock_transport(
            monkeypatch,
            client,
            body={
                "id": 1,
                "title": "Routing",
                "nodes": [
                    {
                        "id": 5,
                        "parentNodeId": None,
                        "positionX": 400,
                        "positionY": 300,
                        "hideChildren": True,
                        "flashCard": {"id": 9, "term": "OSPF", "definition": "Link-state"},
                    }
                ],
            },
        )

        mindmap = await client.get_full_mindmap(1)

        node = mindmap.nodes[0]
        assert node.hide_children is True
        assert node.label == "OSPF"
        assert node.position_x == 400.0

    @pytest.mark.asyncio
    async def test_batch_update_nodes(self, client, monkeypatch):
        calls = []

        async def mock_request(method, url, **kwargs):
            calls.append((method, url, kwargs))
            node_id = int(url.rsplit("/", 1)[1])
            body = {"id": node_id, **kwargs["json"]}
            return Response(200, json=body, request=Request(method, BASE_URL + url))

        monkeypatch.setattr(client._client, "request", mock_request)

        nodes = await client.batch_update_nodes(
            [
                (1, MindMapNodeUpdate(position_x=10, position_y=20)),
                (2, MindMapNodeUpdate(color="#EF4444")),
            ]
        )

        assert [n.id for n in nodes] == [1, 2]
        assert nodes[1].color == "#EF4444"
        assert sorted(url for _, url, _ in calls) == ["/mindmap/nodes/1", "/mindmap/nodes/2"]
        payloads = {url: kwargs["json"] for _, url, kwargs in calls}
        assert payloads["/mindmap/nodes/1"] == {"positionX": 10.0, "positionY": 20.0}


class TestAnalytics:
    """Tests for analytics endpoints."""

    @pytest.mark.asyncio
    async def test_empty_analytics_is_dict(self, client, monkeypatch):
        mock_transport(monkeypatch, client, status=204)

        assert await client.get_overview_stats(1) == {}

    @pytest.mark.asyncio
    async def test_overview(self, client, monkeypatch):
        calls = []
        mock_transport(monkeypatch, client, body={"totalCards": 120}, calls=calls)

        stats = await client.get_overview_stats(1)

        assert calls[0][1] == "/analytics/1/overview"
        assert stats == {"totalCards": 120}
