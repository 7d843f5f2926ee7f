"""
Unit tests for CLI commands, with API calls stubbed out.
"""

import pytest
from typer.testing import CliRunner

from config import Settings
from src.cli import main as cli
from src.core.errors import ApiError
from src.core.models import AuthResponse, FlashCard, FlashCardCollection, FlashCardPage
from src.core.platform_client import FlashdeckClient

runner = CliRunner()


@pytest.fixture
def settings(monkeypatch):
    """Settings with a signed-in user, bypassing env and .env."""
    configured = Settings(api_base_url="http://flashdeck.test/api", api_token="t", user_id=1)
    monkeypatch.setattr(cli, "get_settings", lambda: configured)
    return configured


class TestAuthCommands:
    """Tests for the auth group."""

    def test_refresh_prints_new_token(self, settings, monkeypatch):
        async def fake_refresh(self):
            return AuthResponse(token="fresh", user_id=1, username="ana", email="ana@example.com")

        monkeypatch.setattr(FlashdeckClient, "refresh_token", fake_refresh)

        result = runner.invoke(cli.app, ["auth", "refresh"])

        assert result.exit_code == 0, result.output
        assert "export FLASHDECK_API_TOKEN=fresh" in result.output

    @pytest.mark.parametrize("command", [["auth", "refresh"], ["auth", "whoami"]])
    def test_requires_token(self, monkeypatch, command):
        monkeypatch.setattr(cli, "get_settings", lambda: Settings(api_token=None, user_id=1))

        result = runner.invoke(cli.app, command)

        assert result.exit_code == 1
        assert "No token configured" in result.output


class TestStatusCommand:
    """Tests for the status command."""

    def test_reachable(self, settings, monkeypatch):
        async def fake_health(self):
            return True

        monkeypatch.setattr(FlashdeckClient, "health_check", fake_health)

        result = runner.invoke(cli.app, ["status"])

        assert result.exit_code == 0, result.output
        assert "http://flashdeck.test/api" in result.output
        assert "configured" in result.output
        assert "yes" in result.output

    def test_unreachable_without_token(self, monkeypatch):
        offline = Settings(api_base_url="http://down.test", api_token=None)
        monkeypatch.setattr(cli, "get_settings", lambda: offline)

        async def fake_health(self):
            return False

        monkeypatch.setattr(FlashdeckClient, "health_check", fake_health)

        result = runner.invoke(cli.app, ["status"])

        assert result.exit_code == 1
        assert "not configured" in result.output
        assert "Cannot reach http://down.test" in result.output

class TestCollectionsCommands:
    """Tests for the collections group."""

    def test_list_renders_tree(self, settings, monkeypatch, sample_collections):
        async def fake_get_collections(self, user_id):
            assert user_id == 1
            return sample_collections

        monkeypatch.setattr(FlashdeckClient, "get_collections", fake_get_collections)

        result = runner.invoke(cli.app, ["collections", "list"])

        assert result.exit_code == 0, result.output
        assert "Networking" in result.output
        assert "OSPF" in result.output

    def test_list_requires_user(self, monkeypatch):
        monkeypatch.setattr(cli, "get_settings", lambda: Settings(api_token="t", user_id=None))

        result = runner.invoke(cli.app, ["collections", "list"])

        assert result.exit_code == 1
        assert "No user configured" in result.output

    def test_api_error_exits_nonzero(self, settings, monkeypatch):
        async def fake_get_collection(self, collection_id):
            raise ApiError("Collection not found", status=404)

        monkeypatch.setattr(FlashdeckClient, "get_collection", fake_get_collection)

        result = runner.invoke(cli.app, ["collections", "show", "9"])

        assert result.exit_code == 1
        assert "Collection not found" in result.output

    def test_create_rejects_blank_title(self, settings):
        result = runner.invoke(cli.app, ["collections", "create", "   "])

        assert result.exit_code == 1
        assert "Title cannot be empty" in result.output


class TestCardsCommands:
    """Tests for the cards group."""

    def test_add_sends_new_card(self, settings, monkeypatch):
        saved = []

        async def fake_bulk(self, collection_id, cards):
            saved.append((collection_id, cards))

        monkeypatch.setattr(FlashdeckClient, "bulk_update_flashcards", fake_bulk)

        result = runner.invoke(cli.app, ["cards", "add", "4", "--term", "VLAN", "--definition", "Virtual LAN"])

        assert result.exit_code == 0, result.output
        collection_id, cards = saved[0]
        assert collection_id == 4
        assert [(c.id, c.term) for c in cards] == [(0, "VLAN")]

    def test_flip_single_card(self, settings, monkeypatch):
        saved = []

        async def fake_get_flashcards(self, collection_id, page_number=1, page_size=10, search_text=None):
            return FlashCardPage(
                flash_cards=[
                    FlashCard(id=1, term="a", definition="b"),
                    FlashCard(id=2, term="c", definition="d"),
                ],
                total_pages=1,
            )

        async def fake_bulk(self, collection_id, cards):
            saved.extend(cards)

        monkeypatch.setattr(FlashdeckClient, "get_flashcards", fake_get_flashcards)
        monkeypatch.setattr(FlashdeckClient, "bulk_update_flashcards", fake_bulk)

        result = runner.invoke(cli.app, ["cards", "flip", "4", "--card", "2"])

        assert result.exit_code == 0, result.output
        assert [(c.id, c.term, c.definition) for c in saved] == [(2, "d", "c")]

    def test_edit_unknown_card(self, settings, monkeypatch):
        async def fake_get_flashcards(self, collection_id, page_number=1, page_size=10, search_text=None):
            return FlashCardPage(flash_cards=[FlashCard(id=1, term="a", definition="b")], total_pages=1)

        monkeypatch.setattr(FlashdeckClient, "get_flashcards", fake_get_flashcards)

        result = runner.invoke(cli.app, ["cards", "edit", "4", "7", "--term", "x"])

        assert result.exit_code == 1
        assert "Card 7 not found" in result.output


class TestLearnCommand:
    """Tests for the learn command."""

    def test_empty_collection(self, settings, monkeypatch):
        async def fake_learn_session(self, collection_id, count):
            assert count == settings.cards_per_session
            return []

        monkeypatch.setattr(FlashdeckClient, "get_learn_session", fake_learn_session)

        result = runner.invoke(cli.app, ["learn", "4"])

        assert result.exit_code == 0, result.output
        assert "No cards available" in result.output

    def test_fetch_failure_exits_nonzero(self, settings, monkeypatch):
        async def fake_learn_session(self, collection_id, count):
            raise ApiError("Failed to fetch learn session")

        monkeypatch.setattr(FlashdeckClient, "get_learn_session", fake_learn_session)

        result = runner.invoke(cli.app, ["learn", "4", "--count", "5"])

        assert result.exit_code == 1
        assert "Failed to fetch learn session" in result.output

    def test_learn_one_card(self, settings, monkeypatch):
        submitted = []

        async def fake_learn_session(self, collection_id, count):
            return [FlashCard(id=1, term="OSPF", definition="Link-state")]

        async def fake_update_scores(self, updates):
            submitted.extend(updates)

        monkeypatch.setattr(FlashdeckClient, "get_learn_session", fake_learn_session)
        monkeypatch.setattr(FlashdeckClient, "update_scores", fake_update_scores)

        result = runner.invoke(cli.app, ["learn", "4"], input="\n1\n\n1\ne\n")

        assert result.exit_code == 0, result.output
        assert [(u.flash_card_id, u.score_modification) for u in submitted] == [(1, 2)]
