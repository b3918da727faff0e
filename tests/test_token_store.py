"""Tests for token models and the bundled token stores."""

import json
import threading

import pytest

from nextengine_client.exceptions import TokenStoreError
from nextengine_client.models import APIResponse, Token
from nextengine_client.token_store import DefaultTokenStore, FileTokenStore


class TestToken:
    """Tests for Token helpers."""

    def test_from_dict_ignores_unknown_keys(self):
        """Envelope fields other than the token are ignored."""
        token = Token.from_dict(
            {"access_token": "A", "refresh_token": None, "result": "success"}
        )

        assert token == Token(access_token="A")

    def test_merge_keeps_existing_when_incoming_empty(self):
        """Empty incoming fields keep the held value."""
        held = Token(access_token="A", refresh_token="B", access_token_end_date="d1")

        merged = held.merged_with(Token(refresh_token="C"))

        assert merged == Token(
            access_token="A", refresh_token="C", access_token_end_date="d1"
        )

    def test_has_token_pair(self):
        """Both tokens are needed to count as a pair."""
        assert Token(access_token="A", refresh_token="B").has_token_pair
        assert not Token(access_token="A").has_token_pair


class TestAPIResponse:
    """Tests for envelope decoding."""

    def test_from_payload(self):
        """All envelope fields are mapped, numbers kept as text."""
        response = APIResponse.from_payload(
            {
                "result": "success",
                "code": None,
                "count": 2,
                "data": [{"id": "1"}, {"id": "2"}],
                "access_token": "A",
                "refresh_token": "B",
            }
        )

        assert response.is_success
        assert response.code == ""
        assert response.count == "2"
        assert response.data == [{"id": "1"}, {"id": "2"}]
        assert response.token.has_token_pair

    def test_missing_data_is_empty_list(self):
        """An envelope without data yields an empty list."""
        assert APIResponse.from_payload({"result": "error"}).data == []


class TestDefaultTokenStore:
    """Tests for the in-memory store."""

    def test_save_merges_partial_update(self):
        """Only non-empty fields replace the stored ones."""
        store = DefaultTokenStore(Token(access_token="A", refresh_token="B"))

        store.save(Token(access_token="", refresh_token="C"))

        assert store.fetch() == Token(access_token="A", refresh_token="C")

    def test_save_persists_full_update(self):
        """A complete token replaces every field."""
        store = DefaultTokenStore()
        update = Token("A", "B", "2026-10-19", "2026-10-21")

        store.save(update)

        assert store.fetch() == update

    def test_fetch_returns_copy(self):
        """Mutating a fetched token does not change the store."""
        store = DefaultTokenStore(Token(access_token="A"))

        store.fetch().access_token = "changed"

        assert store.fetch().access_token == "A"

    def test_seed_is_copied(self):
        """Changing the seed token after construction does not touch the store."""
        seed = Token(access_token="A", refresh_token="B")
        store = DefaultTokenStore(seed)

        seed.access_token = "mutated"

        assert store.fetch().access_token == "A"

    def test_concurrent_saves_keep_every_field(self):
        """Saves from several threads merge without losing updates."""
        store = DefaultTokenStore()
        field_names = [
            "access_token",
            "refresh_token",
            "access_token_end_date",
            "refresh_token_end_date",
        ]

        def save_field(name):
            for i in range(200):
                store.save(Token(**{name: f"{name}-{i}"}))

        threads = [threading.Thread(target=save_field, args=(name,)) for name in field_names]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        token = store.fetch()
        for name in field_names:
            assert getattr(token, name) == f"{name}-199"


class TestFileTokenStore:
    """Tests for the JSON file store."""

    def test_fetch_missing_file_returns_empty_token(self, tmp_path):
        """No file yet means no token."""
        store = FileTokenStore(tmp_path / "tokens.json")

        assert store.fetch() == Token()

    def test_save_writes_merged_json(self, tmp_path):
        """save merges with the file content and creates parent dirs."""
        token_file = tmp_path / "nested" / "tokens.json"
        store = FileTokenStore(token_file)

        store.save(Token(access_token="A", refresh_token="B"))
        store.save(Token(access_token="A2"))

        data = json.loads(token_file.read_text())
        assert data["access_token"] == "A2"
        assert data["refresh_token"] == "B"
        assert store.fetch() == Token(access_token="A2", refresh_token="B")

    def test_invalid_file_raises(self, tmp_path):
        """A corrupted token file is a store error."""
        token_file = tmp_path / "tokens.json"
        token_file.write_text("{not json")

        with pytest.raises(TokenStoreError):
            FileTokenStore(token_file).fetch()
