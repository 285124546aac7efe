"""
Unit Tests for configuration parsing
"""
from depmatrix.core.config import Settings, parse_categories, parse_cors_origins


class TestParsers:

    def test_cors_comma_separated(self):
        assert parse_cors_origins("http://a, http://b,") == ["http://a", "http://b"]

    def test_cors_json_list(self):
        assert parse_cors_origins('["http://a"]') == ["http://a"]

    def test_categories_keep_order_and_dedupe(self):
        assert parse_categories("Safety,Economy,Safety, other") == ["Safety", "Economy", "other"]

    def test_categories_non_string(self):
        assert parse_categories(None) == []


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STORAGE_MODE", raising=False)
        monkeypatch.delenv("PERSISTENCE_API_URL", raising=False)
        fresh = Settings(_env_file=None)

        assert fresh.STORAGE_MODE == "remote"
        assert fresh.PERSISTENCE_API_URL == "http://localhost:5000"
        assert fresh.MATRIX_CATEGORIES == ["Technical/Ops", "Safety", "Economy", "other"]
        assert fresh.DEFAULT_CATEGORY == "Technical/Ops"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("HISTORY_PAGE_SIZE", "5")
        assert Settings(_env_file=None).HISTORY_PAGE_SIZE == 5
