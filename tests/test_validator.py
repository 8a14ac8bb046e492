"""Tests for autosrc.utils.validator: check_credentials, load_spec."""

import pytest

from autosrc.errors import MissingCredentialError, ParseError
from autosrc.utils.validator import check_credentials, load_spec


class TestCheckCredentials:
    def test_anthropic_key_returned(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        assert check_credentials({"provider": "anthropic"}) == "sk-test"

    def test_default_provider_is_anthropic(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        assert check_credentials({}) == "sk-test"

    def test_google_key(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "g-test")
        assert check_credentials({"provider": "google"}) == "g-test"

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(MissingCredentialError, match="ANTHROPIC_API_KEY"):
            check_credentials({"provider": "anthropic"})

    def test_blank_key_raises(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "   ")
        with pytest.raises(MissingCredentialError):
            check_credentials({"provider": "anthropic"})

    def test_unknown_provider_raises(self):
        with pytest.raises(MissingCredentialError, match="Unknown provider"):
            check_credentials({"provider": "openai"})


class TestLoadSpec:
    def test_any_json_accepted(self, tmp_path):
        path = tmp_path / "spec.json"
        path.write_text('["anything", {"goes": true}]')
        assert load_spec(path) == ["anything", {"goes": True}]

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "spec.json"
        path.write_text("name: demo")
        with pytest.raises(ParseError):
            load_spec(path)

    def test_missing_file_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            load_spec(tmp_path / "nope.json")

    def test_non_utf8_file_raises_parse_error(self, tmp_path):
        path = tmp_path / "spec.json"
        path.write_bytes(b'{"name": "\xff"}')
        with pytest.raises(ParseError, match="UTF-8"):
            load_spec(path)
