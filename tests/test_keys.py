"""
Tests for API key status, overrides, masking and format checks.
"""

import os

from sqlchat.keys import ApiKeyManager

VALID_KEY = "sk-ant-" + "a" * 60


def test_status_without_keys():
    status = ApiKeyManager().get_api_key_status()
    assert not status.has_env_key
    assert not status.has_override_key
    assert not status.is_valid
    assert status.source == "none"


def test_status_with_env_key(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", VALID_KEY)
    status = ApiKeyManager().get_api_key_status()
    assert status.has_env_key
    assert status.is_valid
    assert status.source == "env"
    assert status.to_dict() == {
        "hasEnvKey": True,
        "hasOverrideKey": False,
        "isValid": True,
        "source": "env",
    }


def test_override_wins_and_is_exported(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
    manager = ApiKeyManager()

    manager.set_override_key("  override-key  ")

    assert manager.get_api_key_status().source == "override"
    assert manager.get_current_key() == "override-key"
    assert os.environ["ANTHROPIC_API_KEY"] == "override-key"


def test_blank_override_is_ignored(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
    manager = ApiKeyManager()

    manager.set_override_key("   ")

    assert not manager.get_api_key_status().has_override_key
    assert manager.get_current_key() == "from-env"


def test_clear_override_keeps_environment(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
    manager = ApiKeyManager()
    manager.set_override_key("override-key")

    manager.clear_override_key()

    assert not manager.get_api_key_status().has_override_key
    # The override was exported, clearing does not restore the old value
    assert manager.get_current_key() == "override-key"


def test_current_key_none():
    assert ApiKeyManager().get_current_key() is None


def test_custom_env_var(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    manager = ApiKeyManager(env_var="OPENAI_API_KEY", key_prefix="sk-")
    assert manager.get_current_key() == "sk-openai"


def test_mask_api_key():
    assert ApiKeyManager.mask_api_key("sk-ant-1234567890") == "sk-a" + "•" * 9 + "7890"
    assert ApiKeyManager.mask_api_key("abcdefgh") == "abcd" + "•" * 4 + "efgh"
    assert ApiKeyManager.mask_api_key("short") == "•" * 8
    assert ApiKeyManager.mask_api_key("") == "•" * 8


def test_validate_api_key_format():
    manager = ApiKeyManager()
    assert manager.validate_api_key_format(VALID_KEY)
    assert manager.validate_api_key_format(f"  {VALID_KEY}  ")
    assert not manager.validate_api_key_format("sk-ant-short")
    assert not manager.validate_api_key_format("sk-" + "a" * 60)
