"""Tests for the LLM settings store."""

import json

import pytest

from testdesign.llm.settings import (
    DEFAULT_OLLAMA_BASE_URL,
    DEFAULT_OPENAI_BASE_URL,
    SettingsStore,
    resolve_settings_path,
)


def test_defaults_without_file_or_env(settings_store):
    settings = settings_store.get()
    assert settings.openai_api_key == ""
    assert settings.openai_base_url == DEFAULT_OPENAI_BASE_URL
    assert settings.ollama_base_url == DEFAULT_OLLAMA_BASE_URL


def test_environment_fills_missing_values(tmp_path):
    store = SettingsStore(path=tmp_path / "s.json", env={
        "OPENAI_API_KEY": "sk-env",
        "GEMINI_API_KEY": "gk-env",
        "OPENAI_BASE_URL": "https://proxy.example.com/",
    })
    settings = store.get()
    assert settings.openai_api_key == "sk-env"
    assert settings.gemini_api_key == "gk-env"
    assert settings.openai_base_url == "https://proxy.example.com"


def test_file_takes_precedence_over_environment(tmp_path):
    path = tmp_path / "s.json"
    path.write_text(json.dumps({"openai_api_key": "sk-file"}), encoding="utf-8")
    store = SettingsStore(path=path, env={"OPENAI_API_KEY": "sk-env", "ANTHROPIC_API_KEY": "ak-env"})

    settings = store.get()

    assert settings.openai_api_key == "sk-file"
    assert settings.anthropic_api_key == "ak-env"


def test_unreadable_file_falls_back_to_environment(tmp_path):
    path = tmp_path / "s.json"
    path.write_text("{not json", encoding="utf-8")
    store = SettingsStore(path=path, env={"OPENAI_API_KEY": "sk-env"})
    assert store.get().openai_api_key == "sk-env"


def test_summary_never_exposes_keys(tmp_path):
    store = SettingsStore(path=tmp_path / "s.json", env={"ANTHROPIC_API_KEY": "secret"})
    summary = store.summary().model_dump()
    assert summary == {
        "openai": {"configured": False, "base_url": DEFAULT_OPENAI_BASE_URL},
        "gemini": {"configured": False},
        "anthropic": {"configured": True},
    }
    assert "secret" not in json.dumps(summary)


def test_update_persists_and_replaces_cache(settings_store):
    summary = settings_store.update(openai_api_key="  sk-new  ", openai_base_url="http://local.test:8080/")

    assert summary.openai.configured is True
    assert summary.openai.base_url == "http://local.test:8080"
    assert settings_store.get().openai_api_key == "sk-new"

    stored = json.loads(settings_store.path.read_text(encoding="utf-8"))
    assert stored["openai_api_key"] == "sk-new"
    assert "ollama_base_url" not in stored

    # A fresh store reads what was written
    reloaded = SettingsStore(path=settings_store.path, env={})
    assert reloaded.get().openai_base_url == "http://local.test:8080"


def test_update_leaves_unspecified_fields(settings_store):
    settings_store.update(gemini_api_key="gk")
    settings_store.update(anthropic_api_key="ak")
    settings = settings_store.get()
    assert (settings.gemini_api_key, settings.anthropic_api_key) == ("gk", "ak")


def test_update_empty_string_clears_key(settings_store):
    settings_store.update(gemini_api_key="gk")
    assert settings_store.update(gemini_api_key="").gemini.configured is False


def test_update_blank_base_url_resets_default(settings_store):
    settings_store.update(openai_base_url="http://local.test")
    assert settings_store.update(openai_base_url="  ").openai.base_url == DEFAULT_OPENAI_BASE_URL


def test_update_rejects_non_http_base_url(settings_store):
    with pytest.raises(ValueError):
        settings_store.update(openai_base_url="ftp://example.com")
    assert not settings_store.path.exists()


def test_invalidate_rereads_disk(settings_store):
    assert settings_store.get().openai_api_key == ""
    settings_store.path.write_text(json.dumps({"openai_api_key": "sk-disk"}), encoding="utf-8")

    assert settings_store.get().openai_api_key == ""
    settings_store.invalidate()
    assert settings_store.get().openai_api_key == "sk-disk"


def test_settings_path_from_environment(tmp_path):
    target = tmp_path / "conf" / "llm.json"
    assert resolve_settings_path({"LLM_SETTINGS_PATH": str(target)}) == target.resolve()
