"""LLM provider credentials and endpoints.

Credentials live in a small JSON file (``llm-settings.json``) so they can be
changed at runtime through the settings API; values missing from the file
fall back to environment variables:

  OPENAI_API_KEY, OPENAI_BASE_URL, GEMINI_API_KEY, ANTHROPIC_API_KEY

The file location is LLM_SETTINGS_PATH, or ./llm-settings.json.

``SettingsStore`` is constructed once by the app and handed to every provider.
It loads lazily on first access and keeps the result until ``update()``
replaces it or ``invalidate()`` drops it. Updates are rare admin actions, so
there is no locking: last writer wins.
"""

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel

from testdesign.llm.http_client import assert_valid_url
from testdesign.utils.logging import log, get_logger

MODULE = "llm.settings"
logger = get_logger()

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"


class LLMSettings(BaseModel):
    openai_api_key: str = ""
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    gemini_api_key: str = ""
    anthropic_api_key: str = ""
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL


class OpenAISummary(BaseModel):
    configured: bool
    base_url: str


class ProviderSummary(BaseModel):
    configured: bool


class LLMSettingsSummary(BaseModel):
    """What the settings API reports. Never includes the keys themselves."""
    openai: OpenAISummary
    gemini: ProviderSummary
    anthropic: ProviderSummary


def _normalize_base_url(value: Optional[str], default: str, field_name: str) -> str:
    trimmed = (value or "").strip()
    if not trimmed:
        return default
    return assert_valid_url(trimmed, field_name)


def resolve_settings_path(env: Mapping[str, str]) -> Path:
    if env.get("LLM_SETTINGS_PATH"):
        return Path(env["LLM_SETTINGS_PATH"]).resolve()
    return Path.cwd() / "llm-settings.json"


class SettingsStore:
    """Process-wide LLM settings cache with explicit reload semantics."""

    def __init__(
        self,
        path: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self._env = os.environ if env is None else env
        self._path = path or resolve_settings_path(self._env)
        self._cache: Optional[LLMSettings] = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> LLMSettings:
        """Current settings, loading from disk + env on first access."""
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def invalidate(self) -> None:
        """Drop the cache; the next ``get()`` re-reads disk and env."""
        self._cache = None

    def summary(self) -> LLMSettingsSummary:
        settings = self.get()
        return LLMSettingsSummary(
            openai=OpenAISummary(
                configured=bool(settings.openai_api_key),
                base_url=settings.openai_base_url,
            ),
            gemini=ProviderSummary(configured=bool(settings.gemini_api_key)),
            anthropic=ProviderSummary(configured=bool(settings.anthropic_api_key)),
        )

    def update(
        self,
        *,
        openai_api_key: Optional[str] = None,
        openai_base_url: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
    ) -> LLMSettingsSummary:
        """Apply the given fields, persist to disk, and replace the cache.

        Fields left as None keep their current value. Keys are trimmed; an
        empty string clears a key.

        Raises:
            ValueError: openai_base_url is not an http(s) URL
        """
        current = self.get()
        updated = current.model_copy(update={
            "openai_api_key": (
                openai_api_key.strip() if openai_api_key is not None
                else current.openai_api_key
            ),
            "openai_base_url": (
                _normalize_base_url(openai_base_url, DEFAULT_OPENAI_BASE_URL, "openai_base_url")
                if openai_base_url is not None
                else current.openai_base_url
            ),
            "gemini_api_key": (
                gemini_api_key.strip() if gemini_api_key is not None
                else current.gemini_api_key
            ),
            "anthropic_api_key": (
                anthropic_api_key.strip() if anthropic_api_key is not None
                else current.anthropic_api_key
            ),
        })

        self._write(updated)
        self._cache = updated
        log.info(logger, MODULE, "update_done", "LLM settings updated",
                 path=str(self._path),
                 openai=bool(updated.openai_api_key),
                 gemini=bool(updated.gemini_api_key),
                 anthropic=bool(updated.anthropic_api_key))
        return self.summary()

    def _load(self) -> LLMSettings:
        stored = self._read()
        env = self._env
        settings = LLMSettings(
            openai_api_key=stored.get("openai_api_key", env.get("OPENAI_API_KEY", "")),
            openai_base_url=_normalize_base_url(
                stored.get("openai_base_url", env.get("OPENAI_BASE_URL")),
                DEFAULT_OPENAI_BASE_URL,
                "openai_base_url",
            ),
            gemini_api_key=stored.get("gemini_api_key", env.get("GEMINI_API_KEY", "")),
            anthropic_api_key=stored.get("anthropic_api_key", env.get("ANTHROPIC_API_KEY", "")),
            ollama_base_url=_normalize_base_url(
                env.get("OLLAMA_BASE_URL"), DEFAULT_OLLAMA_BASE_URL, "OLLAMA_BASE_URL",
            ),
        )
        log.debug(logger, MODULE, "load_done", "LLM settings loaded",
                  path=str(self._path), from_file=bool(stored))
        return settings

    def _read(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            log.warning(logger, MODULE, "read_failed",
                        "Failed to read LLM settings file, using environment",
                        path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            log.warning(logger, MODULE, "read_failed",
                        "LLM settings file is not a JSON object, using environment",
                        path=str(self._path))
            return {}
        return data

    def _write(self, settings: LLMSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = settings.model_dump(exclude={"ollama_base_url"})
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
