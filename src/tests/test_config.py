from __future__ import annotations

import json

from news_reader import config
from news_reader.config import DEFAULT_PORT, UPSTREAM_BASE_URL, load_gateway_settings


def test_gateway_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("THENEWSAPI_TOKEN", "tok")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("NEWS_API_BASE_URL", "https://mirror.test/")
    settings = load_gateway_settings(env_file=str(tmp_path / "missing.env"))
    assert settings.has_token
    assert settings.port == 8080
    assert settings.upstream_base_url == "https://mirror.test"


def test_gateway_settings_defaults(monkeypatch, tmp_path):
    for name in ("THENEWSAPI_TOKEN", "NEWS_API_BASE_URL", "HTTP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PORT", "not-a-port")
    settings = load_gateway_settings(env_file=str(tmp_path / "missing.env"))
    assert not settings.has_token
    assert settings.port == DEFAULT_PORT
    assert settings.upstream_base_url == UPSTREAM_BASE_URL


def test_gateway_settings_read_dotenv(monkeypatch, tmp_path):
    # restored to its original state when the test ends
    monkeypatch.setenv("THENEWSAPI_TOKEN", "placeholder")
    monkeypatch.delenv("THENEWSAPI_TOKEN")
    env_file = tmp_path / ".env"
    env_file.write_text("THENEWSAPI_TOKEN=from-file\n")
    settings = load_gateway_settings(env_file=str(env_file))
    assert settings.api_token == "from-file"


def test_load_config_creates_default_file(monkeypatch, tmp_path):
    config_path = tmp_path / "news" / "config.json"
    monkeypatch.setattr(config, "CONFIG_PATH", str(config_path))
    loaded = config.load_config()
    assert loaded == config.DEFAULT_CONFIG
    assert json.loads(config_path.read_text()) == config.DEFAULT_CONFIG
    assert not hasattr(config, "save_config")


def test_load_config_merges_user_values(monkeypatch, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"gateway_url": "http://gw.test"}))
    monkeypatch.setattr(config, "CONFIG_PATH", str(config_path))
    loaded = config.load_config()
    assert loaded["gateway_url"] == "http://gw.test"
    assert loaded["theme"] == config.DEFAULT_THEME
