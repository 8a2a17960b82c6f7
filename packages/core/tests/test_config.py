"""Tests for configuration loading."""

from pathlib import Path

import pytest

from repomind_core.config import load_config, state_paths


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("REPOMIND_API_URL", raising=False)
    monkeypatch.delenv("REPOMIND_SESSION", raising=False)


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["base_url"] == "http://localhost:8080"
    assert config["timeout"] == 60
    assert config["cookie_name"] == "JSESSIONID"
    assert config["session_cookie"] is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".repomind.yml"
    cfg.write_text("base_url: https://repomind.example.com\ntimeout: 15\n")
    config = load_config(config_path=str(cfg))
    assert config["base_url"] == "https://repomind.example.com"
    assert config["timeout"] == 15


def test_empty_config_file(tmp_path):
    cfg = tmp_path / ".repomind.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["timeout"] == 60


def test_non_mapping_config_file_raises(tmp_path):
    cfg = tmp_path / ".repomind.yml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(config_path=str(cfg))


def test_env_overrides_config_file(tmp_path, monkeypatch):
    cfg = tmp_path / ".repomind.yml"
    cfg.write_text("base_url: https://from-file\n")
    monkeypatch.setenv("REPOMIND_API_URL", "https://from-env")
    assert load_config(config_path=str(cfg))["base_url"] == "https://from-env"


def test_cli_overrides_env(tmp_path, monkeypatch):
    monkeypatch.setenv("REPOMIND_API_URL", "https://from-env")
    config = load_config(config_path=str(tmp_path / "x.yml"), cli_overrides={"base_url": "https://from-cli"})
    assert config["base_url"] == "https://from-cli"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".repomind.yml"
    cfg.write_text("timeout: 5\n")
    config = load_config(config_path=str(cfg), cli_overrides={"timeout": None})
    assert config["timeout"] == 5


def test_session_cookie_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("REPOMIND_SESSION", "cookie-value")
    assert load_config(config_path=str(tmp_path / "x.yml"))["session_cookie"] == "cookie-value"


def test_defaults_not_mutated(tmp_path):
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["timeout"] = 1
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config_b["timeout"] == 60


def test_state_paths(tmp_path):
    durable, session = state_paths({"state_dir": str(tmp_path)}, "1234")
    assert durable == Path(tmp_path) / "state.db"
    assert session == Path(tmp_path) / "sessions" / "1234.db"
