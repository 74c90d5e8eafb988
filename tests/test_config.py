"""Tests for llmwire.config loading and precedence."""

from __future__ import annotations

import pytest

from llmwire.config import LLMWireConfig, load_config

YAML = """\
request:
  max_tokens: 2048
schema:
  max_depth: 6
models:
  - name: fast
    model_id: gpt-4o-mini
    provider: openai
    api_key_env: OPENAI_API_KEY
  - name: gemini
    model_id: gemini-2.5-flash
    provider: google
profiles:
  strict:
    schema:
      max_depth: 4
      max_properties: 50
"""


@pytest.fixture
def config_file(tmp_path):
    p = tmp_path / "llmwire.yaml"
    p.write_text(YAML, encoding="utf-8")
    return p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("LLMWIRE_MAX_TOKENS", "LLMWIRE_TIMEOUT", "LLMWIRE_RESPONSES_STORE", "LLMWIRE_SCHEMA_MAX_DEPTH"):
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_defaults(self):
        cfg = load_config()
        assert cfg.request.max_tokens == 4096
        assert cfg.request.anthropic_version == "2023-06-01"
        assert cfg.request.store is True
        assert cfg.schema.max_depth == 10
        assert cfg.transport.timeout_seconds == 120.0
        assert cfg.models == []

    def test_missing_file_is_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "nope.yaml")
        assert cfg.request.max_tokens == 4096


class TestLayering:
    def test_file_values(self, config_file):
        cfg = load_config(config_file)
        assert cfg.request.max_tokens == 2048
        assert cfg.schema.max_depth == 6
        assert cfg.schema.max_properties == 1000

    def test_profile_overlay(self, config_file):
        cfg = load_config(config_file, profile="strict")
        assert cfg.schema.max_depth == 4
        assert cfg.schema.max_properties == 50
        assert cfg.request.max_tokens == 2048

    def test_env_beats_file(self, config_file, monkeypatch):
        monkeypatch.setenv("LLMWIRE_MAX_TOKENS", "512")
        monkeypatch.setenv("LLMWIRE_TIMEOUT", "7.5")
        monkeypatch.setenv("LLMWIRE_RESPONSES_STORE", "false")
        cfg = load_config(config_file)
        assert cfg.request.max_tokens == 512
        assert cfg.transport.timeout_seconds == 7.5
        assert cfg.request.store is False

    def test_overrides_beat_env(self, config_file, monkeypatch):
        monkeypatch.setenv("LLMWIRE_SCHEMA_MAX_DEPTH", "3")
        cfg = load_config(config_file, overrides={"schema.max_depth": 12})
        assert cfg.schema.max_depth == 12

    def test_unknown_override_key(self):
        with pytest.raises(AttributeError, match="Unknown config key"):
            load_config(overrides={"request.max_tokenz": 1})


class TestModels:
    def test_model_entries(self, config_file):
        cfg = load_config(config_file)
        fast = cfg.get_model("fast")
        assert fast.model_id == "gpt-4o-mini"
        assert fast.api_key_env == "OPENAI_API_KEY"
        assert cfg.get_model("gemini").provider == "google"

    def test_unknown_model(self):
        with pytest.raises(KeyError):
            LLMWireConfig().get_model("missing")

    def test_set_override_and_to_dict(self):
        cfg = LLMWireConfig()
        cfg.set_override("request.anthropic_version", "2024-10-22")
        assert cfg.to_dict()["request"]["anthropic_version"] == "2024-10-22"
