"""
Tests for settings, the source registry and logging setup.
"""

import logging

import pytest

from sage.core import logging_config
from sage.core.config import FeatureFlags, FetchSettings, LLMSettings, get_settings, load_source_registry


class TestSettings:
    """Environment-driven settings with safe defaults."""

    def test_flags_default_off(self, monkeypatch):
        for name in ("SAGE_FEATURE_IDENTITY_GATE", "SAGE_FEATURE_JSONLD_FIRST", "SAGE_ENFORCE_GATE"):
            monkeypatch.delenv(name, raising=False)
        flags = FeatureFlags()
        assert not flags.identity_gate
        assert not flags.enforce_gate
        assert flags.snapshot()["identityThreshold"] == 4.0

    def test_flags_from_environment(self, monkeypatch):
        monkeypatch.setenv("SAGE_FEATURE_JSONLD_FIRST", "true")
        monkeypatch.setenv("SAGE_IDENTITY_THRESHOLD", "5.5")
        flags = FeatureFlags()
        assert flags.jsonld_first
        assert flags.identity_threshold == 5.5

    def test_llm_disabled_without_key(self):
        assert not LLMSettings(OPENAI_API_KEY="").enabled
        assert LLMSettings(OPENAI_API_KEY="k").enabled

    def test_fetch_settings(self, monkeypatch):
        monkeypatch.setenv("FETCH_MAX_CONCURRENCY", "2")
        assert FetchSettings().max_concurrency == 2

    def test_data_dir(self):
        assert (get_settings().data_dir / "source_registry.yaml").exists()


class TestSourceRegistry:
    """Host tiers loaded from YAML."""

    def test_tiers(self):
        registry = load_source_registry()
        assert "incidecoder" in registry["authoritative"]
        assert "walmart" in registry["semi_authoritative"]
        assert registry["external_thresholds"]["default"] == 80
        assert "dailymed.nlm.nih.gov" in registry["highly_authoritative"]

    @pytest.mark.parametrize(
        "key",
        ["government", "ranking_authoritative", "marketplaces", "manufacturer_domains", "reputable_retailers"],
    )
    def test_lists_present(self, key):
        assert load_source_registry()[key]


class TestLogging:
    """One-time logging setup."""

    @pytest.fixture(autouse=True)
    def isolated_logs(self):
        logging_config.reset_logging()
        yield
        logging_config.reset_logging()

    def test_writes_system_log(self, tmp_path):
        logging_config.setup_logging(level="DEBUG", log_to_console=False, log_dir=tmp_path / "logs")
        logging_config.get_logger("sage.test").info("[Router] hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        content = (tmp_path / "logs" / "system.log").read_text(encoding="utf-8")
        assert "[Logging] sage at DEBUG" in content
        assert "[Router] hello" in content

    def test_chatty_libraries_quieted(self):
        logging_config.setup_logging(log_to_console=False, log_to_file=False)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_second_call_is_noop(self):
        logging_config.setup_logging(log_to_console=False, log_to_file=False)
        handlers = list(logging.getLogger().handlers)
        logging_config.setup_logging(log_to_console=True, log_to_file=False)
        assert logging.getLogger().handlers == handlers
