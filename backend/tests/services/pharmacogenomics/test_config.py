"""
Tests for engine configuration: defaults, environment, runtime updates, files.
"""

import pytest
from pydantic import ValidationError

from pgx_engine.services.pharmacogenomics import config as config_module
from pgx_engine.services.pharmacogenomics.config import (
    EngineConfig,
    config_from_env,
    get_config,
    load_config_from_file,
    reset_config,
    save_config_to_file,
    update_config,
)
from pgx_engine.services.pharmacogenomics.engine import PharmacogenomicEngine
from pgx_engine.services.pharmacogenomics.gene_definitions import (
    GeneProfileRegistry,
    save_registry_to_file,
)


@pytest.fixture(autouse=True)
def restore_config():
    original = config_module._config
    yield
    config_module._config = original


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()

        assert config.gene_profiles_path is None
        assert config.batch_max_workers == 4
        assert config.log_level == "INFO"
        assert config.include_confidence_breakdown is True

    def test_validation(self):
        with pytest.raises(ValidationError):
            EngineConfig(batch_max_workers=0)
        assert EngineConfig(log_level="debug").log_level == "DEBUG"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("PGX_BATCH_MAX_WORKERS", "8")
        monkeypatch.setenv("PGX_LOG_LEVEL", "warning")
        monkeypatch.setenv("PGX_INCLUDE_CONFIDENCE_BREAKDOWN", "false")
        monkeypatch.setenv("PGX_GENE_PROFILES", "/tmp/profiles.json")

        config = config_from_env()

        assert config.batch_max_workers == 8
        assert config.log_level == "WARNING"
        assert config.include_confidence_breakdown is False
        assert config.gene_profiles_path == "/tmp/profiles.json"

    def test_reset_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PGX_BATCH_MAX_WORKERS", "2")

        assert reset_config().batch_max_workers == 2
        assert get_config().batch_max_workers == 2


class TestGlobalConfig:

    def test_update_config(self):
        updated = update_config(batch_max_workers=3, include_confidence_breakdown=False)

        assert updated is get_config()
        assert get_config().batch_max_workers == 3
        assert get_config().include_confidence_breakdown is False

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "config.json"
        update_config(batch_max_workers=6)
        save_config_to_file(str(path))
        update_config(batch_max_workers=1)

        loaded = load_config_from_file(str(path))

        assert loaded.batch_max_workers == 6
        assert get_config() is loaded


class TestEngineUsesConfig:

    def test_profiles_path_replaces_built_in_panel(self, tmp_path, two_marker_profile):
        path = tmp_path / "profiles.json"
        save_registry_to_file(GeneProfileRegistry([two_marker_profile]), str(path))

        engine = PharmacogenomicEngine(config=EngineConfig(gene_profiles_path=str(path)))

        assert engine.registry.genes == ["TESTG"]
        assert engine.classify("TESTG", {"M1": "CT", "M2": "AA"}).diplotype == "*1/*2"
        assert engine.classify("CYP2C19", {}).limitation_types[0].value == "unsupported_gene"
