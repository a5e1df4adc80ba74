"""
===============================================================================
GNC PROJECT - Configuration Test Suite
===============================================================================
Tests for YAML loading, logging setup and expunge settings built from the
configuration file.
===============================================================================
"""

import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest

from core.config import (
    DEFAULT_CONFIG_PATH,
    ExpungeSettings,
    configure_logging,
    load_config,
)
from core.constants import DEFAULT_MAX_RANGE, DEFAULT_MAX_SPANS
from core.validity_map import ExpungePolicy, ValidityMap


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def write_config(tmp_path):
    def _write(text):
        path = tmp_path / "validity_map.yaml"
        path.write_text(text)
        return path
    return _write


# =============================================================================
# Test: Loading
# =============================================================================

class TestLoadConfig:
    """load_config reads a YAML mapping."""

    def test_bundled_file(self):
        assert DEFAULT_CONFIG_PATH.exists()
        config = load_config()
        assert config['logging']['level'] == 'INFO'
        assert 'expunge' in config

    def test_explicit_path(self, write_config):
        path = write_config("expunge:\n  max_spans: 12\n  policy: FARTHEST\n")
        config = load_config(path)
        assert config == {'expunge': {'max_spans': 12, 'policy': 'FARTHEST'}}

    def test_string_path(self, write_config):
        path = write_config("logging:\n  level: DEBUG\n")
        assert load_config(str(path))['logging']['level'] == 'DEBUG'

    def test_empty_file(self, write_config):
        assert load_config(write_config("")) == {}

    def test_non_mapping_rejected(self, write_config):
        with pytest.raises(ValueError):
            load_config(write_config("- 1\n- 2\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")


class TestConfigureLogging:
    """configure_logging accepts standard level names only."""

    def test_known_level(self):
        configure_logging({'logging': {'level': 'debug'}})

    def test_missing_section(self):
        configure_logging({})

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging({'logging': {'level': 'CHATTY'}})


# =============================================================================
# Test: Expunge settings
# =============================================================================

class TestExpungeSettings:
    """ExpungeSettings maps the ``expunge`` section onto a ValidityMap."""

    def test_defaults_unbounded(self):
        settings = ExpungeSettings()
        assert settings.max_spans == DEFAULT_MAX_SPANS
        assert settings.max_range == DEFAULT_MAX_RANGE
        assert settings.policy is ExpungePolicy.EARLIEST
        assert not settings.is_bounded

    def test_bundled_file_is_unbounded(self):
        settings = ExpungeSettings.from_config(load_config())
        assert not settings.is_bounded

    def test_nulls_mean_unlimited(self):
        settings = ExpungeSettings.from_config(
            {'expunge': {'max_spans': None, 'max_range': None}}
        )
        assert settings.max_spans == DEFAULT_MAX_SPANS
        assert np.isinf(settings.max_range)

    def test_from_yaml(self, write_config):
        path = write_config(
            "expunge:\n"
            "  max_spans: 5\n"
            "  max_range: 86400.0\n"
            "  policy: latest\n"
        )
        settings = ExpungeSettings.from_config(load_config(path))
        assert settings.max_spans == 5
        assert settings.max_range == 86400.0
        assert settings.policy is ExpungePolicy.LATEST
        assert settings.is_bounded

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            ExpungeSettings.from_config({'expunge': {'max_spans': 0}})
        with pytest.raises(ValueError):
            ExpungeSettings.from_config({'expunge': {'policy': 'NEWEST'}})

    def test_apply_bounds_map(self, caplog):
        settings = ExpungeSettings(max_spans=5, policy='LATEST')
        vmap = ValidityMap(None)
        with caplog.at_level(logging.DEBUG, logger='core'):
            assert settings.apply(vmap) is vmap
        assert vmap.expunge_policy is ExpungePolicy.LATEST
        for i in range(0, 100, 10):
            vmap.add_valid_after(i, float(i), False)
        assert vmap.get_spans_number() == 5
        assert vmap.get_last_span().data == 30
        assert any("bounded to 5 spans" in r.getMessage() for r in caplog.records)
