"""Unit tests for configuration dataclasses."""

import pytest

from musicboxd_cache.utils.config import AppConfig, CacheConfig, NamespaceConfig, ResilienceConfig


class TestCacheConfig:
    def test_reference_defaults(self):
        config = CacheConfig()

        assert dict(config.namespaces()) == {
            "profile": NamespaceConfig(600.0, 500),
            "social_stats": NamespaceConfig(300.0, 1000),
            "top_reviews": NamespaceConfig(900.0, 300),
            "notification_count": NamespaceConfig(60.0, 1000),
        }
        assert config.enabled is True
        assert config.single_flight is True
        assert config.sweep_interval_seconds == 300.0

    def test_from_dict_builds_namespaces(self):
        config = CacheConfig.from_dict(
            {
                "sweep_interval_seconds": None,
                "top_reviews": {"ttl_seconds": 30, "max_size": 10},
            }
        )

        assert config.sweep_interval_seconds is None
        assert config.top_reviews == NamespaceConfig(30, 10)
        assert config.profile == NamespaceConfig(600.0, 500)

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            CacheConfig.from_dict({"albums": {"ttl_seconds": 1, "max_size": 1}})


class TestAppConfig:
    def test_missing_sections_use_defaults(self):
        config = AppConfig.from_dict({})

        assert config.cache == CacheConfig()
        assert config.resilience == ResilienceConfig()

    def test_nested_sections(self):
        config = AppConfig.from_dict(
            {
                "cache": {"enabled": False},
                "resilience": {"retry_max_attempts": 5, "retry_backoff_ms": [10]},
            }
        )

        assert config.cache.enabled is False
        assert config.resilience.retry_max_attempts == 5
        assert config.resilience.retry_backoff_ms == [10]
        assert config.resilience.failure_threshold == 5
