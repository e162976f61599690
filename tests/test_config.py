"""
Tests for cache options and environment settings.
"""

import pytest
from pydantic import ValidationError

from descript_redis_cache.core.config import (
    CacheOptions,
    CacheSettings,
    RedisConnectionOptions,
    RedisNode,
    SerializationPolicy,
    get_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestCacheOptions:
    """Test per-instance cache options."""

    def test_defaults(self):
        options = CacheOptions()

        assert options.default_key_ttl == 86400
        assert options.generation == 1
        assert options.read_timeout == 100
        assert options.serialization is SerializationPolicy.VERBATIM
        assert options.redis.url is None

    def test_immutable(self):
        """Test options cannot be mutated after construction."""
        options = CacheOptions()

        with pytest.raises(ValidationError):
            options.generation = 2

    @pytest.mark.parametrize(
        "field,value",
        [("default_key_ttl", 0), ("default_key_ttl", -1), ("read_timeout", 0)],
    )
    def test_positive_values_required(self, field, value):
        with pytest.raises(ValidationError):
            CacheOptions(**{field: value})

    def test_policy_from_string(self):
        options = CacheOptions(serialization="http_response")

        assert options.serialization is SerializationPolicy.HTTP_RESPONSE


class TestRedisConnectionOptions:
    """Test the connection descriptor."""

    def test_single_node(self):
        options = RedisConnectionOptions(url="rediss://cache:6380/1")

        assert not options.is_cluster
        assert not options.is_sentinel

    def test_invalid_url_scheme(self):
        with pytest.raises(ValidationError):
            RedisConnectionOptions(url="http://cache:6379")

    def test_cluster(self):
        options = RedisConnectionOptions(startup_nodes=[{"host": "node-1", "port": 7000}])

        assert options.is_cluster
        assert options.startup_nodes[0] == RedisNode(host="node-1", port=7000)

    def test_one_topology_only(self):
        with pytest.raises(ValidationError):
            RedisConnectionOptions(
                url="redis://cache:6379",
                startup_nodes=[{"host": "node-1"}],
            )

    def test_sentinel_requires_service_name(self):
        with pytest.raises(ValidationError):
            RedisConnectionOptions(sentinels=[{"host": "sentinel", "port": 26379}])

    def test_split_reads_requires_sentinel(self):
        with pytest.raises(ValidationError):
            RedisConnectionOptions(url="redis://cache:6379", split_reads=True)


class TestRedisNode:
    """Test host:port parsing."""

    def test_parse_host_port(self):
        assert RedisNode.parse("node-1:7000") == RedisNode(host="node-1", port=7000)

    def test_parse_host_only(self):
        assert RedisNode.parse(" node-1 ") == RedisNode(host="node-1", port=6379)

    def test_parse_invalid_port(self):
        with pytest.raises(ValueError):
            RedisNode.parse("node-1:abc")


class TestCacheSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CACHE_REDIS_URL", raising=False)

        settings = CacheSettings(_env_file=None)

        assert settings.redis_url == "redis://localhost:6379/0"
        assert settings.redis_cluster_nodes == []
        assert settings.is_development

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CACHE_GENERATION", "4")
        monkeypatch.setenv("CACHE_READ_TIMEOUT", "250")
        monkeypatch.setenv("CACHE_DEFAULT_KEY_TTL", "3600")
        monkeypatch.setenv("CACHE_SERIALIZATION", "http_response")

        options = CacheOptions.from_settings(get_settings())

        assert options.generation == 4
        assert options.read_timeout == 250
        assert options.default_key_ttl == 3600
        assert options.serialization is SerializationPolicy.HTTP_RESPONSE

    def test_cluster_nodes_from_environment(self, monkeypatch):
        monkeypatch.setenv("CACHE_REDIS_CLUSTER_NODES", "node-1:7000, node-2:7001")

        options = CacheOptions.from_settings(CacheSettings(_env_file=None))

        assert options.redis.url is None
        assert options.redis.startup_nodes == (
            RedisNode(host="node-1", port=7000),
            RedisNode(host="node-2", port=7001),
        )

    def test_sentinel_split_from_environment(self, monkeypatch):
        monkeypatch.setenv("CACHE_REDIS_SENTINELS", "sentinel-1:26379,sentinel-2:26379")
        monkeypatch.setenv("CACHE_REDIS_SENTINEL_SERVICE", "sentinel-db")
        monkeypatch.setenv("CACHE_REDIS_SPLIT_READS", "true")

        options = CacheOptions.from_settings(CacheSettings(_env_file=None))

        assert options.redis.is_sentinel
        assert options.redis.service_name == "sentinel-db"
        assert options.redis.split_reads is True
        assert len(options.redis.sentinels) == 2

    def test_settings_cached(self):
        assert get_settings() is get_settings()
