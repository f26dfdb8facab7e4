"""
Unit tests for overlay.tunnel.peer.app.config

Tests cover environment loading of Settings and resolver selection.
"""

import pytest
from pydantic import ValidationError

from overlay.tunnel.peer.app.config import ResolverBackend, Settings, create_resolver
from overlay.tunnel.peer.model.transport import IPProtocol
from overlay.tunnel.peer.resolve.dns import DnsResolver
from overlay.tunnel.peer.resolve.system import SystemResolver


@pytest.fixture
def clean_env(monkeypatch):
    for name in [
        "DEBUG",
        "DEFAULT_SERVICE",
        "PROTOCOL",
        "RESOLVER_BACKEND",
        "NAMESERVERS",
        "RESOLVE_TIMEOUT",
        "SENTRY_DSN",
    ]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self, clean_env):
        """Test defaults without environment."""
        settings = Settings()
        assert settings.default_service == "12000"
        assert settings.protocol is IPProtocol.unspecified
        assert settings.resolver_backend is ResolverBackend.system
        assert settings.nameservers == []
        assert settings.resolve_timeout == 5.0
        assert settings.sentry_dsn is None

    def test_from_environment(self, clean_env):
        """Test values are read from environment variables."""
        clean_env.setenv("DEFAULT_SERVICE", "tunnel")
        clean_env.setenv("PROTOCOL", "IPv6")
        clean_env.setenv("RESOLVER_BACKEND", "dns")
        clean_env.setenv("NAMESERVERS", "192.0.2.53, 198.51.100.53,")
        clean_env.setenv("RESOLVE_TIMEOUT", "1.5")

        settings = Settings()
        assert settings.default_service == "tunnel"
        assert settings.protocol is IPProtocol.ipv6
        assert settings.resolver_backend is ResolverBackend.dns
        assert settings.nameservers == ["192.0.2.53", "198.51.100.53"]
        assert settings.resolve_timeout == 1.5

    def test_invalid_protocol(self, clean_env):
        """Test unknown address family is rejected."""
        clean_env.setenv("PROTOCOL", "ipx")
        with pytest.raises(ValidationError):
            Settings()

    def test_protocol_objects(self, clean_env):
        """Test programmatic protocol values."""
        assert Settings(protocol=IPProtocol.ipv4).protocol is IPProtocol.ipv4
        assert Settings(protocol=int(IPProtocol.ipv6)).protocol is IPProtocol.ipv6


class TestCreateResolver:
    """Test suite for create_resolver."""

    def test_system(self, clean_env):
        """Test system backend."""
        assert isinstance(create_resolver(Settings()), SystemResolver)

    def test_dns(self, clean_env):
        """Test dns backend carries its options."""
        resolver = create_resolver(
            Settings(resolver_backend="dns", nameservers=["192.0.2.53"], resolve_timeout=2.0)
        )
        assert isinstance(resolver, DnsResolver)
        assert resolver.nameservers == ["192.0.2.53"]
        assert resolver.timeout == 2.0
