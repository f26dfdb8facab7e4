"""
Unit tests for the resolve command line tool

The resolver is replaced by an in-memory one; tests cover output, exit
status and flag handling.
"""

from unittest.mock import patch

import pytest

from conftest import FakeResolver, make_entry
from overlay.tunnel.peer.errors import ResolutionFailure
from overlay.tunnel.peer.resolve.__main__ import main
from overlay.tunnel.peer.resolve.resolver import ResolverFlags


@pytest.fixture(autouse=True)
def quiet_setup(monkeypatch):
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.delenv("LOGGING_CONFIG_FILE", raising=False)
    with patch("overlay.tunnel.peer.resolve.__main__.configure_logging"):
        yield


class TestMain:
    """Test suite for the resolve CLI."""

    def test_literal(self, capsys):
        """Test literal endpoint uses the default service."""
        with patch("overlay.tunnel.peer.resolve.__main__.create_resolver", return_value=FakeResolver()):
            status = main(["9.0.0.1", "--default-service", "5000"])

        assert status == 0
        assert capsys.readouterr().out == "9.0.0.1 9.0.0.1:5000\n"

    def test_hostname_flags(self, capsys):
        """Test hostname endpoints go through the resolver with flags."""
        resolver = FakeResolver(entries=[make_entry("10.0.0.1", 1234)])
        with patch("overlay.tunnel.peer.resolve.__main__.create_resolver", return_value=resolver):
            status = main(["example.org", "--default-service", "1234", "--numeric-service", "--protocol", "ipv4"])

        assert status == 0
        assert capsys.readouterr().out == "example.org 10.0.0.1:1234\n"
        query = resolver.queries[0]
        assert query.service == "1234"
        assert query.flags == ResolverFlags.numeric_service

    def test_failure_exit_status(self, capsys):
        """Test failures are logged and reflected in the exit status."""
        resolver = FakeResolver(error=ResolutionFailure("name not found"))
        with patch("overlay.tunnel.peer.resolve.__main__.create_resolver", return_value=resolver):
            status = main(["example.org", "9.0.0.1:80", "bad:"])

        assert status == 1
        assert capsys.readouterr().out == "9.0.0.1:80 9.0.0.1:80\n"

    def test_async(self, capsys):
        """Test async mode prints every candidate."""
        resolver = FakeResolver(entries=[make_entry("10.0.0.1", 1234), make_entry("::1", 1234)])
        with patch("overlay.tunnel.peer.resolve.__main__.create_resolver", return_value=resolver):
            status = main(["example.org:1234", "--async"])

        assert status == 0
        assert capsys.readouterr().out.splitlines() == [
            "example.org:1234 10.0.0.1:1234 (example.org 1234)",
            "example.org:1234 [::1]:1234 (example.org 1234)",
        ]
