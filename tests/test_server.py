"""Tests for the aiohttp redirect server."""

from __future__ import annotations

import aiohttp
import pytest
from aiohttp import test_utils

from edgeredirect.core.config import RedirectSettings
from edgeredirect.rules.defaults import CALENDAR_URL
from edgeredirect.rules.models import RedirectRule
from edgeredirect.rules.provider import RuleConfigProvider
from edgeredirect.server.app import RedirectServer

ADMIN_KEY = "s3cret"


def _server(**settings) -> RedirectServer:
    settings.setdefault("force_https", False)
    return RedirectServer(RedirectSettings(_env_file=None, **settings))


class StaticSource:
    """Rule source that always returns the same payload."""

    name = "static"

    def __init__(self, payload) -> None:
        self.payload = payload

    async def fetch(self):
        return self.payload


async def _client(server: RedirectServer) -> test_utils.TestClient:
    client = test_utils.TestClient(test_utils.TestServer(server.create_app()))
    await client.start_server()
    return client


class TestRedirects:
    """Redirect responses."""

    @pytest.mark.asyncio
    async def test_https_upgrade(self):
        """Plain HTTP is upgraded before anything else."""
        client = await _client(_server(force_https=True))
        try:
            resp = await client.get("/test?a=1", allow_redirects=False)
            assert resp.status == 301
            assert resp.headers["Location"].startswith("https://")
            assert resp.headers["Location"].endswith("/test?a=1")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_health_is_upgraded_too(self):
        client = await _client(_server(force_https=True))
        try:
            resp = await client.get("/health", allow_redirects=False)
            assert resp.status == 301
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_rule_redirect_with_query(self):
        client = await _client(_server())
        try:
            resp = await client.get("/old-page?test=123", allow_redirects=False)
            assert resp.status == 301
            assert resp.headers["Location"].endswith("/new-page?test=123")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_domain_rule(self):
        client = await _client(_server())
        try:
            resp = await client.get(
                "/?utm=1",
                headers={"Host": "book.carlosguerrero.com"},
                allow_redirects=False,
            )
            assert resp.status == 301
            assert resp.headers["Location"] == CALENDAR_URL
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_www_removal(self):
        client = await _client(_server(www_redirect="remove"))
        try:
            resp = await client.get(
                "/test",
                headers={"Host": "www.example.com"},
                allow_redirects=False,
            )
            assert resp.status == 301
            assert resp.headers["Location"] == "http://example.com/test"
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_custom_status_from_provider(self):
        provider = RuleConfigProvider(
            defaults=(RedirectRule(source="/temp", target="https://elsewhere.test/x", status=307),)
        )
        server = RedirectServer(RedirectSettings(_env_file=None, force_https=False), provider=provider)
        client = await _client(server)
        try:
            resp = await client.post("/temp", allow_redirects=False)
            assert resp.status == 307
            assert resp.headers["Location"] == "https://elsewhere.test/x"
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_forwarded_headers_trusted(self):
        """Behind a TLS terminator the forwarded scheme counts."""
        client = await _client(_server(force_https=True, trust_forwarded_headers=True))
        try:
            resp = await client.get(
                "/nonexistent",
                headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "example.com"},
                allow_redirects=False,
            )
            assert resp.status == 404
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_forwarded_headers_ignored_by_default(self):
        client = await _client(_server(force_https=True))
        try:
            resp = await client.get(
                "/nonexistent",
                headers={"X-Forwarded-Proto": "https"},
                allow_redirects=False,
            )
            assert resp.status == 301
        finally:
            await client.close()


class TestFallbackEndpoints:
    """Health, admin, metrics and the 404 page."""

    @pytest.mark.asyncio
    async def test_health(self):
        client = await _client(_server())
        try:
            resp = await client.get("/health")
            assert resp.status == 200
            data = await resp.json()
            assert data["status"] == "ok"
            assert data["service"] == "edgeredirect"
            assert data["rules_source"] == "default"
            assert "timestamp" in data
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_not_found_page(self):
        client = await _client(_server())
        try:
            resp = await client.get("/nonexistent")
            assert resp.status == 404
            assert resp.content_type == "text/html"
            body = await resp.text()
            assert "/nonexistent" in body
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_not_found_escapes_path(self):
        client = await _client(_server())
        try:
            resp = await client.get("/%3Cscript%3E")
            body = await resp.text()
            assert "<script>" not in body
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_admin_rules_requires_key(self):
        client = await _client(_server(admin_key=ADMIN_KEY))
        try:
            resp = await client.get("/admin/rules")
            assert resp.status == 401
            assert await resp.text() == "Unauthorized"
            assert "WWW-Authenticate" in resp.headers

            resp = await client.get("/admin/rules", headers={"Authorization": "Bearer wrong"})
            assert resp.status == 401

            resp = await client.get("/admin/rules", headers={"Authorization": f"Basic {ADMIN_KEY}"})
            assert resp.status == 401
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_admin_rules_with_key(self):
        client = await _client(_server(admin_key=ADMIN_KEY))
        try:
            resp = await client.get("/admin/rules", headers={"Authorization": f"Bearer {ADMIN_KEY}"})
            assert resp.status == 200
            rules = await resp.json()
            assert rules[0] == {"from": "/old-page", "to": "/new-page", "status": 301, "preserveQuery": True}
            assert len(rules) == 10
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_admin_open_without_key(self):
        client = await _client(_server())
        try:
            resp = await client.get("/admin/rules")
            assert resp.status == 200
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_admin_other_methods_not_found(self):
        client = await _client(_server(admin_key=ADMIN_KEY))
        try:
            resp = await client.post("/admin/rules", headers={"Authorization": f"Bearer {ADMIN_KEY}"})
            assert resp.status == 404
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_metrics(self):
        client = await _client(_server(admin_key=ADMIN_KEY))
        try:
            resp = await client.get("/metrics")
            assert resp.status == 401

            await client.get("/old-page", allow_redirects=False)
            resp = await client.get("/metrics", headers={"Authorization": f"Bearer {ADMIN_KEY}"})
            assert resp.status == 200
            assert "edgeredirect_redirects_total" in await resp.text()
        finally:
            await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [42, 1000, -1])
    async def test_non_redirect_status_falls_back_to_defaults(self, status):
        """A fetched rule with a bogus status never reaches the wire."""
        provider = RuleConfigProvider(source=StaticSource([{"from": "/x", "to": "/y", "status": status}]))
        server = RedirectServer(RedirectSettings(_env_file=None, force_https=False), provider=provider)
        client = await _client(server)
        try:
            resp = await client.get("/x", allow_redirects=False)
            assert resp.status == 404

            resp = await client.get("/old-page", allow_redirects=False)
            assert resp.status == 301
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_rule_beats_health_path(self):
        """Rules are consulted before the fallback endpoints."""
        provider = RuleConfigProvider(defaults=(RedirectRule(source="/health", target="/status"),))
        server = RedirectServer(RedirectSettings(_env_file=None, force_https=False), provider=provider)
        client = await _client(server)
        try:
            resp = await client.get("/health", allow_redirects=False)
            assert resp.status == 301
        finally:
            await client.close()


class TestLifecycle:
    """Start and stop on a real socket."""


    @pytest.mark.asyncio
    async def test_start_stop(self, unused_tcp_port):
        from edgeredirect.core.config import ServerSettings

        server = RedirectServer(
            RedirectSettings(_env_file=None, force_https=False),
            ServerSettings(_env_file=None, host="127.0.0.1", port=unused_tcp_port),
        )
        await server.start()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(f"http://127.0.0.1:{unused_tcp_port}/health") as resp:
                    assert resp.status == 200
        finally:
            await server.stop()
