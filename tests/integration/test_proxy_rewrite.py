"""
Proxy Integration Tests: intercepted (rewritten) responses
"""

import gzip
import zlib

import brotli
import httpx
import pytest

from rewrite_proxy.mock_upstream import create_mock_upstream

PAGE = """<!doctype html><html><body>
<script>formatCurrency('GBP', '£', '0.00', '{2}{3}');</script>
<div id="balance">Balance: <span>£0.00</span></div>
<div id="fee">Fee: <span>£5.00</span></div>
</body></html>"""


def html_upstream(body: bytes, headers=None, status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            headers=[("content-type", "text/html; charset=utf-8")] + list(headers or []),
            stream=httpx.ByteStream(body),
        )

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_mock_upstream_card_info_is_rewritten(proxy_client_factory):
    async with proxy_client_factory(create_mock_upstream()) as client:
        resp = await client.get("/cardInfo")

    assert resp.status_code == 200
    assert "formatCurrency('GBP', '£', '1000.00', '{2}{3}')" in resp.text
    assert "formatCurrency('GBP', '£', '0.00', '{2}{3}')" not in resp.text
    assert "<span>£1000.00</span>" in resp.text
    assert "£0.00" not in resp.text
    assert resp.headers["content-type"] == "text/html; charset=utf-8"
    assert resp.headers["content-length"] == str(len(resp.content))
    assert "content-encoding" not in resp.headers


@pytest.mark.asyncio
async def test_posted_form_reaches_upstream_and_echo_is_rewritten(proxy_client_factory):
    async with proxy_client_factory(create_mock_upstream()) as client:
        resp = await client.post("/cardInfo?ref=abc", data={"card": "1234"})

    assert resp.status_code == 200
    assert "Posted to /cardInfo" in resp.text
    assert "&quot;card&quot;: &quot;1234&quot;" in resp.text
    assert "&quot;ref&quot;: &quot;abc&quot;" in resp.text
    # Echoed zero balance is rewritten
    assert "£1000.00" in resp.text


@pytest.mark.asyncio
async def test_posted_json_non_zero_balance_is_untouched(proxy_client_factory):
    async with proxy_client_factory(create_mock_upstream()) as client:
        resp = await client.post("/cardInfo", json={"bal": "5.00"})

    assert "£5.00" in resp.text
    assert "£1000.00" not in resp.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "encoding,compress",
    [
        ("identity", lambda data: data),
        ("gzip", gzip.compress),
        ("deflate", zlib.compress),
        ("br", brotli.compress),
    ],
)
async def test_compressed_html_is_decoded_and_rewritten(proxy_client_factory, encoding, compress):
    raw = compress(PAGE.encode("utf-8"))
    transport = html_upstream(raw, headers=[("content-encoding", encoding), ("x-upstream", "1")])

    async with proxy_client_factory(transport) as client:
        resp = await client.get("/cardInfo")

    assert "content-encoding" not in resp.headers
    assert resp.headers["x-upstream"] == "1"
    assert resp.headers["content-length"] == str(len(resp.content))
    assert "£1000.00" in resp.text
    assert "Fee: <span>£5.00</span>" in resp.text
    assert "'1000.00'" in resp.text


@pytest.mark.asyncio
async def test_rewritten_output_is_a_fixed_point(proxy_client_factory):
    async with proxy_client_factory(html_upstream(gzip.compress(PAGE.encode("utf-8")), [("content-encoding", "gzip")])) as client:
        first = await client.get("/cardInfo")

    async with proxy_client_factory(html_upstream(first.content)) as client:
        second = await client.get("/cardInfo")

    assert second.content == first.content


@pytest.mark.asyncio
async def test_corrupt_gzip_is_relayed_unmodified(proxy_client_factory):
    raw = b"<html>not really gzip</html>"
    transport = html_upstream(raw, headers=[("content-encoding", "gzip"), ("x-upstream", "1")], status_code=200)

    async with proxy_client_factory(transport) as client:
        async with client.stream("GET", "/cardInfo") as resp:
            body = b"".join([chunk async for chunk in resp.aiter_raw()])

    assert resp.status_code == 200
    assert body == raw
    assert resp.headers["content-encoding"] == "gzip"
    assert resp.headers["content-type"] == "text/html; charset=utf-8"
    assert resp.headers["x-upstream"] == "1"
    assert resp.headers["content-length"] == str(len(raw))


@pytest.mark.asyncio
async def test_configured_rules_are_applied(proxy_client_factory):
    transport = html_upstream("<p>$0.00 and £0.00</p>".encode("utf-8"))
    rules = [{"name": "usd", "pattern": "$0.00", "replacement": "$1000.00"}]

    async with proxy_client_factory(transport, REWRITE_RULES=rules, REWRITE_DEFAULT_RULES=False) as client:
        resp = await client.get("/cardInfo")

    assert resp.text == "<p>$1000.00 and £0.00</p>"


@pytest.mark.asyncio
async def test_custom_rewrite_prefix(proxy_client_factory):
    transport = html_upstream("<p>£0.00</p>".encode("utf-8"))

    async with proxy_client_factory(transport, REWRITE_PATH_PREFIX="/balance") as client:
        rewritten = await client.get("/balance/page")
        untouched = await client.get("/cardInfo")

    assert rewritten.text == "<p>£1000.00</p>"
    assert untouched.text == "<p>£0.00</p>"
