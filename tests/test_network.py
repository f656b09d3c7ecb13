"""
网络层: Session 构建 + 页面获取 (不访问网络)
"""

import pytest
import requests

from librebook.core import network


class FakeSession:

    def __init__(self, response):
        self.response = response
        self.requested = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def get(self, url, timeout=None):
        self.requested.append((url, timeout))
        return self.response


def _response(url, body: bytes, status=200, content_type="text/html"):
    resp = requests.Response()
    resp.url = url
    resp.status_code = status
    resp._content = body
    resp.headers["Content-Type"] = content_type
    return resp


@pytest.fixture(autouse=True)
def reset_proxy():
    network.set_proxy(None)
    yield
    network.set_proxy(None)


class TestProxy:

    def test_set_and_get(self):
        network.set_proxy("  http://127.0.0.1:7890 ")
        assert network.get_proxy() == "http://127.0.0.1:7890"
        network.set_proxy("   ")
        assert network.get_proxy() is None

    def test_detect_from_environment(self, monkeypatch):
        for var in ("HTTPS_PROXY", "HTTP_PROXY", "https_proxy", "http_proxy"):
            monkeypatch.delenv(var, raising=False)
        assert network.detect_system_proxy() is None
        monkeypatch.setenv("HTTP_PROXY", "http://proxy:3128")
        assert network.detect_system_proxy() == "http://proxy:3128"


class TestBuildSession:

    def test_headers_and_retries(self):
        session = network.build_session(referer="https://1.librebook.me/")
        assert session.headers["User-Agent"] == network.DEFAULT_UA
        assert session.headers["Referer"] == "https://1.librebook.me/"
        assert session.get_adapter("https://1.librebook.me/").max_retries.total == 3

    def test_global_proxy(self):
        network.set_proxy("http://127.0.0.1:7890")
        session = network.build_session()
        assert session.proxies == {"http": "http://127.0.0.1:7890", "https": "http://127.0.0.1:7890"}

    def test_force_direct(self):
        network.set_proxy("http://127.0.0.1:7890")
        session = network.build_session(proxy="__none__")
        assert not session.proxies

    def test_system_proxy_when_none_configured(self, monkeypatch):
        for var in ("HTTPS_PROXY", "HTTP_PROXY", "https_proxy", "http_proxy"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("HTTPS_PROXY", "http://proxy:3128")
        session = network.build_session()
        assert session.proxies == {"http": "http://proxy:3128", "https": "http://proxy:3128"}

    def test_configured_proxy_beats_system_proxy(self, monkeypatch):
        monkeypatch.setenv("HTTPS_PROXY", "http://proxy:3128")
        network.set_proxy("http://127.0.0.1:7890")
        session = network.build_session()
        assert session.proxies["https"] == "http://127.0.0.1:7890"


class TestFetch:

    def test_fetch_text_defaults_to_utf8(self, monkeypatch):
        url = "https://1.librebook.me/idiot"
        session = FakeSession(_response(url, "Идиот".encode("utf-8")))
        monkeypatch.setattr(network, "build_session", lambda **kw: session)
        assert network.fetch_text(url) == "Идиот"
        assert session.requested == [(url, network.DEFAULT_TIMEOUT)]

    def test_fetch_text_http_error(self, monkeypatch):
        url = "https://1.librebook.me/missing"
        session = FakeSession(_response(url, b"not found", status=404))
        monkeypatch.setattr(network, "build_session", lambda **kw: session)
        with pytest.raises(requests.HTTPError):
            network.fetch_text(url)

    def test_fetch_json(self, monkeypatch):
        url = "https://1.librebook.me/api/search"
        body = '{"suggestions": [{"value": "Идиот"}]}'.encode("utf-8")
        session = FakeSession(_response(url, body, content_type="application/json; charset=utf-8"))
        monkeypatch.setattr(network, "build_session", lambda **kw: session)
        assert network.fetch_json(url) == {"suggestions": [{"value": "Идиот"}]}
