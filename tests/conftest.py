"""
测试公共夹具: 假的 fetch (按 URL 返回预设页面, 不访问网络)
"""

import pytest

from librebook.sources.librebook import LibreBookSource

SITE = "https://1.librebook.me"


class FakeFetch:
    """按 URL 返回预设 HTML, 并记录请求顺序"""

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.calls = []

    def __call__(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            raise ConnectionError(f"no page for {url}")
        return page


@pytest.fixture
def fetch():
    return FakeFetch()


@pytest.fixture
def source(fetch):
    return LibreBookSource(site=SITE, fetch=fetch)
