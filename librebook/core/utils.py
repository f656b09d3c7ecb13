"""
通用工具函数 - 文本清理、状态归类、路径处理
"""

import re
from typing import Iterable, Optional
from urllib.parse import urlsplit, urlunsplit

from .models import NovelStatus


# ══════════════════════════════════════════════════════════════
# 文本清理
# ══════════════════════════════════════════════════════════════

_WS_RE = re.compile(r"\s+")


def clean_text(value: Optional[str]) -> str:
    """合并连续空白并去首尾空白"""
    if not value:
        return ""
    return _WS_RE.sub(" ", value).strip()


def strip_marker(value: str, markers: Iterable[str]) -> str:
    """去掉末尾的标记词 (如章节名后的 "новое")"""
    value = clean_text(value)
    for marker in markers:
        pattern = r"\s+" + re.escape(marker) + r"$"
        stripped = re.sub(pattern, "", value, flags=re.IGNORECASE)
        if stripped != value:
            return stripped.strip()
    return value


# ══════════════════════════════════════════════════════════════
# 状态归类
# ══════════════════════════════════════════════════════════════

def classify_status(
    value: Optional[str],
    completed: Iterable[str],
    ongoing: Iterable[str],
) -> NovelStatus:
    """
    关键词包含匹配 (不是全等)

    先查完结关键词, 再查连载关键词; 都不命中返回 UNKNOWN。
    """
    if not value:
        return NovelStatus.UNKNOWN
    value = value.lower()
    if any(phrase in value for phrase in completed):
        return NovelStatus.COMPLETED
    if any(phrase in value for phrase in ongoing):
        return NovelStatus.ONGOING
    return NovelStatus.UNKNOWN


# ══════════════════════════════════════════════════════════════
# URL / 路径
# ══════════════════════════════════════════════════════════════

def strip_query_param(url: str, name: str) -> str:
    """去掉一个查询参数, 其余参数原样保留 (不重新编码)"""
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = [p for p in parts.query.split("&") if p and p.split("=", 1)[0] != name]
    return urlunsplit(parts._replace(query="&".join(pairs)))


def _base_domain(netloc: str) -> str:
    host = netloc.lower().split("@")[-1].split(":")[0]
    return ".".join(host.split(".")[-2:])


def site_relative(url: str, site: str) -> str:
    """
    同站绝对 URL 转为站内路径; 相对路径原样返回 (补全开头的 "/")

    镜像子域 (1.librebook.me / librebook.me) 视为同站, 其他站点抛 ValueError。
    """
    url = url.strip()
    parts = urlsplit(url)
    if parts.scheme and parts.scheme not in ("http", "https"):
        raise ValueError(f"不是网页链接: {url}")
    if parts.netloc:
        if _base_domain(parts.netloc) != _base_domain(urlsplit(site).netloc):
            raise ValueError(f"不是本站 URL: {url}")
        url = urlunsplit(("", "", parts.path, parts.query, parts.fragment))
    if not url.startswith("/"):
        url = "/" + url
    return url


def with_query_marker(path: str, marker: str) -> str:
    """追加查询标记 (已有查询串时用 & 连接)"""
    return path + ("&" if "?" in path else "?") + marker
