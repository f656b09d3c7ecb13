"""
网络基础设施 - 代理、Session 构建、页面获取

解析器只依赖 fetch(url) -> str 这一个接口; 这里提供默认实现。
重试 / 超时 / 代理都在这一层, 解析器不处理。
"""

import logging
import os
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════
# 代理管理 (全局单例)
# ══════════════════════════════════════════════════════════════

_proxy: Optional[str] = None


def set_proxy(proxy: Optional[str]):
    """设置全局代理, 格式: http://127.0.0.1:7890 或 socks5://127.0.0.1:1080"""
    global _proxy
    _proxy = proxy.strip() if proxy and proxy.strip() else None


def get_proxy() -> Optional[str]:
    """获取当前全局代理地址"""
    return _proxy


def detect_system_proxy() -> Optional[str]:
    """从环境变量 (HTTPS_PROXY / HTTP_PROXY) 检测系统代理"""
    for var in ("HTTPS_PROXY", "HTTP_PROXY", "https_proxy", "http_proxy"):
        val = os.environ.get(var)
        if val:
            return val
    return None


# ══════════════════════════════════════════════════════════════
# Session 构建
# ══════════════════════════════════════════════════════════════

DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_TIMEOUT = 30


def build_session(
    *,
    user_agent: str = DEFAULT_UA,
    referer: str = "",
    cookies: Optional[dict] = None,
    proxy: Optional[str] = None,
    max_retries: int = 3,
) -> requests.Session:
    """
    构建带重试、cookies 和代理的 Session

    Args:
        user_agent: User-Agent 头
        referer: Referer 头
        cookies: 要注入的 cookies
        proxy: 代理地址 (None 则使用全局代理, "__none__" 强制直连)
        max_retries: 最大重试次数
    """
    session = requests.Session()

    retry = Retry(total=max_retries, backoff_factor=1,
                  status_forcelist=[502, 503, 504])
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    session.headers.update({"User-Agent": user_agent})
    if referer:
        session.headers["Referer"] = referer

    if cookies:
        session.cookies.update(cookies)

    p = proxy if proxy is not None else (_proxy or detect_system_proxy())
    if p and p != "__none__":
        session.proxies = {"http": p, "https": p}

    return session


def _get(url: str, timeout: float, session_kwargs: dict) -> requests.Response:
    logger.debug("GET %s", url)
    with build_session(**session_kwargs) as session:
        resp = session.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp


def fetch_text(url: str, *, timeout: float = DEFAULT_TIMEOUT, **session_kwargs) -> str:
    """
    获取页面文本

    非 2xx 状态抛 requests.HTTPError, 网络错误原样抛出。
    响应未声明编码时按 UTF-8 解码。
    """
    resp = _get(url, timeout, session_kwargs)
    if "charset" not in resp.headers.get("Content-Type", "").lower():
        resp.encoding = "utf-8"
    return resp.text


def fetch_json(url: str, *, timeout: float = DEFAULT_TIMEOUT, **session_kwargs) -> Any:
    """获取 JSON 接口响应"""
    return _get(url, timeout, session_kwargs).json()
