"""
Source 基类 - 所有小说站点插件的抽象接口

宿主 (阅读器) 通过四个入口调用插件:
  - 热门 / 最新列表 (popular_novels)
  - 书籍详情 + 章节目录 (parse_novel)
  - 章节正文 (parse_chapter)
  - 搜索 (search_novels)

网络请求通过可注入的 fetch(url) -> str 完成, 默认使用 core.network.fetch_text。
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional

from librebook.core.filters import PickerFilter
from librebook.core.models import NovelItem, SourceNovel
from librebook.core.network import fetch_text

Fetch = Callable[[str], str]


class Source(ABC):
    """
    小说源站抽象基类

    子类必须覆盖:
      - id / names / match / site
      - detect_url_type(url)
      - popular_novels / parse_novel / parse_chapter / search_novels
    """

    # ── 子类必须覆盖 ──

    id: str = ""
    names: List[str] = []       # 站点名称列表
    match: List[str] = []       # URL 匹配正则列表
    site: str = ""              # 站点基础 URL
    version: str = "1.0.0"
    icon: str = ""
    filters: Dict[str, PickerFilter] = {}

    def __init__(self, site: Optional[str] = None, fetch: Optional[Fetch] = None):
        if site:
            self.site = site.rstrip("/")
        self._fetch = fetch or self._default_fetch

    def _default_fetch(self, url: str) -> str:
        return fetch_text(url, referer=self.site + "/")

    @property
    def name(self) -> str:
        """主名称"""
        return self.names[0] if self.names else "unknown"

    def fetch(self, url: str) -> str:
        return self._fetch(url)

    # ── URL 识别 ──

    @abstractmethod
    def detect_url_type(self, url: str) -> str:
        """
        识别 URL 类型

        Returns:
            'novel' (书籍页面), 'chapter' (章节页面), 或 'unknown'
        """
        ...

    # ── 宿主入口 ──

    @abstractmethod
    def popular_novels(
        self,
        page: int,
        show_latest_novels: bool = False,
        filters: Optional[Mapping[str, Optional[str]]] = None,
    ) -> List[NovelItem]:
        """
        热门 / 最新列表

        Args:
            page: 页码 (从 1 开始)
            show_latest_novels: 按最新排序
            filters: 宿主选择的筛选值, 键为 self.filters 的键
        """
        ...

    @abstractmethod
    def parse_novel(self, path: str) -> SourceNovel:
        """解析书籍详情页, 包括完整章节目录"""
        ...

    @abstractmethod
    def parse_chapter(self, path: str) -> str:
        """获取章节正文标记, 找不到正文时返回空串"""
        ...

    @abstractmethod
    def search_novels(self, term: str, page: int = 1) -> List[NovelItem]:
        """搜索"""
        ...

    def filter_schema(self) -> Dict[str, dict]:
        """宿主渲染筛选控件用的描述"""
        return {key: f.to_dict() for key, f in self.filters.items()}
