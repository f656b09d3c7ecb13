"""
librebook - librebook.me 小说源插件

解析列表、详情、目录和正文页面, 输出阅读器宿主使用的统一数据结构。
"""

from .core.models import NovelItem, ChapterItem, SourceNovel, NovelStatus
from .sources import find_source, get_source, get_source_names
from .sources.librebook import LibreBookSource

__version__ = "1.0.0"

__all__ = [
    "NovelItem", "ChapterItem", "SourceNovel", "NovelStatus",
    "LibreBookSource",
    "find_source", "get_source", "get_source_names",
]
