"""
统一数据模型 - 解析器输出给阅读器宿主的值对象

to_dict() 输出宿主约定的字段名 (releaseTime / chapterNumber),
缺失的可选字段不输出。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class NovelStatus(str, Enum):
    """连载状态 (封闭枚举)"""
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    UNKNOWN = "Unknown"


def _compact(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class NovelItem:
    """列表 / 搜索页中的一本书"""
    name: str
    path: str                     # 站内相对路径, 宿主用它去重和跳转
    cover: Optional[str] = None

    def to_dict(self) -> dict:
        return _compact({"name": self.name, "path": self.path, "cover": self.cover})

    def __repr__(self):
        return f"NovelItem('{self.name}', path='{self.path}')"


@dataclass(frozen=True)
class ChapterItem:
    """一个章节"""
    name: str
    path: str
    chapter_number: int           # 序号 (1-based, 按文档顺序)
    release_time: Optional[str] = None

    def to_dict(self) -> dict:
        return _compact({
            "name": self.name,
            "path": self.path,
            "releaseTime": self.release_time,
            "chapterNumber": self.chapter_number,
        })

    def __repr__(self):
        return f"ChapterItem({self.chapter_number}, '{self.name}')"


@dataclass
class SourceNovel:
    """一本书的详情页"""
    path: str
    name: str = ""
    cover: Optional[str] = None
    author: Optional[str] = None
    genres: str = ""              # 逗号拼接, 可以为空串
    summary: Optional[str] = None
    status: NovelStatus = NovelStatus.UNKNOWN
    chapters: List[ChapterItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = _compact({
            "path": self.path,
            "name": self.name,
            "cover": self.cover,
            "author": self.author,
            "genres": self.genres,
            "summary": self.summary,
            "status": self.status.value,
        })
        data["chapters"] = [c.to_dict() for c in self.chapters]
        return data

    def __repr__(self):
        return f"SourceNovel('{self.name}', chapters={len(self.chapters)}, status={self.status.value})"
