"""
core - 核心基础设施模块

提供数据模型、筛选器、选择器回退链、网络、工具函数等公共组件,
被所有 Source 插件共享。
"""

from .models import NovelItem, ChapterItem, SourceNovel, NovelStatus
from .filters import FilterOption, PickerFilter, resolve_filters
from .network import (
    set_proxy, get_proxy, detect_system_proxy,
    build_session, fetch_text, fetch_json,
)
from .selectors import Rule, first_match, first_nonempty, parse_html
from .utils import clean_text, classify_status

__all__ = [
    "NovelItem", "ChapterItem", "SourceNovel", "NovelStatus",
    "FilterOption", "PickerFilter", "resolve_filters",
    "set_proxy", "get_proxy", "detect_system_proxy",
    "build_session", "fetch_text", "fetch_json",
    "Rule", "first_match", "first_nonempty", "parse_html",
    "clean_text", "classify_status",
]
