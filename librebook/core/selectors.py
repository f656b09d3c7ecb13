"""
选择器工具 - lxml 文档封装 + 通用 "按顺序回退" 提取

站点改版后同一字段会出现在不同的标记结构里。每个字段的候选位置写成
Rule(selector, accessor) 列表, 由 first_match 依次尝试, 第一个非空结果胜出;
全部失败返回 None, 从不因为缺字段抛异常。
新增一种页面布局 = 在列表里加一条 Rule。
"""

import html
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, List, Optional, Sequence

import lxml.html
from lxml.cssselect import CSSSelector

logger = logging.getLogger(__name__)

Accessor = Callable[[lxml.html.HtmlElement], Optional[str]]


# ══════════════════════════════════════════════════════════════
# 文档解析 / 查询
# ══════════════════════════════════════════════════════════════

def parse_html(text: str) -> lxml.html.HtmlElement:
    """解析整页 HTML (空文档时 lxml 抛 ParserError, 由调用方处理)"""
    return lxml.html.document_fromstring(text)


@lru_cache(maxsize=256)
def _compile(selector: str) -> CSSSelector:
    return CSSSelector(selector)


def select(root, selector: str) -> List[lxml.html.HtmlElement]:
    """CSS 查询, 结果按文档顺序"""
    return _compile(selector)(root)


def select_first(root, selector: str) -> Optional[lxml.html.HtmlElement]:
    found = select(root, selector)
    return found[0] if found else None


def first_nonempty(root, selectors: Iterable[str]) -> List[lxml.html.HtmlElement]:
    """返回第一个有命中的选择器的全部元素 (用于列表循环)"""
    for selector in selectors:
        found = select(root, selector)
        if found:
            logger.debug("命中列表选择器: %s (%d)", selector, len(found))
            return found
    return []


def remove_all(root, selectors: Iterable[str]) -> int:
    """删除匹配的元素 (drop_tree 保留元素后面的文本)"""
    removed = 0
    for selector in selectors:
        for el in select(root, selector):
            if el.getparent() is not None:
                el.drop_tree()
                removed += 1
    return removed


# ══════════════════════════════════════════════════════════════
# 取值器
# ══════════════════════════════════════════════════════════════

def text(el) -> str:
    """元素全部文本, 去首尾空白"""
    return el.text_content().strip()


def own_text(el) -> str:
    """第一个直接子文本节点 (不含子标签里的文本)"""
    if el.text and el.text.strip():
        return el.text.strip()
    for child in el:
        if child.tail and child.tail.strip():
            return child.tail.strip()
    return ""


def attr(name: str) -> Accessor:
    def _get(el) -> str:
        return (el.get(name) or "").strip()
    _get.__name__ = f"attr({name})"
    return _get


def inner_html(el) -> str:
    """元素内部标记 (不含元素自身标签)"""
    parts = [html.escape(el.text, quote=False)] if el.text else []
    for child in el:
        parts.append(lxml.html.tostring(child, encoding="unicode", method="html"))
    return "".join(parts)


def outer_html(el) -> str:
    """元素自身标记 (不含尾随文本)"""
    return lxml.html.tostring(el, encoding="unicode", method="html", with_tail=False)


# ══════════════════════════════════════════════════════════════
# 回退链
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Rule:
    """一个候选位置: CSS 选择器 + 取值方式"""
    selector: str
    accessor: Accessor = text

    def apply(self, root) -> Optional[str]:
        for el in select(root, self.selector):
            value = self.accessor(el)
            if value:
                return value
        return None

    def __repr__(self):
        return f"Rule({self.selector!r}, {getattr(self.accessor, '__name__', 'accessor')})"


def first_match(root, rules: Sequence[Rule], field: str = "") -> Optional[str]:
    """按顺序尝试 rules, 返回第一个非空值; 全部失败返回 None"""
    for rule in rules:
        value = rule.apply(root)
        if value:
            logger.debug("字段 %s 命中 %r", field or "?", rule)
            return value
    return None
