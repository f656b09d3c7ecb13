"""
librebook.me 小说源 (俄语站)

特点:
- 站点改版频繁, 同一字段在不同版本里位置不同;
  每个字段都是一张按优先级排列的选择器表, 由 first_match 依次尝试
- 章节目录三级策略:
  1. 详情页的章节表格行 (表格 class 随版本变化)
  2. 目录容器下指向 /volN/ 的链接
  3. 详情页没有章节时, 取首章阅读页 (/vol1/1?mtr=true) 上的目录表
- 正文: 阅读模式 (?mtr=true), 删除导航表格 / 评论框 / 脚本后按顺序回退
"""

import logging
import os
import re
from typing import List, Mapping, Optional, Tuple
from urllib.parse import quote, urljoin, urlsplit

from lxml import etree

from .base import Source, Fetch
from librebook.core.filters import FilterOption, PickerFilter, resolve_filters
from librebook.core.models import ChapterItem, NovelItem, NovelStatus, SourceNovel
from librebook.core.selectors import (
    Rule, attr, first_match, first_nonempty, inner_html, outer_html,
    own_text, parse_html, remove_all, select, select_first, text,
)
from librebook.core.utils import (
    classify_status, clean_text, site_relative, strip_marker,
    strip_query_param, with_query_marker,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════
# 常量
# ══════════════════════════════════════════════════════════════

SITE = "https://1.librebook.me"
PAGE_SIZE = 70

READER_MARKER = "mtr=true"          # 阅读模式 (单页正文 + 目录表)
TRACKING_PARAM = "mtr"
VOLUME_MARKER = "/vol"
CONTENTS_PAGE = "/vol1/1"

TITLE_BOILERPLATE = "Электронная книга Другие имена"
NEW_MARKERS = ("новое", "new")

COMPLETED_PHRASES = (
    "выпуск завершён", "выпуск завершен",
    "перевод завершён", "перевод завершен",
    "завершён", "завершен",
)
ONGOING_PHRASES = (
    "выпуск продолжается", "продолжается", "переводится",
)


# ══════════════════════════════════════════════════════════════
# 选择器表 (新布局 = 加一行)
# ══════════════════════════════════════════════════════════════

def _heading_title(el) -> str:
    """h1 文本去掉固定前缀, 取 | 之前的部分"""
    value = clean_text(el.text_content()).replace(TITLE_BOILERPLATE, "")
    return value.split("|")[0].strip()


def _cell_text(el) -> str:
    """不含链接的单元格文本 (避免把章节名当成日期)"""
    if select(el, "a"):
        return ""
    return text(el)


def _markup(el) -> str:
    """内部标记; 只有空白时视为缺失"""
    value = inner_html(el)
    return value if value.strip() else ""


TILE_SELECTORS = (".tile",)
TILE_NAME_RULES = (
    Rule(".desc h3 a"),
    Rule(".desc h4 a"),
)
TILE_PATH_RULES = (
    Rule(".desc h3 a", attr("href")),
    Rule(".desc h4 a", attr("href")),
)
TILE_COVER_RULES = (
    Rule(".img img", attr("data-original")),
    Rule(".img img", attr("src")),
)

TITLE_RULES = (
    Rule(".names .name"),
    Rule(".names", own_text),
    Rule("h1", _heading_title),
)
COVER_RULES = (
    Rule(".picture-fotorama img", attr("src")),
    Rule(".picture-fotorama img", attr("data-original")),
    Rule(".subject-cover img", attr("src")),
    Rule(".subject-cover img", attr("data-original")),
)
AUTHOR_RULES = (
    Rule(".elem_author a"),
    Rule(".elem_author .person-link"),
)
GENRE_SELECTORS = (
    ".elem_genre a",
    ".elem_genre .element-link",
)
SUMMARY_RULES = (
    Rule(".leftContent .manga-description"),
    Rule("#tab-description .manga-description"),
    Rule("#tab-description"),
    Rule(".manga-description"),
    Rule("meta[name='description']", attr("content")),
)
STATUS_SELECTORS = (
    ".subject-meta .badge",
    ".subject-meta",
)

CHAPTER_ROW_SELECTORS = (
    ".chapters-link table tr",
    "table.table-hover tr",
    ".chapters table tr",
)
CONTENTS_ROW_SELECTORS = CHAPTER_ROW_SELECTORS + ("table tr",)
CHAPTER_LINK_SELECTORS = ("a.chapter-link", "a[href]")
RELEASE_RULES = (
    Rule("[data-date]", attr("data-date")),
    Rule("td.date"),
    Rule("td:last-child", _cell_text),
)
TOC_CONTAINERS = (
    ".chapters-link",
    "#chapters-list",
    ".chapters",
    ".chapter-list",
)

NOISE_SELECTORS = ("table", ".comments-form", ".reader-controls", "script", "style")
CONTENT_RULES = (
    Rule(".read-text", _markup),
    Rule(".reader-content", _markup),
)
HEADING_SELECTOR = "h1.reader-title, h1"
BOUNDARY_TAGS = ("table",)
BOUNDARY_CLASSES = ("comments-form",)
CONTENT_TAGS = ("p", "div", "br")


# ══════════════════════════════════════════════════════════════
# 筛选器 / URL 构建
# ══════════════════════════════════════════════════════════════

FILTERS = {
    "sort": PickerFilter(
        label="Сортировка",
        value="rate",
        options=(
            FilterOption("По рейтингу", "rate"),
            FilterOption("По популярности", "popularity"),
            FilterOption("По дате обновления", "updated"),
            FilterOption("По дате добавления", "created"),
            FilterOption("По названию", "name"),
        ),
    ),
    "category": PickerFilter(
        label="Категория",
        value="",
        options=(
            FilterOption("Все", ""),
            FilterOption("Проза", "proza"),
            FilterOption("Классическая литература", "klassicheskaia_literatura"),
            FilterOption("Ранобэ", "light_novel"),
            FilterOption("Бульварная проза", "bulvarnaia_proza"),
            FilterOption("Детская", "children"),
            FilterOption("Сетевая публикация", "setevaia_publikaciia"),
            FilterOption("Эпос", "epos"),
            FilterOption("Лирика", "lirika"),
            FilterOption("Публицистика", "publicistika"),
            FilterOption("Искусство", "art"),
            FilterOption("Наука и образование", "nauka_i_obrazovanie"),
        ),
    ),
}

LATEST_SORT = "created"


def build_popular_url(
    site: str,
    page: int,
    show_latest_novels: bool = False,
    filters: Optional[Mapping[str, Optional[str]]] = None,
) -> str:
    """
    列表页 URL

    offset = (page - 1) * PAGE_SIZE; 选了分类时换成分类路径, 排序参数保留。
    """
    if page < 1:
        raise ValueError(f"页码从 1 开始: {page}")
    selected = resolve_filters(FILTERS, filters)
    sort = LATEST_SORT if show_latest_novels else selected["sort"]
    category = selected["category"]
    path = f"/list/category/{category}?" if category else "/list?"
    return f"{site}{path}sortType={sort}&offset={(page - 1) * PAGE_SIZE}"


_URI_COMPONENT_SAFE = "!~*'()"   # 与 encodeURIComponent 保留的字符一致


def build_search_url(site: str, term: str) -> str:
    return f"{site}/search?q={quote(term, safe=_URI_COMPONENT_SAFE)}"


def build_reader_url(site: str, path: str) -> str:
    return site + with_query_marker(path, READER_MARKER)


# ══════════════════════════════════════════════════════════════
# 字段提取
# ══════════════════════════════════════════════════════════════

def extract_title(root) -> str:
    return first_match(root, TITLE_RULES, "title") or ""


def extract_cover(root) -> Optional[str]:
    return first_match(root, COVER_RULES, "cover")


def extract_author(root) -> Optional[str]:
    return first_match(root, AUTHOR_RULES, "author")


def extract_genres(root) -> str:
    genres = [text(el) for el in first_nonempty(root, GENRE_SELECTORS)]
    return ", ".join(g for g in genres if g)


def extract_summary(root) -> Optional[str]:
    return first_match(root, SUMMARY_RULES, "summary")


def extract_status(root) -> NovelStatus:
    """按 STATUS_SELECTORS 顺序取文本归类, 第一个能归类的结果胜出"""
    for selector in STATUS_SELECTORS:
        found = select(root, selector)
        if not found:
            continue
        value = " ".join(text(el) for el in found)
        status = classify_status(value, COMPLETED_PHRASES, ONGOING_PHRASES)
        if status is not NovelStatus.UNKNOWN:
            return status
    return NovelStatus.UNKNOWN


def _chapter_from_link(link, release: Optional[str] = None) -> Optional[Tuple[str, str, Optional[str]]]:
    href = (link.get("href") or "").strip()
    name = strip_marker(link.text_content(), NEW_MARKERS)
    if not href or not name or VOLUME_MARKER not in href:
        return None
    return name, href, release or None


def _chapter_from_row(row) -> Optional[Tuple[str, str, Optional[str]]]:
    link = None
    for selector in CHAPTER_LINK_SELECTORS:
        link = select_first(row, selector)
        if link is not None:
            break
    if link is None:
        return None
    return _chapter_from_link(link, first_match(row, RELEASE_RULES))


def _row_candidates(root, row_selectors) -> list:
    for selector in row_selectors:
        candidates = [_chapter_from_row(row) for row in select(root, selector)]
        candidates = [c for c in candidates if c]
        if candidates:
            logger.debug("章节表格命中: %s (%d)", selector, len(candidates))
            return candidates
    return []


def _anchor_candidates(root) -> list:
    for container in TOC_CONTAINERS:
        anchors = select(root, f"{container} a[href*='{VOLUME_MARKER}']")
        candidates = [_chapter_from_link(a) for a in anchors]
        candidates = [c for c in candidates if c]
        if candidates:
            logger.debug("目录链接命中: %s (%d)", container, len(candidates))
            return candidates
    return []


def extract_chapters(root, site: str, row_selectors=CHAPTER_ROW_SELECTORS) -> List[ChapterItem]:
    """
    章节目录: 先扫表格行, 没有再扫目录容器里的链接

    章节顺序 = 文档顺序, chapter_number 按位置从 1 编号; 同一路径只保留第一次出现。
    """
    candidates = _row_candidates(root, row_selectors) or _anchor_candidates(root)

    chapters: List[ChapterItem] = []
    seen = set()
    for name, href, release in candidates:
        path = _relative_path(href, site)
        if not path or path in seen:
            continue
        seen.add(path)
        chapters.append(ChapterItem(
            name=name, path=path, release_time=release,
            chapter_number=len(chapters) + 1,
        ))
    return chapters


def _relative_path(href: Optional[str], site: str) -> Optional[str]:
    """站内路径 (去掉跟踪参数); 外站链接返回 None"""
    if not href:
        return None
    try:
        return site_relative(strip_query_param(href, TRACKING_PARAM), site)
    except ValueError:
        logger.debug("忽略外站链接: %s", href)
        return None


# ══════════════════════════════════════════════════════════════
# 页面解析
# ══════════════════════════════════════════════════════════════

def parse_tiles(root, site: str) -> List[NovelItem]:
    """列表 / 搜索结果: 缺书名或路径的条目直接丢弃"""
    items = [_tile_item(tile, site) for tile in first_nonempty(root, TILE_SELECTORS)]
    return [item for item in items if item]


def _tile_item(tile, site: str) -> Optional[NovelItem]:
    name = first_match(tile, TILE_NAME_RULES)
    path = _relative_path(first_match(tile, TILE_PATH_RULES), site)
    if not name or not path:
        return None
    cover = first_match(tile, TILE_COVER_RULES)
    return NovelItem(name=name, path=path, cover=urljoin(site + "/", cover) if cover else None)


def _is_attached(el, root) -> bool:
    return any(ancestor is root for ancestor in el.iterancestors())


def _sibling_run(heading) -> list:
    """标题之后的兄弟元素, 遇到表格或评论框为止"""
    run = []
    for el in heading.itersiblings():
        if not isinstance(el.tag, str):
            continue
        if el.tag in BOUNDARY_TAGS or any(c in el.classes for c in BOUNDARY_CLASSES):
            break
        run.append(el)
    return run


def _raw_between_heading_and_table(raw: str) -> str:
    head = re.search(r"</h1\s*>", raw, re.IGNORECASE)
    table = re.search(r"<table\b", raw, re.IGNORECASE)
    if head and table and table.start() > head.end():
        fragment = raw[head.end():table.start()]
        if fragment.strip():
            return fragment
    return ""


def extract_chapter_body(raw: str) -> str:
    """
    正文提取, 依次尝试:
      1. .read-text / .reader-content 的内部标记
      2. 从第一个 h1 往后收集 p / div / br, 遇到表格或评论框停止
      3. 原始 HTML 中第一个 </h1> 与第一个 <table 之间的片段
    全部失败返回空串。
    """
    if not raw or not raw.strip():
        return ""
    try:
        root = parse_html(raw)
    except etree.ParserError as e:
        logger.debug("正文: 页面无法解析 (%s)", e)
        return ""

    # 边界要在删除表格之前确定
    heading = select_first(root, HEADING_SELECTOR)
    run = _sibling_run(heading) if heading is not None else []

    remove_all(root, NOISE_SELECTORS)

    body = first_match(root, CONTENT_RULES, "chapter")
    if body:
        return body

    walked = "".join(
        outer_html(el) for el in run
        if el.tag in CONTENT_TAGS and _is_attached(el, root)
    )
    if walked.strip():
        logger.debug("正文: 使用标题后兄弟元素")
        return walked

    logger.debug("正文: 使用原始 HTML 片段")
    return _raw_between_heading_and_table(raw)


# ══════════════════════════════════════════════════════════════
# Source 实现
# ══════════════════════════════════════════════════════════════

class LibreBookSource(Source):
    """librebook.me 电子书"""

    id = "librebook"
    match = [
        r"librebook\.me",
    ]
    names = ["LibreBook"]
    site = SITE
    version = "1.0.0"
    icon = "src/ru/librebook/icon.png"
    filters = FILTERS

    def __init__(self, site: Optional[str] = None, fetch: Optional[Fetch] = None):
        super().__init__(site or os.environ.get("LIBREBOOK_SITE"), fetch)

    # ── URL 识别 ──

    def detect_url_type(self, url: str) -> str:
        path = urlsplit(url).path.rstrip("/")
        if re.search(r"/vol\d+/\d+", path):
            return "chapter"
        if re.fullmatch(r"/[^/]+", path) and path not in ("/list", "/search"):
            return "novel"
        return "unknown"

    # ── 列表 / 搜索 ──

    def popular_novels(
        self,
        page: int,
        show_latest_novels: bool = False,
        filters: Optional[Mapping[str, Optional[str]]] = None,
    ) -> List[NovelItem]:
        url = build_popular_url(self.site, page, show_latest_novels, filters)
        novels = parse_tiles(parse_html(self.fetch(url)), self.site)
        logger.info("[*] 列表第 %d 页: %d 本", page, len(novels))
        return novels

    def search_novels(self, term: str, page: int = 1) -> List[NovelItem]:
        # 搜索结果只有一页
        term = term.strip()
        if page > 1 or not term:
            return []
        url = build_search_url(self.site, term)
        novels = parse_tiles(parse_html(self.fetch(url)), self.site)
        logger.info("[*] 搜索 %r: %d 本", term, len(novels))
        return novels

    # ── 书籍详情 ──

    def parse_novel(self, path: str) -> SourceNovel:
        path = _relative_path(path, self.site)
        if not path:
            raise ValueError("书籍路径为空")
        root = parse_html(self.fetch(self.site + path))

        novel = SourceNovel(
            path=path,
            name=extract_title(root),
            cover=extract_cover(root),
            author=extract_author(root),
            genres=extract_genres(root),
            summary=extract_summary(root),
            status=extract_status(root),
        )
        if novel.cover:
            novel.cover = urljoin(self.site + "/", novel.cover)

        novel.chapters = extract_chapters(root, self.site)
        if not novel.chapters:
            novel.chapters = self._fetch_contents_chapters(path)

        logger.info("[*] 解析完成: %s (%d 章)", novel.name, len(novel.chapters))
        return novel

    def _fetch_contents_chapters(self, path: str) -> List[ChapterItem]:
        """首章阅读页上的目录表; 获取失败视为没有章节"""
        url = build_reader_url(self.site, path.rstrip("/") + CONTENTS_PAGE)
        try:
            root = parse_html(self.fetch(url))
        except Exception as e:
            logger.warning("[!] 目录页获取失败 %s: %s", url, e)
            return []
        return extract_chapters(root, self.site, CONTENTS_ROW_SELECTORS)

    # ── 正文 ──

    def parse_chapter(self, path: str) -> str:
        path = _relative_path(path, self.site)
        if not path:
            raise ValueError("章节路径为空")
        return extract_chapter_body(self.fetch(build_reader_url(self.site, path)))
