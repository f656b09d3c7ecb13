"""
选择器回退链与取值器
"""

import pytest
from lxml import etree

from librebook.core.selectors import (
    Rule, attr, first_match, first_nonempty, inner_html, outer_html,
    own_text, parse_html, remove_all, select, select_first,
)


class TestFirstMatch:

    def test_primary_wins(self):
        root = parse_html('<div class="a">первый</div><div class="b">второй</div>')
        assert first_match(root, [Rule(".a"), Rule(".b")]) == "первый"

    def test_falls_back_to_secondary(self):
        root = parse_html('<div class="b">второй</div>')
        assert first_match(root, [Rule(".a"), Rule(".b")]) == "второй"

    def test_empty_primary_is_skipped(self):
        root = parse_html('<div class="a">   </div><div class="b">второй</div>')
        assert first_match(root, [Rule(".a"), Rule(".b")]) == "второй"

    def test_all_missing_returns_none(self):
        root = parse_html("<p>ничего</p>")
        assert first_match(root, [Rule(".a"), Rule(".b", attr("src"))]) is None

    def test_attribute_accessor(self):
        root = parse_html('<img class="x" data-original="/big.jpg" src="/blank.gif">')
        rules = [Rule("img", attr("data-original")), Rule("img", attr("src"))]
        assert first_match(root, rules) == "/big.jpg"

    def test_missing_attribute_falls_through(self):
        root = parse_html('<img class="x" src="/only.jpg">')
        rules = [Rule("img", attr("data-original")), Rule("img", attr("src"))]
        assert first_match(root, rules) == "/only.jpg"


class TestAccessors:

    def test_own_text_skips_nested_markup(self):
        root = parse_html('<h1 class="names"><span class="eng">Eng</span> Бесы <span>x</span></h1>')
        assert own_text(select_first(root, "h1")) == "Бесы"

    def test_own_text_leading_text(self):
        root = parse_html('<h1>Бесы <span class="eng">Demons</span></h1>')
        assert own_text(select_first(root, "h1")) == "Бесы"

    def test_inner_html(self):
        root = parse_html('<div class="c">a &amp; b<p>раз</p>хвост</div>')
        assert inner_html(select_first(root, ".c")) == "a &amp; b<p>раз</p>хвост"

    def test_outer_html_excludes_tail(self):
        root = parse_html("<div><p>раз</p>хвост</div>")
        assert outer_html(select_first(root, "p")) == "<p>раз</p>"


class TestDocumentHelpers:

    def test_first_nonempty_uses_first_matching_selector(self):
        root = parse_html('<i class="b">1</i><i class="b">2</i><i class="c">3</i>')
        found = first_nonempty(root, [".a", ".b", ".c"])
        assert [el.text for el in found] == ["1", "2"]

    def test_first_nonempty_none(self):
        root = parse_html("<p>x</p>")
        assert first_nonempty(root, [".a"]) == []

    def test_remove_all_keeps_tail_text(self):
        root = parse_html('<div class="c">до<script>x()</script>после</div>')
        assert remove_all(root, ["script"]) == 1
        assert select_first(root, ".c").text_content() == "допосле"

    def test_select_keeps_document_order(self):
        root = parse_html('<h1>первый</h1><h1 class="reader-title">второй</h1>')
        assert select_first(root, "h1.reader-title, h1").text == "первый"

    def test_empty_document_raises(self):
        with pytest.raises(etree.LxmlError):
            parse_html("")
