#!/usr/bin/env python3
"""
Tests for page normalization (docsbook/normalize_page.py)

Run: pytest tests/test_normalize_page.py -v
"""

import re
import sys
from pathlib import Path

from bs4 import BeautifulSoup

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from docsbook.normalize_page import (
    demote_markdown,
    failed_fragment,
    normalize_markdown_page,
    normalize_page_html,
)
from docsbook.site_structure import PageDescriptor


PAGE = PageDescriptor(title="Getting started", locator="https://nuejs.org/docs/getting-started")


def make_page(main_inner: str, outside: str = "") -> str:
    return (
        "<!DOCTYPE html><html><head><script>var x = 1;</script></head><body>"
        f'<header id="top">{outside}</header>'
        f"<main>{main_inner}</main>"
        "</body></html>"
    )


def ids_in(markup: str) -> list[str]:
    return [t["id"] for t in BeautifulSoup(markup, "html.parser").find_all(id=True)]


def normalize(main_inner: str, counter: int = 0, **kw):
    return normalize_page_html(make_page(main_inner), PAGE, 1, 2, counter, **kw)


# ═══════════════════════════════════════════════════════════════════════════
# Non-portable nodes
# ═══════════════════════════════════════════════════════════════════════════

class TestStripping:
    def test_call_to_action_removed(self):
        frag, _ = normalize('<p>Body</p><div class="learn-more"><a href="/docs/x">More</a></div>')
        assert "learn-more" not in frag.body
        assert "More" not in frag.body
        assert "<p>Body</p>" in frag.body

    def test_images_removed(self):
        frag, _ = normalize('<p>Text<img src="a.png"></p><figure><img src="b.png"></figure>')
        assert "<img" not in frag.body
        assert "Text" in frag.body

    def test_scripts_removed(self):
        frag, _ = normalize("<p>Text</p><script>alert(1)</script>")
        assert "<script" not in frag.body
        assert "alert" not in frag.body

    def test_content_outside_main_dropped(self):
        frag, _ = normalize_page_html(make_page("<p>In</p>", outside="<p>Out</p>"), PAGE, 1, 1, 0)
        assert "Out" not in frag.body

    def test_custom_strip_selectors(self):
        frag, _ = normalize('<p>Keep</p><aside class="promo">Buy</aside>', strip_selectors=("aside.promo",))
        assert "Buy" not in frag.body

    def test_missing_content_root_yields_failed_fragment(self):
        frag, counter = normalize_page_html("<html><body><p>x</p></body></html>", PAGE, 1, 1, 7)
        assert frag.is_empty
        assert "main" in frag.error
        assert counter == 7
        assert (frag.id_range_start, frag.id_range_end) == (7, 7)


# ═══════════════════════════════════════════════════════════════════════════
# Id remapping
# ═══════════════════════════════════════════════════════════════════════════

class TestIdRemapping:
    def test_ids_renumbered_in_document_order(self):
        frag, counter = normalize('<h1 id="intro">A</h1><p id="p">x</p><h2 id="setup">B</h2>')
        assert ids_in(frag.body) == ["id1", "id2", "id3"]
        assert counter == 3

    def test_counter_continues_from_input(self):
        frag, counter = normalize('<h2 id="a">A</h2><h2 id="b">B</h2>', counter=10)
        assert ids_in(frag.body) == ["id11", "id12"]
        assert (frag.id_range_start, frag.id_range_end) == (10, 12)
        assert counter == 12

    def test_original_id_text_irrelevant(self):
        frag, _ = normalize('<p id="id1">x</p><p id="id1">y</p>', counter=0)
        assert ids_in(frag.body) == ["id1", "id2"]

    def test_removed_nodes_do_not_consume_ids(self):
        frag, counter = normalize('<div class="learn-more" id="lm"></div><p id="a">x</p>')
        assert ids_in(frag.body) == ["id1"]
        assert counter == 1

    def test_no_ids_leaves_counter(self):
        frag, counter = normalize("<p>plain</p>", counter=4)
        assert counter == 4
        assert frag.ids_claimed == 0

    def test_consecutive_pages_never_overlap(self):
        f1, c = normalize('<h1 id="x">A</h1><p id="y">a</p>', counter=0)
        f2, c = normalize('<h1 id="x">B</h1>', counter=c)
        f3, c = normalize('<p id="x">C</p><p id="z">D</p>', counter=c)
        all_ids = ids_in(f1.body) + ids_in(f2.body) + ids_in(f3.body)
        assert len(all_ids) == len(set(all_ids)) == 5
        assert all(re.fullmatch(r"id\d+", i) for i in all_ids)
        assert f1.id_range_end == f2.id_range_start
        assert f2.id_range_end == f3.id_range_start


# ═══════════════════════════════════════════════════════════════════════════
# In-page links
# ═══════════════════════════════════════════════════════════════════════════

class TestInPageLinks:
    def test_hash_links_become_inert(self):
        frag, _ = normalize('<p><a href="#setup" class="x">Setup</a></p>')
        a = BeautifulSoup(frag.body, "html.parser").find("a")
        assert a is not None
        assert not a.has_attr("href")
        assert a["class"] == ["x"]
        assert a.get_text() == "Setup"

    def test_other_links_untouched(self):
        frag, _ = normalize('<a href="/docs/nuekit">Nuekit</a><a href="https://x.org">X</a>')
        assert 'href="/docs/nuekit"' in frag.body
        assert 'href="https://x.org"' in frag.body


# ═══════════════════════════════════════════════════════════════════════════
# Heading demotion
# ═══════════════════════════════════════════════════════════════════════════

class TestHeadingDemotion:
    def test_h1_becomes_h2_with_attributes(self):
        frag, _ = normalize('<h1 id="t" class="title">Getting <em>started</em></h1>')
        h = BeautifulSoup(frag.body, "html.parser").find("h2")
        assert h["id"] == "id1"
        assert h["class"] == ["title"]
        assert h.em.get_text() == "started"
        assert "<h1" not in frag.body

    def test_h2_becomes_h3(self):
        frag, _ = normalize('<h2 id="s">Setup</h2>')
        assert '<h3 id="id1">Setup</h3>' in frag.body

    def test_no_heading_demoted_twice(self):
        frag, _ = normalize("<h1>Top</h1><h2>Sub</h2>")
        soup = BeautifulSoup(frag.body, "html.parser")
        assert soup.find("h2").get_text() == "Top"
        assert soup.find("h3").get_text() == "Sub"
        assert soup.find("h4") is None

    def test_deeper_levels_left_alone(self):
        frag, _ = normalize("<h3>Deep</h3><h4>Deeper</h4>")
        assert "<h3>Deep</h3>" in frag.body
        assert "<h4>Deeper</h4>" in frag.body

    def test_title_from_descriptor(self):
        frag, _ = normalize("<h1>Completely different</h1>")
        assert frag.title == "Getting started"
        assert (frag.section_number, frag.page_index) == (1, 2)


# ═══════════════════════════════════════════════════════════════════════════
# Markdown pages
# ═══════════════════════════════════════════════════════════════════════════

class TestMarkdown:
    def test_title_dropped_and_headings_demoted(self):
        out = demote_markdown("# Title\n\nIntro\n\n## Setup\n\n### Details\n")
        assert out.split("\n") == ["", "", "Intro", "", "### Setup", "", "#### Details", ""]

    def test_code_fences_untouched(self):
        md = "## Run\n```sh\n# comment\n## not a heading\n```\n"
        out = demote_markdown(md)
        assert "### Run" in out
        assert "# comment\n## not a heading" in out

    def test_hash_without_space_is_not_heading(self):
        assert demote_markdown("#hashtag") == "#hashtag"

    def test_markdown_fragment_counter_unchanged(self):
        frag, counter = normalize_markdown_page("# T\n\nBody", PAGE, 2, 1, 5)
        assert counter == 5
        assert frag.body.strip() == "Body"
        assert frag.error is None

    def test_empty_markdown_marked_failed(self):
        frag, _ = normalize_markdown_page("# Only a title\n", PAGE, 1, 1, 0)
        assert frag.is_empty
        assert frag.error


class TestFailedFragment:
    def test_failed_fragment_shape(self):
        frag = failed_fragment(PAGE, 3, 4, 9, "timeout")
        assert frag.is_empty
        assert frag.error == "timeout"
        assert frag.title == "Getting started"
        assert (frag.id_range_start, frag.id_range_end) == (9, 9)
